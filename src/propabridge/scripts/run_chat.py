"""
Chat interactivo con el asistente desde la terminal.

Uso:
    python -m propabridge.scripts.run_chat
    python -m propabridge.scripts.run_chat --phone +2348000000001 --keywords-only

Comandos: /reset limpia el contexto, /quit sale.
"""

import argparse
import asyncio
import sys
from typing import Optional

import structlog

from propabridge.analysis import CriteriaExtractor
from propabridge.chat import ChatAssistant, ConversationContext
from propabridge.database import ConversationRepository
from propabridge.errors import ConfigurationError
from propabridge.scripts import configure_logging

logger = structlog.get_logger()


def build_assistant(keywords_only: bool, persist: bool) -> ChatAssistant:
    extractor = None
    if not keywords_only:
        try:
            extractor = CriteriaExtractor()
        except ConfigurationError as e:
            logger.info("LLM no configurado, usando keywords", reason=str(e))

    conversations = ConversationRepository() if persist else None
    return ChatAssistant(extractor=extractor, conversations=conversations)


async def chat_loop(assistant: ChatAssistant, phone: Optional[str] = None):
    context = ConversationContext()
    print("Propabridge chat. Escribí /quit para salir o /reset para limpiar el contexto.\n")

    while True:
        try:
            message = await asyncio.to_thread(input, "> ")
        except EOFError:
            break

        message = message.strip()
        if not message:
            continue
        if message == "/quit":
            break
        if message == "/reset":
            context.clear()
            print("Contexto limpio.\n")
            continue

        reply = await assistant.process_message(message, context, phone=phone)
        print(f"\n{reply.text}\n")


def main():
    """Entry point del script."""
    parser = argparse.ArgumentParser(description="Chat con el asistente de Propabridge")
    parser.add_argument("--phone", help="Teléfono para guardar el historial en la base")
    parser.add_argument("--keywords-only", action="store_true", help="No usar el LLM")
    parser.add_argument("--log-level", dest="log_level", default="WARNING")
    args = parser.parse_args()

    configure_logging(args.log_level)
    assistant = build_assistant(args.keywords_only, persist=bool(args.phone))

    try:
        asyncio.run(chat_loop(assistant, phone=args.phone))
    except KeyboardInterrupt:
        pass
    sys.exit(0)


if __name__ == "__main__":
    main()
