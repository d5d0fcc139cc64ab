"""
Asistente de chat.

Procesa mensajes de texto libre y responde con propiedades,
sugerencias o respuestas fijas según la intención.
"""

from propabridge.chat.context import ConversationContext
from propabridge.chat.assistant import ChatAssistant, ChatReply
from propabridge.chat.formatting import (
    format_listing_for_chat,
    format_price,
    format_suggestions,
)

__all__ = [
    "ConversationContext",
    "ChatAssistant",
    "ChatReply",
    "format_listing_for_chat",
    "format_price",
    "format_suggestions",
]
