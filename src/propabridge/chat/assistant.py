"""
Asistente de chat.

Une extracción de criterios, matching y sugerencias para responder
mensajes de usuarios. No conoce el transporte (WhatsApp, web): recibe
texto y devuelve un ChatReply.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import structlog

from propabridge.analysis import CriteriaExtractor, KeywordCriteriaParser
from propabridge.chat.context import ConversationContext
from propabridge.chat.formatting import format_listings, format_suggestions
from propabridge.database import ConversationRepository
from propabridge.errors import ExtractionError, RepositoryError
from propabridge.matching import MatchingEngine, ScoredListing, Suggestions
from propabridge.models import ConversationExchange, Intent, SearchCriteria

logger = structlog.get_logger()

CANNED_REPLIES: dict[Intent, str] = {
    Intent.GREETING: (
        "👋 Hello! I'm your Propabridge assistant.\n\n"
        "I can help you:\n• Find properties in Nigeria\n• Schedule viewings\n• List your property\n\n"
        "What would you like to do?"
    ),
    Intent.INQUIRE_SPECIFIC: (
        "I'd be happy to share details about that property! Could you tell me the "
        "Property ID or which one you're interested in (1st, 2nd, etc.)?"
    ),
    Intent.SCHEDULE_VIEWING: (
        "📅 Great! I'll connect you with the landlord to schedule a viewing.\n\n"
        "Which property are you interested in? (Send the Property ID)"
    ),
    Intent.PRICE_NEGOTIATION: (
        "💬 I understand! Property prices are often negotiable. I can connect you with "
        "the landlord to discuss the price.\n\nWhich property would you like to negotiate on?"
    ),
    Intent.LIST_PROPERTY: (
        "🏠 Excellent! I can help you list your property.\n\n"
        "To get started, I'll need:\n1. Property location\n2. Number of bedrooms\n"
        "3. Annual rent price\n4. Photos (optional)\n\n"
        "Reply with these details or visit our website to list: propabridge.ng/list"
    ),
    Intent.OTHER: (
        "🤔 I'm not quite sure what you mean. I can help you:\n\n"
        "• *Search* for properties (e.g., '3 bedroom flat in Lekki under 3M')\n"
        "• *Schedule viewings*\n• *List your property*\n\nWhat would you like to do?"
    ),
}

SEARCH_ERROR_REPLY = "⚠️ I'm having trouble searching right now. Please try again in a moment."
ERROR_REPLY = "Sorry, I encountered an error processing your request. Please try again later."


@dataclass
class ChatReply:
    """Respuesta del asistente a un mensaje."""

    intent: str
    text: str
    kind: str = "text"  # "text" | "property_results"
    criteria: Optional[SearchCriteria] = None
    matches: list[ScoredListing] = field(default_factory=list)
    suggestions: Optional[Suggestions] = None
    summary: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ChatAssistant:
    """
    Procesa mensajes de chat.

    Flujo:
    1. Intención por LLM (fallback: reglas de keywords)
    2. Si es búsqueda: criterios por LLM (fallback: parser de keywords)
    3. Matching + sugerencias, o respuesta fija según la intención
    4. Guardar el intercambio en el contexto (y en la base si hay teléfono)
    """

    def __init__(
        self,
        engine: Optional[MatchingEngine] = None,
        extractor: Optional[CriteriaExtractor] = None,
        parser: Optional[KeywordCriteriaParser] = None,
        conversations: Optional[ConversationRepository] = None,
    ):
        self.engine = engine or MatchingEngine()
        self.extractor = extractor
        self.parser = parser or KeywordCriteriaParser()
        self.conversations = conversations

    async def process_message(
        self,
        message: str,
        context: ConversationContext,
        phone: Optional[str] = None,
    ) -> ChatReply:
        """
        Responde un mensaje del usuario.

        Nunca lanza: ante un error inesperado devuelve intent='error'
        con un mensaje genérico.
        """
        try:
            intent = await self._determine_intent(message, context)

            if intent.is_search:
                criteria = await self._extract_criteria(message, context)
                if intent == Intent.SHOW_MORE:
                    previous = context.last_criteria()
                    if previous is not None:
                        criteria = previous.merged_with(criteria)
                reply = self._search_reply(intent, criteria)
            else:
                reply = ChatReply(intent=intent.value, text=CANNED_REPLIES[intent])

        except Exception as e:
            logger.error("Error procesando mensaje", error=str(e), message=message[:100])
            return ChatReply(intent="error", text=ERROR_REPLY)

        exchange = ConversationExchange(
            message=message,
            intent=reply.intent,
            criteria=reply.criteria,
            response=reply.text,
            timestamp=reply.timestamp,
        )
        context.add(exchange)
        self._persist(phone, exchange)

        logger.info(
            "Mensaje procesado",
            intent=reply.intent,
            kind=reply.kind,
            matches=len(reply.matches),
        )
        return reply

    async def _determine_intent(self, message: str, context: ConversationContext) -> Intent:
        if self.extractor is not None:
            try:
                return await self.extractor.determine_intent(message, context)
            except ExtractionError as e:
                logger.warning("Intención por LLM falló, usando keywords", error=str(e))
        return self.parser.detect_intent(message)

    async def _extract_criteria(
        self, message: str, context: ConversationContext
    ) -> SearchCriteria:
        if self.extractor is not None:
            try:
                return await self.extractor.extract(message, context)
            except ExtractionError as e:
                logger.warning("Extracción por LLM falló, usando keywords", error=str(e))
        return self.parser.parse(message)

    def _search_reply(self, intent: Intent, criteria: SearchCriteria) -> ChatReply:
        try:
            outcome = self.engine.search(criteria)
        except RepositoryError as e:
            logger.error("Error buscando propiedades", error=str(e))
            return ChatReply(intent=intent.value, text=SEARCH_ERROR_REPLY, criteria=criteria)

        if not outcome.matches:
            return ChatReply(
                intent=intent.value,
                text=format_suggestions(outcome.suggestions),
                criteria=criteria,
                suggestions=outcome.suggestions,
            )

        count = len(outcome.matches)
        summary = f"Found {count} {'property' if count == 1 else 'properties'} matching your search!"
        return ChatReply(
            intent=intent.value,
            text=f"{summary}\n\n{format_listings(outcome.matches)}",
            kind="property_results",
            criteria=criteria,
            matches=outcome.matches,
            suggestions=outcome.suggestions,
            summary=summary,
        )

    def _persist(self, phone: Optional[str], exchange: ConversationExchange) -> None:
        if self.conversations is None or not phone:
            return
        try:
            self.conversations.create(phone, exchange)
        except RepositoryError as e:
            logger.warning("No se pudo guardar la conversación", phone=phone, error=str(e))
