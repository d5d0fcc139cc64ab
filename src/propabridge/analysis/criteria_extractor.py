"""
Extracción de intención y criterios de búsqueda con LLM.

Convierte mensajes como "3 bedroom flat in Lekki under 3M" en
SearchCriteria. Cada llamada es un único intento: cualquier error del
proveedor, del JSON o de validación se reporta como ExtractionError y
el llamador decide el fallback.
"""

import json
import re
from typing import Iterable, Optional

import structlog
from pydantic import ValidationError

from propabridge.analysis.llm_providers import BaseLLMProvider, get_llm_provider
from propabridge.config import LOCATION_NORMALIZATION, get_settings
from propabridge.errors import ExtractionError
from propabridge.models import ConversationExchange, Intent, SearchCriteria

logger = structlog.get_logger()

INTENT_SYSTEM_PROMPT = """You are an AI assistant for a real estate platform called Propabridge in Nigeria.
Your job is to determine the intent of the user's message.

Possible intents:
- greeting: When the user greets (hi, hello, hey, good morning, etc.)
- search: When the user is looking for properties (mentions location, bedrooms, price, property type)
- inquire_specific: When asking about a specific property by ID or previously mentioned
- schedule_viewing: When user wants to see/visit a property ('when can I see', 'book viewing', 'schedule appointment')
- price_negotiation: When discussing price ('too expensive', 'can we negotiate', 'lower price', 'discount')
- list_property: When user wants to list their property ('I want to list', 'I have a property', 'I'm a landlord')
- show_more: When user wants to see more results ('show me more', 'any others', 'next')
- other: For any other type of message

Respond with ONLY the intent keyword (nothing else)."""

EXTRACTION_SYSTEM_PROMPT = """Extract real estate search parameters from the user's message for Nigerian properties.

Look for:
- location: Desired location (support abbreviations: 'V.I' = 'Victoria Island', 'Wuse' = 'Wuse 2')
- propertyType: Type of property (flat, apartment, duplex, detached, terrace, land, commercial)
- minPrice: Minimum annual price in Naira (handle formats like '2M' = 2000000, '2.5M' = 2500000, '2-3M' means minPrice=2000000, maxPrice=3000000)
- maxPrice: Maximum annual price in Naira (same format rules)
- bedrooms: Number of bedrooms (handle formats like '2bed', 'two bedroom', '2br', 'at least 3' = 3)
- amenities: List of requested amenities (parking, pool, gym, security, power, water, gated, bq)

If the user says 'show more' or 'any others', use the previous search criteria.

Return ONLY a valid JSON object with these fields. Only include fields that are mentioned or can be inferred from the previous criteria."""


def clean_json_response(raw_text: str) -> str:
    """Quita los bloques ```json ... ``` que suelen agregar los modelos."""
    text = (raw_text or "").strip()
    if text.startswith("```"):
        parts = text.split("```")
        if len(parts) >= 2:
            text = parts[1]
            if text.lower().startswith("json"):
                text = text[4:]
    return text.strip()


def normalize_location(location: Optional[str]) -> Optional[str]:
    """
    Reemplaza abreviaturas conocidas por el nombre completo.

    Compara por palabra completa para no confundir 'vi' con 'Victoria'
    o 'Ivy Court'.
    """
    if not location:
        return location
    lowered = location.lower()
    for alias, full_name in LOCATION_NORMALIZATION.items():
        if re.search(rf"(?<![\w.]){re.escape(alias)}(?![\w])", lowered):
            return full_name
    return location


def recent_history(
    history: Optional[Iterable[ConversationExchange]],
    window: Optional[int] = None,
) -> list[ConversationExchange]:
    """Últimos `window` intercambios del historial."""
    window = window or get_settings().conversation_window
    exchanges = list(history or [])
    return exchanges[-window:]


def last_criteria(history: Iterable[ConversationExchange]) -> Optional[SearchCriteria]:
    """Criterios de la búsqueda más reciente del historial."""
    for exchange in reversed(list(history)):
        if exchange.criteria is not None:
            return exchange.criteria
    return None


class CriteriaExtractor:
    """
    Intención + criterios de búsqueda usando un proveedor LLM.

    Uso:
        extractor = CriteriaExtractor()  # usa settings.llm_provider
        intent = await extractor.determine_intent(message, history)
        criteria = await extractor.extract(message, history)
    """

    def __init__(self, provider: Optional[BaseLLMProvider] = None):
        self._provider = provider or get_llm_provider()

    @property
    def provider(self) -> BaseLLMProvider:
        return self._provider

    async def determine_intent(
        self,
        message: str,
        history: Optional[Iterable[ConversationExchange]] = None,
    ) -> Intent:
        """
        Clasifica el mensaje en una de las intenciones conocidas.

        Raises:
            ExtractionError: Si el proveedor falla
        """
        previous = recent_history(history)
        prompt = self._build_intent_prompt(message, previous)

        try:
            response = await self._provider.generate(
                system_prompt=INTENT_SYSTEM_PROMPT,
                user_prompt=prompt,
                temperature=0.0,
                max_tokens=16,
            )
        except Exception as e:
            logger.error("Error determinando intención", error=str(e))
            raise ExtractionError(f"No se pudo determinar la intención: {e}") from e

        intent = Intent.parse(response.text)
        logger.debug("Intención detectada", intent=intent.value, raw=response.text[:40])
        return intent

    async def extract(
        self,
        message: str,
        history: Optional[Iterable[ConversationExchange]] = None,
    ) -> SearchCriteria:
        """
        Extrae criterios de búsqueda del mensaje.

        Returns:
            SearchCriteria (posiblemente vacío)

        Raises:
            ExtractionError: Si falla el proveedor, el JSON o la validación
        """
        previous = last_criteria(recent_history(history))
        prompt = self._build_extraction_prompt(message, previous)

        raw_text = ""
        try:
            response = await self._provider.generate(
                system_prompt=EXTRACTION_SYSTEM_PROMPT,
                user_prompt=prompt,
                temperature=0.1,
                max_tokens=256,
            )
            raw_text = clean_json_response(response.text)
            data = json.loads(raw_text)
            if not isinstance(data, dict):
                raise ValueError(f"se esperaba un objeto JSON, llegó {type(data).__name__}")
            criteria = SearchCriteria.model_validate(data)
        except (json.JSONDecodeError, ValidationError, ValueError) as e:
            logger.error(
                "Error parseando respuesta de LLM",
                error=str(e),
                response=raw_text[:300],
            )
            raise ExtractionError(f"Respuesta de extracción inválida: {e}") from e
        except Exception as e:
            logger.error("Error extrayendo criterios", error=str(e))
            raise ExtractionError(f"No se pudieron extraer criterios: {e}") from e

        if criteria.location:
            criteria = criteria.model_copy(
                update={"location": normalize_location(criteria.location)}
            )

        logger.info(
            "Criterios extraídos",
            provider=response.provider,
            model=response.model,
            criteria=criteria.to_prompt_dict(),
        )
        return criteria

    def _build_intent_prompt(
        self, message: str, previous: list[ConversationExchange]
    ) -> str:
        lines = []
        if previous:
            lines.append("Previous conversation:")
            for exchange in previous:
                lines.append(f"User: {exchange.message}")
                lines.append(f"Bot: {exchange.response}")
            lines.append("")
        lines.append(f'Current message: "{message}"')
        return "\n".join(lines)

    def _build_extraction_prompt(
        self, message: str, previous: Optional[SearchCriteria]
    ) -> str:
        lines = []
        if previous is not None:
            lines.append(f"Previous search criteria: {json.dumps(previous.to_prompt_dict())}")
        lines.append(f'User message: "{message}"')
        return "\n".join(lines)
