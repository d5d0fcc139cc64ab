"""
Módulo de análisis de mensajes.

Extrae intención y criterios de búsqueda usando LLM (Gemini/Groq),
con un parser de keywords como fallback determinístico.
"""

from propabridge.analysis.llm_providers import (
    get_llm_provider,
    BaseLLMProvider,
    GeminiProvider,
    GroqProvider,
    LLMResponse,
)
from propabridge.analysis.criteria_extractor import (
    CriteriaExtractor,
    clean_json_response,
    normalize_location,
)
from propabridge.analysis.keyword_parser import KeywordCriteriaParser

__all__ = [
    # Extracción
    "CriteriaExtractor",
    "KeywordCriteriaParser",
    "clean_json_response",
    "normalize_location",
    # Proveedores LLM
    "get_llm_provider",
    "BaseLLMProvider",
    "GeminiProvider",
    "GroqProvider",
    "LLMResponse",
]
