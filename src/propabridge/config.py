"""
Configuración centralizada del sistema.
Carga variables de entorno y define settings globales.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Encontrar la raíz del proyecto (donde está el .env)
# config.py -> propabridge/ -> src/ -> raíz del repo
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Configuración principal de la aplicación."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase
    supabase_url: str = Field(..., description="URL del proyecto Supabase")
    supabase_key: str = Field(..., description="Anon key de Supabase")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key para operaciones admin"
    )

    # LLM Provider
    llm_provider: str = Field(
        "gemini",
        description="Proveedor de LLM a usar: 'gemini' o 'groq'"
    )

    # Gemini
    gemini_api_key: Optional[str] = Field(None, description="API key de Google Gemini")
    gemini_model: str = Field("gemini-2.0-flash", description="Modelo de Gemini a usar")

    # Groq
    groq_api_key: Optional[str] = Field(None, description="API key de Groq")
    groq_model: str = Field(
        "llama-3.1-8b-instant",
        description="Modelo de Groq a usar (llama-3.1-8b-instant, llama-3.3-70b-versatile)"
    )

    # Matching
    min_match_score: int = Field(
        40, ge=0, le=100, description="Score mínimo para considerar un match aceptable"
    )
    responsiveness_score: int = Field(
        80,
        ge=0,
        le=100,
        description="Score fijo de respuesta del propietario (sin datos históricos aún)",
    )
    search_result_limit: int = Field(
        10, ge=1, description="Máximo de propiedades a traer del repositorio por búsqueda"
    )
    suggestion_limit: int = Field(
        3, ge=1, description="Máximo de propiedades por lista de sugerencias"
    )
    few_results_threshold: int = Field(
        2,
        ge=1,
        description="Con menos matches que este valor se generan sugerencias alternativas",
    )
    gazetteer_path: Optional[str] = Field(
        None, description="JSON opcional con 'aliases' y 'cities' para reemplazar los defaults"
    )

    # Chat
    conversation_window: int = Field(
        5, ge=1, description="Cantidad de intercambios previos que se envían como contexto"
    )

    # Logging
    log_level: str = Field("INFO", description="Nivel de logging")


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuración cacheada."""
    return Settings()


# Constantes del sistema

# Abreviaturas informales -> nombres canónicos (usado por el scorer)
LOCATION_ALIASES: dict[str, list[str]] = {
    "wuse": ["wuse 2", "wuse2", "wuse ii"],
    "gwarinpa": ["gwarinpa estate", "gwagwalada"],
    "maitama": ["maitama district"],
    "v.i": ["victoria island", "vi"],
    "vi": ["victoria island", "v.i"],
    "lekki": ["lekki phase 1", "lekki phase 2", "lekki peninsula"],
    "gra": ["government reserved area", "g.r.a"],
}

MAJOR_CITIES = [
    "abuja",
    "lagos",
    "port harcourt",
    "ibadan",
    "kano",
]

# Normalización de ubicaciones extraídas de texto libre
LOCATION_NORMALIZATION: dict[str, str] = {
    "v.i": "Victoria Island",
    "vi": "Victoria Island",
    "wuse": "Wuse 2",
    "leki": "Lekki",
    "ikoyi": "Ikoyi",
}

PROPERTY_TYPE_KEYWORDS = [
    "semi-detached",
    "detached",
    "self contain",
    "penthouse",
    "apartment",
    "bungalow",
    "duplex",
    "terrace",
    "mansion",
    "studio",
    "flat",
    "land",
    "commercial",
]

AMENITY_KEYWORDS: dict[str, list[str]] = {
    "parking": ["parking", "car park", "garage", "parking space"],
    "pool": ["pool", "swimming pool", "swimming"],
    "gym": ["gym", "fitness"],
    "security": ["security", "cctv", "guard", "gate man", "gateman"],
    "power": ["power", "electricity", "generator", "solar", "inverter"],
    "water": ["water", "borehole", "water treatment"],
    "gated": ["gated", "gated estate"],
    "bq": ["bq", "boys quarters", "boys quarter", "maid's quarters", "maids quarters"],
}

CURRENCY_SYMBOL = "₦"
