"""
Criterios de búsqueda.

No se persisten: los construye el extractor (LLM o parser de keywords)
a partir del mensaje del usuario y los consume el motor de matching.
"""

import re
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SearchCriteria(BaseModel):
    """
    Criterios parciales de búsqueda. Todos los campos son opcionales.

    Acepta los nombres camelCase que devuelve el LLM (propertyType,
    minPrice, maxPrice) además de los nombres Python.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    location: Optional[str] = Field(None, description="Ubicación deseada, ej: 'Lekki'")
    property_type: Optional[str] = Field(
        None, alias="propertyType", description="flat, duplex, terrace, ..."
    )
    min_price: Optional[float] = Field(None, alias="minPrice", ge=0)
    max_price: Optional[float] = Field(None, alias="maxPrice", ge=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    amenities: Optional[list[str]] = Field(None, description="Tags pedidos")

    @field_validator("location", "property_type", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("min_price", "max_price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> Any:
        if isinstance(value, str):
            cleaned = value.replace(",", "").replace("₦", "").strip()
            return cleaned or None
        return value

    @field_validator("bedrooms", mode="before")
    @classmethod
    def _parse_bedrooms(cls, value: Any) -> Any:
        # El LLM a veces devuelve ">=3" o "3 bedrooms"
        if isinstance(value, str):
            match = re.search(r"\d+", value)
            return int(match.group()) if match else None
        return value

    @field_validator("amenities", mode="before")
    @classmethod
    def _normalize_amenities(cls, value: Any) -> Optional[list[str]]:
        if value is None:
            return None
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple, set)):
            raise ValueError("amenities debe ser una lista o un texto separado por comas")

        tags: list[str] = []
        for item in value:
            if item is None:
                continue
            tag = str(item).strip().lower()
            if tag and tag not in tags:
                tags.append(tag)
        return tags or None

    def is_empty(self) -> bool:
        """True si no hay ningún criterio cargado."""
        return all(value is None for value in self.model_dump().values())

    def merged_with(self, newer: "SearchCriteria") -> "SearchCriteria":
        """
        Combina con criterios más recientes.

        Los campos no nulos de `newer` pisan a los actuales; se usa para
        los pedidos de "show more" que heredan la búsqueda anterior.
        """
        data = self.model_dump()
        data.update({k: v for k, v in newer.model_dump().items() if v is not None})
        return SearchCriteria.model_validate(data)

    def to_prompt_dict(self) -> dict:
        """Criterios no nulos con nombres camelCase, para incluir en prompts."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Intent(str, Enum):
    """Intenciones que reconoce el asistente de chat."""

    GREETING = "greeting"
    SEARCH = "search"
    INQUIRE_SPECIFIC = "inquire_specific"
    SCHEDULE_VIEWING = "schedule_viewing"
    PRICE_NEGOTIATION = "price_negotiation"
    LIST_PROPERTY = "list_property"
    SHOW_MORE = "show_more"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "Intent":
        """Convierte texto libre en Intent; lo desconocido cae en OTHER."""
        cleaned = (value or "").strip().strip("\"'`.").lower()
        try:
            return cls(cleaned)
        except ValueError:
            return cls.OTHER

    @property
    def is_search(self) -> bool:
        return self in (Intent.SEARCH, Intent.SHOW_MORE)
