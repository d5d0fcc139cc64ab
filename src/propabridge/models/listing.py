"""
Modelo de Propiedad (Listing)

Representa un anuncio publicado por un propietario. Las propiedades
nacen pendientes y sin verificar; solo las verificadas aparecen en
las búsquedas públicas.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)


class ListingStatus(str, Enum):
    """Estado del ciclo de vida de una propiedad."""

    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    INACTIVE = "inactive"
    RENTED = "rented"
    SOLD = "sold"


def _normalize_amenities(value: Any) -> list[str]:
    """Acepta lista, JSON serializado o None y devuelve tags en minúscula."""
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            value = value.split(",")
    if not isinstance(value, (list, tuple, set)):
        return []

    tags = []
    for item in value:
        if item is None:
            continue
        tag = str(item).strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


class Listing(BaseModel):
    """
    Propiedad tal como vive en la tabla 'properties'.

    Los campos descriptivos son opcionales para tolerar filas incompletas:
    el scorer degrada cada criterio a su valor por defecto en vez de fallar.
    """

    model_config = ConfigDict(from_attributes=True)

    # Identificadores
    id: int = Field(..., description="ID asignado por la base")
    user_id: Optional[int] = Field(None, description="Propietario (referencia débil)")

    # Descripción
    type: str = Field("", description="Categoría libre, ej: '3 Bed Flat'")
    location: str = Field("", description="Ubicación libre, ej: 'Wuse 2, Abuja'")
    price: Optional[float] = Field(None, description="Alquiler anual en Naira")
    bedrooms: int = Field(0, ge=0)
    bathrooms: int = Field(1, ge=0)
    area: Optional[float] = Field(None, description="Superficie en m²")
    features: Optional[str] = Field(None, description="Características en texto libre")
    amenities: list[str] = Field(default_factory=list, description="Tags: parking, pool, ...")

    # Estado
    verified: bool = Field(default=False)
    status: ListingStatus = Field(default=ListingStatus.PENDING)

    # Media
    primary_image: Optional[str] = Field(None, description="URL de la imagen principal")

    # Metadatos
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("amenities", mode="before")
    @classmethod
    def _parse_amenities(cls, value: Any) -> list[str]:
        return _normalize_amenities(value)

    @field_validator("bathrooms", mode="before")
    @classmethod
    def _default_bathrooms(cls, value: Any) -> Any:
        return 1 if value is None else value

    @field_validator("type", "location", "bedrooms", "verified", "status", mode="before")
    @classmethod
    def _null_columns(cls, value: Any, info: ValidationInfo) -> Any:
        # Columnas nullable en la tabla: NULL toma el valor por defecto del campo
        if value is None:
            return cls.model_fields[info.field_name].get_default()
        return value

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Timestamps sin zona se asumen UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_db_row(cls, row: dict) -> "Listing":
        """
        Construye un Listing desde una fila de Supabase.

        Si la fila trae el join 'property_images', se toma como imagen
        principal la marcada con is_primary (o la primera disponible).
        """
        data = dict(row)
        images = data.pop("property_images", None) or []
        if images and not data.get("primary_image"):
            primary = next((img for img in images if img.get("is_primary")), images[0])
            data["primary_image"] = primary.get("image_url")
        return cls.model_validate(data)


class ListingCreate(BaseModel):
    """Alta de una propiedad enviada por un propietario."""

    type: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    price: float = Field(..., gt=0, description="Alquiler anual en Naira")
    bedrooms: int = Field(..., ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    area: Optional[float] = Field(None, gt=0)
    features: Optional[str] = None
    amenities: list[str] = Field(default_factory=list)
    user_id: Optional[int] = None

    @field_validator("amenities", mode="before")
    @classmethod
    def _parse_amenities(cls, value: Any) -> list[str]:
        return _normalize_amenities(value)

    @model_validator(mode="after")
    def _default_bathrooms(self) -> "ListingCreate":
        # Sin dato de baños se asume uno por dormitorio
        if self.bathrooms is None:
            self.bathrooms = self.bedrooms
        return self

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        data = self.model_dump()
        data["status"] = ListingStatus.PENDING.value
        data["verified"] = False
        return data
