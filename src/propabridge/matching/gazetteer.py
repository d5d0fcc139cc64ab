"""
Gazetteer de ubicaciones.

Tabla de alias (abreviaturas informales -> nombres canónicos) y lista
de ciudades principales que usa el scorer de ubicación. Los valores por
defecto viven en config; se pueden reemplazar con un JSON propio.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import structlog

from propabridge.config import LOCATION_ALIASES, MAJOR_CITIES, get_settings
from propabridge.errors import ConfigurationError

logger = structlog.get_logger()


@dataclass(frozen=True)
class Gazetteer:
    """Alias y ciudades, siempre en minúscula."""

    aliases: dict[str, tuple[str, ...]] = field(default_factory=dict)
    cities: tuple[str, ...] = ()

    @classmethod
    def build(cls, aliases: dict[str, list[str]], cities: list[str]) -> "Gazetteer":
        return cls(
            aliases={
                key.strip().lower(): tuple(v.strip().lower() for v in values)
                for key, values in aliases.items()
            },
            cities=tuple(c.strip().lower() for c in cities),
        )

    @classmethod
    def default(cls) -> "Gazetteer":
        return cls.build(LOCATION_ALIASES, MAJOR_CITIES)

    @classmethod
    def from_file(cls, path: str) -> "Gazetteer":
        """
        Carga un gazetteer desde JSON.

        Formato: {"aliases": {"vi": ["victoria island"]}, "cities": ["lagos"]}

        Raises:
            ConfigurationError: Si el archivo no existe o no tiene el formato esperado
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"No se pudo leer el gazetteer {path}: {e}") from e

        aliases = data.get("aliases") if isinstance(data, dict) else None
        cities = data.get("cities") if isinstance(data, dict) else None
        if not isinstance(aliases, dict) or not isinstance(cities, list):
            raise ConfigurationError(
                f"Gazetteer inválido en {path}: se esperan 'aliases' (objeto) y 'cities' (lista)"
            )

        gazetteer = cls.build(aliases, cities)
        logger.info(
            "Gazetteer cargado",
            path=str(path),
            aliases=len(gazetteer.aliases),
            cities=len(gazetteer.cities),
        )
        return gazetteer


def get_gazetteer(path: Optional[str] = None) -> Gazetteer:
    """Gazetteer configurado (archivo de settings o defaults)."""
    path = path or get_settings().gazetteer_path
    if path:
        return Gazetteer.from_file(path)
    return Gazetteer.default()
