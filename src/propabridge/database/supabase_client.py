"""
Cliente de Supabase.

Una única conexión por proceso, compartida por los repositorios.
"""

from functools import lru_cache

import structlog
from supabase import create_client, Client

from propabridge.config import get_settings
from propabridge.errors import ConfigurationError

logger = structlog.get_logger()


class SupabaseClient:
    """
    Acceso a las tablas de Propabridge.

    `role` indica con qué key se conectó ("service" u "anon"): con la
    anon key las políticas RLS pueden ocultar propiedades pendientes.
    """

    def __init__(self, client: Client, role: str = "anon"):
        self._client = client
        self.role = role

    def table(self, name: str):
        """Query builder de una tabla (properties, property_images, conversations)."""
        return self._client.table(name)


@lru_cache
def get_supabase_client() -> SupabaseClient:
    """
    Cliente compartido, creado en el primer uso.

    Raises:
        ConfigurationError: Si faltan SUPABASE_URL o SUPABASE_KEY
    """
    settings = get_settings()

    if not settings.supabase_url or not settings.supabase_key:
        raise ConfigurationError("Faltan SUPABASE_URL y/o SUPABASE_KEY en el entorno")

    # La moderación (aprobar, rechazar, pendientes) necesita la service key
    if settings.supabase_service_key:
        key, role = settings.supabase_service_key, "service"
    else:
        key, role = settings.supabase_key, "anon"

    client = SupabaseClient(create_client(settings.supabase_url, key), role=role)
    logger.info("Cliente de Supabase inicializado", url=settings.supabase_url, role=role)
    return client
