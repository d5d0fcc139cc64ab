"""
Módulo de base de datos.

Provee acceso a Supabase y operaciones CRUD.
"""

from propabridge.database.supabase_client import get_supabase_client, SupabaseClient
from propabridge.database.repositories import (
    ListingRepository,
    ConversationRepository,
)

__all__ = [
    "get_supabase_client",
    "SupabaseClient",
    "ListingRepository",
    "ConversationRepository",
]
