"""
Modelos de datos del sistema.

- Listing / ListingCreate: propiedades publicadas y altas de propietarios
- SearchCriteria: criterios de búsqueda (no persistidos)
- ConversationExchange: historial de chat
"""

from propabridge.models.listing import Listing, ListingCreate, ListingStatus
from propabridge.models.criteria import Intent, SearchCriteria
from propabridge.models.conversation import ConversationExchange

__all__ = [
    # Propiedades
    "Listing",
    "ListingCreate",
    "ListingStatus",
    # Búsqueda
    "SearchCriteria",
    "Intent",
    # Chat
    "ConversationExchange",
]
