"""
Repositorios para operaciones CRUD en Supabase.

Cada repositorio maneja una tabla/entidad específica. Los errores del
cliente se loguean y se relanzan como RepositoryError.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from pydantic import ValidationError

from propabridge.config import get_settings
from propabridge.database.supabase_client import get_supabase_client, SupabaseClient
from propabridge.errors import RepositoryError
from propabridge.models import ConversationExchange, Listing, ListingCreate, ListingStatus

logger = structlog.get_logger()


class BaseRepository:
    """Clase base para repositorios."""

    TABLE: str = ""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or get_supabase_client()

    @property
    def client(self) -> SupabaseClient:
        return self._client

    def _execute(self, operation: str, query) -> list[dict]:
        """Ejecuta una query y devuelve las filas."""
        try:
            response = query.execute()
        except Exception as e:
            logger.error(
                "Error en operación de base de datos",
                table=self.TABLE,
                operation=operation,
                error=str(e),
            )
            raise RepositoryError(f"{operation} en {self.TABLE} falló: {e}") from e
        return response.data or []


class ListingRepository(BaseRepository):
    """Repositorio de propiedades (properties + property_images)."""

    TABLE = "properties"
    IMAGES_TABLE = "property_images"
    SELECT_WITH_IMAGES = "*, property_images(image_url, is_primary)"

    def _to_listing(self, operation: str, row: dict) -> Listing:
        """Fila a Listing; una fila inválida se reporta como RepositoryError."""
        try:
            return Listing.from_db_row(row)
        except ValidationError as e:
            logger.error(
                "Fila de propiedad inválida",
                operation=operation,
                listing_id=row.get("id"),
                error=str(e),
            )
            raise RepositoryError(f"{operation}: fila inválida en {self.TABLE}: {e}") from e

    def _to_listings(self, operation: str, rows: list[dict]) -> list[Listing]:
        """Filas a Listings, descartando (y logueando) las que no validan."""
        listings = []
        for row in rows:
            try:
                listings.append(Listing.from_db_row(row))
            except ValidationError as e:
                logger.warning(
                    "Fila de propiedad descartada",
                    operation=operation,
                    listing_id=row.get("id"),
                    error=str(e),
                )
        return listings

    def find_by_coarse_filters(
        self,
        location: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        bedrooms: Optional[int] = None,
        property_type: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[Listing]:
        """
        Búsqueda gruesa de propiedades verificadas.

        Filtros vacíos o en cero se ignoran. Ubicación y tipo se
        comparan por substring sin distinguir mayúsculas. Las filas que
        no validan se descartan con un warning.

        Returns:
            Propiedades verificadas, más nuevas primero
        """
        query = (
            self.client.table(self.TABLE)
            .select(self.SELECT_WITH_IMAGES)
            .eq("verified", True)
        )

        if location:
            query = query.ilike("location", f"%{location}%")
        if property_type:
            query = query.ilike("type", f"%{property_type}%")
        if min_price:
            query = query.gte("price", min_price)
        if max_price:
            query = query.lte("price", max_price)
        if bedrooms:
            query = query.eq("bedrooms", bedrooms)

        limit = limit or get_settings().search_result_limit
        rows = self._execute(
            "find_by_coarse_filters",
            query.order("created_at", desc=True).limit(limit),
        )
        return self._to_listings("find_by_coarse_filters", rows)

    def get_by_id(self, listing_id: int) -> Optional[Listing]:
        """Obtiene una propiedad por su ID (verificada o no)."""
        rows = self._execute(
            "get_by_id",
            self.client.table(self.TABLE)
            .select(self.SELECT_WITH_IMAGES)
            .eq("id", listing_id)
            .limit(1),
        )
        return self._to_listing("get_by_id", rows[0]) if rows else None

    def create(self, listing: ListingCreate) -> Listing:
        """
        Inserta una propiedad enviada por un propietario.

        Queda pendiente y sin verificar hasta que un admin la apruebe.
        """
        rows = self._execute(
            "create",
            self.client.table(self.TABLE).insert(listing.to_db_dict()),
        )
        if not rows:
            raise RepositoryError("La base no devolvió la propiedad creada")

        logger.info(
            "Propiedad creada",
            listing_id=rows[0].get("id"),
            location=listing.location,
            price=listing.price,
        )
        return self._to_listing("create", rows[0])

    def update(self, listing_id: int, fields: dict) -> Optional[Listing]:
        """Actualiza campos de una propiedad. Devuelve None si no existe."""
        data = dict(fields)
        data["updated_at"] = datetime.now(timezone.utc).isoformat()
        rows = self._execute(
            "update",
            self.client.table(self.TABLE).update(data).eq("id", listing_id),
        )
        return self._to_listing("update", rows[0]) if rows else None

    def approve(self, listing_id: int, admin_notes: Optional[str] = None) -> Optional[Listing]:
        """Aprueba una propiedad: pasa a activa y verificada."""
        fields = {
            "verified": True,
            "status": ListingStatus.ACTIVE.value,
            "verified_at": datetime.now(timezone.utc).isoformat(),
        }
        if admin_notes:
            fields["admin_notes"] = admin_notes

        listing = self.update(listing_id, fields)
        logger.info("Propiedad aprobada", listing_id=listing_id, found=listing is not None)
        return listing

    def reject(self, listing_id: int, reason: Optional[str] = None) -> Optional[Listing]:
        """Rechaza una propiedad pendiente."""
        listing = self.update(
            listing_id,
            {
                "status": ListingStatus.REJECTED.value,
                "rejected_at": datetime.now(timezone.utc).isoformat(),
                "rejection_reason": reason,
            },
        )
        logger.info("Propiedad rechazada", listing_id=listing_id, reason=reason)
        return listing

    def deactivate(self, listing_id: int) -> Optional[Listing]:
        """Da de baja una propiedad (deja de aparecer en búsquedas)."""
        listing = self.update(
            listing_id,
            {"status": ListingStatus.INACTIVE.value, "verified": False},
        )
        logger.info("Propiedad desactivada", listing_id=listing_id)
        return listing

    def delete(self, listing_id: int) -> bool:
        """Elimina una propiedad. True si existía."""
        rows = self._execute(
            "delete",
            self.client.table(self.TABLE).delete().eq("id", listing_id),
        )
        logger.info("Propiedad eliminada", listing_id=listing_id, deleted=bool(rows))
        return len(rows) > 0

    def get_pending(self, limit: int = 50) -> list[Listing]:
        """Propiedades pendientes de moderación, más viejas primero."""
        rows = self._execute(
            "get_pending",
            self.client.table(self.TABLE)
            .select(self.SELECT_WITH_IMAGES)
            .eq("verified", False)
            .eq("status", ListingStatus.PENDING.value)
            .order("created_at")
            .limit(limit),
        )
        return self._to_listings("get_pending", rows)

    def get_stats(self, now: Optional[datetime] = None) -> dict:
        """
        Estadísticas para el panel de administración.

        Returns:
            {total, verified, pending, rejected, avg_price, new_this_week}
        """
        rows = self._execute(
            "get_stats",
            self.client.table(self.TABLE).select("price, verified, status, created_at"),
        )
        now = now or datetime.now(timezone.utc)
        week_ago = now - timedelta(days=7)

        prices = [float(r["price"]) for r in rows if r.get("price") is not None]
        new_this_week = 0
        for row in rows:
            created_at = row.get("created_at")
            if not created_at:
                continue
            created = datetime.fromisoformat(str(created_at).replace("Z", "+00:00"))
            if created.tzinfo is None:
                created = created.replace(tzinfo=timezone.utc)
            if created >= week_ago:
                new_this_week += 1

        return {
            "total": len(rows),
            "verified": sum(1 for r in rows if r.get("verified")),
            "pending": sum(
                1 for r in rows
                if not r.get("verified") and r.get("status") == ListingStatus.PENDING.value
            ),
            "rejected": sum(1 for r in rows if r.get("status") == ListingStatus.REJECTED.value),
            "avg_price": sum(prices) / len(prices) if prices else 0.0,
            "new_this_week": new_this_week,
        }

    def add_image(self, listing_id: int, image_url: str, is_primary: bool = False) -> dict:
        """Registra la URL de una imagen ya subida."""
        rows = self._execute(
            "add_image",
            self.client.table(self.IMAGES_TABLE).insert(
                {"property_id": listing_id, "image_url": image_url, "is_primary": is_primary}
            ),
        )
        return rows[0] if rows else {}


class ConversationRepository(BaseRepository):
    """Repositorio del historial de chat."""

    TABLE = "conversations"

    def create(self, phone: str, exchange: ConversationExchange) -> dict:
        """Guarda un intercambio mensaje/respuesta."""
        rows = self._execute(
            "create",
            self.client.table(self.TABLE).insert(exchange.to_db_dict(phone)),
        )
        logger.debug("Conversación guardada", phone=phone, intent=exchange.intent)
        return rows[0] if rows else {}

    def get_by_phone(self, phone: str, limit: int = 10) -> list[dict]:
        """Historial de un teléfono, más reciente primero."""
        return self._execute(
            "get_by_phone",
            self.client.table(self.TABLE)
            .select("*")
            .eq("phone", phone)
            .order("created_at", desc=True)
            .limit(limit),
        )
