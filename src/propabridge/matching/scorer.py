"""
Scoring de propiedades contra criterios de búsqueda.

Score final (0-100) = promedio ponderado de seis sub-scores:

    location 30 | price 25 | amenities 20 | condition 10 | responsiveness 10 | freshness 5

Todas las funciones son puras: no hacen I/O y nunca lanzan por datos
incompletos, cada criterio cae a su valor por defecto.
"""

import math
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from propabridge.config import get_settings
from propabridge.matching.gazetteer import Gazetteer, get_gazetteer
from propabridge.models import Listing, SearchCriteria

# Pesos por criterio (suman 100)
WEIGHTS: dict[str, int] = {
    "location": 30,
    "price": 25,
    "amenities": 20,
    "condition": 10,
    "responsiveness": 10,
    "freshness": 5,
}

SECONDS_PER_DAY = 60 * 60 * 24


def round_half_up(value: float) -> int:
    """Redondeo clásico (.5 hacia arriba), no el bancario de round()."""
    return int(math.floor(value + 0.5))


def _utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def days_since(created_at: Optional[datetime], now: datetime) -> Optional[float]:
    """Días transcurridos desde la publicación (None si no hay fecha)."""
    if created_at is None:
        return None
    return (_utc(now) - _utc(created_at)).total_seconds() / SECONDS_PER_DAY


def location_score(
    requested: Optional[str],
    listing_location: Optional[str],
    gazetteer: Gazetteer,
) -> int:
    """
    Similitud de ubicación.

    100 si una contiene a la otra, 90 si son alias entre sí,
    50 si comparten ciudad, 0 en cualquier otro caso.
    """
    requested = (requested or "").strip().lower()
    actual = (listing_location or "").strip().lower()
    if not requested or not actual:
        return 0

    if requested in actual or actual in requested:
        return 100

    for key, values in gazetteer.aliases.items():
        if key in requested and any(v in actual for v in values):
            return 90
        if key in actual and any(v in requested for v in values):
            return 90

    for city in gazetteer.cities:
        if city in requested and city in actual:
            return 50

    return 0


def price_score(
    max_price: Optional[float],
    min_price: Optional[float],
    price: Optional[float],
) -> int:
    """
    Ajuste del precio al presupuesto.

    Un mínimo o máximo en cero cuenta como no informado. Sin máximo
    no hay opinión sobre el precio y el score es 0.
    """
    if not price:
        return 0
    max_price = max_price or None
    min_price = min_price or None

    if max_price is None:
        return 0

    # Dentro del rango pedido: ideal en la mitad central
    if min_price is not None and min_price <= price <= max_price:
        spread = max_price - min_price
        if spread <= 0:
            return 90
        position = (price - min_price) / spread
        if 0.25 <= position <= 0.75:
            return 100
        return 90

    # Solo máximo: cuanto más por debajo, mejor
    if min_price is None and price <= max_price:
        ratio = price / max_price
        if ratio <= 0.8:
            return 100
        if ratio <= 0.9:
            return 95
        return 90

    # Fuera de presupuesto (también por debajo del mínimo)
    if price <= max_price * 1.1:
        return 70
    if price <= max_price * 1.2:
        return 40
    return 0


def amenities_score(
    requested: Optional[Iterable[str]],
    available: Optional[Iterable[str]],
) -> int:
    """Porcentaje de amenities pedidos presentes (coincidencia parcial en ambos sentidos)."""
    wanted = [a.strip().lower() for a in (requested or []) if a and a.strip()]
    if not wanted:
        return 100
    offered = [a.strip().lower() for a in (available or []) if a and a.strip()]
    if not offered:
        return 0

    matched = sum(
        1 for amenity in wanted if any(o in amenity or amenity in o for o in offered)
    )
    return round_half_up(100 * matched / len(wanted))


def condition_score(created_at: Optional[datetime], verified: bool, now: datetime) -> int:
    """Verificadas arrancan en 100 y el resto en 60; se penalizan los avisos viejos."""
    score = 100 if verified else 60

    age = days_since(created_at, now)
    if age is not None:
        if age > 60:
            score -= 20
        elif age > 30:
            score -= 10

    return max(score, 0)


def freshness_score(created_at: Optional[datetime], now: datetime) -> int:
    """Escalón según antigüedad del aviso. Sin fecha se toma como muy viejo."""
    age = days_since(created_at, now)
    if age is None:
        return 30
    if age <= 7:
        return 100
    if age <= 14:
        return 90
    if age <= 30:
        return 70
    if age <= 60:
        return 50
    return 30


@dataclass
class ScoreBreakdown:
    """Sub-scores (0-100) que componen el match score."""

    location: int
    price: int
    amenities: int
    condition: int
    responsiveness: int
    freshness: int

    @property
    def total(self) -> int:
        weighted = sum(getattr(self, name) * weight / 100 for name, weight in WEIGHTS.items())
        return round_half_up(weighted)

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class ScoredListing:
    """Propiedad con su score y el desglose que lo explica."""

    listing: Listing
    match_score: int
    breakdown: ScoreBreakdown


class MatchScorer:
    """
    Calcula el match score de una propiedad.

    El gazetteer, el score fijo de respuesta y el reloj son inyectables
    para poder reproducir resultados en tests.
    """

    def __init__(
        self,
        gazetteer: Optional[Gazetteer] = None,
        responsiveness: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.gazetteer = gazetteer or get_gazetteer()
        # Sin historial de respuestas de propietarios: valor fijo configurable
        self.responsiveness = (
            responsiveness if responsiveness is not None else get_settings().responsiveness_score
        )
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def breakdown(
        self,
        listing: Listing,
        criteria: SearchCriteria,
        now: Optional[datetime] = None,
    ) -> ScoreBreakdown:
        now = now or self.clock()
        return ScoreBreakdown(
            location=location_score(criteria.location, listing.location, self.gazetteer),
            price=price_score(criteria.max_price, criteria.min_price, listing.price),
            amenities=amenities_score(criteria.amenities, listing.amenities),
            condition=condition_score(listing.created_at, listing.verified, now),
            responsiveness=self.responsiveness,
            freshness=freshness_score(listing.created_at, now),
        )

    def score(
        self,
        listing: Listing,
        criteria: SearchCriteria,
        now: Optional[datetime] = None,
    ) -> int:
        """Match score 0-100."""
        return self.breakdown(listing, criteria, now).total

    def score_listing(
        self,
        listing: Listing,
        criteria: SearchCriteria,
        now: Optional[datetime] = None,
    ) -> ScoredListing:
        breakdown = self.breakdown(listing, criteria, now)
        return ScoredListing(listing=listing, match_score=breakdown.total, breakdown=breakdown)
