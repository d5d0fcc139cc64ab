"""
Motor de matching entre criterios de búsqueda y propiedades.

Implementa:
- Filtro grueso: el repositorio trae candidatas verificadas por SQL
- Ranking: score ponderado por propiedad, orden estable, umbral mínimo
- Sugerencias: búsquedas alternativas cuando hay pocos resultados
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import structlog

from propabridge.config import get_settings
from propabridge.database import ListingRepository
from propabridge.matching.scorer import MatchScorer, ScoredListing
from propabridge.models import Listing, SearchCriteria

logger = structlog.get_logger()


@dataclass
class RelaxedSuggestion:
    """Resultados con un dormitorio menos que lo pedido."""

    bedrooms: int
    listings: list[Listing] = field(default_factory=list)


@dataclass
class Suggestions:
    """Alternativas cuando la búsqueda original trae pocos resultados."""

    nearby_areas: list[Listing] = field(default_factory=list)
    cheaper_options: list[Listing] = field(default_factory=list)
    premium_options: list[Listing] = field(default_factory=list)
    relaxed_criteria: Optional[RelaxedSuggestion] = None

    @property
    def has_any(self) -> bool:
        return bool(
            self.nearby_areas
            or self.cheaper_options
            or self.premium_options
            or (self.relaxed_criteria and self.relaxed_criteria.listings)
        )


@dataclass
class SearchOutcome:
    """Resultado completo de una búsqueda."""

    criteria: SearchCriteria
    matches: list[ScoredListing]
    suggestions: Optional[Suggestions] = None


class MatchingEngine:
    """
    Motor de búsqueda de propiedades.

    Flujo:
    1. Traer candidatas del repositorio con filtros gruesos
    2. Calcular el score de cada una y ordenar (estable, descendente)
    3. Descartar las que no llegan al score mínimo
    4. Si quedan pocas, buscar alternativas
    """

    def __init__(
        self,
        repository: Optional[ListingRepository] = None,
        scorer: Optional[MatchScorer] = None,
    ):
        self.settings = get_settings()
        self.repository = repository or ListingRepository()
        self.scorer = scorer or MatchScorer()

    def rank(
        self,
        listings: list[Listing],
        criteria: SearchCriteria,
        now: Optional[datetime] = None,
    ) -> list[ScoredListing]:
        """
        Puntúa y ordena propiedades. No hace I/O.

        Empates conservan el orden de entrada. Solo se devuelven las
        propiedades con score >= min_match_score.
        """
        now = now or self.scorer.clock()
        scored = [self.scorer.score_listing(listing, criteria, now) for listing in listings]
        scored.sort(key=lambda s: s.match_score, reverse=True)

        threshold = self.settings.min_match_score
        return [s for s in scored if s.match_score >= threshold]

    def find_matches(
        self,
        criteria: SearchCriteria,
        limit: Optional[int] = None,
    ) -> list[ScoredListing]:
        """
        Busca y rankea propiedades para los criterios.

        Raises:
            RepositoryError: Si falla la consulta (sin reintentos)
        """
        listings = self.repository.find_by_coarse_filters(
            location=criteria.location,
            property_type=criteria.property_type,
            min_price=criteria.min_price,
            max_price=criteria.max_price,
            bedrooms=criteria.bedrooms,
            limit=limit or self.settings.search_result_limit,
        )

        if not listings:
            logger.info("Sin candidatas para los criterios", criteria=criteria.to_prompt_dict())
            return []

        matches = self.rank(listings, criteria)
        logger.info(
            "Matches encontrados",
            candidates=len(listings),
            above_threshold=len(matches),
        )
        return matches

    def suggest_alternatives(self, criteria: SearchCriteria) -> Suggestions:
        """
        Busca alternativas a la búsqueda original.

        Cada consulta es independiente: si una falla se loguea y su
        lista queda vacía, las demás se ejecutan igual.
        """
        suggestions = Suggestions()
        limit = self.settings.suggestion_limit

        # Misma ciudad, otras zonas
        if criteria.location:
            parts = criteria.location.split(",")
            city = parts[1].strip() if len(parts) > 1 and parts[1].strip() else criteria.location
            requested = criteria.location.lower()
            listings = self._safe_query(
                "nearby_areas",
                location=city,
                max_price=criteria.max_price,
                bedrooms=criteria.bedrooms,
            )
            suggestions.nearby_areas = [
                listing for listing in listings
                if requested not in (listing.location or "").lower()
            ][:limit]

        if criteria.max_price:
            # Hasta 20% más baratas
            suggestions.cheaper_options = self._safe_query(
                "cheaper_options",
                location=criteria.location,
                max_price=criteria.max_price * 0.8,
                bedrooms=criteria.bedrooms,
            )[:limit]

            # Hasta 20% por encima del presupuesto
            suggestions.premium_options = self._safe_query(
                "premium_options",
                location=criteria.location,
                min_price=criteria.max_price,
                max_price=criteria.max_price * 1.2,
                bedrooms=criteria.bedrooms,
            )[:limit]

        if criteria.bedrooms and criteria.bedrooms > 1:
            relaxed_bedrooms = criteria.bedrooms - 1
            suggestions.relaxed_criteria = RelaxedSuggestion(
                bedrooms=relaxed_bedrooms,
                listings=self._safe_query(
                    "relaxed_criteria",
                    location=criteria.location,
                    max_price=criteria.max_price,
                    bedrooms=relaxed_bedrooms,
                )[:limit],
            )

        logger.info(
            "Sugerencias generadas",
            nearby=len(suggestions.nearby_areas),
            cheaper=len(suggestions.cheaper_options),
            premium=len(suggestions.premium_options),
            relaxed=len(suggestions.relaxed_criteria.listings) if suggestions.relaxed_criteria else 0,
        )
        return suggestions

    def search(self, criteria: SearchCriteria) -> SearchOutcome:
        """Matches + sugerencias si hay menos de few_results_threshold resultados."""
        matches = self.find_matches(criteria)

        suggestions = None
        if len(matches) < self.settings.few_results_threshold:
            suggestions = self.suggest_alternatives(criteria)

        return SearchOutcome(criteria=criteria, matches=matches, suggestions=suggestions)

    def _safe_query(self, kind: str, **filters) -> list[Listing]:
        try:
            return self.repository.find_by_coarse_filters(**filters)
        except Exception as e:
            logger.warning("Error buscando sugerencias", kind=kind, error=str(e))
            return []
