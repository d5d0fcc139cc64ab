"""
Motor de matching.

Puntúa propiedades contra criterios de búsqueda y propone
alternativas cuando no hay resultados suficientes.
"""

from propabridge.matching.gazetteer import Gazetteer, get_gazetteer
from propabridge.matching.scorer import (
    MatchScorer,
    ScoreBreakdown,
    ScoredListing,
    WEIGHTS,
)
from propabridge.matching.engine import (
    MatchingEngine,
    RelaxedSuggestion,
    SearchOutcome,
    Suggestions,
)

__all__ = [
    "Gazetteer",
    "get_gazetteer",
    "MatchScorer",
    "ScoreBreakdown",
    "ScoredListing",
    "WEIGHTS",
    "MatchingEngine",
    "RelaxedSuggestion",
    "SearchOutcome",
    "Suggestions",
]
