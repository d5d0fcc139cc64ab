"""
Script para ejecutar una búsqueda de propiedades.

Acepta texto libre (se extraen los criterios con el LLM configurado o,
si no hay, con el parser de keywords) o criterios explícitos por flags.
Imprime el ranking y las sugerencias en JSON.

Uso:
    python -m propabridge.scripts.run_search "3 bedroom flat in Wuse 2 under 3M with parking"
    python -m propabridge.scripts.run_search --location Lekki --max-price 4000000 --bedrooms 3
    python -m propabridge.scripts.run_search "2 bed in Ikoyi" --keywords-only
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

import structlog

from propabridge.analysis import CriteriaExtractor, KeywordCriteriaParser
from propabridge.errors import ConfigurationError, ExtractionError, PropabridgeError
from propabridge.matching import MatchingEngine, SearchOutcome
from propabridge.models import SearchCriteria
from propabridge.scripts import configure_logging

logger = structlog.get_logger()


async def build_criteria(args: argparse.Namespace) -> SearchCriteria:
    """Criterios desde el texto libre y/o los flags (los flags ganan)."""
    criteria = SearchCriteria()

    if args.query:
        criteria = await extract_from_text(args.query, use_llm=not args.keywords_only)

    explicit = SearchCriteria(
        location=args.location,
        property_type=args.property_type,
        min_price=args.min_price,
        max_price=args.max_price,
        bedrooms=args.bedrooms,
        amenities=args.amenities,
    )
    return criteria.merged_with(explicit)


async def extract_from_text(text: str, use_llm: bool = True) -> SearchCriteria:
    if use_llm:
        try:
            return await CriteriaExtractor().extract(text)
        except ConfigurationError as e:
            logger.info("LLM no configurado, usando keywords", reason=str(e))
        except ExtractionError as e:
            logger.warning("Extracción por LLM falló, usando keywords", error=str(e))
    return KeywordCriteriaParser().parse(text)


def outcome_to_dict(outcome: SearchOutcome) -> dict:
    data = {
        "criteria": outcome.criteria.model_dump(exclude_none=True),
        "matches": [
            {
                "id": m.listing.id,
                "type": m.listing.type,
                "location": m.listing.location,
                "price": m.listing.price,
                "bedrooms": m.listing.bedrooms,
                "match_score": m.match_score,
                "breakdown": m.breakdown.to_dict(),
            }
            for m in outcome.matches
        ],
        "suggestions": None,
    }

    suggestions = outcome.suggestions
    if suggestions is not None:
        def summarize(listings):
            return [
                {"id": x.id, "type": x.type, "location": x.location, "price": x.price}
                for x in listings
            ]

        relaxed = suggestions.relaxed_criteria
        data["suggestions"] = {
            "nearby_areas": summarize(suggestions.nearby_areas),
            "cheaper_options": summarize(suggestions.cheaper_options),
            "premium_options": summarize(suggestions.premium_options),
            "relaxed_criteria": (
                {"bedrooms": relaxed.bedrooms, "listings": summarize(relaxed.listings)}
                if relaxed else None
            ),
        }
    return data


async def run_search(args: argparse.Namespace) -> SearchOutcome:
    criteria = await build_criteria(args)
    logger.info("Buscando propiedades", criteria=criteria.to_prompt_dict())

    engine = MatchingEngine()
    return engine.search(criteria)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Buscar propiedades en Propabridge")
    parser.add_argument("query", nargs="?", help="Búsqueda en texto libre")
    parser.add_argument("--location", help="Ubicación (ej: 'Wuse 2')")
    parser.add_argument("--property-type", dest="property_type", help="flat, duplex, ...")
    parser.add_argument("--min-price", dest="min_price", type=float, help="Precio mínimo anual (₦)")
    parser.add_argument("--max-price", dest="max_price", type=float, help="Precio máximo anual (₦)")
    parser.add_argument("--bedrooms", type=int, help="Cantidad de dormitorios")
    parser.add_argument(
        "--amenity",
        dest="amenities",
        action="append",
        help="Amenity requerido (repetible): parking, pool, gym, ...",
    )
    parser.add_argument(
        "--keywords-only",
        action="store_true",
        help="No usar el LLM para extraer criterios del texto",
    )
    parser.add_argument("--log-level", dest="log_level", help="Nivel de logging")
    return parser.parse_args(argv)


def main():
    """Entry point del script."""
    args = parse_args()
    configure_logging(args.log_level)

    try:
        outcome = asyncio.run(run_search(args))
        print(json.dumps(outcome_to_dict(outcome), indent=2, ensure_ascii=False))
        sys.exit(0)

    except KeyboardInterrupt:
        logger.info("Búsqueda interrumpida por usuario")
        sys.exit(130)
    except PropabridgeError as e:
        logger.error("Error en búsqueda", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
