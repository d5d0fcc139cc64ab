"""
Script para cargar propiedades de ejemplo.

Crea un set de propiedades reales de Abuja, Lagos y Port Harcourt.
Todas pasan por el alta normal (pendientes) y las marcadas como
verificadas se aprueban a continuación.

Uso:
    python -m propabridge.scripts.seed_listings
    python -m propabridge.scripts.seed_listings --dry-run
"""

import argparse
import sys
from typing import Optional

import structlog
from pydantic import ValidationError

from propabridge.database import ListingRepository
from propabridge.errors import PropabridgeError
from propabridge.models import ListingCreate
from propabridge.scripts import configure_logging

logger = structlog.get_logger()

SAMPLE_LISTINGS: list[dict] = [
    # Abuja
    {"type": "3 Bed Flat", "location": "Wuse 2, Abuja", "price": 2500000, "bedrooms": 3, "bathrooms": 3, "area": 180,
     "features": "24/7 power, parking, gated community, swimming pool", "amenities": ["parking", "power", "security", "pool"], "verified": True},
    {"type": "2 Bed Flat", "location": "Wuse 2, Abuja", "price": 2000000, "bedrooms": 2, "bathrooms": 2, "area": 120,
     "features": "Fully serviced, backup generator, water treatment", "amenities": ["parking", "power", "water"], "verified": True},
    {"type": "4 Bed Duplex", "location": "Wuse 2, Abuja", "price": 4500000, "bedrooms": 4, "bathrooms": 4, "area": 250,
     "features": "BQ, solar power, study room, balcony", "amenities": ["parking", "power", "security", "bq"], "verified": True},
    {"type": "2 Bed Flat", "location": "Maitama, Abuja", "price": 3500000, "bedrooms": 2, "bathrooms": 2, "area": 150,
     "features": "Fully furnished, gym, 24/7 security, backup generator", "amenities": ["parking", "power", "security", "gym", "pool"], "verified": True},
    {"type": "5 Bed Detached", "location": "Maitama, Abuja", "price": 12000000, "bedrooms": 5, "bathrooms": 5, "area": 400,
     "features": "Swimming pool, cinema room, maid quarters, smart home", "amenities": ["parking", "power", "security", "pool", "gym", "bq"], "verified": True},
    {"type": "3 Bed Duplex", "location": "Gwarinpa, Abuja", "price": 4000000, "bedrooms": 3, "bathrooms": 3, "area": 240,
     "features": "Garden, BQ, solar power, water treatment plant", "amenities": ["parking", "power", "water", "bq"], "verified": True},
    {"type": "3 Bed Flat", "location": "Gwarinpa, Abuja", "price": 2200000, "bedrooms": 3, "bathrooms": 2, "area": 150,
     "features": "Ground floor, tiles, wardrobe", "amenities": ["parking", "security"], "verified": True},
    {"type": "3 Bed Terrace", "location": "Jabi, Abuja", "price": 3200000, "bedrooms": 3, "bathrooms": 3, "area": 180,
     "features": "BQ, parking space, 24/7 security", "amenities": ["parking", "security", "bq"], "verified": False},
    {"type": "1 Bed Studio", "location": "Jabi, Abuja", "price": 1200000, "bedrooms": 1, "bathrooms": 1, "area": 60,
     "features": "Serviced apartment, wifi, cable TV", "amenities": ["power", "security"], "verified": True},
    # Lagos
    {"type": "1 Bed Apartment", "location": "Lekki Phase 1, Lagos", "price": 2200000, "bedrooms": 1, "bathrooms": 1, "area": 80,
     "features": "Fully furnished, 24/7 electricity, swimming pool, gym", "amenities": ["parking", "power", "security", "pool", "gym"], "verified": True},
    {"type": "3 Bed Flat", "location": "Lekki Phase 1, Lagos", "price": 3500000, "bedrooms": 3, "bathrooms": 3, "area": 180,
     "features": "Waterfront view, modern kitchen, fitted wardrobes", "amenities": ["parking", "power", "security", "pool"], "verified": True},
    {"type": "3 Bed Penthouse", "location": "Victoria Island, Lagos", "price": 8000000, "bedrooms": 3, "bathrooms": 3, "area": 280,
     "features": "Ocean view, rooftop terrace, smart automation", "amenities": ["parking", "power", "security", "gym", "pool"], "verified": True},
    {"type": "3 Bed Flat", "location": "Ikoyi, Lagos", "price": 6000000, "bedrooms": 3, "bathrooms": 3, "area": 220,
     "features": "High-rise, panoramic view, 24/7 concierge", "amenities": ["parking", "power", "security", "gym", "pool"], "verified": True},
    {"type": "2 Bed Flat", "location": "Ajah, Lagos", "price": 1500000, "bedrooms": 2, "bathrooms": 2, "area": 100,
     "features": "New development, tiled floors", "amenities": ["parking"], "verified": True},
    {"type": "2 Bed Flat", "location": "Yaba, Lagos", "price": 2000000, "bedrooms": 2, "bathrooms": 2, "area": 110,
     "features": "Close to universities, vibrant area", "amenities": ["parking"], "verified": True},
    # Port Harcourt
    {"type": "3 Bed Flat", "location": "GRA, Port Harcourt", "price": 3500000, "bedrooms": 3, "bathrooms": 3, "area": 180,
     "features": "Serviced estate, 24/7 security", "amenities": ["parking", "power", "security", "water"], "verified": True},
]


def seed(repository: Optional[ListingRepository], listings: list[dict], dry_run: bool = False) -> dict:
    """
    Carga las propiedades y aprueba las verificadas.

    Returns:
        Estadísticas de la carga
    """
    stats = {"created": 0, "approved": 0, "invalid": 0, "errors": 0}

    for data in listings:
        data = dict(data)
        verified = data.pop("verified", False)

        try:
            listing = ListingCreate(**data)
        except ValidationError as e:
            logger.warning("Propiedad de ejemplo inválida", location=data.get("location"), error=str(e))
            stats["invalid"] += 1
            continue

        if dry_run:
            logger.info("Dry run", type=listing.type, location=listing.location, price=listing.price)
            continue

        try:
            created = repository.create(listing)
            stats["created"] += 1
            if verified:
                repository.approve(created.id, admin_notes="seed")
                stats["approved"] += 1
        except PropabridgeError as e:
            logger.error("Error cargando propiedad", location=listing.location, error=str(e))
            stats["errors"] += 1

    logger.info("Carga de propiedades completada", **stats)
    return stats


def main():
    """Entry point del script."""
    parser = argparse.ArgumentParser(description="Cargar propiedades de ejemplo")
    parser.add_argument("--dry-run", action="store_true", help="Validar sin escribir en la base")
    args = parser.parse_args()

    configure_logging()

    try:
        repository = None if args.dry_run else ListingRepository()
        stats = seed(repository, SAMPLE_LISTINGS, dry_run=args.dry_run)
        sys.exit(0 if stats["errors"] == 0 else 1)
    except KeyboardInterrupt:
        logger.info("Carga interrumpida por usuario")
        sys.exit(130)
    except PropabridgeError as e:
        logger.error("Error fatal en la carga", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
