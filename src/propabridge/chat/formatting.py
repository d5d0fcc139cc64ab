"""
Formato de mensajes de chat (markdown estilo WhatsApp).
"""

from typing import Optional, Union

from propabridge.config import CURRENCY_SYMBOL
from propabridge.matching import ScoredListing, Suggestions
from propabridge.models import Listing


def format_price(amount: Optional[float]) -> str:
    """2500000 -> '₦2,500,000'."""
    if amount is None:
        return f"{CURRENCY_SYMBOL}-"
    return f"{CURRENCY_SYMBOL}{amount:,.0f}"


def format_listing_for_chat(item: Union[Listing, ScoredListing], index: int) -> str:
    """
    Tarjeta de una propiedad para el chat.

    Ejemplo:
        *1. 3 Bed Flat* ✅ Verified (97% match)
        📍 Wuse 2, Abuja
        💰 ₦2,500,000/year
        🛏️ 3 bed | 🚿 3 bath | 📐 120m²
        ✨ Parking, 24/7 power, Security
        🆔 Property ID: 12
    """
    if isinstance(item, ScoredListing):
        listing, match_score = item.listing, item.match_score
    else:
        listing, match_score = item, None

    verified = " ✅ Verified" if listing.verified else ""
    match = f" ({match_score}% match)" if match_score else ""

    lines = [
        f"*{index}. {listing.type}*{verified}{match}",
        f"📍 {listing.location}",
        f"💰 {format_price(listing.price)}/year",
    ]

    specs = f"🛏️ {listing.bedrooms} bed | 🚿 {listing.bathrooms or listing.bedrooms} bath"
    if listing.area:
        specs += f" | 📐 {listing.area:g}m²"
    lines.append(specs)

    if listing.features:
        features = [f.strip() for f in listing.features.split(",") if f.strip()][:3]
        if features:
            lines.append(f"✨ {', '.join(features)}")

    lines.append(f"🆔 Property ID: {listing.id}")
    return "\n".join(lines) + "\n"


def format_listings(items: list, title: Optional[str] = None) -> str:
    """Lista numerada de tarjetas con un título opcional."""
    text = f"{title}\n" if title else ""
    for i, item in enumerate(items, start=1):
        text += format_listing_for_chat(item, i)
    return text


def format_suggestions(suggestions: Optional[Suggestions]) -> str:
    """
    Respuesta cuando no hubo matches.

    Muestra la primera lista de alternativas disponible en este orden:
    zonas cercanas, más baratas, premium, menos dormitorios.
    """
    text = "😔 No exact matches found for your criteria.\n\n"

    if suggestions is not None:
        if suggestions.nearby_areas:
            return text + format_listings(suggestions.nearby_areas, "🔍 *Nearby Areas:*")
        if suggestions.cheaper_options:
            return text + format_listings(suggestions.cheaper_options, "💡 *More Affordable Options:*")
        if suggestions.premium_options:
            return text + format_listings(
                suggestions.premium_options, "💎 *Slightly Above Your Budget:*"
            )
        relaxed = suggestions.relaxed_criteria
        if relaxed and relaxed.listings:
            return text + format_listings(
                relaxed.listings, f"🛏️ *With {relaxed.bedrooms} Bedrooms:*"
            )

    return text + (
        "Try:\n• Different location\n• Adjusting your budget\n• Fewer bedrooms\n\n"
        "What would you like to search for?"
    )
