"""
Parser de criterios por keywords.

Fallback determinístico cuando el LLM no está configurado o falla.
Reconoce ubicación, dormitorios, precios (2M, 500k, 2-3M, "under 3
million"), tipo de propiedad, amenities con negaciones cercanas
("no pool", "without generator") y la intención del mensaje.
"""

import re
import unicodedata
from typing import Optional

from propabridge.analysis.criteria_extractor import normalize_location
from propabridge.config import AMENITY_KEYWORDS, PROPERTY_TYPE_KEYWORDS
from propabridge.models import Intent, SearchCriteria

NUMBER_WORDS: dict[str, int] = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
}

MAGNITUDES: dict[str, int] = {
    "k": 1_000,
    "m": 1_000_000,
    "mn": 1_000_000,
    "million": 1_000_000,
    "b": 1_000_000_000,
    "bn": 1_000_000_000,
    "billion": 1_000_000_000,
}

_MAGNITUDE = "|".join(sorted(MAGNITUDES, key=len, reverse=True))

# Monto con sufijo opcional: 2m, 2.5 million, 500k, 1.5bn, 2,500,000
_AMOUNT = rf"(\d+(?:,\d{{3}})+|\d+(?:\.\d+)?)\s*({_MAGNITUDE})?(?![a-z0-9])"

AMOUNT_RE = re.compile(_AMOUNT)
RANGE_RE = re.compile(
    rf"{_AMOUNT}\s*(?:-|to|and)\s*{_AMOUNT}"
)

BEDROOM_RE = re.compile(
    r"\b(\d+|" + "|".join(NUMBER_WORDS) + r")\s*-?\s*(?:bed(?:room)?s?|br|bdr|bdrm)(?![a-z])"
)

MAX_PRICE_QUALIFIERS = [
    r"\bunder\b",
    r"\bbelow\b",
    r"\bmax(?:imum)?\b",
    r"\bless than\b",
    r"\bnot more than\b",
    r"\bup to\b",
    r"\bat most\b",
    r"\bbudget\b",
    r"\bwithin\b",
]

MIN_PRICE_QUALIFIERS = [
    r"\babove\b",
    r"\bover\b",
    r"\bfrom\b",
    r"\bat least\b",
    r"\bmin(?:imum)?\b",
    r"\bmore than\b",
    r"\bstarting\b",
]

# Palabras que cortan una ubicación capturada después de "in"/"at"
LOCATION_STOP_WORDS = [
    "for",
    "under",
    "below",
    "above",
    "over",
    "with",
    "without",
    "within",
    "between",
    "budget",
    "max",
    "maximum",
    "min",
    "minimum",
    "from",
    "less",
    "more",
    "around",
    "that",
    "which",
    "and",
    "price",
    "costing",
    "not",
    "no",
    "please",
    "at",
    "in",
    "up",
    "area",
]

LOCATION_FILLER = {
    "the", "a", "an", "my", "need", "search", "mind", "town", "it", "there", "least", "most",
    "property", "properties", "house", "houses", "home", "options", "all", "once", "night",
}


class KeywordCriteriaParser:
    """Parser simple basado en regex, sin dependencias externas."""

    NEGATION_PATTERNS: list[str] = [
        r"\bno\b",
        r"\bnot\b",
        r"\bwithout\b",
        r"\bdon'?t need\b",
        r"\bexcept\b",
    ]

    INTENT_PATTERNS: list[tuple[Intent, list[str]]] = [
        (Intent.SHOW_MORE, [
            r"\bshow (?:me )?more\b",
            r"\bany others?\b",
            r"\bmore (?:options|results|properties)\b",
            r"\bsee more\b",
            r"^next\b",
        ]),
        (Intent.LIST_PROPERTY, [
            r"\blist (?:my|a|our)\b",
            r"\bi want to list\b",
            r"\bi have a property\b",
            r"\bi(?:'m| am) a landlord\b",
            r"\brent out\b",
            r"\badvertise my\b",
        ]),
        (Intent.SCHEDULE_VIEWING, [
            r"\bschedule\b",
            r"\bbook (?:a )?(?:viewing|visit|inspection)\b",
            r"\bviewing\b",
            r"\binspect(?:ion)?\b",
            r"\bvisit\b",
            r"\bwhen can i (?:see|come)\b",
            r"\bappointment\b",
        ]),
        (Intent.PRICE_NEGOTIATION, [
            r"\bnegotiat",
            r"\bdiscount\b",
            r"\btoo expensive\b",
            r"\blower (?:the )?price\b",
            r"\breduce (?:the )?price\b",
            r"\blast price\b",
        ]),
        (Intent.INQUIRE_SPECIFIC, [
            r"\bproperty id\b",
            r"\bid\s*#?\s*\d+\b",
            r"\btell me (?:more )?about\b",
            r"\bdetails (?:of|about|on|for)\b",
            r"\bthe (?:first|second|third|1st|2nd|3rd) one\b",
        ]),
    ]

    GREETING_PATTERNS: list[str] = [
        r"^(?:hi|hello|hey|hiya|howdy|greetings)\b",
        r"^good (?:morning|afternoon|evening|day)\b",
    ]

    SEARCH_PATTERNS: list[str] = [
        r"\blooking for\b",
        r"\bsearching\b",
        r"\bi need\b",
        r"\bi want\b",
        r"\bfind\b",
        r"\bto rent\b",
        r"\bfor rent\b",
    ]

    def _normalize(self, text: str) -> str:
        normalized = unicodedata.normalize("NFKD", text or "")
        ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
        return re.sub(r"\s+", " ", ascii_text).strip().lower()

    def _split_sentences(self, text: str) -> list[str]:
        return [s.strip() for s in re.split(r"[!?\n;]+|\.(?=\s|$)", text) if s.strip()]

    def _is_negated(self, sentence: str, start: int) -> bool:
        """Busca una negación en la misma frase, antes del keyword."""
        prefix = sentence[max(0, start - 25):start]
        clause = re.split(r",|\b(?:but|and|with|plus)\b", prefix)[-1]
        return any(re.search(p, clause) for p in self.NEGATION_PATTERNS)

    # Extracción de criterios

    def parse(self, message: str) -> SearchCriteria:
        """Extrae todos los criterios que se puedan reconocer."""
        text = self._normalize(message)
        min_price, max_price = self.extract_prices(text)
        property_type = self.extract_property_type(text)

        return SearchCriteria(
            location=self.extract_location(text),
            property_type=property_type,
            min_price=min_price,
            max_price=max_price,
            bedrooms=self.extract_bedrooms(text, property_type),
            amenities=self.extract_amenities(text) or None,
        )

    def extract_location(self, text: str) -> Optional[str]:
        stop = "|".join(LOCATION_STOP_WORDS)
        pattern = rf"\b(?:in|at)\s+([a-z][a-z0-9.'-]*(?:\s+(?!(?:{stop})\b)[a-z0-9.'-]+)*)"
        for match in re.finditer(pattern, text):
            candidate = self._clean_location(match.group(1))
            if candidate:
                return candidate

        match = re.search(r"\b([a-z][a-z.'-]*)\s+area\b", text)
        if match:
            return self._clean_location(match.group(1))
        return None

    def _clean_location(self, raw: str) -> Optional[str]:
        # Montos o dormitorios pegados al final ("in lekki 3m") no son parte de la ubicación
        raw = re.sub(rf"\s+(?:\d+(?:\.\d+)?\s*(?:{_MAGNITUDE})|\d{{4,}})\b.*$", "", raw)
        bedrooms = BEDROOM_RE.search(raw)
        if bedrooms:
            raw = raw[:bedrooms.start()]
        words = raw.strip(" .,'-").split()
        if not words or words[0] in LOCATION_FILLER:
            return None
        if words[0].rstrip("s") in PROPERTY_TYPE_KEYWORDS or " ".join(words) in PROPERTY_TYPE_KEYWORDS:
            return None

        location = " ".join(w.capitalize() for w in words)
        return normalize_location(location)

    def extract_bedrooms(self, text: str, property_type: Optional[str] = None) -> Optional[int]:
        match = BEDROOM_RE.search(text)
        if match:
            value = match.group(1)
            return NUMBER_WORDS.get(value) or int(value)
        if property_type in ("self contain", "studio"):
            return 1
        return None

    def _to_amount(self, number: str, suffix: Optional[str]) -> float:
        value = float(number.replace(",", ""))
        return value * MAGNITUDES.get(suffix or "", 1)

    def _is_price(self, number: str, suffix: Optional[str]) -> bool:
        return bool(suffix) or self._to_amount(number, None) >= 1000

    def _qualifier(self, text: str, start: int) -> Optional[str]:
        """Calificador más cercano antes del monto ("under 3m" -> max)."""
        window = text[max(0, start - 20):start]
        best, best_end = None, -1
        for kind, patterns in (("max", MAX_PRICE_QUALIFIERS), ("min", MIN_PRICE_QUALIFIERS)):
            for pattern in patterns:
                for match in re.finditer(pattern, window):
                    if match.end() > best_end:
                        best, best_end = kind, match.end()
        return best

    def extract_prices(self, text: str) -> tuple[Optional[float], Optional[float]]:
        """
        Devuelve (min_price, max_price) en Naira.

        Un precio sin calificador se toma como máximo.
        """
        for match in RANGE_RE.finditer(text):
            low_num, low_suffix, high_num, high_suffix = match.groups()
            if not self._is_price(high_num, high_suffix):
                continue
            # "2-3M": el sufijo del segundo monto aplica al primero
            low = self._to_amount(low_num, low_suffix or high_suffix)
            high = self._to_amount(high_num, high_suffix)
            return min(low, high), max(low, high)

        min_price = max_price = None
        for match in AMOUNT_RE.finditer(text):
            number, suffix = match.groups()
            if not self._is_price(number, suffix):
                continue
            amount = self._to_amount(number, suffix)
            if self._qualifier(text, match.start()) == "min":
                if min_price is None:
                    min_price = amount
            elif max_price is None:
                max_price = amount
        return min_price, max_price

    def extract_property_type(self, text: str) -> Optional[str]:
        for keyword in PROPERTY_TYPE_KEYWORDS:
            pattern = re.escape(keyword).replace(r"\ ", r"[\s-]?").replace(r"\-", r"[\s-]?")
            if re.search(rf"\b{pattern}s?\b", text):
                return keyword
        return None

    def extract_amenities(self, text: str) -> list[str]:
        found: list[str] = []
        for sentence in self._split_sentences(text):
            for amenity, synonyms in AMENITY_KEYWORDS.items():
                if amenity in found:
                    continue
                for synonym in synonyms:
                    pattern = rf"\b{re.escape(synonym)}s?\b"
                    match = re.search(pattern, sentence)
                    if match and not self._is_negated(sentence, match.start()):
                        found.append(amenity)
                        break
        return found

    # Intención

    def detect_intent(self, message: str, criteria: Optional[SearchCriteria] = None) -> Intent:
        """
        Clasifica el mensaje por reglas.

        Saludos con criterios ("hi, 2 bed flat in Lekki") cuentan como búsqueda.
        """
        text = self._normalize(message)
        if criteria is None:
            criteria = self.parse(message)

        for intent, patterns in self.INTENT_PATTERNS:
            if any(re.search(p, text) for p in patterns):
                return intent

        if not criteria.is_empty():
            return Intent.SEARCH
        if any(re.search(p, text) for p in self.GREETING_PATTERNS):
            return Intent.GREETING
        if any(re.search(p, text) for p in self.SEARCH_PATTERNS):
            return Intent.SEARCH
        return Intent.OTHER
