"""
Synthetic business-record generator.

Turns a search (query text + location + limit) into plausible local-business
listings without touching the network:
  - categories and names are picked from keyword tables matched against the query
  - base coordinates come from a small city table (Berlin when unknown)
  - addresses, phones, websites, ratings and opening hours are randomized

Field values are random, but the structure is fixed: exactly ``limit``
records, emitted in index order.
"""
import logging
import random
import re
import uuid
from typing import Optional

import config
from api.models import BusinessRecord, Coordinates
from errors import InvalidArgumentError

logger = logging.getLogger(__name__)

# ── Keyword tables (first match in table order wins) ──────────────────────────
CATEGORY_TABLE = [
    (("restaurant", "essen"), ["Restaurant", "Pizzeria", "Café", "Bistro", "Gaststätte"]),
    (("friseur", "salon"), ["Friseursalon", "Beautysalon", "Barbershop"]),
    (("apotheke",), ["Apotheke", "Sanitätshaus", "Drogerie"]),
    (("zahnarzt",), ["Zahnarztpraxis", "Kieferorthopädie", "Dentallabor"]),
    (("arzt", "praxis"), ["Arztpraxis", "Zahnarztpraxis", "Physiotherapie"]),
    (("auto", "werkstatt"), ["Autowerkstatt", "Autohaus", "Reifenservice"]),
    (("hotel",), ["Hotel", "Pension", "Gasthof"]),
    (("café", "cafe", "coffee"), ["Café", "Bäckerei", "Konditorei"]),
]
DEFAULT_CATEGORIES = ["Dienstleistung", "Einzelhandel", "Service"]

NAME_TABLE = [
    (("restaurant", "essen"), ["Zur Goldenen Gans", "Bella Vista", "Gasthaus Schmidt", "Ristorante Milano", "Bräustüberl"]),
    (("friseur", "salon"), ["Haarstudio Müller", "Salon Chic", "Hair Design", "Coiffeur Elite"]),
    (("apotheke",), ["Stadt-Apotheke", "Rosen-Apotheke", "Apotheke am Markt", "Neue Apotheke"]),
    (("zahnarzt",), ["Praxis Dr. Müller", "Dental Care", "Smile Center", "Zahnklinik am Park"]),
    (("arzt", "praxis"), ["Praxis Dr. Becker", "Gesundheitszentrum Nord", "Hausarztpraxis Schulz"]),
    (("auto", "werkstatt"), ["Kfz-Meisterbetrieb Huber", "Autoservice König", "Reifen Wolf"]),
    (("hotel",), ["Hotel zur Linde", "Parkhotel", "Hotel Stadtblick"]),
    (("café", "cafe", "coffee"), ["Café Sonnenschein", "Kaffeehaus Schön", "Bäckerei Krüger"]),
]
DEFAULT_NAMES = ["Meisterbetrieb Wagner", "Service Center", "Fachgeschäft Weber", "Profi Service"]

CITY_COORDINATES = {
    "münchen": (48.1351, 11.5820),
    "berlin": (52.5200, 13.4050),
    "hamburg": (53.5511, 9.9937),
    "köln": (50.9375, 6.9603),
    "frankfurt": (50.1109, 8.6821),
    "stuttgart": (48.7758, 9.1829),
    "düsseldorf": (51.2277, 6.7735),
    "leipzig": (51.3397, 12.3731),
}
DEFAULT_COORDINATES = CITY_COORDINATES["berlin"]

STREETS = ["Hauptstraße", "Bahnhofstraße", "Kirchgasse", "Marktplatz", "Bergstraße", "Schulstraße"]
AREA_CODES = ["030", "089", "040", "0221", "0711", "069"]
OPENING_HOURS = [
    "Mo-Fr: 9:00-18:00",
    "Mo-Fr: 8:00-19:00, Sa: 10:00-16:00",
    "Mo-Sa: 9:00-20:00",
]

COORDINATE_JITTER = 0.025
_UMLAUTS = {"ä": "ae", "ö": "oe", "ü": "ue", "ß": "ss"}


def _lookup(query: str, table: list, default: list[str]) -> list[str]:
    for keywords, values in table:
        if any(k in query for k in keywords):
            return values
    return default


def categories_for(query_text: str) -> list[str]:
    return _lookup(query_text.lower(), CATEGORY_TABLE, DEFAULT_CATEGORIES)


def names_for(query_text: str) -> list[str]:
    return _lookup(query_text.lower(), NAME_TABLE, DEFAULT_NAMES)


def city_coordinates(location: str) -> tuple[float, float]:
    return CITY_COORDINATES.get(location.strip().lower(), DEFAULT_COORDINATES)


def website_for(name: str) -> str:
    """'Zur Goldenen Gans' → 'https://www.zur-goldenen-gans.de'"""
    slug = re.sub(r"\s+", "-", name.lower())
    slug = "".join(_UMLAUTS.get(ch, ch) for ch in slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug).strip("-")
    return f"https://www.{slug}.de"


def _phone(rng: random.Random) -> str:
    area = rng.choice(AREA_CODES)
    number = str(rng.randint(10_000_000, 99_999_999))
    return f"{area} {number[:3]} {number[3:6]}"


def _check_inputs(query_text: str, result_limit: int) -> int:
    if not isinstance(query_text, str) or not query_text.strip():
        raise InvalidArgumentError("Query text must not be empty")
    if isinstance(result_limit, bool) or not isinstance(result_limit, int):
        raise InvalidArgumentError("Result limit must be an integer", f"got {result_limit!r}")
    if result_limit < 0:
        raise InvalidArgumentError("Result limit must not be negative", f"got {result_limit}")
    return min(result_limit, config.MAX_RESULT_LIMIT)


def generate_businesses(
    query_text: str,
    location: str,
    result_limit: int,
    rng: Optional[random.Random] = None,
) -> list[BusinessRecord]:
    """
    Generate ``result_limit`` business records (clamped to MAX_RESULT_LIMIT).

    Raises InvalidArgumentError for an empty query or a negative limit.
    """
    limit = _check_inputs(query_text, result_limit)
    rng = rng or random.Random()

    categories = categories_for(query_text)
    names = names_for(query_text)
    base_lat, base_lng = city_coordinates(location)
    batch = uuid.uuid4().hex[:8]

    businesses = []
    for i in range(limit):
        name = names[i % len(names)]
        businesses.append(BusinessRecord(
            id=f"business_{batch}_{i}",
            name=name,
            category=categories[i % len(categories)],
            address=f"{rng.choice(STREETS)} {rng.randint(1, 200)}, {location}",
            phone=_phone(rng),
            website=website_for(name),
            rating=round(rng.uniform(3.5, 5.0), 1),
            review_count=rng.randrange(10, 510),
            opening_hours=rng.choice(OPENING_HOURS),
            coordinates=Coordinates(
                lat=base_lat + rng.uniform(-COORDINATE_JITTER, COORDINATE_JITTER),
                lng=base_lng + rng.uniform(-COORDINATE_JITTER, COORDINATE_JITTER),
            ),
        ))

    logger.info(f"Generated {len(businesses)} businesses for '{query_text}' in '{location}'")
    return businesses


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    for b in generate_businesses("Restaurant Berlin", "berlin", 5):
        print(f"  {b.name} ({b.category}) — {b.address} | {b.phone} | {b.website} | {b.rating}★")
