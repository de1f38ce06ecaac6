import random
import re

import pytest

from errors import InvalidArgumentError
from generators.business_generator import (
    AREA_CODES,
    CITY_COORDINATES,
    COORDINATE_JITTER,
    DEFAULT_CATEGORIES,
    DEFAULT_COORDINATES,
    OPENING_HOURS,
    STREETS,
    generate_businesses,
    names_for,
    website_for,
)

RESTAURANT_CATEGORIES = {"Restaurant", "Pizzeria", "Café", "Bistro", "Gaststätte"}


@pytest.mark.parametrize("limit", [0, 1, 5, 37, 100])
def test_returns_exactly_limit_records(limit):
    assert len(generate_businesses("Restaurant", "berlin", limit)) == limit


def test_limit_above_maximum_is_clamped():
    assert len(generate_businesses("Restaurant", "berlin", 250)) == 100


def test_rating_and_review_count_ranges():
    for business in generate_businesses("Friseur", "hamburg", 100):
        assert 3.5 <= business.rating <= 5.0
        assert round(business.rating, 1) == business.rating
        assert 10 <= business.review_count < 510


@pytest.mark.parametrize("query", ["", "   "])
def test_empty_query_is_invalid(query):
    with pytest.raises(InvalidArgumentError):
        generate_businesses(query, "berlin", 5)


def test_negative_limit_is_invalid():
    with pytest.raises(InvalidArgumentError):
        generate_businesses("Restaurant", "berlin", -1)


def test_non_integer_limit_is_invalid():
    with pytest.raises(InvalidArgumentError):
        generate_businesses("Restaurant", "berlin", "5")


def test_restaurant_query_uses_restaurant_categories():
    businesses = generate_businesses("Restaurant Berlin", "berlin", 12)
    assert {b.category for b in businesses} <= RESTAURANT_CATEGORIES
    assert businesses[0].category == "Restaurant"
    assert businesses[1].category == "Pizzeria"


def test_keyword_match_is_case_insensitive():
    businesses = generate_businesses("APOTHEKE im Zentrum", "köln", 3)
    assert [b.category for b in businesses] == ["Apotheke", "Sanitätshaus", "Drogerie"]


def test_unknown_query_falls_back_to_generic_categories():
    businesses = generate_businesses("Steuerberater", "berlin", 6)
    assert [b.category for b in businesses] == DEFAULT_CATEGORIES * 2


def test_names_cycle_through_pool_in_order():
    pool = names_for("friseur")
    businesses = generate_businesses("Friseur", "berlin", len(pool) + 2)
    assert [b.name for b in businesses] == pool + pool[:2]


def test_address_phone_and_hours_shapes():
    for business in generate_businesses("Hotel", "Leipzig", 30):
        assert any(business.address.startswith(s + " ") for s in STREETS)
        number = int(re.match(r"^\D+ (\d+),", business.address).group(1))
        assert 1 <= number <= 200
        assert business.address.endswith(", Leipzig")

        area, first, second = business.phone.split(" ")
        assert area in AREA_CODES
        assert re.fullmatch(r"\d{3}", first) and re.fullmatch(r"\d{3}", second)

        assert business.opening_hours in OPENING_HOURS


def test_coordinates_jitter_around_known_city():
    lat, lng = CITY_COORDINATES["hamburg"]
    for business in generate_businesses("Restaurant", "  Hamburg ", 50):
        assert abs(business.coordinates.lat - lat) <= COORDINATE_JITTER
        assert abs(business.coordinates.lng - lng) <= COORDINATE_JITTER


def test_unknown_city_uses_default_coordinates():
    lat, lng = DEFAULT_COORDINATES
    business = generate_businesses("Restaurant", "Atlantis", 1)[0]
    assert abs(business.coordinates.lat - lat) <= COORDINATE_JITTER
    assert abs(business.coordinates.lng - lng) <= COORDINATE_JITTER


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Zur Goldenen Gans", "https://www.zur-goldenen-gans.de"),
        ("Haarstudio Müller", "https://www.haarstudio-mueller.de"),
        ("Praxis Dr. Müller", "https://www.praxis-dr-mueller.de"),
        ("Bräustüberl", "https://www.braeustueberl.de"),
        ("Stadt-Apotheke", "https://www.stadt-apotheke.de"),
    ],
)
def test_website_slug(name, expected):
    assert website_for(name) == expected


def test_seeded_generation_is_repeatable_apart_from_ids():
    first = generate_businesses("Restaurant", "berlin", 10, rng=random.Random(7))
    second = generate_businesses("Restaurant", "berlin", 10, rng=random.Random(7))
    strip = lambda bs: [b.model_dump(exclude={"id"}) for b in bs]
    assert strip(first) == strip(second)
    assert len({b.id for b in first + second}) == 20
