"""Location id mapping and language helpers."""

from __future__ import annotations

import pytest

from transfer_ai.interfaces.locations import (
    VIENNA_AIRPORT_ID,
    VIENNA_CITY_ID,
    get_location_id,
    get_location_type,
    normalize_location,
)
from transfer_ai.utils.language import detect_language, resolve_language


@pytest.mark.parametrize("text", ["vienna airport", "Vienna  Airport", "Flughafen Wien", "VIE"])
def test_airport_names_map_to_airport_id(text):
    assert get_location_id(text) == VIENNA_AIRPORT_ID


def test_substring_match_resolves_longer_text():
    assert get_location_id("Arrivals hall, Vienna Airport Terminal 3") == VIENNA_AIRPORT_ID
    assert get_location_id("Vienna") == VIENNA_CITY_ID


def test_unmapped_location_is_returned_unchanged():
    assert get_location_id("Kärntner Straße 38") == "Kärntner Straße 38"
    assert get_location_id("") == ""


def test_short_codes_only_match_whole_words():
    # "vie" inside "review" must not resolve to the airport
    assert get_location_id("Hotel Review Street") == "Hotel Review Street"


def test_location_type():
    assert get_location_type("Schwechat") == "airport"
    assert get_location_type("VIE terminal") == "airport"
    assert get_location_type("Stephansplatz 1") == "establishment"


def test_normalize_location_collapses_whitespace():
    assert normalize_location("  Hotel   Sacher \n Wien ") == "Hotel Sacher Wien"


def test_language_detection():
    assert detect_language("Привет, нужен трансфер") == "ru"
    assert detect_language("Bonjour, je voudrais un taxi") == "fr"
    assert detect_language("你好，我需要接机") == "zh"
    assert detect_language("I need a taxi") == "en"


def test_english_with_shared_short_words_stays_english():
    assert detect_language("no luggage, 2 passengers") == "en"
    assert detect_language("Pardon, is the driver gut at English?") == "en"
    assert detect_language("No, gracias") == "es"
    assert detect_language("Ja, danke") == "de"


def test_requested_language_wins():
    assert resolve_language("DE-at", "Hello there") == "de"
    assert resolve_language(None, "Hallo, danke") == "de"
