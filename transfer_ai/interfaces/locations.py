# interfaces/locations.py
"""
Location normalisation for the rates marketplace.
Maps free-text places (multilingual) to marketplace place ids and
decides whether a place is an airport or an establishment.
"""

import re
from typing import Dict, List, Tuple


VIENNA_AIRPORT_ID = "ChIJm74aR6tVbEcRS5vSjRBSeiQ"
VIENNA_CITY_ID = "ChIJn8o2UZ4HbUcRRluiUYrlwv0"


# ============================================
# Place table (airports before cities)
# ============================================

LOCATION_TABLE: List[Tuple[str, str]] = [
    # Vienna International Airport
    ("vienna airport", VIENNA_AIRPORT_ID),
    ("vienna international airport", VIENNA_AIRPORT_ID),
    ("vienna airport, austria", VIENNA_AIRPORT_ID),
    ("schwechat airport", VIENNA_AIRPORT_ID),
    ("flughafen wien", VIENNA_AIRPORT_ID),
    ("венский аэропорт", VIENNA_AIRPORT_ID),
    ("аэропорт вены", VIENNA_AIRPORT_ID),
    ("аэропорт", VIENNA_AIRPORT_ID),
    ("vie", VIENNA_AIRPORT_ID),

    # Other Alpine airports
    ("geneva airport", "ChIJN5MjroBkjEcRMKa4TvKpEeU"),
    ("gva", "ChIJN5MjroBkjEcRMKa4TvKpEeU"),
    ("innsbruck airport", "ChIJRdBNVHVrnUcRGT-I40h8Q1k"),
    ("inn", "ChIJRdBNVHVrnUcRGT-I40h8Q1k"),
    ("salzburg airport", "ChIJMUEWmiSQdkcRb5nIVkNvPB4"),
    ("szg", "ChIJMUEWmiSQdkcRb5nIVkNvPB4"),
    ("basel airport", "ChIJQ3OaSAO8kUcRVCoHgGyXib8"),
    ("bsl", "ChIJQ3OaSAO8kUcRVCoHgGyXib8"),
    ("grenoble airport", "ChIJf1xyMojaikcRwz1R6tX-knU"),
    ("gnb", "ChIJf1xyMojaikcRwz1R6tX-knU"),

    # Vienna city
    ("vienna, austria", VIENNA_CITY_ID),
    ("vienna city center", VIENNA_CITY_ID),
    ("vienna city", VIENNA_CITY_ID),
    ("vienna", VIENNA_CITY_ID),
    ("вена", VIENNA_CITY_ID),
    ("венна", VIENNA_CITY_ID),
    ("wien", VIENNA_CITY_ID),

    # Other city centres
    ("geneva city", "ChIJ6-LQkwZljEcRObwLezWVtqA"),
    ("innsbruck city", "ChIJc8r44c9unUcRDZsdKH0cIJ0"),
    ("salzburg city", "ChIJsdQIqd2adkcRPfcqQaGD4cE"),
    ("basel city", "ChIJRTH3kUMfl0cRwcXzMxkpD2M"),

    # Ski resorts
    ("chamonix", "ChIJ5y7-LQZMiUcRgKO65CqrCAQ"),
    ("courchevel", "ChIJc_VjrDB_iUcREMArgy2rCAo"),
    ("val d'isere", "ChIJk_tf_QkJiUcRMKi65CqrCAQ"),
    ("val thorens", "ChIJh_ePD2CGiUcREFEogy2rCAo"),
    ("verbier", "ChIJc6mm987PjkcRkYgnDZw-3v8"),
    ("les arcs", "ChIJgwxVkQ9viUcRwq995YhoKn8"),
    ("meribel", "ChIJG7K6NjmAiUcRUIyElH2rvUA"),
    ("tignes", "ChIJl2dWMqp0iUcROL6f4ArKhDg"),
    ("kitzbuhel", "ChIJFV1O4HVNdkcRWkupS_2Xtv8"),
    ("mayrhofen", "ChIJbzLYLzjdd0cRDtGuTzM_vt4"),
    ("saalbach", "ChIJzwGjsdD_dkcR1xyM-f0twZU"),
    ("zell am see", "ChIJywwtjG0dd0cRwt1xr6M1MUU"),
    ("ischgl", "ChIJ8R4D9WKznEcR18sUKu-fxmc"),
    ("kaprun", "ChIJk-wkXEgbd0cRN9sz8KeEmec"),
    ("st anton", "ChIJBZ5afmCwnEcRj60i3GNGyZE"),
    ("obergurgl", "ChIJU3-n6XrMgkcRNhaxPz-daQs"),
    ("soelden", "ChIJxxooVFsynUcRP9_DLq7bKE0"),
    ("sölden", "ChIJxxooVFsynUcRP9_DLq7bKE0"),

    # Other cities
    ("salzburg", "ChIJsdQIqd2adkcRPfcqQaGD4cE"),
    ("graz", "ChIJu2UwF4c1bkcRm93f0tGKjv4"),
    ("linz", "ChIJTYWZ-pWVc0cRxHV5VywpU3w"),
    ("klagenfurt", "ChIJZX6PMEVzcEcRK41hjN-2fmg"),
    ("bratislava", "ChIJl2HKCjaJbEcRaEOI_YKbH2M"),
    ("brno", "ChIJEVE_wDqUEkcRsLEUZg-vAAQ"),
    ("budapest", "ChIJyc_U0TTDQUcRYBEeDCnEAAQ"),
    ("annecy", "ChIJyVEFHPqPi0cRujQFYoEWeEI"),
    ("lausanne", "ChIJ5aeJzT4pjEcRXu7iysk_F-s"),
    ("montreux", "ChIJzVC2zSCbjkcRRxhtxH96wMw"),
    ("interlaken", "ChIJBRqSMWqZUxQRAL4CTPEaEZw"),
]

LOCATION_MAP: Dict[str, str] = dict(LOCATION_TABLE)

AIRPORT_KEYWORDS = ["airport", "flughafen", "aéroport", "aeroport", "аэропорт", "schwechat"]
IATA_CODES = ["vie", "gva", "inn", "szg", "bsl", "gnb"]

# Short keys (IATA codes) only match as whole words
SHORT_KEY_LENGTH = 3
MIN_REVERSE_MATCH_LENGTH = 4


def _clean(location: str) -> str:
    return re.sub(r"\s+", " ", (location or "").strip().lower())


def _contains_word(text: str, word: str) -> bool:
    return re.search(rf"(?<!\w){re.escape(word)}(?!\w)", text) is not None


def _key_in(text: str, key: str) -> bool:
    if len(key) <= SHORT_KEY_LENGTH:
        return _contains_word(text, key)
    return key in text


def get_location_id(location: str) -> str:
    """
    Resolve a free-text location to a marketplace place id.

    Exact match first, then substring match in table order (the text
    containing a key, or a key containing the text). Unmapped text is
    returned unchanged.
    """
    if not location:
        return ""

    text = _clean(location)

    if text in LOCATION_MAP:
        return LOCATION_MAP[text]

    for key, place_id in LOCATION_TABLE:
        if _key_in(text, key):
            return place_id
        if len(text) >= MIN_REVERSE_MATCH_LENGTH and text in key:
            return place_id

    return location


def get_location_type(location: str) -> str:
    """'airport' when any airport keyword or IATA code is present, else 'establishment'"""
    text = _clean(location)

    if any(keyword in text for keyword in AIRPORT_KEYWORDS):
        return "airport"
    if any(_contains_word(text, code) for code in IATA_CODES):
        return "airport"

    return "establishment"


def normalize_location(location: str) -> str:
    """Collapse whitespace in a user supplied location"""
    if not location:
        return ""
    return re.sub(r"\s+", " ", location.strip())
