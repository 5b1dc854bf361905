# Copyright 2025 Google LLC.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Query normalization heuristics.

Free-text event titles make poor repository queries: they carry decades,
colours and family context that the media repositories do not index. The
functions here rewrite a query into something those repositories can match.
All of them are pure and deterministic.
"""

import re
from dataclasses import dataclass

DEFAULT_LANGUAGE = "en"
MIN_WEATHER_QUERY_LENGTH = 4


@dataclass(frozen=True)
class FixedTopic:
    """A generic visual concept that replaces the whole query when detected."""

    name: str
    pattern: re.Pattern
    terms: dict[str, str]

    def term(self, language: str) -> str:
        return self.terms.get(language, self.terms[DEFAULT_LANGUAGE])


def _topic(name: str, pattern: str, nl: str, en: str) -> FixedTopic:
    return FixedTopic(name, re.compile(pattern, re.IGNORECASE), {"nl": nl, "en": en})


# Order matters: a canonical term must never match an earlier topic.
FIXED_TOPICS: tuple[FixedTopic, ...] = (
    _topic(
        "sinterklaas",
        r"\b(?:sinterklaas\w*|sint[- ]nicolaas|pakjesavond|saint nicholas)\b",
        "Sinterklaas",
        "Sinterklaas",
    ),
    _topic("easter", r"\b(?:pasen|paas\w*|easter)\b", "Pasen", "Easter"),
    _topic("christmas", r"\b(?:kerst\w*|christmas\w*|xmas)\b", "Kerstmis", "Christmas"),
    _topic(
        "new_year",
        r"\b(?:oud en nieuw|oudejaars\w*|vuurwerk\w*|new year['’]?s eve|fireworks?)\b",
        "vuurwerk",
        "fireworks",
    ),
    _topic(
        "nightlife",
        r"\b(?:disco(?:theek|theken|'s|s)?|nachtclub\w*|nightclub\w*)\b",
        "discotheek",
        "nightclub",
    ),
    _topic(
        "perfume",
        r"\b(?:parfum\w*|perfume\w*|eau de (?:toilette|cologne))\b",
        "parfumfles",
        "perfume bottle",
    ),
    _topic(
        "bar_token",
        r"\b(?:consumptiemunt\w*|consumptiebon\w*|bar tokens?|drink tokens?)\b",
        "consumptiemunt",
        "bar token",
    ),
    _topic("mullet", r"\b(?:matje|mullet\w*)\b", "matje", "mullet hairstyle"),
    _topic(
        "hairstyle",
        r"\b(?:kapsel\w*|permanentje|hairstyles?|haircuts?|hairdo)\b",
        "kapsel",
        "hairstyle",
    ),
)

_DECADE_PATTERNS = (
    re.compile(r"\bjaren\s+['’]?\d{2,4}s?\b", re.IGNORECASE),
    re.compile(r"\bthe\s+['’]?(?:\d{2}|\d{4})s\b", re.IGNORECASE),
    re.compile(r"\b(?:19|20)\d{2}s?\b", re.IGNORECASE),
    re.compile(r"(?<!\w)['’]?\d{2}s\b", re.IGNORECASE),
    re.compile(r"\b(?:decade|decennium)\b", re.IGNORECASE),
)

_NOSTALGIA_PATTERN = re.compile(
    r"\b(?:vintage|retro|interior|interieur|nostalgic|nostalgisch\w*)\b", re.IGNORECASE
)

_COLORS = (
    # Dutch
    "rood", "rode", "rooie", "blauw", "blauwe", "groen", "groene", "geel", "gele",
    "oranje", "paars", "paarse", "roze", "zwart", "zwarte", "wit", "witte", "grijs",
    "grijze", "bruin", "bruine", "gouden", "zilveren", "beige", "turquoise",
    # English
    "red", "blue", "green", "yellow", "orange", "purple", "pink", "black", "white",
    "grey", "gray", "brown", "golden", "silvery",
)
_COLOR_PATTERN = re.compile(r"\b(?:" + "|".join(_COLORS) + r")\b", re.IGNORECASE)

_EMPTY_PARENS = re.compile(r"\(\s*\)")
_EDGE_SEPARATORS = " ,;:-–"


@dataclass(frozen=True)
class WeatherPhenomenon:
    name: str
    pattern: str
    terms: dict[str, str]


WEATHER_PHENOMENA: tuple[WeatherPhenomenon, ...] = (
    WeatherPhenomenon("snow", r"sneeuw\w*|snow\w*", {"nl": "sneeuw", "en": "snow"}),
    WeatherPhenomenon(
        "heatwave",
        r"hittegolf\w*|heat ?waves?",
        {"nl": "hittegolf", "en": "heatwave"},
    ),
    WeatherPhenomenon(
        "cold_spell",
        r"koudegolf\w*|strenge vorst|ijzel|cold spells?",
        {"nl": "koudegolf", "en": "cold spell"},
    ),
    WeatherPhenomenon(
        "flood",
        r"overstroming\w*|watersnood\w*|floods?|flooding",
        {"nl": "overstroming", "en": "flood"},
    ),
    WeatherPhenomenon(
        "storm",
        r"storm(?:en|s|schade)?|orkaan\w*|hurricanes?",
        {"nl": "storm", "en": "storm"},
    ),
    WeatherPhenomenon("drought", r"droogte\w*|droughts?", {"nl": "droogte", "en": "drought"}),
)

_WEATHER_PATTERN = re.compile(
    r"\b(?:"
    + "|".join(f"(?P<{p.name}>{p.pattern})" for p in WEATHER_PHENOMENA)
    + r")\b",
    re.IGNORECASE,
)
_YEAR_PATTERN = re.compile(r"\b\d{4}\b")
_PARENS_PATTERN = re.compile(r"[()]")


def _collapse(text: str) -> str:
    text = _EMPTY_PARENS.sub(" ", text)
    return re.sub(r"\s+", " ", text).strip(_EDGE_SEPARATORS)


def match_fixed_topic(query: str) -> FixedTopic | None:
    """Return the first fixed topic mentioned in the query, if any."""
    for topic in FIXED_TOPICS:
        if topic.pattern.search(query):
            return topic
    return None


def strip_decades(query: str) -> str:
    """Remove decade and year markers ("1985", "80s", "jaren 80", "the 90s")."""
    for pattern in _DECADE_PATTERNS:
        query = pattern.sub(" ", query)
    return _collapse(query)


def strip_colors(query: str) -> str:
    """Remove colour adjectives from the closed Dutch and English lists."""
    return _collapse(_COLOR_PATTERN.sub(" ", query))


def _strip_once(query: str) -> str:
    stripped = strip_decades(query)
    stripped = _collapse(_NOSTALGIA_PATTERN.sub(" ", stripped))
    return strip_colors(stripped)


def normalize(query: str, language: str = DEFAULT_LANGUAGE) -> str:
    """
    Rewrite a query to improve its match rate against media repositories.

    A recognised fixed topic replaces the whole query with its canonical term in
    ``language``. Otherwise decades, nostalgia adjectives and colours are
    stripped until the text stops changing, with the fixed topics checked again
    after every pass. If stripping leaves nothing, the original query is returned.

    Examples:
        >>> normalize("Kerstmis bij opa en oma", "nl")
        'Kerstmis'

        >>> normalize("rode fiets", "nl")
        'fiets'

        >>> normalize("Vintage Walkman jaren 80", "nl")
        'Walkman'
    """
    text = query.strip()
    while True:
        topic = match_fixed_topic(text)
        if topic:
            return topic.term(language)
        stripped = _strip_once(text)
        if not stripped:
            return query.strip()
        if stripped == text:
            return text
        text = stripped


def simplify_weather_query(query: str, language: str = DEFAULT_LANGUAGE) -> str | None:
    """
    Reduce a weather query to the phenomenon itself.

    Weather photographs are indexed by phenomenon, not by place, so everything
    before the first and after the last weather keyword is dropped together
    with any years. Returns None when the query mentions no weather phenomenon.

    Examples:
        >>> simplify_weather_query("Hittegolf in Sittard", "nl")
        'Hittegolf'

        >>> simplify_weather_query("Elfstedentocht 1997", "nl") is None
        True
    """
    found = list(_WEATHER_PATTERN.finditer(query))
    if not found:
        return None

    span = query[found[0].start() : found[-1].end()]
    simplified = _collapse(_YEAR_PATTERN.sub(" ", span))
    if len(simplified) < MIN_WEATHER_QUERY_LENGTH:
        phenomenon = next(
            p for p in WEATHER_PHENOMENA if found[0].group(p.name) is not None
        )
        return phenomenon.terms.get(language, phenomenon.terms[DEFAULT_LANGUAGE])
    return simplified


def prepare_search_text(query: str, language: str = DEFAULT_LANGUAGE) -> str:
    """Fixed topics first, then weather simplification, then general normalization."""
    if match_fixed_topic(query):
        return normalize(query, language)
    weather = simplify_weather_query(query, language)
    if weather:
        return weather
    return normalize(query, language)


def clean_for_media_database(query: str) -> str:
    """Strip decades and parentheses; the media database matches on bare titles."""
    cleaned = _PARENS_PATTERN.sub(" ", strip_decades(query))
    return _collapse(cleaned) or query.strip()
