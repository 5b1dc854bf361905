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
Enumerations shared across the image resolver data models.
"""

from enum import Enum


class SubjectType(str, Enum):
    """Coarse classification of what an image should depict."""

    PERSON = "person"
    FILM = "film"
    TV_SERIES = "tv-series"
    PRODUCT = "product"
    LOGO = "logo"
    NEWS_EVENT = "news-event"
    LOCATION = "location"
    ARTWORK = "artwork"
    CULTURE = "culture"
    LIFESTYLE = "lifestyle"
    UNCLASSIFIED = "unclassified"

    @classmethod
    def _missing_(cls, value: object) -> "SubjectType | None":
        # Spellings emitted by the timeline generator.
        if isinstance(value, str):
            aliases = {
                "movie": cls.FILM,
                "tv": cls.TV_SERIES,
                "tv_series": cls.TV_SERIES,
                "event": cls.NEWS_EVENT,
                "news_event": cls.NEWS_EVENT,
            }
            normalized = value.strip().lower()
            if normalized in aliases:
                return aliases[normalized]
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class SearchOutcome(str, Enum):
    """Outcome of a single search attempt."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


class MediaKind(str, Enum):
    """Endpoints of the structured media database."""

    PERSON = "person"
    MOVIE = "movie"
    TV = "tv"


class ResolverMode(str, Enum):
    """Which backend family the router uses for generic subjects."""

    ENCYCLOPEDIA = "encyclopedia"
    WEB = "web"
