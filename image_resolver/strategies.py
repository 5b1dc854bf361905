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
Per-source search strategies.

Each strategy wraps one backend and turns a query into at most one accepted
image. Encyclopedia strategies walk a phase policy table from the most precise
attempt to the most forgiving one; the proxy backed strategies make a single
call.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import urlparse

from image_resolver.clients import (
    MediaDatabaseClient,
    MusicCatalogClient,
    WebImageClient,
    WikiClient,
)
from image_resolver.data_models.enums import MediaKind
from image_resolver.data_models.results import ImageHit
from image_resolver.data_models.search import SearchHit
from image_resolver.exceptions import BackendError
from image_resolver.matching import (
    has_blocked_title_extension,
    is_allowed_url,
    matches,
)
from image_resolver.normalizer import (
    clean_for_media_database,
    prepare_search_text,
    strip_decades,
)
from image_resolver.rejections import EMPTY_REJECTIONS, RejectionSet

logger = logging.getLogger(__name__)

NATIONAL_ARCHIVE_QUALIFIER = "Nationaal Archief"
TRACK_URL_TEMPLATE = "https://open.spotify.com/track/{track_id}"


@dataclass(frozen=True)
class SearchPhase:
    """One attempt in a phased fallback search."""

    quoted: bool
    with_year: bool
    strict: bool


# Most precise first. The year is dropped before strictness is relaxed.
STANDARD_PHASES: tuple[SearchPhase, ...] = (
    SearchPhase(quoted=True, with_year=True, strict=True),
    SearchPhase(quoted=False, with_year=True, strict=True),
    SearchPhase(quoted=False, with_year=False, strict=False),
)


class SearchStrategy(ABC):
    """Interface for resolving a query against one backend."""

    label: str

    def search_text(
        self, query: str, year: int | None = None, category: str | None = None
    ) -> str:
        """The text this strategy actually sends for ``query``."""
        return query

    @abstractmethod
    async def search(
        self,
        query: str,
        year: int | None = None,
        allow_vector: bool = False,
        strict: bool = True,
        rejections: RejectionSet = EMPTY_REJECTIONS,
        category: str | None = None,
    ) -> ImageHit | None:
        """Return the first acceptable image, or None.

        Raises:
            BackendError: If the backend failed and nothing was found.
        """


class EncyclopediaStrategy(SearchStrategy):
    """Phased text search over a MediaWiki site (Wikipedia or Commons)."""

    def __init__(
        self,
        client: WikiClient,
        label: str,
        language: str,
        phases: tuple[SearchPhase, ...] = STANDARD_PHASES,
        search_limit: int = 5,
        thumb_width: int = 960,
    ) -> None:
        self.client = client
        self.label = label
        self.language = language
        self.phases = phases
        self.search_limit = search_limit
        self.thumb_width = thumb_width

    def search_text(
        self, query: str, year: int | None = None, category: str | None = None
    ) -> str:
        return prepare_search_text(query, self.language)

    def compose(self, text: str, quoted: bool, year: int | None) -> str:
        """Build the backend search string for one phase."""
        composed = f'"{text}"' if quoted else text
        if year is not None:
            composed = f"{composed} {year}"
        return composed

    async def search(
        self,
        query: str,
        year: int | None = None,
        allow_vector: bool = False,
        strict: bool = True,
        rejections: RejectionSet = EMPTY_REJECTIONS,
        category: str | None = None,
    ) -> ImageHit | None:
        text = self.search_text(query)
        failure = None
        attempted = set()

        for phase in self.phases:
            phase_year = year if phase.with_year else None
            phase_strict = strict and phase.strict
            attempt = (phase.quoted, phase_year, phase_strict)
            if attempt in attempted:
                continue
            attempted.add(attempt)

            search_string = self.compose(text, phase.quoted, phase_year)
            try:
                hits = await self.client.search(search_string, self.search_limit)
            except BackendError as e:
                logger.warning("%s search for %r failed: %s", self.label, search_string, e)
                failure = e
                continue

            found = await self._first_acceptable(
                hits, text, allow_vector, phase_strict, rejections
            )
            if found:
                logger.debug("%s accepted %s for %r", self.label, found.image_url, search_string)
                return found

        if failure is not None:
            raise failure
        return None

    async def _first_acceptable(
        self,
        hits: list[SearchHit],
        text: str,
        allow_vector: bool,
        strict: bool,
        rejections: RejectionSet,
    ) -> ImageHit | None:
        for hit in hits:
            if has_blocked_title_extension(hit.title, allow_vector):
                continue
            if not matches(hit.title, hit.snippet, text, strict):
                continue

            try:
                media = await self.client.fetch_media(hit.title, self.thumb_width)
            except BackendError as e:
                logger.debug("Skipping %r: %s", hit.title, e)
                continue
            if media is None or not is_allowed_url(media.best_url, allow_vector):
                continue
            if media.best_url in rejections or media.original_url in rejections:
                logger.debug("Skipping rejected image %s", media.best_url)
                continue

            return ImageHit(
                image_url=media.best_url, source_url=self.client.page_url(hit.title)
            )
        return None


class NationalArchiveStrategy(EncyclopediaStrategy):
    """Commons search narrowed to the national archive's photo donations."""

    def __init__(self, client: WikiClient, language: str, **kwargs) -> None:
        super().__init__(client, "Nationaal Archief", language, **kwargs)

    def compose(self, text: str, quoted: bool, year: int | None) -> str:
        return f"{super().compose(text, quoted, year)} {NATIONAL_ARCHIVE_QUALIFIER}"


class MediaDatabaseStrategy(SearchStrategy):
    """Single lookup in the structured media database for one kind of subject.

    The kind is fixed per instance so TV artwork and film posters never mix.
    """

    def __init__(self, client: MediaDatabaseClient, kind: MediaKind, label: str) -> None:
        self.client = client
        self.kind = kind
        self.label = label

    def search_text(
        self, query: str, year: int | None = None, category: str | None = None
    ) -> str:
        return clean_for_media_database(query)

    async def search(
        self,
        query: str,
        year: int | None = None,
        allow_vector: bool = False,
        strict: bool = True,
        rejections: RejectionSet = EMPTY_REJECTIONS,
        category: str | None = None,
    ) -> ImageHit | None:
        hit = await self.client.search(self.search_text(query), self.kind, year)
        if hit is None or hit.image_url in rejections:
            return None
        return hit


class MusicCatalogStrategy(SearchStrategy):
    """Cover art for an 'Artist - Title' query."""

    label = "Spotify Album Art"

    def __init__(self, client: MusicCatalogClient) -> None:
        self.client = client

    async def search(
        self,
        query: str,
        year: int | None = None,
        allow_vector: bool = False,
        strict: bool = True,
        rejections: RejectionSet = EMPTY_REJECTIONS,
        category: str | None = None,
    ) -> ImageHit | None:
        track = await self.client.search(query)
        if track is None or not track.album_image:
            return None
        if track.album_image in rejections:
            return None
        return ImageHit(
            image_url=track.album_image,
            source_url=track.track_url
            or TRACK_URL_TEMPLATE.format(track_id=track.track_id),
        )


_DECADE_SUFFIXES = {
    194: "40s",
    195: "50s",
    196: "60s",
    197: "70s",
    198: "80s",
    199: "90s",
    200: "2000s",
    201: "2010s",
    202: "2020s",
}


def build_web_query(query: str, year: int | None, category: str | None = None) -> str:
    """
    Build a web image query with an era hint.

    Sports results are tied to an exact year; everything else searches better
    with a decade suffix such as "80s".

    Examples:
        >>> build_web_query("Levi's 501 jaren 80", 1984)
        "Levi's 501 80s"

        >>> build_web_query("Ajax Europa Cup", 1995, "sports")
        'Ajax Europa Cup 1995'
    """
    if year is None:
        return query
    cleaned = strip_decades(query) or query
    if category == "sports":
        return f"{cleaned} {year}"
    suffix = _DECADE_SUFFIXES.get(year // 10)
    return f"{cleaned} {suffix or year}"


class WebImageStrategy(SearchStrategy):
    """General web image search, used as the generic backend in web mode."""

    label = "Web Image Search"

    def __init__(self, client: WebImageClient) -> None:
        self.client = client

    def search_text(
        self, query: str, year: int | None = None, category: str | None = None
    ) -> str:
        return build_web_query(query, year, category)

    async def search(
        self,
        query: str,
        year: int | None = None,
        allow_vector: bool = False,
        strict: bool = True,
        rejections: RejectionSet = EMPTY_REJECTIONS,
        category: str | None = None,
    ) -> ImageHit | None:
        text = self.search_text(query, year, category)
        image_url, score = await self.client.search(text)
        if not image_url:
            return None
        parsed = urlparse(image_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return None
        # Web results may lack a file extension; only blocked extensions are refused.
        if has_blocked_title_extension(parsed.path, allow_vector=allow_vector):
            return None
        if image_url in rejections:
            logger.debug("Skipping rejected web image %s", image_url)
            return None
        logger.debug("Web search for %r scored %s", text, score)
        return ImageHit(image_url=image_url)
