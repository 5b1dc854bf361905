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
Source routing: which backends to try, in which order, for a query.

The router infers a subject type once, turns it into a ladder of search steps
and walks the ladder until a step yields an image. Every step appends one
trace entry, whatever its outcome.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from image_resolver.clients import BackendClients
from image_resolver.data_models.enums import (
    MediaKind,
    ResolverMode,
    SearchOutcome,
    SubjectType,
)
from image_resolver.data_models.queries import SearchQuery
from image_resolver.data_models.results import ImageHit, ImageResult, SearchTraceEntry
from image_resolver.data_models.settings import ResolverSettings
from image_resolver.exceptions import BackendError
from image_resolver.rejections import EMPTY_REJECTIONS, RejectionSet
from image_resolver.strategies import (
    EncyclopediaStrategy,
    MediaDatabaseStrategy,
    MusicCatalogStrategy,
    NationalArchiveStrategy,
    SearchStrategy,
    WebImageStrategy,
)

logger = logging.getLogger(__name__)

PERSON_CATEGORIES = frozenset({"celebrity"})
PRODUCT_CATEGORIES = frozenset({"technology", "science", "entertainment"})
PRODUCT_SUBJECTS = frozenset(
    {SubjectType.PRODUCT, SubjectType.LOGO, SubjectType.ARTWORK, SubjectType.LIFESTYLE}
)
LOCAL_CATEGORIES = frozenset({"local", "politics", "culture", "sports"})
LOCAL_SUBJECTS = frozenset({SubjectType.CULTURE, SubjectType.LOCATION})
ARCHIVE_CATEGORIES = frozenset({"local", "politics"})

VECTOR_SUFFIX = " +SVG"
ARTIST_ONLY_LABEL = "TMDB Artist Only"


def infer_subject_type(query: SearchQuery) -> SubjectType:
    """
    Return the subject type that drives routing for ``query``.

    An explicit classification wins unless it is ``unclassified``; otherwise the
    type is derived from the flags and the category, defaulting to a news event.
    """
    if query.subject_type and query.subject_type is not SubjectType.UNCLASSIFIED:
        return query.subject_type
    if (
        query.is_celebrity
        or query.is_music_event
        or query.category in PERSON_CATEGORIES
    ):
        return SubjectType.PERSON
    if query.is_tv:
        return SubjectType.TV_SERIES
    if query.is_movie:
        return SubjectType.FILM
    if query.category in PRODUCT_CATEGORIES:
        return SubjectType.PRODUCT
    return SubjectType.NEWS_EVENT


@dataclass(frozen=True)
class LadderStep:
    """One planned call: a strategy plus the arguments to call it with."""

    label: str
    strategy: SearchStrategy
    text: str
    year: int | None = None
    strict: bool = True
    allow_vector: bool = False


class SourceRouter:
    """Plans and executes the backend ladder for single queries.

    The media database and music catalog strategies are optional; their steps
    are left out of every ladder when they are not configured.
    """

    def __init__(
        self,
        commons_international: EncyclopediaStrategy,
        commons_local: EncyclopediaStrategy,
        wiki_international: EncyclopediaStrategy,
        wiki_local: EncyclopediaStrategy,
        national_archive: NationalArchiveStrategy,
        media_tv: MediaDatabaseStrategy | None = None,
        media_movie: MediaDatabaseStrategy | None = None,
        media_person: MediaDatabaseStrategy | None = None,
        music_catalog: MusicCatalogStrategy | None = None,
        web_search: WebImageStrategy | None = None,
        mode: ResolverMode = ResolverMode.ENCYCLOPEDIA,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if mode is ResolverMode.WEB and web_search is None:
            raise ValueError("web mode requires a web search strategy")
        self.commons_international = commons_international
        self.commons_local = commons_local
        self.wiki_international = wiki_international
        self.wiki_local = wiki_local
        self.national_archive = national_archive
        self.media_tv = media_tv
        self.media_movie = media_movie
        self.media_person = media_person
        self.music_catalog = music_catalog
        self.web_search = web_search
        self.mode = mode
        self._clock = clock

    # Planning

    def plan(self, query: SearchQuery, subject: SubjectType) -> list[LadderStep]:
        """Return the ordered steps to try for ``query``."""
        steps = []
        if query.is_music_event and query.music_query and self.music_catalog:
            steps.append(self._step(self.music_catalog, query.music_query))

        is_tv = subject is SubjectType.TV_SERIES or query.is_tv
        if is_tv and self.media_tv:
            steps.append(
                self._step(self.media_tv, query.international_query, year=query.year)
            )
        elif subject is SubjectType.FILM and self.media_movie:
            # Films end here: a miss in the movie database is authoritative.
            steps.append(
                self._step(self.media_movie, query.international_query, year=query.year)
            )
            return steps

        if self.mode is ResolverMode.WEB:
            steps.append(
                self._step(self.web_search, query.international_query, year=query.year)
            )
            return steps

        if subject is SubjectType.PERSON and not is_tv:
            steps.extend(self._person_ladder(query))
        elif subject in PRODUCT_SUBJECTS:
            steps.extend(self._product_ladder(query))
        elif query.category in LOCAL_CATEGORIES or subject in LOCAL_SUBJECTS:
            steps.extend(self._local_ladder(query))
        else:
            steps.extend(self._default_ladder(query))
        return steps

    def _step(
        self,
        strategy: SearchStrategy,
        text: str,
        year: int | None = None,
        strict: bool = True,
        allow_vector: bool = False,
        label: str | None = None,
    ) -> LadderStep:
        if label is None:
            label = strategy.label + (VECTOR_SUFFIX if allow_vector else "")
        return LadderStep(label, strategy, text, year, strict, allow_vector)

    def _person_ladder(self, query: SearchQuery) -> list[LadderStep]:
        international = query.international_query
        steps = []
        if self.media_person:
            steps.append(self._step(self.media_person, international))
            if query.is_music_event and query.music_query:
                artist = query.music_query.split(" - ")[0].strip()
                if artist and artist != international:
                    steps.append(
                        self._step(self.media_person, artist, label=ARTIST_ONLY_LABEL)
                    )
        steps.extend(
            [
                self._step(self.commons_international, international, strict=False),
                self._step(self.wiki_international, international),
                self._step(self.wiki_local, query.query),
            ]
        )
        return steps

    def _product_ladder(self, query: SearchQuery) -> list[LadderStep]:
        # Undated and lenient throughout; vector images only on the second sweep.
        def sweep(allow_vector: bool) -> list[LadderStep]:
            return [
                self._step(strategy, text, strict=False, allow_vector=allow_vector)
                for strategy, text in (
                    (self.commons_international, query.international_query),
                    (self.commons_local, query.query),
                    (self.wiki_international, query.international_query),
                    (self.wiki_local, query.query),
                )
            ]

        return sweep(allow_vector=False) + sweep(allow_vector=True)

    def _local_ladder(self, query: SearchQuery) -> list[LadderStep]:
        steps = []
        if query.category in ARCHIVE_CATEGORIES:
            steps.append(self._step(self.national_archive, query.query, year=query.year))
        order = (
            (self.commons_local, query.query),
            (self.wiki_local, query.query),
            (self.commons_international, query.international_query),
            (self.wiki_international, query.international_query),
        )
        return steps + self._dated_then_undated(order, query.year)

    def _default_ladder(self, query: SearchQuery) -> list[LadderStep]:
        order = (
            (self.commons_international, query.international_query),
            (self.wiki_international, query.international_query),
            (self.wiki_local, query.query),
        )
        return self._dated_then_undated(order, query.year)

    def _dated_then_undated(
        self, order: tuple[tuple[SearchStrategy, str], ...], year: int | None
    ) -> list[LadderStep]:
        years = (year, None) if year is not None else (None,)
        return [
            self._step(strategy, text, year=pass_year)
            for pass_year in years
            for strategy, text in order
        ]

    # Execution

    async def resolve(
        self, query: SearchQuery, rejections: RejectionSet = EMPTY_REJECTIONS
    ) -> ImageResult:
        """Walk the ladder for ``query`` and return the first accepted image."""
        subject = infer_subject_type(query)
        started = self._clock()
        trace = []

        for step in self.plan(query, subject):
            hit, outcome = await self._attempt(step, query, rejections)
            trace.append(
                SearchTraceEntry(
                    source=step.label,
                    query=step.strategy.search_text(step.text, step.year, query.category),
                    with_year=step.year is not None,
                    outcome=outcome,
                    elapsed_ms=int((self._clock() - started) * 1000),
                )
            )
            if hit:
                logger.info("Query %s resolved by %s", query.id, step.label)
                return ImageResult(
                    id=query.id,
                    image_url=hit.image_url,
                    source_url=hit.source_url,
                    trace=tuple(trace),
                )

        logger.info("No image found for query %s after %d attempts", query.id, len(trace))
        return ImageResult.not_found(query.id, tuple(trace))

    async def _attempt(
        self, step: LadderStep, query: SearchQuery, rejections: RejectionSet
    ) -> tuple[ImageHit | None, SearchOutcome]:
        logger.debug("Query %s: trying %s with %r", query.id, step.label, step.text)
        try:
            hit = await step.strategy.search(
                step.text,
                year=step.year,
                allow_vector=step.allow_vector,
                strict=step.strict,
                rejections=rejections,
                category=query.category,
            )
        except BackendError as e:
            logger.warning("Query %s: %s failed: %s", query.id, step.label, e)
            return None, SearchOutcome.ERROR
        if hit is None:
            return None, SearchOutcome.NOT_FOUND
        return hit, SearchOutcome.FOUND


def create_router(settings: ResolverSettings, clients: BackendClients) -> SourceRouter:
    """
    Factory function to build a router over the given backend clients.
    """
    local = settings.local_language
    international = settings.international_language
    tuning = {"search_limit": settings.search_limit, "thumb_width": settings.thumb_width}

    def encyclopedia(client, label, language):
        return EncyclopediaStrategy(client, label, language, **tuning)

    media_tv = media_movie = media_person = None
    if clients.media_database:
        media_tv = MediaDatabaseStrategy(clients.media_database, MediaKind.TV, "TMDB TV")
        media_movie = MediaDatabaseStrategy(
            clients.media_database, MediaKind.MOVIE, "TMDB Movie"
        )
        media_person = MediaDatabaseStrategy(
            clients.media_database, MediaKind.PERSON, "TMDB Person"
        )

    return SourceRouter(
        commons_international=encyclopedia(
            clients.commons, f"Commons ({international.upper()})", international
        ),
        commons_local=encyclopedia(clients.commons, f"Commons ({local.upper()})", local),
        wiki_international=encyclopedia(
            clients.international_wiki, f"Wikipedia {international.upper()}", international
        ),
        wiki_local=encyclopedia(clients.local_wiki, f"Wikipedia {local.upper()}", local),
        national_archive=NationalArchiveStrategy(clients.commons, local, **tuning),
        media_tv=media_tv,
        media_movie=media_movie,
        media_person=media_person,
        music_catalog=(
            MusicCatalogStrategy(clients.music_catalog) if clients.music_catalog else None
        ),
        web_search=WebImageStrategy(clients.web_search) if clients.web_search else None,
        mode=settings.mode,
    )
