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
Tests for subject inference and the source router's ladders.
"""

import itertools
from unittest.mock import AsyncMock, Mock

import pytest

from image_resolver.clients import WikiClient
from image_resolver.data_models.enums import ResolverMode, SearchOutcome, SubjectType
from image_resolver.data_models.queries import SearchQuery
from image_resolver.data_models.results import ImageHit
from image_resolver.exceptions import BackendError
from image_resolver.router import SourceRouter, infer_subject_type
from image_resolver.strategies import (
    EncyclopediaStrategy,
    MediaDatabaseStrategy,
    MusicCatalogStrategy,
    NationalArchiveStrategy,
    SearchStrategy,
    WebImageStrategy,
)

HIT = ImageHit(
    image_url="https://upload.wikimedia.org/wikipedia/commons/a/ab/Hit.jpg",
    source_url="https://commons.wikimedia.org/wiki/File:Hit.jpg",
)

DEFAULT_LADDER = [
    "Commons (EN)",
    "Wikipedia EN",
    "Wikipedia NL",
]

LOCAL_LADDER = [
    "Commons (NL)",
    "Wikipedia NL",
    "Commons (EN)",
    "Wikipedia EN",
]


def make_strategy(label: str, spec: type[SearchStrategy] = EncyclopediaStrategy) -> Mock:
    strategy = Mock(spec=spec)
    strategy.label = label
    strategy.search = AsyncMock(return_value=None)
    strategy.search_text = Mock(side_effect=lambda text, year=None, category=None: text)
    return strategy


@pytest.fixture
def strategies():
    return {
        "commons_international": make_strategy("Commons (EN)"),
        "commons_local": make_strategy("Commons (NL)"),
        "wiki_international": make_strategy("Wikipedia EN"),
        "wiki_local": make_strategy("Wikipedia NL"),
        "national_archive": make_strategy("Nationaal Archief", NationalArchiveStrategy),
        "media_tv": make_strategy("TMDB TV", MediaDatabaseStrategy),
        "media_movie": make_strategy("TMDB Movie", MediaDatabaseStrategy),
        "media_person": make_strategy("TMDB Person", MediaDatabaseStrategy),
        "music_catalog": make_strategy("Spotify Album Art", MusicCatalogStrategy),
    }


@pytest.fixture
def router(strategies):
    ticks = itertools.count()
    return SourceRouter(**strategies, clock=lambda: next(ticks) / 100)


def labels(result) -> list[str]:
    return [entry.source for entry in result.trace]


class TestInferSubjectType:
    @pytest.mark.parametrize(
        "fields,expected",
        [
            ({"subject_type": "film", "is_tv": True}, SubjectType.FILM),
            ({"subject_type": "unclassified", "is_movie": True}, SubjectType.FILM),
            ({"is_celebrity": True, "is_tv": True}, SubjectType.PERSON),
            ({"category": "music"}, SubjectType.PERSON),
            ({"is_music": True}, SubjectType.PERSON),
            ({"category": "Celebrity"}, SubjectType.PERSON),
            ({"is_tv": True, "is_movie": True}, SubjectType.TV_SERIES),
            ({"is_movie": True}, SubjectType.FILM),
            ({"category": "technology"}, SubjectType.PRODUCT),
            ({"category": "entertainment"}, SubjectType.PRODUCT),
            ({"category": "politics"}, SubjectType.NEWS_EVENT),
            ({}, SubjectType.NEWS_EVENT),
        ],
    )
    def test_inference(self, fields, expected):
        query = SearchQuery(id="q", query="iets", **fields)
        assert infer_subject_type(query) is expected


@pytest.mark.asyncio
class TestMediaRouting:
    async def test_tv_never_calls_film_endpoint(self, router, strategies):
        query = SearchQuery(id="dallas", query="Dallas", subject_type="tv", year=1981)

        result = await router.resolve(query)

        assert result.image_url is None
        assert labels(result) == ["TMDB TV"] + DEFAULT_LADDER + DEFAULT_LADDER
        assert [entry.with_year for entry in result.trace] == [True] * 4 + [False] * 3
        assert all(entry.outcome is SearchOutcome.NOT_FOUND for entry in result.trace)
        strategies["media_tv"].search.assert_awaited_once()
        strategies["media_movie"].search.assert_not_awaited()

    async def test_tv_flag_wins_over_film_subject(self, router, strategies):
        query = SearchQuery(id="q", query="Baantjer", subject_type="film", is_tv=True)

        await router.resolve(query)

        strategies["media_tv"].search.assert_awaited_once()
        strategies["media_movie"].search.assert_not_awaited()

    async def test_film_result_is_final(self, router, strategies):
        query = SearchQuery(id="q", query="Titanic", subject_type="movie", year=1997)

        result = await router.resolve(query)

        assert result.image_url is None
        assert labels(result) == ["TMDB Movie"]
        strategies["media_movie"].search.assert_awaited_once()
        strategies["media_tv"].search.assert_not_awaited()
        strategies["commons_international"].search.assert_not_awaited()

    async def test_tv_hit_short_circuits(self, router, strategies):
        strategies["media_tv"].search.return_value = HIT
        query = SearchQuery(id="q", query="Dallas", is_tv=True)

        result = await router.resolve(query)

        assert result.image_url == HIT.image_url
        assert result.source_url == HIT.source_url
        assert labels(result) == ["TMDB TV"]
        assert result.trace[0].outcome is SearchOutcome.FOUND

    async def test_without_media_database_film_uses_encyclopedias(self, strategies):
        for name in ("media_tv", "media_movie", "media_person", "music_catalog"):
            strategies.pop(name)
        router = SourceRouter(**strategies)
        query = SearchQuery(id="q", query="Titanic", subject_type="film")

        result = await router.resolve(query)

        assert labels(result) == DEFAULT_LADDER


@pytest.mark.asyncio
class TestPersonRouting:
    async def test_music_person_ladder(self, router, strategies):
        query = SearchQuery(
            id="q",
            query="Thriller van Michael Jackson",
            query_en="Thriller album",
            category="music",
            music_query="Michael Jackson - Thriller",
        )

        result = await router.resolve(query)

        assert labels(result) == [
            "Spotify Album Art",
            "TMDB Person",
            "TMDB Artist Only",
            "Commons (EN)",
            "Wikipedia EN",
            "Wikipedia NL",
        ]
        assert [entry.query for entry in result.trace[:3]] == [
            "Michael Jackson - Thriller",
            "Thriller album",
            "Michael Jackson",
        ]
        assert not any(entry.with_year for entry in result.trace)
        commons_call = strategies["commons_international"].search.await_args
        assert commons_call.kwargs["strict"] is False

    async def test_music_catalog_hit_short_circuits(self, router, strategies):
        strategies["music_catalog"].search.return_value = HIT
        query = SearchQuery(
            id="q", query="Thriller", is_music=True, music_query="Michael Jackson - Thriller"
        )

        result = await router.resolve(query)

        assert labels(result) == ["Spotify Album Art"]
        strategies["media_person"].search.assert_not_awaited()

    async def test_artist_retry_skipped_when_same_text(self, router):
        query = SearchQuery(
            id="q",
            query="Madonna",
            category="music",
            music_query="Madonna - Like a Virgin",
        )
        steps = router.plan(query, infer_subject_type(query))
        assert "TMDB Artist Only" not in [step.label for step in steps]

    async def test_celebrity_without_music(self, router):
        query = SearchQuery(id="q", query="Koningin Beatrix", query_en="Queen Beatrix", is_celebrity=True, year=1980)

        result = await router.resolve(query)

        assert labels(result) == ["TMDB Person", "Commons (EN)", "Wikipedia EN", "Wikipedia NL"]
        assert result.trace[-1].query == "Koningin Beatrix"


@pytest.mark.asyncio
class TestEncyclopediaRouting:
    async def test_product_ladder_tries_vector_last(self, router, strategies):
        query = SearchQuery(id="q", query="rode fiets", query_en="red bicycle", subject_type="product", year=1985)

        result = await router.resolve(query)

        base = ["Commons (EN)", "Commons (NL)", "Wikipedia EN", "Wikipedia NL"]
        assert labels(result) == base + [label + " +SVG" for label in base]
        calls = strategies["commons_local"].search.await_args_list
        assert [c.kwargs["allow_vector"] for c in calls] == [False, True]
        assert all(c.kwargs["year"] is None and c.kwargs["strict"] is False for c in calls)
        assert calls[0].args[0] == "rode fiets"

    async def test_local_politics_starts_with_archive(self, router, strategies):
        query = SearchQuery(id="q", query="Kabinet Den Uyl", category="politics", year=1973)

        result = await router.resolve(query)

        assert labels(result) == ["Nationaal Archief"] + LOCAL_LADDER + LOCAL_LADDER
        assert result.trace[0].with_year is True
        assert [entry.with_year for entry in result.trace[1:]] == [True] * 4 + [False] * 4

    async def test_culture_subject_skips_archive(self, router):
        query = SearchQuery(id="q", query="Elfstedentocht", subject_type="culture", category="sports")

        result = await router.resolve(query)

        # Without a year the ladder runs once.
        assert labels(result) == LOCAL_LADDER

    async def test_default_ladder(self, router, strategies):
        strategies["wiki_local"].search.side_effect = [None, HIT]
        query = SearchQuery(id="q", query="Val van de Muur", query_en="Fall of the Berlin Wall", year=1989)

        result = await router.resolve(query)

        assert result.image_url == HIT.image_url
        assert labels(result) == DEFAULT_LADDER + DEFAULT_LADDER
        assert [entry.outcome for entry in result.trace][-1] is SearchOutcome.FOUND

    async def test_backend_error_is_traced_and_skipped(self, router, strategies):
        strategies["commons_international"].search.side_effect = BackendError("commons", "down")
        strategies["wiki_international"].search.return_value = HIT
        query = SearchQuery(id="q", query="Maanlanding", query_en="Moon landing", year=1969)

        result = await router.resolve(query)

        assert result.image_url == HIT.image_url
        assert [entry.outcome for entry in result.trace] == [
            SearchOutcome.ERROR,
            SearchOutcome.FOUND,
        ]

    async def test_elapsed_time_is_recorded(self, router):
        query = SearchQuery(id="q", query="Maanlanding", year=1969)

        result = await router.resolve(query)

        elapsed = [entry.elapsed_ms for entry in result.trace]
        assert elapsed == sorted(elapsed)
        assert elapsed[0] > 0


@pytest.mark.asyncio
class TestWebMode:
    @pytest.fixture
    def web_router(self, strategies):
        web = make_strategy("Web Image Search", WebImageStrategy)
        return SourceRouter(**strategies, web_search=web, mode=ResolverMode.WEB), web

    async def test_generic_query_uses_web_search(self, web_router, strategies):
        router, web = web_router
        query = SearchQuery(id="q", query="Walkman", query_en="Sony Walkman", year=1982, category="technology")

        result = await router.resolve(query)

        assert labels(result) == ["Web Image Search"]
        web.search.assert_awaited_once()
        assert web.search.await_args.args[0] == "Sony Walkman"
        assert web.search.await_args.kwargs["category"] == "technology"
        strategies["commons_international"].search.assert_not_awaited()

    async def test_tv_then_web(self, web_router):
        router, _ = web_router
        query = SearchQuery(id="q", query="Dallas", is_tv=True)

        result = await router.resolve(query)

        assert labels(result) == ["TMDB TV", "Web Image Search"]


def test_web_mode_requires_web_strategy(strategies):
    with pytest.raises(ValueError, match="web mode"):
        SourceRouter(**strategies, mode=ResolverMode.WEB)


@pytest.mark.asyncio
class TestWithRealStrategies:
    @pytest.fixture
    def wiki(self):
        client = Mock(spec=WikiClient)
        client.search = AsyncMock(return_value=[])
        client.fetch_media = AsyncMock(return_value=None)
        return client

    def build(self, wiki) -> SourceRouter:
        return SourceRouter(
            commons_international=EncyclopediaStrategy(wiki, "Commons (EN)", "en"),
            commons_local=EncyclopediaStrategy(wiki, "Commons (NL)", "nl"),
            wiki_international=EncyclopediaStrategy(wiki, "Wikipedia EN", "en"),
            wiki_local=EncyclopediaStrategy(wiki, "Wikipedia NL", "nl"),
            national_archive=NationalArchiveStrategy(wiki, "nl"),
        )

    async def test_christmas_is_canonicalized(self, wiki):
        query = SearchQuery(id="q", query="Kerstmis bij opa en oma", subject_type="culture")

        result = await self.build(wiki).resolve(query)

        assert result.trace[0].source == "Commons (NL)"
        assert result.trace[0].query == "Kerstmis"
        assert wiki.search.await_args_list[0].args[0] == '"Kerstmis"'

    async def test_color_is_stripped_for_products(self, wiki):
        query = SearchQuery(id="q", query="rode fiets", subject_type="product", year=1985)

        result = await self.build(wiki).resolve(query)

        assert result.trace[1].source == "Commons (NL)"
        assert result.trace[1].query == "fiets"
        assert not any(entry.with_year for entry in result.trace)
        assert all("1985" not in c.args[0] for c in wiki.search.await_args_list)
