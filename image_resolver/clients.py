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
Clients module for the media backends the resolver consults.
Provides thin async wrappers around the encyclopedia APIs, the media database
and music catalog proxies, and the web image search API.
"""

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from image_resolver.data_models.enums import MediaKind
from image_resolver.data_models.results import ImageHit
from image_resolver.data_models.search import CatalogTrack, MediaInfo, SearchHit
from image_resolver.data_models.settings import ResolverSettings
from image_resolver.exceptions import BackendError

logger = logging.getLogger(__name__)

COMMONS_SITE_URL = "https://commons.wikimedia.org"
COMMONS_FILE_NAMESPACE = 6


async def _read_json(source: str, request) -> Any:
    """Await an httpx request and decode its JSON body, mapping failures to BackendError."""
    try:
        response = await request
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as e:
        raise BackendError(
            source, f"unexpected status {e.response.status_code}"
        ) from e
    except httpx.HTTPError as e:
        raise BackendError(source, f"request failed: {e!r}") from e
    except ValueError as e:
        raise BackendError(source, "response is not valid JSON") from e


class WikiClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        site_url: str,
        name: str,
        namespace: int | None = None,
    ) -> None:
        """
        Initialize a client for one MediaWiki site.

        Args:
            http: Shared async HTTP client
            site_url: Site root, e.g. https://nl.wikipedia.org
            name: Label used in errors and logs
            namespace: Restrict text search to this namespace (6 = files)
        """
        self.http = http
        self.site_url = site_url.rstrip("/")
        self.api_url = f"{self.site_url}/w/api.php"
        self.name = name
        self.namespace = namespace

    @classmethod
    def for_wikipedia(cls, http: httpx.AsyncClient, language: str) -> "WikiClient":
        return cls(http, f"https://{language}.wikipedia.org", f"wikipedia-{language}")

    @classmethod
    def for_commons(cls, http: httpx.AsyncClient) -> "WikiClient":
        return cls(http, COMMONS_SITE_URL, "commons", namespace=COMMONS_FILE_NAMESPACE)

    def page_url(self, title: str) -> str:
        return f"{self.site_url}/wiki/{quote(title.replace(' ', '_'), safe=':/()')}"

    async def search(self, text: str, limit: int = 5) -> list[SearchHit]:
        params = {
            "action": "query",
            "list": "search",
            "srsearch": text,
            "srlimit": limit,
            "format": "json",
        }
        if self.namespace is not None:
            params["srnamespace"] = self.namespace

        data = await _read_json(self.name, self.http.get(self.api_url, params=params))
        try:
            results = data.get("query", {}).get("search", [])
            return [SearchHit.model_validate(item) for item in results[:limit]]
        except (AttributeError, TypeError, ValidationError) as e:
            raise BackendError(self.name, f"malformed search response: {e}") from e

    async def fetch_media(self, title: str, width: int = 960) -> MediaInfo | None:
        """Resolve the image URLs of a page or file; None when it has none."""
        params = {
            "action": "query",
            "titles": title,
            "prop": "pageimages|imageinfo",
            "iiprop": "url",
            "iiurlwidth": width,
            "pithumbsize": width,
            "format": "json",
        }
        data = await _read_json(self.name, self.http.get(self.api_url, params=params))
        try:
            pages = data.get("query", {}).get("pages", {})
            if not pages:
                return None
            page_id, page = next(iter(pages.items()))
            if page_id == "-1" or "missing" in page:
                return None
            image_info = (page.get("imageinfo") or [{}])[0]
            media = MediaInfo(
                thumbnail_url=(page.get("thumbnail") or {}).get("source")
                or image_info.get("thumburl"),
                original_url=image_info.get("url"),
            )
        except (AttributeError, TypeError, IndexError, ValidationError) as e:
            raise BackendError(self.name, f"malformed media response: {e}") from e
        return media if media.best_url else None


class _ProxyClient:
    """Base for endpoints reached through the authenticated functions proxy."""

    name = "proxy"

    def __init__(self, http: httpx.AsyncClient, endpoint_url: str, api_key: str) -> None:
        self.http = http
        self.endpoint_url = endpoint_url
        self.headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
            "apikey": api_key,
        }

    async def _post(self, payload: dict) -> Any:
        return await _read_json(
            self.name,
            self.http.post(self.endpoint_url, json=payload, headers=self.headers),
        )


class MediaDatabaseClient(_ProxyClient):
    name = "media-database"

    async def search(
        self, query: str, kind: MediaKind, year: int | None = None
    ) -> ImageHit | None:
        payload = {
            "queries": [
                {
                    "eventId": "lookup",
                    "query": query,
                    "year": year,
                    "isCelebrity": kind == MediaKind.PERSON,
                    "isMovie": kind == MediaKind.MOVIE,
                    "isTV": kind == MediaKind.TV,
                }
            ]
        }
        data = await self._post(payload)
        try:
            images = data.get("images") or []
            if not isinstance(images, list):
                raise TypeError(f"images is {type(images).__name__}, expected list")
            first = images[0] if images else {}
            if not isinstance(first, dict):
                raise TypeError(f"image entry is {type(first).__name__}, expected dict")
            if not first.get("imageUrl"):
                return None
            return ImageHit(image_url=first["imageUrl"], source_url=first.get("source"))
        except (AttributeError, KeyError, IndexError, TypeError, ValidationError) as e:
            raise BackendError(self.name, f"malformed response: {e}") from e


class MusicCatalogClient(_ProxyClient):
    name = "music-catalog"

    async def search(self, query: str) -> CatalogTrack | None:
        data = await self._post({"query": query})
        if not isinstance(data, dict):
            raise BackendError(self.name, "malformed response")
        if not data.get("trackId"):
            return None
        try:
            return CatalogTrack.model_validate(data)
        except ValidationError as e:
            raise BackendError(self.name, f"malformed track: {e}") from e


_URL_KEYS = ("url", "imageUrl", "image", "src", "original", "link")
_SCORE_KEYS = ("score", "rank", "relevance")
_LIST_KEYS = ("results", "items", "images", "data")


def _first_string(record: dict, keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _first_number(record: dict, keys: tuple[str, ...]) -> float | None:
    for key in keys:
        value = record.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value:
            return float(value)
    return None


def extract_best_image(payload: Any) -> tuple[str | None, float]:
    """
    Pull the top image out of a web search payload.

    The API has shipped several response shapes: a flat record, or a list of
    records under one of a few keys, optionally wrapped in ``data``.
    """
    if not isinstance(payload, dict):
        return None, 0.0

    flat_url = _first_string(payload, _URL_KEYS[:4])
    flat_score = _first_number(payload, ("score",)) or 0.0
    if flat_url:
        return flat_url, flat_score

    containers = [payload]
    if isinstance(payload.get("data"), dict):
        containers.append(payload["data"])
    for container in containers:
        for key in _LIST_KEYS:
            items = container.get(key)
            if isinstance(items, list) and items:
                first = items[0]
                if isinstance(first, dict):
                    score = _first_number(first, _SCORE_KEYS) or flat_score
                    return _first_string(first, _URL_KEYS), score
                return None, 0.0

    logger.debug("No image URL in web search payload; keys: %s", list(payload)[:20])
    return None, 0.0


class WebImageClient:
    name = "web-image-search"

    def __init__(self, http: httpx.AsyncClient, api_url: str, api_key: str) -> None:
        self.http = http
        self.api_url = api_url
        self.api_key = api_key

    async def search(self, text: str) -> tuple[str | None, float]:
        try:
            response = await self.http.get(
                self.api_url, params={"q": text, "key": self.api_key}
            )
        except httpx.HTTPError as e:
            raise BackendError(self.name, f"request failed: {e!r}") from e

        if response.status_code == 404:
            return None, 0.0
        if response.is_error:
            raise BackendError(self.name, f"unexpected status {response.status_code}")
        try:
            payload = response.json()
        except ValueError as e:
            raise BackendError(self.name, "response is not valid JSON") from e
        return extract_best_image(payload)


@dataclass
class BackendClients:
    """All backend clients a router may draw on."""

    local_wiki: WikiClient
    international_wiki: WikiClient
    commons: WikiClient
    media_database: MediaDatabaseClient | None = None
    music_catalog: MusicCatalogClient | None = None
    web_search: WebImageClient | None = None


def create_clients(settings: ResolverSettings, http: httpx.AsyncClient) -> BackendClients:
    """
    Factory function to create the backend clients described by the settings.

    The proxy backed clients are only created when a proxy is configured, and
    the web image client only when its endpoint is.
    """
    media_database = None
    music_catalog = None
    if settings.proxy_base_url:
        media_database = MediaDatabaseClient(
            http, settings.media_database_url, settings.proxy_api_key
        )
        music_catalog = MusicCatalogClient(
            http, settings.music_catalog_url, settings.proxy_api_key
        )

    web_search = None
    if settings.web_search_url and settings.web_search_api_key:
        web_search = WebImageClient(
            http, settings.web_search_url, settings.web_search_api_key
        )

    return BackendClients(
        local_wiki=WikiClient.for_wikipedia(http, settings.local_language),
        international_wiki=WikiClient.for_wikipedia(
            http, settings.international_language
        ),
        commons=WikiClient.for_commons(http),
        media_database=media_database,
        music_catalog=music_catalog,
        web_search=web_search,
    )
