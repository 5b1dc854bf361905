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

import asyncio
import logging
from collections.abc import Sequence

import httpx

from image_resolver.clients import create_clients
from image_resolver.config import get_settings
from image_resolver.data_models.queries import SearchQuery
from image_resolver.data_models.results import ImageResult
from image_resolver.data_models.settings import ResolverSettings
from image_resolver.rejections import EMPTY_REJECTIONS, RejectionSet, fetch_rejections
from image_resolver.router import create_router
from image_resolver.scheduler import ResultCallback, resolve_all
from image_resolver.version import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f"event-image-resolver/{__version__}"


def create_http_client(settings: ResolverSettings) -> httpx.AsyncClient:
    """Creates the shared HTTP client for one batch."""
    return httpx.AsyncClient(
        timeout=settings.http_timeout,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    )


def load_rejections(settings: ResolverSettings) -> RejectionSet:
    """Snapshot the rejection store, or an empty set when none is configured."""
    if not settings.rejection_table_url:
        return EMPTY_REJECTIONS
    return fetch_rejections(
        settings.rejection_table_url,
        api_key=settings.proxy_api_key,
        timeout=settings.http_timeout,
    )


async def resolve_images(
    queries: Sequence[SearchQuery],
    settings: ResolverSettings | None = None,
    rejections: RejectionSet | None = None,
    max_concurrent: int | None = None,
    on_result: ResultCallback | None = None,
) -> list[ImageResult]:
    """
    Resolves a batch of queries to images.

    Args:
        queries: The queries to resolve; ids must be unique.
        settings: Resolver configuration. Read from the environment when omitted.
        rejections: Image URLs that must never be returned. Fetched from the
            configured rejection store when omitted.
        max_concurrent: Worker count, defaulting to ``settings.max_concurrent``.
        on_result: Optional callback invoked as each result completes.

    Returns:
        One ImageResult per query, in completion order.

    Raises:
        InvalidQueryError: If the batch violates its contract.
    """
    if settings is None:
        settings = get_settings()
    if rejections is None:
        rejections = await asyncio.to_thread(load_rejections, settings)
    if max_concurrent is None:
        max_concurrent = settings.max_concurrent

    async with create_http_client(settings) as http:
        router = create_router(settings, create_clients(settings, http))
        return await resolve_all(
            router,
            queries,
            max_concurrent,
            rejections=rejections,
            on_result=on_result,
        )
