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
Bounded-concurrency batch resolution.

A fixed number of asyncio workers share one iterator over the batch. Claiming
the next query is a plain ``next()`` call between suspension points, so no
lock is needed.
"""

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator, Sequence
from typing import Protocol

from image_resolver.data_models.queries import SearchQuery
from image_resolver.data_models.results import ImageResult
from image_resolver.exceptions import InvalidQueryError
from image_resolver.rejections import EMPTY_REJECTIONS, RejectionSet

logger = logging.getLogger(__name__)

ResultCallback = Callable[[ImageResult], Awaitable[None] | None]

_DONE = object()


class Resolver(Protocol):
    async def resolve(
        self, query: SearchQuery, rejections: RejectionSet = ...
    ) -> ImageResult: ...


def validate_batch(queries: Sequence[SearchQuery], max_concurrent: int) -> None:
    """
    Check the batch contract before any work is started.

    Raises:
        InvalidQueryError: If ``max_concurrent`` is below 1 or an id repeats.
    """
    if max_concurrent < 1:
        raise InvalidQueryError(f"max_concurrent must be at least 1, got {max_concurrent}")
    seen = set()
    for query in queries:
        if query.id in seen:
            raise InvalidQueryError(f"Duplicate query id in batch: '{query.id}'")
        seen.add(query.id)


async def _worker(
    router: Resolver,
    cursor: Iterator[SearchQuery],
    rejections: RejectionSet,
    emit: Callable[[ImageResult], Awaitable[None]],
) -> None:
    for query in cursor:
        result = await router.resolve(query, rejections)
        await emit(result)


async def resolve_all(
    router: Resolver,
    queries: Sequence[SearchQuery],
    max_concurrent: int,
    rejections: RejectionSet = EMPTY_REJECTIONS,
    on_result: ResultCallback | None = None,
) -> list[ImageResult]:
    """
    Resolve a batch with at most ``max_concurrent`` queries in flight.

    Args:
        router: Anything with an async ``resolve(query, rejections)``.
        queries: The batch; ids must be unique.
        max_concurrent: Number of workers to spawn.
        rejections: Image URLs that must never be returned.
        on_result: Optional callback, sync or async, invoked as each result lands.

    Returns:
        One result per query, in completion order.

    Raises:
        InvalidQueryError: If the batch violates its contract.
    """
    validate_batch(queries, max_concurrent)
    logger.info(
        "Resolving %d queries with %d workers", len(queries), max_concurrent
    )
    results = []

    async def emit(result: ImageResult) -> None:
        results.append(result)
        if on_result is not None:
            outcome = on_result(result)
            if inspect.isawaitable(outcome):
                await outcome

    cursor = iter(queries)
    await asyncio.gather(
        *(_worker(router, cursor, rejections, emit) for _ in range(max_concurrent))
    )
    logger.info(
        "Batch done: %d of %d queries found an image",
        sum(1 for result in results if result.found),
        len(results),
    )
    return results


async def stream_results(
    router: Resolver,
    queries: Sequence[SearchQuery],
    max_concurrent: int,
    rejections: RejectionSet = EMPTY_REJECTIONS,
) -> AsyncIterator[ImageResult]:
    """
    Yield results as workers finish them.

    Breaking out of the loop early cancels the outstanding work.
    """
    validate_batch(queries, max_concurrent)
    channel: asyncio.Queue = asyncio.Queue()

    async def produce() -> None:
        try:
            await resolve_all(
                router, queries, max_concurrent, rejections, on_result=channel.put
            )
        finally:
            channel.put_nowait(_DONE)

    producer = asyncio.create_task(produce())
    try:
        while True:
            item = await channel.get()
            if item is _DONE:
                break
            yield item
        await producer
    finally:
        if not producer.done():
            producer.cancel()
