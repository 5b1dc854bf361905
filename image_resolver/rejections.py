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
Rejection sets: image URLs that must never be returned.

The set itself is persisted elsewhere. These helpers build an immutable
snapshot of it once per batch; the resolver only ever reads that snapshot.
"""

import json
import logging
from collections.abc import Iterable
from pathlib import Path

import requests

logger = logging.getLogger(__name__)

RejectionSet = frozenset[str]

EMPTY_REJECTIONS: RejectionSet = frozenset()


def build_rejection_set(urls: Iterable[str | dict | None]) -> RejectionSet:
    """Build a snapshot from bare URLs or store rows shaped like ``{"image_url": ...}``."""
    snapshot = set()
    for item in urls:
        url = item.get("image_url") if isinstance(item, dict) else item
        if isinstance(url, str) and url.strip():
            snapshot.add(url.strip())
    return frozenset(snapshot)


def load_rejections_from_file(path: str | Path) -> RejectionSet:
    """
    Load a rejection snapshot from a JSON file.

    Args:
        path: File holding a JSON list of URLs or of ``{"image_url": ...}`` rows

    Raises:
        ValueError: If the file does not hold a JSON list
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Rejection file '{path}' must contain a JSON list")
    return build_rejection_set(data)


def fetch_rejections(
    table_url: str, api_key: str | None = None, timeout: float = 10.0
) -> RejectionSet:
    """
    Fetch the current rejection snapshot from the REST store.

    A store that cannot be read is logged and yields an empty snapshot.
    """
    headers = {"Accept": "application/json"}
    if api_key:
        headers["apikey"] = api_key
        headers["Authorization"] = f"Bearer {api_key}"

    try:
        response = requests.get(
            table_url,
            params={"select": "image_url"},
            headers=headers,
            timeout=timeout,
        )
        response.raise_for_status()
        rows = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Failed to fetch rejection list from %s: %s", table_url, e)
        return EMPTY_REJECTIONS

    if not isinstance(rows, list):
        logger.warning("Unexpected rejection list payload from %s", table_url)
        return EMPTY_REJECTIONS

    snapshot = build_rejection_set(rows)
    logger.info("Loaded %d rejected image URLs", len(snapshot))
    return snapshot
