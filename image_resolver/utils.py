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

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from image_resolver.data_models.queries import SearchQuery
from image_resolver.exceptions import InvalidQueryError


def parse_queries(records: Iterable[dict[str, Any]]) -> list[SearchQuery]:
    """
    Validates raw records into SearchQuery objects.

    Records may use either the snake_case field names or the camelCase spellings
    of the timeline generator.

    Raises:
        InvalidQueryError: If any record is not a valid query. The message names
            the offending record by position.
    """
    queries = []
    for index, record in enumerate(records):
        try:
            queries.append(SearchQuery.model_validate(record))
        except ValidationError as e:
            raise InvalidQueryError(f"Query #{index} is invalid: {e}") from e
    return queries


def load_queries(path: str | Path) -> list[SearchQuery]:
    """
    Loads queries from a JSON file.

    The file holds either a list of query records or an object with a
    ``queries`` list, the shape the image search endpoint accepts.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("queries")
    if not isinstance(data, list):
        raise InvalidQueryError(f"'{path}' must contain a list of queries")
    queries = parse_queries(data)
    logging.info("Loaded %d queries from %s", len(queries), path)
    return queries
