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
Pydantic models for resolution results and their diagnostic traces.
"""

from pydantic import BaseModel, Field

from .enums import SearchOutcome


class ImageHit(BaseModel):
    """An accepted candidate image and the page it is attributed to."""

    model_config = {"frozen": True}

    image_url: str
    source_url: str | None = None


class SearchTraceEntry(BaseModel):
    """One attempt made while resolving a query. Diagnostics only."""

    model_config = {"frozen": True}

    source: str = Field(description="Label of the backend, e.g. 'Commons (EN)'")
    query: str = Field(
        description=(
            "Search text the strategy prepared for this step. Per-phase quoting and"
            " the year suffix are added on top of it when the backend is called."
        )
    )
    with_year: bool = False
    outcome: SearchOutcome
    elapsed_ms: int = Field(
        default=0, description="Milliseconds since resolution of the query started"
    )


class ImageResult(BaseModel):
    """Final answer for one SearchQuery. ``image_url`` is None when nothing was found."""

    model_config = {"frozen": True}

    id: str
    image_url: str | None = None
    source_url: str | None = None
    trace: tuple[SearchTraceEntry, ...] = ()

    @property
    def found(self) -> bool:
        return self.image_url is not None

    @classmethod
    def not_found(
        cls, query_id: str, trace: tuple[SearchTraceEntry, ...] = ()
    ) -> "ImageResult":
        return cls(id=query_id, trace=trace)
