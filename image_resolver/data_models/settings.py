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
Pydantic models for configuring the image resolver.
"""

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import ResolverMode


class ResolverSettings(BaseModel):
    """Configuration for an image resolver instance."""

    mode: ResolverMode = Field(
        default=ResolverMode.ENCYCLOPEDIA,
        description="Backend family used for generic subjects",
    )
    local_language: str = Field(
        default="nl", description="Language code of SearchQuery.query"
    )
    international_language: str = Field(
        default="en", description="Language code of SearchQuery.query_en"
    )
    max_concurrent: int = Field(
        default=3, ge=1, description="Number of concurrent resolution workers"
    )
    search_limit: int = Field(
        default=5, ge=1, le=50, description="Candidates fetched per text search"
    )
    thumb_width: int = Field(
        default=960, ge=64, description="Maximum width of resolved thumbnails"
    )
    http_timeout: float = Field(
        default=10.0, gt=0, description="Timeout in seconds for backend requests"
    )
    proxy_base_url: str | None = Field(
        default=None,
        description="Base URL of the functions proxy for the media database and music catalog",
    )
    proxy_api_key: str | None = Field(
        default=None, description="Key sent to the functions proxy"
    )
    web_search_url: str | None = Field(
        default=None, description="Endpoint of the web image search API"
    )
    web_search_api_key: str | None = Field(
        default=None, description="Key for the web image search API"
    )
    rejection_store_url: str | None = Field(
        default=None, description="Base URL of the REST store holding rejected images"
    )

    @field_validator("local_language", "international_language")
    @classmethod
    def lower_language(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("proxy_base_url", "web_search_url", "rejection_store_url")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        return v.rstrip("/") if v else None

    @model_validator(mode="after")
    def check_backends(self) -> "ResolverSettings":
        """Ensure every configured backend has what it needs."""
        if self.proxy_base_url and not self.proxy_api_key:
            raise ValueError("proxy_api_key is required when proxy_base_url is set")
        if self.mode == ResolverMode.WEB and not (
            self.web_search_url and self.web_search_api_key
        ):
            raise ValueError(
                "web_search_url and web_search_api_key are required in web mode"
            )
        return self

    @property
    def media_database_url(self) -> str | None:
        if not self.proxy_base_url:
            return None
        return f"{self.proxy_base_url}/functions/v1/search-images"

    @property
    def music_catalog_url(self) -> str | None:
        if not self.proxy_base_url:
            return None
        return f"{self.proxy_base_url}/functions/v1/search-spotify"

    @property
    def rejection_table_url(self) -> str | None:
        if not self.rejection_store_url:
            return None
        return f"{self.rejection_store_url}/rest/v1/image_blacklist"
