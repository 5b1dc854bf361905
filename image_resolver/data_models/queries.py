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
Pydantic models describing image search requests.
"""

from pydantic import AliasChoices, BaseModel, Field, field_validator

from .enums import SubjectType


class SearchQuery(BaseModel):
    """A single image resolution request.

    Field names follow Python conventions; the camelCase spellings produced by the
    timeline generator (``eventId``, ``imageSearchQueryEn``, ``visualSubjectType``, ...)
    are accepted as aliases so generator output can be validated directly.
    """

    model_config = {"populate_by_name": True, "frozen": True}

    id: str = Field(
        validation_alias=AliasChoices("id", "eventId"),
        description="Caller supplied identifier used to correlate results",
    )
    query: str = Field(
        validation_alias=AliasChoices("query", "imageSearchQuery"),
        description="Search phrase in the local language",
    )
    query_en: str | None = Field(
        default=None,
        validation_alias=AliasChoices("query_en", "queryEn", "imageSearchQueryEn"),
        description="Search phrase in the international language",
    )
    year: int | None = Field(default=None, description="Target year of the event")
    subject_type: SubjectType | None = Field(
        default=None,
        validation_alias=AliasChoices("subject_type", "visualSubjectType"),
    )
    category: str | None = Field(default=None, description="e.g. music, politics, local")
    is_celebrity: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_celebrity", "isCelebrity", "isCelebrityBirthday"),
    )
    is_movie: bool = Field(
        default=False, validation_alias=AliasChoices("is_movie", "isMovie")
    )
    is_tv: bool = Field(default=False, validation_alias=AliasChoices("is_tv", "isTV"))
    is_music: bool = Field(
        default=False, validation_alias=AliasChoices("is_music", "isMusic")
    )
    music_query: str | None = Field(
        default=None,
        validation_alias=AliasChoices("music_query", "spotifySearchQuery"),
        description="'Artist - Title' query for the music catalog",
    )

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("query must not be empty")
        return v

    @field_validator("query_en", "music_query", "category")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("category")
    @classmethod
    def lower_category(cls, v: str | None) -> str | None:
        return v.lower() if v else v

    @property
    def international_query(self) -> str:
        return self.query_en or self.query

    @property
    def is_music_event(self) -> bool:
        return self.is_music or self.category == "music"
