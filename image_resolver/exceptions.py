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
Exceptions raised by the image resolver.
"""


class ImageResolverError(Exception):
    """Base class for all image resolver errors."""

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {super().__str__()}"


class BackendError(ImageResolverError):
    """A media backend could not be reached or returned an unusable response.

    The router records these as "error" trace entries and moves on to the next
    step; they never reach callers of the batch API.
    """

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"[{source}] {message}")


class InvalidQueryError(ImageResolverError, ValueError):
    """A query or batch violates the engine's input contract."""
