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
Configuration module for the image resolver.
"""

import os
from dotenv import load_dotenv

from .data_models.enums import ResolverMode
from .data_models.settings import ResolverSettings

# Environment variable names
MODE_ENV = "IMAGE_RESOLVER_MODE"
LOCAL_LANGUAGE_ENV = "IMAGE_RESOLVER_LOCAL_LANGUAGE"
INTERNATIONAL_LANGUAGE_ENV = "IMAGE_RESOLVER_INTERNATIONAL_LANGUAGE"
MAX_CONCURRENT_ENV = "IMAGE_RESOLVER_MAX_CONCURRENT"
SEARCH_LIMIT_ENV = "IMAGE_RESOLVER_SEARCH_LIMIT"
THUMB_WIDTH_ENV = "IMAGE_RESOLVER_THUMB_WIDTH"
HTTP_TIMEOUT_ENV = "IMAGE_RESOLVER_HTTP_TIMEOUT"
PROXY_URL_ENV = "IMAGE_RESOLVER_PROXY_URL"
PROXY_KEY_ENV = "IMAGE_RESOLVER_PROXY_KEY"
WEB_SEARCH_URL_ENV = "IMAGE_RESOLVER_WEB_SEARCH_URL"
WEB_SEARCH_KEY_ENV = "IMAGE_RESOLVER_WEB_SEARCH_KEY"
REJECTION_STORE_URL_ENV = "IMAGE_RESOLVER_REJECTION_STORE_URL"


def _load_env_file() -> None:
    """Load .env file if present in the current directory."""
    load_dotenv()


def _parse_int(name: str) -> int | None:
    """
    Parse an integer environment variable.

    Args:
        name: The environment variable to read

    Returns:
        The parsed integer, or None if the variable is unset or blank

    Raises:
        ValueError: If the value is not an integer
    """
    value = os.getenv(name)
    if not value or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{value}'") from None


def _parse_float(name: str) -> float | None:
    value = os.getenv(name)
    if not value or not value.strip():
        return None
    try:
        return float(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{value}'") from None


def get_settings() -> ResolverSettings:
    """
    Get image resolver configuration from environment variables.

    Returns:
        ResolverSettings object containing the configuration

    Raises:
        ValueError: If configuration is missing or invalid
    """
    # Load .env file if present
    _load_env_file()

    mode = os.getenv(MODE_ENV)
    if mode and mode.strip().lower() not in [member.value for member in ResolverMode]:
        raise ValueError(
            f"{MODE_ENV} must be one of "
            f"{[member.value for member in ResolverMode]}, got '{mode}'"
        )

    proxy_url = os.getenv(PROXY_URL_ENV)
    proxy_key = os.getenv(PROXY_KEY_ENV)
    if proxy_url and not proxy_key:
        raise ValueError(f"{PROXY_KEY_ENV} is required when {PROXY_URL_ENV} is set")

    web_search_url = os.getenv(WEB_SEARCH_URL_ENV)
    web_search_key = os.getenv(WEB_SEARCH_KEY_ENV)
    if mode and mode.strip().lower() == ResolverMode.WEB and not (
        web_search_url and web_search_key
    ):
        raise ValueError(
            f"{WEB_SEARCH_URL_ENV} and {WEB_SEARCH_KEY_ENV} are required when "
            f"{MODE_ENV}=web"
        )

    # Build config data, only including fields that are provided
    config_data = {}
    if mode:
        config_data["mode"] = ResolverMode(mode.strip().lower())

    string_fields = {
        "local_language": os.getenv(LOCAL_LANGUAGE_ENV),
        "international_language": os.getenv(INTERNATIONAL_LANGUAGE_ENV),
        "proxy_base_url": proxy_url,
        "proxy_api_key": proxy_key,
        "web_search_url": web_search_url,
        "web_search_api_key": web_search_key,
        "rejection_store_url": os.getenv(REJECTION_STORE_URL_ENV),
    }
    for field, value in string_fields.items():
        if value and value.strip():
            config_data[field] = value.strip()

    numeric_fields = {
        "max_concurrent": _parse_int(MAX_CONCURRENT_ENV),
        "search_limit": _parse_int(SEARCH_LIMIT_ENV),
        "thumb_width": _parse_int(THUMB_WIDTH_ENV),
        "http_timeout": _parse_float(HTTP_TIMEOUT_ENV),
    }
    for field, value in numeric_fields.items():
        if value is not None:
            config_data[field] = value

    return ResolverSettings.model_validate(config_data)
