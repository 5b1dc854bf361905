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
Shared fixtures. Every test runs without the host's IMAGE_RESOLVER_* variables
and without reading a local .env file.
"""

import os
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def clean_env():
    with patch.dict(os.environ, {}, clear=True):
        yield


@pytest.fixture(autouse=True)
def mock_load_dotenv():
    with patch("image_resolver.config.load_dotenv"):
        yield


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Run from an empty directory with exactly the given environment."""
    monkeypatch.chdir(tmp_path)

    def _with_env(env_vars):
        return patch.dict(os.environ, env_vars, clear=True)

    return _with_env
