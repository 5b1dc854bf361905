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
Candidate validation: content matching and file-type safety checks.
"""

import re
import unicodedata
from urllib.parse import urlparse

MIN_TOKEN_LENGTH = 3

STOPWORDS = frozenset(
    {
        # Dutch
        "aan", "als", "bij", "dat", "de", "den", "der", "des", "die", "dit", "een",
        "en", "het", "hun", "in", "met", "naar", "niet", "nog", "of", "om", "onder",
        "ook", "op", "over", "tegen", "tot", "uit", "van", "voor", "was", "werd",
        "wordt", "zijn",
        # English
        "and", "are", "for", "from", "has", "had", "her", "his", "its", "not", "off",
        "one", "out", "over", "that", "the", "their", "this", "was", "were", "with",
    }
)

_TOKEN_SPLIT = re.compile(r"[^\w]+")
_YEAR_TOKEN = re.compile(r"\d{4}")
_HTML_TAG = re.compile(r"<[^>]+>")

_BLOCKED_EXTENSIONS = (
    "mp3", "ogg", "oga", "wav", "flac", "aac", "m4a",
    "webm", "mp4", "ogv", "avi", "mov", "mkv",
    "pdf", "djvu", "stl", "tif", "tiff",
)
_BLOCKED_PATH = re.compile(r"\.(?:" + "|".join(_BLOCKED_EXTENSIONS) + r")$")
_BLOCKED_TITLE = re.compile(r"\.(?:" + "|".join(_BLOCKED_EXTENSIONS) + r")$", re.IGNORECASE)
_RASTER_PATH = re.compile(r"\.(?:jpg|jpeg|png|webp|gif)$")


def fold(text: str) -> str:
    """Lower-case and strip diacritics so 'Élysée' compares equal to 'elysee'."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def tokenize(query: str) -> list[str]:
    """Meaningful query words: longer than two characters, no stopwords, no bare years."""
    tokens = []
    for word in _TOKEN_SPLIT.split(fold(query)):
        if len(word) < MIN_TOKEN_LENGTH or word in STOPWORDS:
            continue
        if _YEAR_TOKEN.fullmatch(word):
            continue
        if word not in tokens:
            tokens.append(word)
    return tokens


def matches(title: str, snippet: str | None, query: str, strict: bool) -> bool:
    """
    Decide whether a search hit is about the queried subject.

    Lenient mode accepts a hit whose title contains any query token. Strict mode
    first requires every token somewhere in title plus snippet (context such as
    "Apollo 11" often only appears in the snippet) and otherwise falls back to
    at least one token in the title alone.
    """
    tokens = tokenize(query)
    if not tokens:
        return True

    folded_title = fold(title)
    if not strict:
        return any(token in folded_title for token in tokens)

    folded_snippet = fold(_HTML_TAG.sub(" ", snippet or ""))
    combined = f"{folded_title} {folded_snippet}"
    if all(token in combined for token in tokens):
        return True
    return any(token in folded_title for token in tokens)


def is_allowed_url(url: str, allow_vector: bool = False) -> bool:
    """
    Check that a resolved media URL points at a usable still image.

    Transcoded media and audio, video or document files are never allowed.
    Vector images are allowed only when ``allow_vector`` is set (logos and
    products, where line art is often the only asset available).
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False

    path = parsed.path.lower()
    if "/transcoded/" in path or "/pdf/" in url.lower():
        return False
    if _BLOCKED_PATH.search(path):
        return False
    if path.endswith(".svg"):
        return allow_vector
    return _RASTER_PATH.search(path) is not None


def has_blocked_title_extension(title: str, allow_vector: bool = False) -> bool:
    """Cheap pre-filter on file titles, applied before any media lookup."""
    if _BLOCKED_TITLE.search(title.strip()):
        return True
    return title.strip().lower().endswith(".svg") and not allow_vector
