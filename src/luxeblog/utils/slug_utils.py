"""
Slug helpers.

`slugify` is a pure transform from a human-readable name or title to a URL-safe identifier.
Uniqueness is not decided here: the content store walks `slug_candidates` until the unique
index accepts one.
"""

import html
import re
import unicodedata
from typing import Iterator, Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: Optional[str]) -> str:
    """
    Turn `text` into a lowercase, hyphen-separated slug.

    HTML entities are decoded and accented characters folded to ASCII. Every run of
    non-alphanumeric characters becomes a single hyphen, and leading/trailing hyphens are trimmed.

    >>> slugify("  Luxury Living: The Art of Slow Travel! ")
    'luxury-living-the-art-of-slow-travel'
    >>> slugify("Café & Crème")
    'cafe-creme'
    """
    if not text:
        return ""
    normalized = unicodedata.normalize("NFKD", html.unescape(str(text))).encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("-", normalized.lower()).strip("-")


def slug_candidates(base: str, max_attempts: int) -> Iterator[str]:
    """Yield `base`, `base-2`, `base-3`, ... up to `max_attempts` candidates."""
    yield base
    for counter in range(2, max_attempts + 1):
        yield f"{base}-{counter}"
