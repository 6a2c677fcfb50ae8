"""Derived post fields that are recomputed from content on write."""

import math
from typing import Optional

WORDS_PER_MINUTE = 200


def word_count(content: Optional[str]) -> int:
    """Count whitespace-separated words."""
    if not content:
        return 0
    return len(content.split())


def read_time_minutes(content: Optional[str], words_per_minute: int = WORDS_PER_MINUTE) -> int:
    """Estimated reading time, `ceil(words / 200)` minutes."""
    return math.ceil(word_count(content) / words_per_minute)
