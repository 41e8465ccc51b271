"""Heuristic token estimate for LLM context budgeting.

This is not a real tokenizer: words are split on whitespace and punctuation,
newlines and tabs count as extra tokens, and a flat 20% overhead stands in for
subword splitting.
"""

from __future__ import annotations

import re
import sys
import unicodedata
from functools import lru_cache

from tree_digest.logging import logger

OVERHEAD_DIVISOR = 5  # 20% overhead


@lru_cache(maxsize=1)
def separator_pattern() -> re.Pattern[str]:
    """Compile a character class of Unicode whitespace and every punctuation code point (categories P*)."""
    punctuation = "".join(
        chr(code) for code in range(sys.maxunicode + 1) if unicodedata.category(chr(code)).startswith("P")
    )
    return re.compile(rf"[\s{re.escape(punctuation)}]+")


def split_words(text: str) -> list[str]:
    """Split `text` on runs of Unicode whitespace or punctuation, dropping empty pieces."""
    return [word for word in separator_pattern().split(text) if word]


def estimate_token_count(text: str) -> int:
    """Estimate the number of LLM tokens in `text`.

    Args:
        text (str): the text to measure

    Returns:
        int: word count, plus one per newline or tab, plus 20% of the word count (floored)
    """
    words = split_words(text)
    special = text.count("\n") + text.count("\t")
    overhead = len(words) // OVERHEAD_DIVISOR
    return len(words) + special + overhead


def format_token_count(count: int) -> str:
    """Render a token count with a `k` or `M` suffix.

    Args:
        count (int): the count to render

    Returns:
        str: e.g. `500`, `2.5k`, `1.5M`
    """
    if count >= 1_000_000:  # noqa: PLR2004
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:  # noqa: PLR2004
        return f"{count / 1_000:.1f}k"
    return str(count)


def generate_token_string(text: str) -> str | None:
    """Estimate and format the token count of `text`.

    Estimation is advisory: any failure is logged and yields None.
    """
    try:
        return format_token_count(estimate_token_count(text))
    except Exception:  # noqa: BLE001
        logger.exception("Error estimating tokens")
        return None
