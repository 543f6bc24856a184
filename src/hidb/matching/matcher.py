"""Overlap score between two virus names."""

from __future__ import annotations

import re
from difflib import SequenceMatcher

_WHITESPACE_RE = re.compile(r"\s+")

MIN_BLOCK_SIZE = 2


def normalize(text: str) -> str:
    """Upper-case ``text`` and collapse whitespace runs to single spaces."""

    return _WHITESPACE_RE.sub(" ", text).strip().upper()


def match(candidate: str, query: str) -> int:
    """Return the sum of squared lengths of the blocks shared by both strings.

    Long contiguous runs dominate scattered single-character coincidences,
    so ``match(s, s) == len(s) ** 2`` and unrelated names score ``0``.
    """

    left = normalize(candidate)
    right = normalize(query)
    if not left or not right:
        return 0

    matcher = SequenceMatcher(None, left, right, autojunk=False)
    return sum(
        block.size * block.size
        for block in matcher.get_matching_blocks()
        if block.size >= MIN_BLOCK_SIZE
    )
