"""Approximate name matching and candidate scoring."""

from .matcher import match, normalize
from .scoring import UNUSABLE, ScoredMatch, best_match, rank, scan, score_record

__all__ = [
    "UNUSABLE",
    "ScoredMatch",
    "best_match",
    "match",
    "normalize",
    "rank",
    "scan",
    "score_record",
]
