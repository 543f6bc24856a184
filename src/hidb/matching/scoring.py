"""Two-stage scoring and ranking of catalog entries against a name query.

A candidate is first scored on its bare name. Candidates that clear the name
threshold are scored again on their full name (name plus reassortant,
annotations and passage), where passage and reassortant keywords in the
query (``EGG``, ``CELL``, ``REASSORTANT``) are replaced by the spellings that
actually occur in the candidate.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from hidb.config import DEFAULT_SETTINGS, MatchSettings, SubstitutionFamily
from hidb.matching.matcher import match, normalize

# Full score of a candidate whose passage keyword could not be resolved.
# Real overlaps never score 1 because single-character blocks are ignored.
UNUSABLE = 1


class Named(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def full_name(self) -> str: ...


T = TypeVar("T", bound=Named)


@dataclass(frozen=True)
class ScoredMatch(Generic[T]):
    """Candidate together with its name and full-name scores."""

    record: T
    name_score: int
    full_score: int

    @property
    def is_unusable(self) -> bool:
        return self.full_score == UNUSABLE

    def sort_key(self) -> tuple[int, int, int]:
        """Ascending key: unusable candidates last, then best scores first."""

        if self.is_unusable:
            return (1, 0, 0)
        return (0, -self.name_score, -self.full_score)


def _family_score(
    family: SubstitutionFamily,
    query: str,
    full_name: str,
    name_part_size: int,
) -> int:
    position = query.find(family.keyword)
    if position < 0:
        return 0

    if any(full_name.find(negative, name_part_size) >= 0 for negative in family.negatives):
        return UNUSABLE

    score = 0
    for synonym in family.synonyms:
        if full_name.find(synonym[1:], name_part_size) >= 0:
            score = max(score, match(full_name, query[:position] + synonym))
        elif score == 0:
            score = UNUSABLE
    return score


def score_record(
    query: str,
    name: str,
    full_name: str,
    threshold: int = 0,
    settings: MatchSettings = DEFAULT_SETTINGS,
) -> tuple[int, int]:
    """Return ``(name_score, full_score)`` for one candidate.

    ``threshold`` of ``0`` means the per-query default. Candidates below the
    threshold keep their name score and get a full score of ``0``.
    """

    query = normalize(query)
    name_score = match(name, query)
    if threshold == 0:
        threshold = settings.default_threshold(query)
    if name_score < threshold:
        return name_score, 0

    full = normalize(full_name)
    name_part_size = len(normalize(name))
    full_score = max(
        (_family_score(family, query, full, name_part_size) for family in settings.families),
        default=0,
    )
    if full_score == 0:
        full_score = match(full, query)
    return name_score, full_score


def scan(
    query: str,
    records: Iterable[T],
    settings: MatchSettings = DEFAULT_SETTINGS,
) -> Iterator[ScoredMatch[T]]:
    """Score ``records`` in order, unsorted and untruncated.

    The threshold for each record is the best name score seen before it, so
    a record scanned after a stronger one may keep only its name score.
    """

    threshold = 0
    for record in records:
        name_score, full_score = score_record(
            query, record.name, record.full_name, threshold, settings
        )
        yield ScoredMatch(record=record, name_score=name_score, full_score=full_score)
        threshold = max(threshold, name_score)


def rank(
    query: str,
    records: Iterable[T],
    settings: MatchSettings = DEFAULT_SETTINGS,
) -> list[ScoredMatch[T]]:
    """Score ``records`` in the given order and keep the best-named group.

    The result is sorted by :meth:`ScoredMatch.sort_key` and truncated to the
    leading run sharing the first entry's name score.
    """

    scores = sorted(scan(query, records, settings), key=ScoredMatch.sort_key)
    if not scores:
        return []

    top = scores[0].name_score
    end = 0
    while end < len(scores) and scores[end].name_score == top:
        end += 1
    return scores[:end]


def best_match(
    query: str,
    records: Iterable[T],
    settings: MatchSettings = DEFAULT_SETTINGS,
) -> ScoredMatch[T] | None:
    """Return the single best candidate under the ranking order, if any."""

    best: ScoredMatch[T] | None = None
    for scored in scan(query, records, settings):
        if best is None or scored.sort_key() < best.sort_key():
            best = scored
    return best
