"""Decomposition of influenza virus names into structured fields."""

from __future__ import annotations

import re
from dataclasses import dataclass

from hidb.errors import ParseFailure


_NAME_RE = re.compile(
    r"""^
    (?P<virus_type>A\(H\d+(?:N\d+)?\)|A\(N\d+\)|A|B|C)
    /(?:(?P<host>[^/]+)/)?
    (?P<location>[^/]+)
    /(?P<isolation>[^/]+)
    /(?P<year>\d{4})
    (?:\s+(?P<passage>.*))?
    $""",
    re.IGNORECASE | re.VERBOSE,
)


@dataclass(frozen=True)
class NameParts:
    """Fields of a decomposed virus name such as ``A(H3N2)/PERTH/16/2009``."""

    virus_type: str
    host: str
    location: str
    isolation: str
    year: str
    passage: str = ""

    def same_strain(self, other: "NameParts") -> bool:
        """Compare host, location, isolation and year; passage is ignored."""

        return (
            self.host.upper() == other.host.upper()
            and self.location.upper() == other.location.upper()
            and self.isolation.upper() == other.isolation.upper()
            and self.year == other.year
        )


def decompose(name: str) -> NameParts | None:
    """Return the parts of ``name`` or ``None`` if it does not follow the grammar."""

    match = _NAME_RE.match(name.strip())
    if match is None:
        return None

    return NameParts(
        virus_type=match.group("virus_type").upper(),
        host=(match.group("host") or "").strip(),
        location=match.group("location").strip(),
        isolation=match.group("isolation").strip(),
        year=match.group("year"),
        passage=(match.group("passage") or "").strip(),
    )


def split(name: str) -> NameParts:
    """Decompose ``name``, raising :class:`ParseFailure` when it does not parse."""

    parts = decompose(name)
    if parts is None:
        raise ParseFailure(name)
    return parts


def is_cdc_name(text: str) -> bool:
    """CDC names start with a two-letter abbreviation followed by a space."""

    return len(text) > 3 and text[2] == " "
