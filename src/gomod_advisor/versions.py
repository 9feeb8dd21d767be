"""Ordering of Go module versions.

Supports:

* plain semantic versions: ``v1.2.3``
* pre-release versions: ``v1.2.3-alpha``, ``v1.2.3-beta.1``
* build metadata: ``v1.2.3+build`` (parsed, never ordered)
* pseudo-versions: ``v0.0.0-20210101120000-abcdef123456``

Every helper in this module is defined in terms of :func:`compare`.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

VERSION_MATCH = re.compile(r"^v?\d+(\.\d+)*(-[\w.-]+)?(\+[\w.-]+)?$")

_COMPARED_PARTS = 3


@dataclass(frozen=True)
class ParsedVersion:
    """A version string split into its comparable pieces."""

    parts: tuple[int, ...]
    prerelease: str | None = None
    build: str | None = None

    def part(self, index: int) -> int:
        """Return the numeric component at ``index``, or 0 if it is missing."""
        return self.parts[index] if index < len(self.parts) else 0


def _to_int(token: str) -> int | None:
    if token.isascii() and token.isdigit():
        return int(token)
    return None


def parse_version(version: str) -> ParsedVersion:
    """Split a version string into numeric parts, pre-release and build metadata.

    Parsing is tolerant: components that are not integers are dropped
    rather than rejected.
    """
    v = version.removeprefix("v")
    v, _, build = v.partition("+") if "+" in v else (v, "", None)
    v, _, prerelease = v.partition("-") if "-" in v else (v, "", None)
    parts = tuple(n for n in map(_to_int, v.split(".")) if n is not None)
    return ParsedVersion(parts=parts, prerelease=prerelease, build=build)


def _compare_prerelease(p1: str, p2: str) -> int:
    ids1 = p1.split(".")
    ids2 = p2.split(".")
    for i in range(max(len(ids1), len(ids2))):
        if i >= len(ids1):
            return -1
        if i >= len(ids2):
            return 1
        a, b = ids1[i], ids2[i]
        n1, n2 = _to_int(a), _to_int(b)
        if n1 is not None and n2 is not None:
            cmp = (n1 > n2) - (n1 < n2)
        elif n1 is not None:
            # numeric identifiers sort before alphanumeric ones
            cmp = -1
        elif n2 is not None:
            cmp = 1
        else:
            cmp = (a > b) - (a < b)
        if cmp != 0:
            return cmp
    return 0


def compare(v1: str, v2: str) -> int:
    """Three-way comparison of two version strings.

    Returns a negative number if ``v1`` sorts before ``v2``, zero if they are
    equivalent and a positive number otherwise.
    """
    parsed1 = parse_version(v1)
    parsed2 = parse_version(v2)

    for i in range(_COMPARED_PARTS):
        cmp = parsed1.part(i) - parsed2.part(i)
        if cmp != 0:
            return cmp

    # a release sorts after any of its pre-releases
    if parsed1.prerelease is None and parsed2.prerelease is not None:
        return 1
    if parsed1.prerelease is not None and parsed2.prerelease is None:
        return -1
    if parsed1.prerelease is not None and parsed2.prerelease is not None:
        return _compare_prerelease(parsed1.prerelease, parsed2.prerelease)
    return 0


version_key = functools.cmp_to_key(compare)


def is_newer(version1: str, version2: str) -> bool:
    """Return whether ``version1`` is newer than ``version2``."""
    return compare(version1, version2) > 0


def is_older(version1: str, version2: str) -> bool:
    """Return whether ``version1`` is older than ``version2``."""
    return compare(version1, version2) < 0


def are_equal(version1: str, version2: str) -> bool:
    return compare(version1, version2) == 0


def sort_newest_first(versions: Iterable[str]) -> list[str]:
    return sorted(versions, key=version_key, reverse=True)


def sort_oldest_first(versions: Iterable[str]) -> list[str]:
    return sorted(versions, key=version_key)


def newest(versions: Iterable[str]) -> str | None:
    """Return the newest version, or None for an empty sequence."""
    return max(versions, key=version_key, default=None)


def oldest(versions: Iterable[str]) -> str | None:
    """Return the oldest version, or None for an empty sequence."""
    return min(versions, key=version_key, default=None)


def is_valid_version(version: str) -> bool:
    """Check whether a string looks like a version (e.g., a release tag)."""
    return VERSION_MATCH.fullmatch(version) is not None


def normalize(version: str) -> str:
    """Add the ``v`` prefix if it is missing."""
    return version if version.startswith("v") else f"v{version}"


def strip_prefix(version: str) -> str:
    return version.removeprefix("v")


@functools.total_ordering
class GoVersion:
    """Go module version representation ordered by :func:`compare`."""

    def __init__(self, go_version_string: str) -> None:
        """Initialize Go version from string."""
        self.version_string: str = go_version_string.strip()

    @property
    def parsed(self) -> ParsedVersion:
        return parse_version(self.version_string)

    @property
    def is_prerelease(self) -> bool:
        return self.parsed.prerelease is not None

    def __lt__(self, other: object) -> bool:
        """Compare Go versions for sorting."""
        if not isinstance(other, (GoVersion, str)):
            return NotImplemented
        return compare(self.version_string, str(other)) < 0

    def __eq__(self, other: object) -> bool:
        """Check equivalence with another Go version; build metadata is ignored."""
        if not isinstance(other, (GoVersion, str)):
            return NotImplemented
        return compare(self.version_string, str(other)) == 0

    def __hash__(self) -> int:
        """Hash consistently with ``__eq__``."""
        parsed = self.parsed
        parts = tuple(parsed.part(i) for i in range(_COMPARED_PARTS))
        prerelease = None
        if parsed.prerelease is not None:
            prerelease = tuple(
                (0, n) if (n := _to_int(i)) is not None else (1, i) for i in parsed.prerelease.split(".")
            )
        return hash((parts, prerelease))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.version_string!r})"

    def __str__(self) -> str:
        """Return string representation of Go version."""
        return self.version_string
