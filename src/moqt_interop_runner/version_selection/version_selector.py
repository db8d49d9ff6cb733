"""Draft version parsing and per-pair version selection."""

from __future__ import annotations

import re
from collections.abc import Iterable

DRAFT_PREFIX = "draft-"
_DRAFT_PATTERN = re.compile(r"^(?:draft-)?(\d+)$")


class VersionFormatError(ValueError):
    """Raised when a draft version identifier cannot be interpreted."""


def parse_draft_version(value: object) -> int:
    """Return the draft number embedded in ``draft-NN``, ``NN`` or an int."""
    if isinstance(value, bool):
        raise VersionFormatError(f"Malformed draft version: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise VersionFormatError(f"Malformed draft version: {value!r}")
        return value
    if isinstance(value, str):
        match = _DRAFT_PATTERN.match(value.strip().lower())
        if match:
            return int(match.group(1))
    raise VersionFormatError(f"Malformed draft version: {value!r}")


def format_draft_version(number: int) -> str:
    return f"{DRAFT_PREFIX}{number:02d}"


def select_version(
    client_versions: Iterable[int],
    relay_versions: Iterable[int],
    target: int,
) -> int | None:
    """Pick the single version a (client, relay) pair is tested at.

    The target wins when both sides speak it. Otherwise the closest shared
    version below the target is used, then the closest one above it.
    Returns None when the two sets do not overlap.
    """
    shared = set(client_versions) & set(relay_versions)
    if not shared:
        return None
    if target in shared:
        return target

    below = [version for version in shared if version < target]
    if below:
        return max(below)
    above = [version for version in shared if version > target]
    if above:
        return min(above)
    return None
