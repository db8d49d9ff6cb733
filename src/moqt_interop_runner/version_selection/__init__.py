"""Version selection exports."""

from .version_selector import (
    DRAFT_PREFIX,
    VersionFormatError,
    format_draft_version,
    parse_draft_version,
    select_version,
)

__all__ = [
    "DRAFT_PREFIX",
    "VersionFormatError",
    "format_draft_version",
    "parse_draft_version",
    "select_version",
]
