"""Write-temp, flush, atomic-rename file replacement."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


class LedgerWriteError(Exception):
    """Raised when the persisted ledger cannot be durably replaced."""


def atomic_write_text(path: Path | str, text: str) -> Path:
    """Replace ``path`` with ``text`` so readers only see old or new content.

    The temp file lives next to the destination so ``os.replace`` never
    crosses a filesystem boundary.
    """
    destination = Path(path)
    temp_path: Path | None = None
    replaced = False
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=destination.parent,
            prefix=f".{destination.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, destination)
        replaced = True
    except OSError as exc:
        raise LedgerWriteError(f"Failed to write ledger {destination}: {exc}") from exc
    finally:
        if not replaced and temp_path is not None:
            temp_path.unlink(missing_ok=True)
    return destination
