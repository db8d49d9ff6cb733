"""Registry scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

from .runtime_settings import DEFAULT_REGISTRY_SCAFFOLD_FILENAME

_REGISTRY_SCAFFOLD_TEMPLATE = """# Implementation registry template for moqt-interop-runner.
# Replace every <REQUIRED> placeholder before running `moqt-interop run`.
# Replace <OPTIONAL> placeholders only when your setup needs them.

# Draft version tested by default when a pair shares it.
current_target: "draft-14"

implementations:
  "<REQUIRED>":
    name: "<OPTIONAL>"
    # Every draft version this implementation speaks (draft-NN).
    draft_versions:
      - "draft-14"
    roles:
      # Declare only the roles the implementation supports (client, relay).
      client:
        docker:
          image: "<REQUIRED>"
      relay:
        docker:
          image: "<OPTIONAL>"
        remote:
          # transport is inferred from the URL scheme when omitted
          # (moqt:// -> quic, https:// -> webtransport).
          - url: "<OPTIONAL>"
            transport: "quic"
            status: "active"
            tls_disable_verify: false
"""


def build_placeholder_registry() -> str:
    """Build a YAML registry template with placeholders and inline guidance."""
    return _REGISTRY_SCAFFOLD_TEMPLATE


def write_placeholder_registry(
    output_path: Path | str = DEFAULT_REGISTRY_SCAFFOLD_FILENAME,
) -> Path:
    """Write the placeholder registry template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Registry file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_registry(), encoding="utf-8")
    return destination.resolve()
