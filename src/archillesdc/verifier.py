"""
archillesdc.verifier - Completion Verification
==============================================

Final sanity check of a generated project. A handful of load-bearing files
must exist; if any are missing, one ``VerificationError`` names all of them.
Otherwise the completion marker is written and listed in ``.gitignore``.

Nothing is rolled back on failure: the partial tree stays on disk so the user
can inspect and repair it.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from archillesdc.models import ProjectOptions


# =============================================================================
# Constants
# =============================================================================

REQUIRED_ARTIFACTS: tuple[str, ...] = (
    "package.json",
    ".env.example",
    "prisma/schema.prisma",
    "src/app/layout.tsx",
)

MARKER_FILENAME = ".archillesdc-setup"

# Fixed tag recorded in the marker, independent of the CLI release
MARKER_VERSION = "1.0.0"

GITIGNORE_ENTRY = f"\n# CLI setup marker\n{MARKER_FILENAME}\n"


class VerificationError(RuntimeError):
    """Raised when required artifacts are missing after generation."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Some files missing: {', '.join(missing)}")


# =============================================================================
# Checks
# =============================================================================

def find_missing_artifacts(root: Path) -> list[str]:
    """Every entry of ``REQUIRED_ARTIFACTS`` not present under ``root``."""
    return [artifact for artifact in REQUIRED_ARTIFACTS if not (root / artifact).exists()]


def build_marker(options: ProjectOptions, created_at: datetime | None = None) -> dict[str, Any]:
    """
    Completion marker content for ``options``.

    Examples
    --------
    >>> from archillesdc.models import normalize_options
    >>> marker = build_marker(normalize_options("demo", output_dir="/tmp"))
    >>> marker["template"], marker["version"]
    ('full-system', '1.0.0')
    """
    created_at = created_at or datetime.now(UTC)
    return {
        "createdAt": created_at.isoformat().replace("+00:00", "Z"),
        **options.marker_fields(),
        "version": MARKER_VERSION,
    }


def write_completion_marker(options: ProjectOptions) -> Path:
    """Write the marker JSON (2-space indent) to the project root."""
    path = options.project_path / MARKER_FILENAME
    path.write_text(json.dumps(build_marker(options), indent=2) + "\n", encoding="utf-8")
    return path


def read_completion_marker(root: Path) -> dict[str, Any]:
    """
    Parse the completion marker of a generated project.

    Raises
    ------
    FileNotFoundError
        If the project has no marker.
    json.JSONDecodeError
        If the marker is not valid JSON.
    """
    return json.loads((root / MARKER_FILENAME).read_text(encoding="utf-8"))


def ensure_marker_ignored(root: Path) -> bool:
    """
    Make sure ``.gitignore`` lists the marker file.

    The entry is appended only when no line already names the marker; a
    missing ``.gitignore`` is created.

    Returns
    -------
    bool
        True if the file was changed.
    """
    gitignore = root / ".gitignore"
    content = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""

    if any(line.strip() == MARKER_FILENAME for line in content.splitlines()):
        return False

    with gitignore.open("a", encoding="utf-8") as f:
        f.write(GITIGNORE_ENTRY)
    return True


def run_final_checks(options: ProjectOptions) -> Path:
    """
    Verify the generated tree and record completion.

    Returns
    -------
    Path
        Path of the written completion marker.

    Raises
    ------
    VerificationError
        Listing every missing required artifact. No marker is written.
    """
    root = options.project_path
    missing = find_missing_artifacts(root)
    if missing:
        raise VerificationError(missing)

    marker = write_completion_marker(options)
    ensure_marker_ignored(root)
    return marker
