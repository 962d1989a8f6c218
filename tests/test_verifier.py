"""
Tests for archillesdc.verifier
==============================

Test Organization
-----------------
- TestFindMissingArtifacts: Required file checks
- TestMarker: Marker content and round-trip
- TestGitignore: Marker entry in .gitignore
- TestRunFinalChecks: The combined final step
"""

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from archillesdc.verifier import (
    MARKER_FILENAME,
    MARKER_VERSION,
    REQUIRED_ARTIFACTS,
    VerificationError,
    build_marker,
    ensure_marker_ignored,
    find_missing_artifacts,
    read_completion_marker,
    run_final_checks,
)


def _touch_required(root: Path, skip: tuple[str, ...] = ()) -> None:
    for artifact in REQUIRED_ARTIFACTS:
        if artifact in skip:
            continue
        path = root / artifact
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("")


# =============================================================================
# Artifact Tests
# =============================================================================

class TestFindMissingArtifacts:
    """Tests for find_missing_artifacts."""

    def test_empty_root_misses_everything(self, tmp_path: Path) -> None:
        assert find_missing_artifacts(tmp_path) == list(REQUIRED_ARTIFACTS)

    def test_complete_root(self, tmp_path: Path) -> None:
        _touch_required(tmp_path)
        assert find_missing_artifacts(tmp_path) == []

    def test_lists_only_missing(self, tmp_path: Path) -> None:
        _touch_required(tmp_path, skip=("prisma/schema.prisma",))
        assert find_missing_artifacts(tmp_path) == ["prisma/schema.prisma"]


# =============================================================================
# Marker Tests
# =============================================================================

class TestMarker:
    """Tests for the completion marker."""

    def test_marker_fields(self, make_options) -> None:
        options = make_options(template="dashboard", database="mysql", auth_provider="github")
        created = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)

        marker = build_marker(options, created)

        assert marker == {
            "createdAt": "2026-01-02T03:04:05Z",
            "projectName": "demo-app",
            "template": "dashboard",
            "database": "mysql",
            "authProvider": "github",
            "version": MARKER_VERSION,
        }

    def test_marker_round_trip(self, make_options) -> None:
        options = make_options()
        _touch_required(options.project_path)

        path = run_final_checks(options)

        assert path.name == MARKER_FILENAME
        assert read_completion_marker(options.project_path)["projectName"] == "demo-app"
        assert path.read_text().startswith('{\n  "createdAt"')

    def test_read_missing_marker(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_completion_marker(tmp_path)

    def test_read_invalid_marker(self, tmp_path: Path) -> None:
        (tmp_path / MARKER_FILENAME).write_text("{not json")

        with pytest.raises(json.JSONDecodeError):
            read_completion_marker(tmp_path)


# =============================================================================
# Gitignore Tests
# =============================================================================

class TestGitignore:
    """Tests for ensure_marker_ignored."""

    def test_appends_once(self, tmp_path: Path) -> None:
        (tmp_path / ".gitignore").write_text("node_modules\n")

        assert ensure_marker_ignored(tmp_path) is True
        assert ensure_marker_ignored(tmp_path) is False

        content = (tmp_path / ".gitignore").read_text()
        assert content.startswith("node_modules\n")
        assert content.count(MARKER_FILENAME) == 1

    def test_creates_missing_file(self, tmp_path: Path) -> None:
        assert ensure_marker_ignored(tmp_path) is True
        assert MARKER_FILENAME in (tmp_path / ".gitignore").read_text().splitlines()

    def test_existing_entry_left_alone(self, tmp_path: Path) -> None:
        (tmp_path / ".gitignore").write_text(f"{MARKER_FILENAME}\n")

        assert ensure_marker_ignored(tmp_path) is False
        assert (tmp_path / ".gitignore").read_text() == f"{MARKER_FILENAME}\n"


# =============================================================================
# Final Check Tests
# =============================================================================

class TestRunFinalChecks:
    """Tests for run_final_checks."""

    def test_missing_files_named_together(self, make_options) -> None:
        options = make_options()
        options.project_path.mkdir()
        (options.project_path / "package.json").write_text("{}")

        with pytest.raises(VerificationError) as exc_info:
            run_final_checks(options)

        assert exc_info.value.missing == [".env.example", "prisma/schema.prisma", "src/app/layout.tsx"]
        assert str(exc_info.value) == (
            "Some files missing: .env.example, prisma/schema.prisma, src/app/layout.tsx"
        )

    def test_no_marker_on_failure(self, make_options) -> None:
        options = make_options()
        options.project_path.mkdir()

        with pytest.raises(VerificationError):
            run_final_checks(options)

        assert not (options.project_path / MARKER_FILENAME).exists()

    def test_marker_is_ignored(self, make_options) -> None:
        options = make_options()
        _touch_required(options.project_path)

        run_final_checks(options)

        assert MARKER_FILENAME in (options.project_path / ".gitignore").read_text()
