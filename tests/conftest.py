"""
pytest configuration and shared fixtures for archillesdc tests.

Fixtures defined here are automatically available to all test modules.

Fixtures
--------
output_dir : Path
    Empty parent directory for generated projects.

make_options : Callable[..., ProjectOptions]
    Builds normalized options rooted in ``output_dir``.

ok_runner : AsyncMock
    Command runner where every external command succeeds.

next_project : Path
    Minimal existing Next.js project for ``generate`` commands.
"""

import json
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from archillesdc.models import ProjectOptions, normalize_options


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """
    Parent directory for generated projects.

    Returns
    -------
    Path
        An empty directory unique to the test.
    """
    path = tmp_path / "projects"
    path.mkdir()
    return path


@pytest.fixture
def make_options(output_dir: Path) -> Callable[..., ProjectOptions]:
    """
    Factory for ``ProjectOptions`` rooted in ``output_dir``.

    Git and install are off unless a test turns them back on, so no test
    reaches a real subprocess by accident.
    """
    def factory(name: str = "demo-app", **overrides) -> ProjectOptions:
        values = {"output_dir": output_dir, "init_git": False, "skip_install": True}
        values.update(overrides)
        return normalize_options(name, **values)

    return factory


@pytest.fixture
def ok_runner() -> AsyncMock:
    """Command runner that reports success for every command."""
    return AsyncMock(return_value=(0, "", ""))


@pytest.fixture
def next_project(tmp_path: Path) -> Path:
    """
    A directory that looks like a generated project.

    Contains a ``package.json`` depending on ``next`` and a Prisma schema
    with a PostgreSQL datasource and a ``User`` model.
    """
    root = tmp_path / "existing-app"
    (root / "prisma").mkdir(parents=True)
    (root / "package.json").write_text(json.dumps({
        "name": "existing-app",
        "dependencies": {"next": "^15.0.0", "react": "^19.0.0"},
    }))
    (root / "prisma" / "schema.prisma").write_text(
        'generator client {\n'
        '  provider = "prisma-client-js"\n'
        '}\n'
        '\n'
        'datasource db {\n'
        '  provider = "postgresql"\n'
        '  url      = env("DATABASE_URL")\n'
        '}\n'
        '\n'
        'model User {\n'
        '  id            String    @id @default(cuid())\n'
        '  name          String?\n'
        '\n'
        '  posts         Post[]\n'
        '\n'
        '  @@index([name])\n'
        '}\n'
    )
    return root


# =============================================================================
# pytest Configuration
# =============================================================================

def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers.

    This function is called by pytest during startup to register
    custom markers used in our test suite.
    """
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests requiring external resources"
    )
