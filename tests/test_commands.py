"""
Tests for archillesdc.commands
==============================

Test Organization
-----------------
- TestCommandMaps: Install, Prisma and run command mappings
- TestRunCommand: Subprocess execution with real, harmless executables
"""

import sys

import pytest

from archillesdc.commands import (
    get_install_command,
    get_prisma_generate_command,
    get_run_command,
    run_command,
)
from archillesdc.models import PackageManager


# =============================================================================
# Command Map Tests
# =============================================================================

class TestCommandMaps:
    """Tests for the package manager command maps."""

    @pytest.mark.parametrize(
        ("pm", "expected"),
        [("npm", "npm install"), ("pnpm", "pnpm install"), ("yarn", "yarn"), ("bun", "bun install")],
    )
    def test_install(self, pm: str, expected: str) -> None:
        assert get_install_command(pm) == expected

    @pytest.mark.parametrize(
        ("pm", "expected"),
        [
            ("npm", "npx prisma generate"),
            ("pnpm", "pnpm prisma generate"),
            ("yarn", "yarn prisma generate"),
            ("bun", "bunx prisma generate"),
        ],
    )
    def test_prisma_generate(self, pm: str, expected: str) -> None:
        assert get_prisma_generate_command(pm) == expected

    @pytest.mark.parametrize(
        ("pm", "expected"),
        [("npm", "npm run lint"), ("pnpm", "pnpm lint"), ("yarn", "yarn lint"), ("bun", "bun run lint")],
    )
    def test_run(self, pm: str, expected: str) -> None:
        assert get_run_command(pm, "lint") == expected

    def test_unknown_falls_back_to_npm(self) -> None:
        assert get_install_command("cargo") == "npm install"
        assert get_prisma_generate_command("cargo") == "npx prisma generate"
        assert get_run_command("cargo", "dev") == "npm run dev"

    def test_accepts_enum_members(self) -> None:
        assert get_install_command(PackageManager.BUN) == "bun install"


# =============================================================================
# Execution Tests
# =============================================================================

class TestRunCommand:
    """Tests for run_command."""

    @pytest.mark.asyncio
    async def test_success_captures_output(self, tmp_path) -> None:
        returncode, stdout, _ = await run_command(
            [sys.executable, "-c", "print('hello')"], cwd=tmp_path
        )

        assert returncode == 0
        assert stdout.strip() == "hello"

    @pytest.mark.asyncio
    async def test_failure_returncode(self) -> None:
        returncode, _, stderr = await run_command(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"]
        )

        assert returncode == 3
        assert "boom" in stderr

    @pytest.mark.asyncio
    async def test_missing_executable(self) -> None:
        returncode, _, stderr = await run_command("definitely-not-a-real-tool --version")

        assert returncode == 127
        assert "definitely-not-a-real-tool" in stderr

    @pytest.mark.slow
    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        returncode, _, stderr = await run_command(
            [sys.executable, "-c", "import time; time.sleep(5)"], timeout=1
        )

        assert returncode == -1
        assert "timed out" in stderr
