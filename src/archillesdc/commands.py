"""
archillesdc.commands - External Tool Commands
=============================================

Maps each package manager to the literal commands the lifecycle executes
and the hints it prints, and runs external processes with a timeout.

Every mapping is total over ``PackageManager``. Values that are not a known
package manager fall back to the npm command.
"""

from __future__ import annotations

import asyncio
import shlex
from pathlib import Path

from archillesdc.models import PackageManager


# =============================================================================
# Command Maps
# =============================================================================

INSTALL_COMMANDS: dict[PackageManager, str] = {
    PackageManager.NPM: "npm install",
    PackageManager.PNPM: "pnpm install",
    PackageManager.YARN: "yarn",
    PackageManager.BUN: "bun install",
}

PRISMA_GENERATE_COMMANDS: dict[PackageManager, str] = {
    PackageManager.NPM: "npx prisma generate",
    PackageManager.PNPM: "pnpm prisma generate",
    PackageManager.YARN: "yarn prisma generate",
    PackageManager.BUN: "bunx prisma generate",
}

RUN_PREFIXES: dict[PackageManager, str] = {
    PackageManager.NPM: "npm run",
    PackageManager.PNPM: "pnpm",
    PackageManager.YARN: "yarn",
    PackageManager.BUN: "bun run",
}

INSTALL_TIMEOUT = 300
PRISMA_GENERATE_TIMEOUT = 60


def _resolve(package_manager: PackageManager | str) -> PackageManager:
    try:
        return PackageManager(package_manager)
    except ValueError:
        return PackageManager.NPM


def get_install_command(package_manager: PackageManager | str) -> str:
    """
    Dependency install command for a package manager.

    Examples
    --------
    >>> get_install_command("yarn")
    'yarn'
    >>> get_install_command("unknown")
    'npm install'
    """
    return INSTALL_COMMANDS[_resolve(package_manager)]


def get_prisma_generate_command(package_manager: PackageManager | str) -> str:
    """Prisma client generation command for a package manager."""
    return PRISMA_GENERATE_COMMANDS[_resolve(package_manager)]


def get_run_command(package_manager: PackageManager | str, script: str) -> str:
    """
    Command that runs a ``package.json`` script.

    Examples
    --------
    >>> get_run_command("pnpm", "dev")
    'pnpm dev'
    >>> get_run_command("npm", "db:push")
    'npm run db:push'
    """
    return f"{RUN_PREFIXES[_resolve(package_manager)]} {script}"


# =============================================================================
# Process Execution
# =============================================================================

async def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
) -> tuple[int, str, str]:
    """
    Run an external command asynchronously.

    Parameters
    ----------
    cmd : str | list[str]
        Command string (split with ``shlex``) or argument list.

    cwd : str | Path | None
        Working directory for the child process.

    timeout : int
        Seconds before the process is killed.

    Returns
    -------
    tuple[int, str, str]
        ``(returncode, stdout, stderr)``. A timed-out process returns ``-1``
        and a timeout message in ``stderr``. A missing executable returns
        ``127``.
    """
    args = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)

    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
        )
    except FileNotFoundError:
        return (127, "", f"Command not found: {args[0]}")

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(args)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)
