"""
archillesdc.planner - Directory Planning
========================================

Computes the directories a project needs before any generator unit writes a
file. Generator units assume their target directories exist, so planning and
creation always run to completion first.

Two plans exist:

- ``plan_directories``: everything the generated source tree needs, used by
  the orchestrator.
- ``plan_environment_directories``: the environment-specific set ensured by
  the lifecycle's "Setting up environment" step.

Both are deterministic, ordered and free of duplicates. Creating them is
idempotent: an existing directory is never an error.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from archillesdc.models import Template


# =============================================================================
# Directory Sets
# =============================================================================

BASE_DIRECTORIES: tuple[str, ...] = (
    "src/app",
    "src/app/_components",
    "src/app/api/auth/[...nextauth]",
    "src/app/api/trpc/[trpc]",
    "src/components/ui",
    "src/components/layout",
    "src/components/auth",
    "src/components/forms",
    "src/lib",
    "src/hooks",
    "src/utils",
    "src/types",
    "src/server/api/routers",
    "src/server/auth",
    "src/styles",
    "src/trpc",
    "prisma",
    "public",
)

TEMPLATE_DIRECTORIES: dict[Template, tuple[str, ...]] = {
    Template.FULL_SYSTEM: (
        "src/app/(auth)/login",
        "src/app/(auth)/register",
        "src/app/(dashboard)",
        "src/app/(dashboard)/dashboard",
        "src/app/(dashboard)/admin",
        "src/app/(dashboard)/admin/users",
        "src/app/(dashboard)/admin/settings",
        "src/app/(dashboard)/settings",
        "src/components/forms",
        "src/components/admin",
        "src/components/charts",
    ),
    Template.ADMIN: (
        "src/app/(auth)/login",
        "src/app/(dashboard)",
        "src/app/(dashboard)/dashboard",
        "src/app/(dashboard)/admin",
        "src/app/(dashboard)/admin/users",
        "src/app/(dashboard)/admin/settings",
        "src/components/admin",
        "src/components/charts",
    ),
    Template.DASHBOARD: (
        "src/app/(auth)/login",
        "src/app/(auth)/register",
        "src/app/(dashboard)",
        "src/app/(dashboard)/dashboard",
        "src/app/(dashboard)/settings",
        "src/components/forms",
    ),
    Template.BAREBONES: (
        "src/app/(auth)/login",
    ),
}

ENVIRONMENT_DIRECTORIES: tuple[str, ...] = (
    "src/app/_components",
    "src/app/api/auth/[...nextauth]",
    "src/app/api/trpc/[trpc]",
    "src/app/(auth)/login",
    "src/app/(auth)/register",
    "src/app/(dashboard)",
    "src/components/ui",
    "src/components/layout",
    "src/components/forms",
    "src/lib",
    "src/hooks",
    "src/utils",
    "src/server/api/routers",
    "src/server/auth",
    "src/styles",
    "src/trpc",
    "src/types",
    "prisma",
    "public",
)

ADMIN_ENVIRONMENT_DIRECTORIES: tuple[str, ...] = (
    "src/app/(dashboard)/admin",
    "src/app/(dashboard)/admin/users",
    "src/app/(dashboard)/admin/settings",
    "src/components/admin",
)


# =============================================================================
# Planning
# =============================================================================

def _ordered_union(*groups: tuple[str, ...]) -> tuple[str, ...]:
    # dict preserves first-seen order
    return tuple(dict.fromkeys(path for group in groups for path in group))


def plan_directories(template: Template) -> tuple[str, ...]:
    """
    Directories required by the generated source tree.

    Parameters
    ----------
    template : Template
        Project template.

    Returns
    -------
    tuple[str, ...]
        Relative POSIX paths: the base set followed by the template addendum,
        without duplicates.

    Examples
    --------
    >>> "src/app/(auth)/login" in plan_directories(Template.BAREBONES)
    True
    >>> set(BASE_DIRECTORIES) <= set(plan_directories(Template.ADMIN))
    True
    """
    return _ordered_union(BASE_DIRECTORIES, TEMPLATE_DIRECTORIES[template])


def plan_environment_directories(template: Template) -> tuple[str, ...]:
    """
    Directories ensured by the environment setup step.

    Admin-capable templates also get the admin panel subpaths.
    """
    if template.has_admin_panel:
        return _ordered_union(ENVIRONMENT_DIRECTORIES, ADMIN_ENVIRONMENT_DIRECTORIES)
    return ENVIRONMENT_DIRECTORIES


# =============================================================================
# Creation
# =============================================================================

def _ensure_directory(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


async def ensure_directories(root: Path, directories: tuple[str, ...]) -> list[Path]:
    """
    Create every planned directory under ``root``.

    Directories are created concurrently. Existing directories are left
    alone, so calling this twice on the same tree is a no-op.

    Parameters
    ----------
    root : Path
        Project root.

    directories : tuple[str, ...]
        Relative paths from one of the planning functions.

    Returns
    -------
    list[Path]
        Absolute paths, in plan order.

    Raises
    ------
    OSError
        If a directory cannot be created (e.g. a file is in the way).
    """
    return list(await asyncio.gather(*(
        asyncio.to_thread(_ensure_directory, root / relative)
        for relative in directories
    )))
