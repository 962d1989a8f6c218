"""
archillesdc.units - Generator Units
===================================

A generator unit is a named group of output files that belong together
(the auth layer, the tRPC setup, one component group, ...). Each unit lists
``(source, output path)`` pairs, where the source is either a Jinja2 template
name or a builder function, plus an optional condition on ``ProjectOptions``.

Rendering a unit is a pure function of the options: ``render_unit`` returns
``WriteOperation`` values and touches nothing. ``run_unit`` renders and then
writes the operations concurrently; the paths inside one unit never overlap.

Planning Invariant
------------------
For any ``ProjectOptions`` no two applicable units may write the same path.
``plan_writes`` checks this and raises ``PlanningError`` on a collision, which
``tests/test_units.py`` exercises over every option combination.

Adding a Unit
-------------
1. Add the template(s) under ``archillesdc/templates/``.
2. Append a ``GeneratorUnit`` to ``GENERATOR_UNITS`` with its condition.
3. Make sure every output directory is in ``planner.plan_directories``.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment

from archillesdc.models import AuthProvider, ComponentGroup, ProjectOptions
from archillesdc.renderer import render_template, write_file
from archillesdc.variants import lookup


Builder = Callable[[ProjectOptions], str]
Source = str | Builder


# =============================================================================
# Errors & Records
# =============================================================================

class PlanningError(RuntimeError):
    """Raised when two generator units claim the same output path."""


@dataclass(frozen=True)
class WriteOperation:
    """One file to write, relative to the project root."""

    path: str
    content: str


@dataclass(frozen=True)
class GeneratorUnit:
    """
    A named set of outputs generated together.

    Attributes
    ----------
    name : str
        Unique unit name, used in failure reports.

    feature : str
        Feature area (``base``, ``auth``, ``components``, ...).

    outputs : tuple[tuple[Source, str], ...]
        ``(template name or builder, output path)`` pairs.

    condition : Callable[[ProjectOptions], bool] | None
        The unit runs only when this returns True. ``None`` means always.
    """

    name: str
    feature: str
    outputs: tuple[tuple[Source, str], ...]
    condition: Callable[[ProjectOptions], bool] | None = None

    def applies_to(self, options: ProjectOptions) -> bool:
        return self.condition is None or self.condition(options)

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(path for _, path in self.outputs)


# =============================================================================
# Builders
# =============================================================================

DEPENDENCIES: dict[str, str] = {
    "@auth/prisma-adapter": "^2.7.2",
    "@prisma/client": "^6.6.0",
    "@t3-oss/env-nextjs": "^0.12.0",
    "@tanstack/react-query": "^5.69.0",
    "@trpc/client": "^11.0.0",
    "@trpc/react-query": "^11.0.0",
    "@trpc/server": "^11.0.0",
    "clsx": "^2.1.1",
    "lucide-react": "^0.460.0",
    "next": "^15.2.3",
    "next-auth": "5.0.0-beta.25",
    "react": "^19.0.0",
    "react-dom": "^19.0.0",
    "server-only": "^0.0.1",
    "superjson": "^2.2.1",
    "tailwind-merge": "^2.5.4",
    "zod": "^3.24.2",
}

DEV_DEPENDENCIES: dict[str, str] = {
    "@eslint/eslintrc": "^3.3.1",
    "@tailwindcss/postcss": "^4.0.15",
    "@types/node": "^20.14.10",
    "@types/react": "^19.0.0",
    "@types/react-dom": "^19.0.0",
    "eslint": "^9.23.0",
    "eslint-config-next": "^15.2.3",
    "postcss": "^8.5.3",
    "prettier": "^3.5.3",
    "prettier-plugin-tailwindcss": "^0.6.11",
    "prisma": "^6.6.0",
    "tailwindcss": "^4.0.15",
    "tsx": "^4.19.2",
    "typescript": "^5.8.2",
    "typescript-eslint": "^8.27.0",
}

# Only the credentials provider hashes passwords
PASSWORD_DEPENDENCIES = {"bcryptjs": "^2.4.3"}
PASSWORD_DEV_DEPENDENCIES = {"@types/bcryptjs": "^2.4.6"}


def _to_json(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2) + "\n"


def build_package_json(options: ProjectOptions) -> str:
    """
    Render ``package.json`` for the project.

    Scripts are fixed; ``bcryptjs`` is added only for credentials auth.
    Dependency maps are sorted so the output is stable.
    """
    dependencies = dict(DEPENDENCIES)
    dev_dependencies = dict(DEV_DEPENDENCIES)
    if options.auth_provider is AuthProvider.CREDENTIALS:
        dependencies.update(PASSWORD_DEPENDENCIES)
        dev_dependencies.update(PASSWORD_DEV_DEPENDENCIES)

    package = {
        "name": options.project_name,
        "version": "0.1.0",
        "private": True,
        "type": "module",
        "scripts": {
            "build": "next build",
            "check": "next lint && tsc --noEmit",
            "db:generate": "prisma migrate dev",
            "db:migrate": "prisma migrate deploy",
            "db:push": "prisma db push",
            "db:studio": "prisma studio",
            "db:seed": "tsx prisma/seed.ts",
            "dev": "next dev --turbo",
            "format:check": 'prettier --check "**/*.{ts,tsx,js,jsx,mdx}" --cache',
            "format:write": 'prettier --write "**/*.{ts,tsx,js,jsx,mdx}" --cache',
            "postinstall": "prisma generate",
            "lint": "next lint",
            "lint:fix": "next lint --fix",
            "preview": "next build && next start",
            "start": "next start",
            "typecheck": "tsc --noEmit",
        },
        "prisma": {"seed": "tsx prisma/seed.ts"},
        "dependencies": dict(sorted(dependencies.items())),
        "devDependencies": dict(sorted(dev_dependencies.items())),
    }
    return _to_json(package)


def build_tsconfig(options: ProjectOptions) -> str:
    """Render ``tsconfig.json`` with the ``@/*`` path alias."""
    tsconfig = {
        "compilerOptions": {
            "esModuleInterop": True,
            "skipLibCheck": True,
            "target": "es2022",
            "allowJs": True,
            "resolveJsonModule": True,
            "moduleDetection": "force",
            "isolatedModules": True,
            "verbatimModuleSyntax": True,
            "strict": True,
            "noUncheckedIndexedAccess": True,
            "checkJs": True,
            "lib": ["dom", "dom.iterable", "ES2022"],
            "noEmit": True,
            "module": "ESNext",
            "moduleResolution": "Bundler",
            "jsx": "preserve",
            "plugins": [{"name": "next"}],
            "incremental": True,
            "baseUrl": ".",
            "paths": {"@/*": ["./src/*"]},
        },
        "include": [
            "next-env.d.ts",
            "**/*.ts",
            "**/*.tsx",
            "**/*.cjs",
            "**/*.js",
            ".next/types/**/*.ts",
        ],
        "exclude": ["node_modules", "generated"],
    }
    return _to_json(tsconfig)


# =============================================================================
# Component Groups
# =============================================================================

def _wants(group: ComponentGroup) -> Callable[[ProjectOptions], bool]:
    def condition(options: ProjectOptions) -> bool:
        return options.has_components(group) or options.has_component_group(group)
    return condition


def _needs_navigation(options: ProjectOptions) -> bool:
    # The dashboard layout renders Sidebar and Header
    return _wants(ComponentGroup.NAVIGATION)(options) or lookup("template", options.template).dashboard


def _needs_data_display(options: ProjectOptions) -> bool:
    # Admin pages render StatsGrid and Table
    return _wants(ComponentGroup.DATA_DISPLAY)(options) or options.template.has_admin_panel


COMPONENT_CONDITIONS: dict[ComponentGroup, Callable[[ProjectOptions], bool]] = {
    ComponentGroup.UI_ESSENTIALS: lambda options: True,
    ComponentGroup.FEEDBACK: _wants(ComponentGroup.FEEDBACK),
    ComponentGroup.NAVIGATION: _needs_navigation,
    ComponentGroup.DATA_DISPLAY: _needs_data_display,
    ComponentGroup.FORMS: _wants(ComponentGroup.FORMS),
    ComponentGroup.LAYOUT: _wants(ComponentGroup.LAYOUT),
}


def component_flags(options: ProjectOptions) -> dict[str, bool]:
    """
    Which component groups are generated, keyed by group id.

    The UI barrel file (``src/components/ui/index.ts``) uses this to export
    only the modules that exist.
    """
    return {group.value: condition(options) for group, condition in COMPONENT_CONDITIONS.items()}


# =============================================================================
# Unit Table
# =============================================================================

def _template(options: ProjectOptions):
    return lookup("template", options.template)


GENERATOR_UNITS: tuple[GeneratorUnit, ...] = (
    # Base configuration
    GeneratorUnit("package-json", "base", ((build_package_json, "package.json"),)),
    GeneratorUnit("tsconfig", "base", ((build_tsconfig, "tsconfig.json"),)),
    GeneratorUnit("next-config", "base", (("base/next.config.js.j2", "next.config.js"),)),
    GeneratorUnit("postcss-config", "base", (("base/postcss.config.js.j2", "postcss.config.js"),)),
    GeneratorUnit("prettier-config", "base", (("base/prettier.config.js.j2", "prettier.config.js"),)),
    GeneratorUnit("eslint-config", "base", (("base/eslint.config.js.j2", "eslint.config.js"),)),
    GeneratorUnit("gitignore", "base", (("base/gitignore.j2", ".gitignore"),)),
    GeneratorUnit("env-files", "base", (
        ("base/env.example.j2", ".env.example"),
        ("base/env.j2", ".env"),
    )),
    GeneratorUnit("readme", "base", (("base/README.md.j2", "README.md"),)),
    # Database
    GeneratorUnit("prisma-schema", "prisma", (
        ("prisma/schema.prisma.j2", "prisma/schema.prisma"),
        ("prisma/seed.ts.j2", "prisma/seed.ts"),
    )),
    GeneratorUnit("db-client", "prisma", (("prisma/db.ts.j2", "src/server/db.ts"),)),
    GeneratorUnit("env-schema", "env", (("env/env.js.j2", "src/env.js"),)),
    # Authentication
    GeneratorUnit("auth", "auth", (
        ("auth/config.ts.j2", "src/server/auth/config.ts"),
        ("auth/index.ts.j2", "src/server/auth/index.ts"),
        ("auth/route.ts.j2", "src/app/api/auth/[...nextauth]/route.ts"),
        ("auth/middleware.ts.j2", "src/lib/auth-middleware.ts"),
        ("auth/role-guard.tsx.j2", "src/components/auth/role-guard.tsx"),
        ("auth/actions.ts.j2", "src/server/auth/actions.ts"),
        ("auth/types.ts.j2", "src/types/auth.ts"),
    )),
    GeneratorUnit(
        "auth-forms", "auth",
        (
            ("auth/login-form.tsx.j2", "src/components/forms/login-form.tsx"),
            ("auth/register-form.tsx.j2", "src/components/forms/register-form.tsx"),
        ),
        lambda options: lookup("auth", options.auth_provider).uses_password,
    ),
    # tRPC
    GeneratorUnit("trpc", "trpc", (
        ("trpc/trpc.ts.j2", "src/server/api/trpc.ts"),
        ("trpc/root.ts.j2", "src/server/api/root.ts"),
        ("trpc/react.tsx.j2", "src/trpc/react.tsx"),
        ("trpc/server.ts.j2", "src/trpc/server.ts"),
        ("trpc/query-client.ts.j2", "src/trpc/query-client.ts"),
        ("trpc/route.ts.j2", "src/app/api/trpc/[trpc]/route.ts"),
        ("trpc/crud-helper.ts.j2", "src/lib/crud-helper.ts"),
    )),
    GeneratorUnit(
        "example-routers", "trpc",
        (
            ("trpc/post-router.ts.j2", "src/server/api/routers/post.ts"),
            ("trpc/user-router.ts.j2", "src/server/api/routers/user.ts"),
        ),
        lambda options: options.include_example_code,
    ),
    GeneratorUnit(
        "admin-router", "trpc",
        (("trpc/admin-router.ts.j2", "src/server/api/routers/admin.ts"),),
        lambda options: options.template.has_admin_panel,
    ),
    # App routes
    GeneratorUnit(
        "app-pages", "app",
        (
            ("app/layout.tsx.j2", "src/app/layout.tsx"),
            ("app/page.tsx.j2", "src/app/page.tsx"),
            ("app/login-page.tsx.j2", "src/app/(auth)/login/page.tsx"),
            ("app/dashboard-layout.tsx.j2", "src/app/(dashboard)/layout.tsx"),
            ("app/dashboard-page.tsx.j2", "src/app/(dashboard)/dashboard/page.tsx"),
            ("app/error.tsx.j2", "src/app/error.tsx"),
            ("app/not-found.tsx.j2", "src/app/not-found.tsx"),
            ("app/loading.tsx.j2", "src/app/loading.tsx"),
        ),
        lambda options: _template(options).dashboard,
    ),
    GeneratorUnit(
        "barebones-pages", "app",
        (
            ("app/layout.tsx.j2", "src/app/layout.tsx"),
            ("app/barebones-page.tsx.j2", "src/app/page.tsx"),
            ("app/login-page.tsx.j2", "src/app/(auth)/login/page.tsx"),
        ),
        lambda options: not _template(options).dashboard,
    ),
    GeneratorUnit(
        "register-page", "app",
        (("app/register-page.tsx.j2", "src/app/(auth)/register/page.tsx"),),
        lambda options: _template(options).register_page,
    ),
    GeneratorUnit(
        "settings-page", "app",
        (("app/settings-page.tsx.j2", "src/app/(dashboard)/settings/page.tsx"),),
        lambda options: _template(options).settings_page,
    ),
    GeneratorUnit(
        "admin-pages", "app",
        (
            ("app/admin-layout.tsx.j2", "src/app/(dashboard)/admin/layout.tsx"),
            ("app/admin-page.tsx.j2", "src/app/(dashboard)/admin/page.tsx"),
            ("app/admin-users-page.tsx.j2", "src/app/(dashboard)/admin/users/page.tsx"),
        ),
        lambda options: options.template.has_admin_panel,
    ),
    GeneratorUnit(
        "example-components", "app",
        (
            ("app/create-post-form.tsx.j2", "src/app/_components/create-post-form.tsx"),
            ("app/post-list.tsx.j2", "src/app/_components/post-list.tsx"),
        ),
        lambda options: options.include_example_code,
    ),
    # UI components
    GeneratorUnit(
        "ui-essentials", "components",
        (
            ("components/button.tsx.j2", "src/components/ui/button.tsx"),
            ("components/input.tsx.j2", "src/components/ui/input.tsx"),
            ("components/card.tsx.j2", "src/components/ui/card.tsx"),
            ("components/badge.tsx.j2", "src/components/ui/badge.tsx"),
            ("components/avatar.tsx.j2", "src/components/ui/avatar.tsx"),
            ("components/spinner.tsx.j2", "src/components/ui/spinner.tsx"),
            ("components/index.ts.j2", "src/components/ui/index.ts"),
        ),
        COMPONENT_CONDITIONS[ComponentGroup.UI_ESSENTIALS],
    ),
    GeneratorUnit(
        "feedback-components", "components",
        (
            ("components/toast.tsx.j2", "src/components/ui/toast.tsx"),
            ("components/modal.tsx.j2", "src/components/ui/modal.tsx"),
        ),
        COMPONENT_CONDITIONS[ComponentGroup.FEEDBACK],
    ),
    GeneratorUnit(
        "navigation-components", "components",
        (
            ("components/sidebar.tsx.j2", "src/components/layout/sidebar.tsx"),
            ("components/header.tsx.j2", "src/components/layout/header.tsx"),
        ),
        COMPONENT_CONDITIONS[ComponentGroup.NAVIGATION],
    ),
    GeneratorUnit(
        "data-display-components", "components",
        (
            ("components/table.tsx.j2", "src/components/ui/table.tsx"),
            ("components/stats.tsx.j2", "src/components/ui/stats.tsx"),
        ),
        COMPONENT_CONDITIONS[ComponentGroup.DATA_DISPLAY],
    ),
    GeneratorUnit(
        "form-components", "components",
        (
            ("components/select.tsx.j2", "src/components/ui/select.tsx"),
            ("components/checkbox.tsx.j2", "src/components/ui/checkbox.tsx"),
            ("components/textarea.tsx.j2", "src/components/ui/textarea.tsx"),
        ),
        COMPONENT_CONDITIONS[ComponentGroup.FORMS],
    ),
    GeneratorUnit(
        "layout-components", "components",
        (("components/container.tsx.j2", "src/components/ui/container.tsx"),),
        COMPONENT_CONDITIONS[ComponentGroup.LAYOUT],
    ),
    # Utilities and styles
    GeneratorUnit("utils", "utils", (
        ("utils/cn.ts.j2", "src/utils/cn.ts"),
        ("utils/formatters.ts.j2", "src/utils/formatters.ts"),
        ("utils/constants.ts.j2", "src/utils/constants.ts"),
        ("utils/logger.ts.j2", "src/lib/logger.ts"),
        ("utils/error-handler.ts.j2", "src/lib/error-handler.ts"),
        ("utils/hooks.ts.j2", "src/hooks/index.ts"),
        ("utils/types.ts.j2", "src/types/index.ts"),
        ("utils/validators.ts.j2", "src/lib/validators.ts"),
        ("utils/favicon.svg.j2", "public/favicon.svg"),
    )),
    GeneratorUnit("styles", "styles", (("styles/globals.css.j2", "src/styles/globals.css"),)),
)


# =============================================================================
# Planning & Rendering
# =============================================================================

def applicable_units(options: ProjectOptions) -> list[GeneratorUnit]:
    """Units whose condition holds for ``options``, in table order."""
    return [unit for unit in GENERATOR_UNITS if unit.applies_to(options)]


def plan_writes(options: ProjectOptions) -> dict[str, str]:
    """
    Map every output path to the unit that writes it.

    Returns
    -------
    dict[str, str]
        ``{relative path: unit name}`` in unit order.

    Raises
    ------
    PlanningError
        If two applicable units write the same path.
    """
    owners: dict[str, str] = {}
    for unit in applicable_units(options):
        for path in unit.paths:
            if path in owners:
                msg = f"Units '{owners[path]}' and '{unit.name}' both write {path}"
                raise PlanningError(msg)
            owners[path] = unit.name
    return owners


def unit_context(options: ProjectOptions) -> dict[str, Any]:
    """Extra template context shared by all units of a run."""
    return {"groups": component_flags(options)}


def render_unit(
    unit: GeneratorUnit,
    options: ProjectOptions,
    env: Environment,
    context: dict[str, Any],
) -> list[WriteOperation]:
    """
    Render every output of ``unit`` without touching the filesystem.

    Raises
    ------
    jinja2.TemplateError
        If a template is missing or references an undefined value.
    """
    operations = []
    for source, path in unit.outputs:
        if callable(source):
            content = source(options)
        else:
            content = render_template(env, source, context)
        operations.append(WriteOperation(path, content))
    return operations


async def run_unit(
    unit: GeneratorUnit,
    options: ProjectOptions,
    env: Environment,
    context: dict[str, Any],
) -> list[Path]:
    """
    Render ``unit`` and write its files concurrently.

    Returns
    -------
    list[Path]
        Absolute paths written, in output order.
    """
    operations = render_unit(unit, options, env, context)
    root = options.project_path
    return list(await asyncio.gather(*(
        write_file(root, operation.path, operation.content) for operation in operations
    )))
