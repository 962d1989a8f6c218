"""
archillesdc.renderer - Template Rendering and File Writing
==========================================================

Thin layer between generator units and the filesystem:

- ``create_jinja_env`` builds the Jinja2 environment over the bundled
  ``archillesdc/templates`` package.
- ``build_context`` assembles the context every template receives.
- ``write_file`` writes one rendered file off the event loop, refusing paths
  that resolve outside the project root.

Template Context
----------------
    options : ProjectOptions
        The frozen run options.
    db, auth, template, pm
        Variant records from ``archillesdc.variants``.
    generator_version : str
        Version of archillesdc, used in generated README.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

from archillesdc import __version__
from archillesdc.models import ProjectOptions
from archillesdc.variants import variant_context


# =============================================================================
# Case Filters
# =============================================================================

def pascal_case(value: str) -> str:
    """
    Convert ``my-model_name`` to ``MyModelName``.

    Examples
    --------
    >>> pascal_case("blog-post")
    'BlogPost'
    """
    return "".join(word[:1].upper() + word[1:] for word in re.split(r"[-_\s]+", value) if word)


def camel_case(value: str) -> str:
    """Convert ``blog-post`` to ``blogPost``."""
    pascal = pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


def kebab_case(value: str) -> str:
    """Convert ``BlogPost`` or ``blog_post`` to ``blog-post``."""
    value = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", value)
    return re.sub(r"[\s_]+", "-", value).lower()


# =============================================================================
# Template Engine Setup
# =============================================================================

def create_jinja_env() -> Environment:
    """
    Create the Jinja2 environment for generated sources.

    Autoescaping is off because the output is TypeScript, JSON and config
    files. Undefined variables raise instead of rendering as empty strings,
    so a missing variant field fails the owning unit.

    Returns
    -------
    Environment
        Configured environment with the case filters registered.
    """
    env = Environment(
        loader=PackageLoader("archillesdc", "templates"),
        autoescape=select_autoescape([], default_for_string=False),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )

    env.filters["pascal_case"] = pascal_case
    env.filters["camel_case"] = camel_case
    env.filters["kebab_case"] = kebab_case

    return env


def build_context(options: ProjectOptions, **extra: Any) -> dict[str, Any]:
    """Context shared by every template of one run."""
    context: dict[str, Any] = {
        "options": options,
        "generator_version": __version__,
    }
    context.update(variant_context(options))
    context.update(extra)
    return context


def render_template(env: Environment, template_name: str, context: dict[str, Any]) -> str:
    """
    Render one template.

    Raises
    ------
    jinja2.TemplateNotFound
        If the template file doesn't exist.
    jinja2.UndefinedError
        If the template references a missing context value.
    """
    return env.get_template(template_name).render(**context)


# =============================================================================
# File Writing
# =============================================================================

class PathEscapeError(OSError):
    """Raised when an output path resolves outside the project root."""


def resolve_output_path(root: Path, relative: str | Path) -> Path:
    """
    Join ``relative`` onto ``root``, refusing escapes.

    Raises
    ------
    PathEscapeError
        If the joined path is not inside ``root``.
    """
    root = root.resolve()
    target = (root / relative).resolve()
    if target != root and root not in target.parents:
        msg = f"Refusing to write outside the project root: {relative}"
        raise PathEscapeError(msg)
    return target


def _write_text(path: Path, content: str) -> None:
    path.write_text(content, encoding="utf-8")


async def write_file(root: Path, relative: str | Path, content: str) -> Path:
    """
    Write ``content`` to ``root / relative``, replacing any existing file.

    The parent directory must already exist; directories are created by the
    planner before any unit runs.

    Returns
    -------
    Path
        The absolute path written.
    """
    target = resolve_output_path(root, relative)
    await asyncio.to_thread(_write_text, target, content)
    return target
