"""
archillesdc - Full-Stack Next.js Project Generator
==================================================

A CLI tool that writes out a complete Next.js application wired up with
Prisma, tRPC, NextAuth and Tailwind CSS from a handful of choices.

Features
--------
- **Templates**: full system, admin dashboard, user dashboard or barebones
- **Databases**: SQLite, PostgreSQL or MySQL through Prisma
- **Auth**: Discord, GitHub, Google, email and password, or none
- **Component Groups**: pick the UI building blocks you need
- **Generators**: add pages, CRUD slices, routers and components later

Quick Start
-----------
```bash
# Install archillesdc
pip install archillesdc

# Create a new project interactively
create-archillesdc-app

# Or with options
archillesdc create my-app --yes --template dashboard --db postgresql
```

Example
-------
>>> from archillesdc import create_project, normalize_options
>>> options = normalize_options("my-app", template="barebones", skip_install=True)
>>> create_project(options).success  # doctest: +SKIP
True

Architecture
------------
The package is organized into these main modules:

- ``cli``: Typer-based command line interface
- ``models``: Pydantic options model and normalization
- ``variants``: Per-option content tables
- ``planner``: Directory planning
- ``units``: Generator units and their outputs
- ``orchestrator``: Concurrent file generation
- ``lifecycle``: Ordered creation steps
- ``verifier``: Final checks and completion marker
- ``scaffold``: ``generate`` sub-commands for existing projects
- ``templates``: Jinja2 templates for generated files
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from archillesdc.lifecycle import create_project, run_lifecycle
from archillesdc.models import ConfigurationError, ProjectOptions, normalize_options


__all__ = [
    "ConfigurationError",
    "ProjectOptions",
    "__version__",
    "create_project",
    "normalize_options",
    "run_lifecycle",
]
