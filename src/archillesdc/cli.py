"""
archillesdc.cli - Command Line Interface
========================================

Command-line interface for archillesdc, built with Typer.

Architecture
------------
Two console scripts share one implementation:

    archillesdc (app)
    ├── create       - Create a new project
    └── generate (g) - Add code to an existing project
        ├── page
        ├── crud
        ├── module
        ├── api
        └── component

    create-archillesdc-app (create_app)
        The ``create`` command on its own.

``create`` prompts for anything not given as a flag. ``--yes`` skips the
prompts and uses defaults for the rest, which makes it scriptable.

Usage Examples
--------------
Interactive mode:
    $ create-archillesdc-app

Non-interactive mode:
    $ archillesdc create my-app --yes --template dashboard --db postgresql --pm pnpm

Add a CRUD slice to the current project:
    $ archillesdc g crud product -f "name:string,price:float,active:boolean"

See Also
--------
- models.py: Option normalization
- lifecycle.py: Project creation steps
- scaffold.py: ``generate`` sub-commands
"""

from __future__ import annotations

import shutil
from enum import Enum
from pathlib import Path
from typing import Annotated, NoReturn, TypeVar

import questionary
import typer
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from archillesdc import __version__
from archillesdc.lifecycle import LifecycleResult, create_project
from archillesdc.models import (
    DEFAULT_AUTH_PROVIDER,
    DEFAULT_DATABASE,
    DEFAULT_PACKAGE_MANAGER,
    DEFAULT_TEMPLATE,
    AuthProvider,
    ComponentGroup,
    ConfigurationError,
    Database,
    PackageManager,
    ProjectOptions,
    Template,
    normalize_options,
    validate_package_name,
)
from archillesdc.progress import ConsoleProgressReporter
from archillesdc.scaffold import (
    COMPONENT_TYPES,
    DEFAULT_FIELDS,
    ScaffoldError,
    ScaffoldResult,
    find_project_root,
    generate_api,
    generate_component,
    generate_crud,
    generate_module,
    generate_page,
)
from archillesdc.variants import lookup


E = TypeVar("E", bound=Enum)

DEFAULT_PROJECT_NAME = "my-archillesdc-app"


# =============================================================================
# CLI Application Setup
# =============================================================================

app = typer.Typer(
    name="archillesdc",
    help="Create and manage full-stack Next.js applications.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=True,
)

generate_app = typer.Typer(
    name="generate",
    help="Generate pages, CRUD slices, modules, routers or components.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(generate_app, name="generate")
app.add_typer(generate_app, name="g", help="Alias for [cyan]generate[/].")

# Standalone entry point for `create-archillesdc-app`
create_app = typer.Typer(
    name="create-archillesdc-app",
    help="Create a new full-stack Next.js application.",
    rich_markup_mode="rich",
    add_completion=False,
)

console = Console()


# =============================================================================
# Version Callback
# =============================================================================

def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(Panel(
            f"[bold green]archillesdc[/] version [cyan]{__version__}[/]\n\n"
            f"[dim]Next.js • Tailwind CSS • Prisma • tRPC • NextAuth[/]",
            border_style="green",
        ))
        raise typer.Exit()


VersionOption = Annotated[
    bool | None,
    typer.Option(
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
]


# =============================================================================
# Interactive Prompts
# =============================================================================

def _name_problem(name: str) -> str | bool:
    try:
        validate_package_name(name)
    except ConfigurationError as e:
        return str(e)
    return True


def prompt_project_name(default: str) -> str:
    """
    Prompt for the project name, re-asking until npm accepts it.

    Returns
    -------
    str
        A valid package name.
    """
    result = questionary.text(
        "What is your project name?",
        default=default,
        validate=_name_problem,
    ).ask()

    if result is None:
        raise typer.Abort()

    return result.strip()


def prompt_template() -> Template:
    """
    Interactively prompt for the project template.

    Returns
    -------
    Template
        The selected template.
    """
    choices = [
        questionary.Choice(
            title=f"{t.title:<16} - {t.description}",
            value=t,
        )
        for t in Template
    ]

    result = questionary.select(
        "Choose a template:",
        choices=choices,
        default=DEFAULT_TEMPLATE,
    ).ask()

    if result is None:
        raise typer.Abort()

    return result


def prompt_database() -> Database:
    choices = [questionary.Choice(title=db.description, value=db) for db in Database]

    result = questionary.select(
        "Which database would you like to use?",
        choices=choices,
        default=DEFAULT_DATABASE,
    ).ask()

    if result is None:
        raise typer.Abort()

    return result


def prompt_auth_provider() -> AuthProvider:
    choices = [questionary.Choice(title=ap.description, value=ap) for ap in AuthProvider]

    result = questionary.select(
        "Which authentication provider would you like?",
        choices=choices,
        default=DEFAULT_AUTH_PROVIDER,
    ).ask()

    if result is None:
        raise typer.Abort()

    return result


def prompt_components() -> list[ComponentGroup]:
    """
    Prompt for the component groups to include.

    All groups start checked and at least one must stay selected.
    """
    choices = [
        questionary.Choice(
            title=f"{group.title} ({', '.join(group.components)})",
            value=group,
            checked=True,
        )
        for group in ComponentGroup
    ]

    result = questionary.checkbox(
        "Which component groups do you want to include?",
        choices=choices,
        validate=lambda selected: True if selected else "Please select at least one component group",
    ).ask()

    if result is None:
        raise typer.Abort()

    return result


def prompt_package_manager() -> PackageManager:
    choices = [questionary.Choice(title=pm.value, value=pm) for pm in PackageManager]

    result = questionary.select(
        "Which package manager would you like to use?",
        choices=choices,
        default=DEFAULT_PACKAGE_MANAGER,
    ).ask()

    if result is None:
        raise typer.Abort()

    return result


def prompt_confirm(message: str, default: bool = True) -> bool:
    result = questionary.confirm(message, default=default).ask()

    if result is None:
        raise typer.Abort()

    return result


# =============================================================================
# Helpers
# =============================================================================

def _parse_choice(enum_cls: type[E], label: str, value: str | None) -> E | None:
    """Parse a flag value into ``enum_cls``, exiting on an unknown value."""
    if value is None:
        return None
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        rprint(f"[red]Error:[/] Invalid {label} '{value}'. Valid: {valid}")
        raise typer.Exit(1)


def directory_in_use(path: Path) -> bool:
    """Whether ``path`` exists as a file or a non-empty directory."""
    if not path.exists():
        return False
    return not path.is_dir() or any(path.iterdir())


def remove_existing(path: Path) -> None:
    with console.status(f"Removing existing {path.name}..."):
        if path.is_dir():
            shutil.rmtree(path)
        else:
            path.unlink()
    console.print(f"  [green]✓[/] Removed existing {path.name}")


def print_banner() -> None:
    console.print()
    console.print(Panel(
        "[bold white]Create ArchillesDC App[/]\n"
        "[dim]Next.js • Tailwind CSS • Prisma • tRPC • Auth[/]",
        border_style="cyan",
        expand=False,
    ))
    console.print()


def print_summary(options: ProjectOptions) -> None:
    """Configuration summary shown before anything is written."""
    table = Table(title="Project Configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    groups = sorted(group.value for group in options.components)

    table.add_row("Project", options.project_name)
    table.add_row("Location", str(options.project_path))
    table.add_row("Template", options.template.title)
    table.add_row("Database", lookup("database", options.database).label)
    table.add_row("Auth", lookup("auth", options.auth_provider).label)
    table.add_row("Components", f"{len(groups)} groups ({', '.join(groups)})")
    table.add_row("Package Mgr", options.package_manager.value)
    table.add_row("Examples", "yes" if options.include_example_code else "no")
    table.add_row("Git", "yes" if options.init_git else "no")

    console.print(table)
    console.print()


def print_outcome(options: ProjectOptions, result: LifecycleResult) -> None:
    """Success banner, any step failures with their fixes, and next steps."""
    console.print()

    if result.success:
        console.print(Panel(
            "[bold green]✓ Project created successfully![/]",
            border_style="green",
            expand=False,
        ))
    else:
        lines = []
        for step in result.failed_steps:
            lines.append(f"[red]✗[/] {step.title}: {step.message}")
            if step.hint:
                lines.append(f"    [dim]Fix:[/] [cyan]{step.hint}[/]")
        console.print(Panel(
            "\n".join(lines),
            title="[bold yellow]Project created with warnings[/]",
            border_style="yellow",
        ))

    pm = lookup("package-manager", options.package_manager)
    step = 1

    console.print()
    console.print("[bold]Next steps:[/]")
    console.print()
    console.print(f"  [cyan]{step}.[/] cd {options.project_name}")
    step += 1
    if options.skip_install:
        console.print(f"  [cyan]{step}.[/] Install dependencies: [cyan]{pm.install}[/]")
        step += 1
    console.print(f"  [cyan]{step}.[/] Set up environment variables")
    console.print("     [dim]Copy .env.example to .env and add your secrets[/]")
    step += 1
    console.print(f"  [cyan]{step}.[/] Initialize the database: [cyan]{pm.db_push}[/]")
    step += 1
    console.print(f"  [cyan]{step}.[/] Start the development server: [cyan]{pm.dev}[/]")
    console.print()

    commands = Table(title="Useful commands", show_header=False, box=None)
    commands.add_column("Command", style="cyan")
    commands.add_column("Description", style="dim")
    commands.add_row(pm.dev, "Start dev server")
    commands.add_row(pm.build, "Build for production")
    commands.add_row(pm.db_studio, "Open Prisma Studio")
    commands.add_row(pm.lint, "Run linter")
    console.print(commands)
    console.print()


# =============================================================================
# Main Application Callback
# =============================================================================

@app.callback()
def main(version: VersionOption = None) -> None:
    """
    [bold]archillesdc[/] - Full-stack Next.js project generator.

    Create applications with [cyan]Next.js[/] + [cyan]Prisma[/] +
    [cyan]tRPC[/] + [cyan]NextAuth[/] + [cyan]Tailwind CSS[/].

    [bold]Quick Start:[/]

        archillesdc create my-app

    [bold]Non-interactive:[/]

        archillesdc create my-app --yes --template barebones --auth none
    """
    pass


# =============================================================================
# Create Command
# =============================================================================

@app.command()
def create(
    project_name: Annotated[
        str | None,
        typer.Argument(
            help="Name of the project (also the directory name)",
        ),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip prompts and use defaults",
        ),
    ] = False,
    template: Annotated[
        str | None,
        typer.Option(
            "--template",
            "-t",
            help="Template: full-system, admin, dashboard, barebones",
        ),
    ] = None,
    database: Annotated[
        str | None,
        typer.Option(
            "--db",
            help="Database: sqlite, postgresql, mysql",
        ),
    ] = None,
    auth: Annotated[
        str | None,
        typer.Option(
            "--auth",
            help="Auth provider: discord, github, google, credentials, none",
        ),
    ] = None,
    package_manager: Annotated[
        str | None,
        typer.Option(
            "--pm",
            help="Package manager: npm, pnpm, yarn, bun",
        ),
    ] = None,
    components: Annotated[
        str | None,
        typer.Option(
            "--components",
            "-c",
            help="Comma-separated component groups, e.g. ui-essentials,forms",
        ),
    ] = None,
    no_examples: Annotated[
        bool,
        typer.Option(
            "--no-examples",
            help="Skip example code",
        ),
    ] = False,
    no_install: Annotated[
        bool,
        typer.Option(
            "--no-install",
            help="Skip dependency installation",
        ),
    ] = False,
    no_git: Annotated[
        bool,
        typer.Option(
            "--no-git",
            help="Skip git initialization",
        ),
    ] = False,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing directory without asking",
        ),
    ] = False,
    output_dir: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Directory to create the project in (default: current directory)",
        ),
    ] = None,
    version: VersionOption = None,
) -> None:
    """
    Create a new full-stack project.

    [bold]Examples:[/]

        # Interactive mode
        archillesdc create

        # Defaults, no prompts
        archillesdc create my-app --yes

        # Dashboard on PostgreSQL with pnpm, no install
        archillesdc create my-app -y -t dashboard --db postgresql --pm pnpm --no-install
    """
    print_banner()
    should_prompt = not yes

    # Flags are checked before any prompt is shown
    resolved_template = _parse_choice(Template, "template", template)
    resolved_database = _parse_choice(Database, "database", database)
    resolved_auth = _parse_choice(AuthProvider, "auth provider", auth)
    resolved_pm = _parse_choice(PackageManager, "package manager", package_manager)

    resolved_name: str
    if should_prompt:
        resolved_name = prompt_project_name(project_name or DEFAULT_PROJECT_NAME)
    else:
        resolved_name = project_name or DEFAULT_PROJECT_NAME

    if resolved_template is None and should_prompt:
        resolved_template = prompt_template()
    if resolved_database is None and should_prompt:
        resolved_database = prompt_database()
    if resolved_auth is None and should_prompt:
        resolved_auth = prompt_auth_provider()

    # Selected groups drive both the base and the extended component units
    resolved_components: str | list[ComponentGroup] | None = components
    if components is None and should_prompt:
        resolved_components = prompt_components()

    if resolved_pm is None and should_prompt:
        resolved_pm = prompt_package_manager()

    include_examples: bool | None = False if no_examples else None
    if include_examples is None and should_prompt:
        include_examples = prompt_confirm("Include example code and demo pages?")

    init_git: bool | None = False if no_git else None
    if init_git is None and should_prompt:
        init_git = prompt_confirm("Initialize a Git repository?")

    try:
        options = normalize_options(
            resolved_name,
            output_dir=output_dir,
            template=resolved_template,
            database=resolved_database,
            auth_provider=resolved_auth,
            include_example_code=include_examples,
            package_manager=resolved_pm,
            components=resolved_components,
            component_groups=resolved_components,
            init_git=init_git,
            skip_install=no_install,
        )
    except ConfigurationError as e:
        rprint(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    # Existing directory
    if directory_in_use(options.project_path):
        if not force:
            if not should_prompt:
                rprint(
                    f"[red]Error:[/] Directory '{options.project_path}' already exists. "
                    f"Use --force to overwrite."
                )
                raise typer.Exit(1)
            if not prompt_confirm(
                f"Directory {options.project_name} already exists. Overwrite?", default=False
            ):
                rprint("[red]✖ Operation cancelled[/]")
                raise typer.Exit(1)
        remove_existing(options.project_path)

    print_summary(options)

    result = create_project(options, ConsoleProgressReporter(console))

    if result.fatal:
        failure = result.failed_steps[0]
        rprint(f"[red]Error:[/] {failure.title} failed: {failure.message}")
        raise typer.Exit(1)

    print_outcome(options, result)


create_app.command(name="create-archillesdc-app")(create)


# =============================================================================
# Generate Commands
# =============================================================================

def _report(what: str, result: ScaffoldResult, root: Path) -> None:
    files = result.relative_to(root)
    console.print(Panel(
        f"[bold green]Generated {what}[/]\n\n"
        f"{len(files)} file(s):\n" + "\n".join(f"  - {f}" for f in files),
        title="[bold]Success[/]",
        border_style="green",
    ))

    if result.reminders:
        console.print()
        console.print("[yellow]Don't forget to:[/]")
        for reminder in result.reminders:
            console.print(f"  [dim]{reminder}[/]")


def _fail(what: str, error: Exception) -> NoReturn:
    rprint(f"[red]Error:[/] Failed to generate {what}: {error}")
    raise typer.Exit(1)


FieldsOption = Annotated[
    str,
    typer.Option(
        "--fields",
        "-f",
        help="Fields, e.g. 'name:string,price:float,active:boolean,notes:text?'",
    ),
]


@generate_app.command()
def page(
    name: Annotated[str, typer.Argument(help="Page name")],
    route: Annotated[
        str | None,
        typer.Option("--route", "-r", help="Custom route path"),
    ] = None,
    protected: Annotated[
        bool,
        typer.Option("--protected", "-p", help="Require a signed-in user"),
    ] = False,
    admin: Annotated[
        bool,
        typer.Option("--admin", "-a", help="Require the admin role"),
    ] = False,
) -> None:
    """Generate a dashboard page with a loading state."""
    root = find_project_root()
    try:
        result = generate_page(name, root, route=route, protected=protected, admin=admin)
    except (ScaffoldError, RuntimeError, OSError) as e:
        _fail(f"page {name}", e)
    _report(f"page {name}", result, root)


@generate_app.command()
def crud(
    name: Annotated[str, typer.Argument(help="Model name")],
    fields: FieldsOption = DEFAULT_FIELDS,
    no_page: Annotated[
        bool,
        typer.Option("--no-page", help="Skip page generation"),
    ] = False,
    no_api: Annotated[
        bool,
        typer.Option("--no-api", help="Skip router generation"),
    ] = False,
) -> None:
    """
    Generate full CRUD: Prisma model, tRPC router, components and page.

    [bold]Example:[/]

        archillesdc g crud product -f "name:string,price:float,active:boolean"
    """
    root = find_project_root()
    try:
        result = generate_crud(name, root, fields=fields, page=not no_page, api=not no_api)
    except (ScaffoldError, RuntimeError, OSError) as e:
        _fail(f"CRUD for {name}", e)
    _report(f"CRUD for {name}", result, root)


@generate_app.command()
def module(
    name: Annotated[str, typer.Argument(help="Module name")],
    fields: FieldsOption = DEFAULT_FIELDS,
) -> None:
    """Generate a complete feature module (CRUD with page and router)."""
    root = find_project_root()
    try:
        result = generate_module(name, root, fields=fields)
    except (ScaffoldError, RuntimeError, OSError) as e:
        _fail(f"module {name}", e)
    _report(f"module {name}", result, root)


@generate_app.command()
def api(
    name: Annotated[str, typer.Argument(help="Router name")],
    fields: FieldsOption = DEFAULT_FIELDS,
) -> None:
    """Generate a tRPC router with CRUD procedures."""
    root = find_project_root()
    try:
        result = generate_api(name, root, fields=fields)
    except (ScaffoldError, RuntimeError, OSError) as e:
        _fail(f"API router {name}", e)
    _report(f"API router {name}", result, root)


@generate_app.command()
def component(
    name: Annotated[str, typer.Argument(help="Component name")],
    component_type: Annotated[
        str,
        typer.Option("--type", "-t", help=f"Component type: {', '.join(COMPONENT_TYPES)}"),
    ] = "ui",
) -> None:
    """Generate a React component."""
    root = find_project_root()
    try:
        result = generate_component(name, root, component_type=component_type)
    except (ScaffoldError, RuntimeError, OSError) as e:
        _fail(f"component {name}", e)
    _report(f"component {name}", result, root)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    app()
