"""
archillesdc.models - Pydantic Models for Project Options
========================================================

This module defines the configuration value that flows through every part of
the generation pipeline. We use Pydantic so that:

1. **Validation** happens once, before any file is touched
2. **Immutability** is enforced (the model is frozen for the whole run)
3. **Serialization** of the completion marker comes for free

Architecture Notes
------------------
The models are organized as:

    ProjectOptions (main, frozen)
    ├── Template (enum)
    ├── Database (enum)
    ├── AuthProvider (enum)
    ├── PackageManager (enum)
    └── ComponentGroup (enum, used as sets)

``normalize_options`` is the single place where missing values receive their
defaults. Generators never fall back to defaults on their own; they receive a
fully resolved ``ProjectOptions``.

Usage Example
-------------
>>> from archillesdc.models import normalize_options
>>> options = normalize_options("my-app", template="barebones", auth_provider="none")
>>> options.template.value
'barebones'
>>> options.package_manager.value
'npm'
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


# =============================================================================
# Errors
# =============================================================================

class ConfigurationError(ValueError):
    """
    Raised when the options cannot describe a valid project.

    Configuration errors are always fatal and are raised before any
    filesystem activity takes place.
    """


# =============================================================================
# Enumerations
# =============================================================================

class Template(str, Enum):
    """
    Top-level project shape.

    The template decides which directories are planned and which optional
    generator units (admin pages, dashboard, register page) run.

    Attributes
    ----------
    FULL_SYSTEM : str
        Everything: auth, dashboard, admin panel, settings, charts.

    ADMIN : str
        Admin panel focused on data management.

    DASHBOARD : str
        User dashboard with widgets and settings.

    BAREBONES : str
        Minimal setup with a home page and login only.

    Examples
    --------
    >>> Template.ADMIN.has_admin_panel
    True
    >>> Template.DASHBOARD.title
    'Dashboard'
    """

    FULL_SYSTEM = "full-system"
    ADMIN = "admin"
    DASHBOARD = "dashboard"
    BAREBONES = "barebones"

    @property
    def title(self) -> str:
        """Display name used in summaries and the generated README."""
        titles = {
            Template.FULL_SYSTEM: "Full System",
            Template.ADMIN: "Admin Dashboard",
            Template.DASHBOARD: "Dashboard",
            Template.BAREBONES: "Barebones",
        }
        return titles[self]

    @property
    def description(self) -> str:
        """
        Human-readable description for CLI prompts.

        Returns
        -------
        str
            A short description of what the template creates.
        """
        descriptions = {
            Template.FULL_SYSTEM: "Complete system with auth, dashboard, admin panel, and all features",
            Template.ADMIN: "Admin panel with data management, tables, and analytics",
            Template.DASHBOARD: "User dashboard with widgets and settings",
            Template.BAREBONES: "Minimal setup with just the essentials",
        }
        return descriptions[self]

    @property
    def has_admin_panel(self) -> bool:
        """Whether admin routes, router and Prisma models are generated."""
        return self in {Template.FULL_SYSTEM, Template.ADMIN}

    @property
    def has_register_page(self) -> bool:
        """Whether a registration page is generated."""
        return self in {Template.FULL_SYSTEM, Template.DASHBOARD}


class Database(str, Enum):
    """
    Database engine for the generated Prisma schema.

    The database only changes connection strings and schema details. It
    never changes which generators run.
    """

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"

    @property
    def description(self) -> str:
        """Human-readable description for CLI prompts."""
        descriptions = {
            Database.SQLITE: "SQLite (file-based, zero setup)",
            Database.POSTGRESQL: "PostgreSQL (recommended for production)",
            Database.MYSQL: "MySQL",
        }
        return descriptions[self]

    @property
    def supports_text_columns(self) -> bool:
        """Whether Prisma accepts the ``@db.Text`` native type annotation."""
        return self in {Database.POSTGRESQL, Database.MYSQL}


class AuthProvider(str, Enum):
    """
    Authentication provider wired into NextAuth.

    ``NONE`` still produces a complete, buildable auth layer; it simply
    registers no providers.
    """

    DISCORD = "discord"
    GITHUB = "github"
    GOOGLE = "google"
    CREDENTIALS = "credentials"
    NONE = "none"

    @property
    def description(self) -> str:
        """Human-readable description for CLI prompts."""
        descriptions = {
            AuthProvider.DISCORD: "Discord OAuth",
            AuthProvider.GITHUB: "GitHub OAuth",
            AuthProvider.GOOGLE: "Google OAuth",
            AuthProvider.CREDENTIALS: "Email & password (bcrypt)",
            AuthProvider.NONE: "No authentication provider",
        }
        return descriptions[self]

    @property
    def is_oauth(self) -> bool:
        """Whether the provider signs in through an OAuth button."""
        return self in {AuthProvider.DISCORD, AuthProvider.GITHUB, AuthProvider.GOOGLE}


class PackageManager(str, Enum):
    """Package manager whose commands are emitted and executed."""

    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"
    BUN = "bun"


class ComponentGroup(str, Enum):
    """
    Optional UI component groups.

    Each group maps to one component generator unit. ``UI_ESSENTIALS`` is
    always generated because every page depends on it.
    """

    UI_ESSENTIALS = "ui-essentials"
    FEEDBACK = "feedback"
    NAVIGATION = "navigation"
    DATA_DISPLAY = "data-display"
    FORMS = "forms"
    LAYOUT = "layout"

    @property
    def title(self) -> str:
        """Display name for prompts."""
        return self.value.replace("-", " ").title()

    @property
    def components(self) -> tuple[str, ...]:
        """
        Names of the components in this group.

        Returns
        -------
        tuple[str, ...]
            Component names shown in prompts and the README.
        """
        members = {
            ComponentGroup.UI_ESSENTIALS: ("Button", "Input", "Card", "Badge", "Avatar"),
            ComponentGroup.FEEDBACK: ("Toast", "Modal", "Alert", "Tooltip", "Popover"),
            ComponentGroup.NAVIGATION: ("Sidebar", "Header", "Navbar", "Breadcrumbs", "Tabs"),
            ComponentGroup.DATA_DISPLAY: ("Table", "DataGrid", "List", "Stats", "Charts"),
            ComponentGroup.FORMS: ("Select", "Checkbox", "Radio", "Switch", "Textarea", "DatePicker"),
            ComponentGroup.LAYOUT: ("Container", "Grid", "Divider", "Spacer"),
        }
        return members[self]


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_TEMPLATE = Template.FULL_SYSTEM
DEFAULT_DATABASE = Database.SQLITE
DEFAULT_AUTH_PROVIDER = AuthProvider.DISCORD
DEFAULT_PACKAGE_MANAGER = PackageManager.NPM

DEFAULT_COMPONENTS: frozenset[ComponentGroup] = frozenset({
    ComponentGroup.UI_ESSENTIALS,
    ComponentGroup.FEEDBACK,
    ComponentGroup.NAVIGATION,
    ComponentGroup.FORMS,
    ComponentGroup.LAYOUT,
})
DEFAULT_COMPONENT_GROUPS: frozenset[ComponentGroup] = frozenset(ComponentGroup)

# Names npm refuses outright
RESERVED_NAMES = frozenset({"node_modules", "favicon.ico"})
MAX_NAME_LENGTH = 214
NAME_PATTERN = re.compile(r"^[a-z0-9~-][a-z0-9._~-]*$")


def validate_package_name(name: str) -> str:
    """
    Check a project name against npm package-name rules.

    Parameters
    ----------
    name : str
        Candidate project name.

    Returns
    -------
    str
        The name, unchanged.

    Raises
    ------
    ConfigurationError
        With a message describing the first rule the name breaks.

    Examples
    --------
    >>> validate_package_name("my-app")
    'my-app'
    >>> validate_package_name("MyApp")
    Traceback (most recent call last):
    ...
    archillesdc.models.ConfigurationError: Invalid project name 'MyApp': name can no longer contain capital letters
    """
    problem: str | None = None

    if not name:
        problem = "name length must be greater than zero"
    elif name != name.strip():
        problem = "name cannot contain leading or trailing spaces"
    elif name.startswith("."):
        problem = "name cannot start with a period"
    elif name.startswith("_"):
        problem = "name cannot start with an underscore"
    elif name.lower() in RESERVED_NAMES:
        problem = f"{name} is not a valid package name"
    elif len(name) > MAX_NAME_LENGTH:
        problem = f"name can no longer contain more than {MAX_NAME_LENGTH} characters"
    elif name != name.lower():
        problem = "name can no longer contain capital letters"
    elif not NAME_PATTERN.match(name):
        problem = "name can only contain URL-friendly characters"

    if problem is not None:
        msg = f"Invalid project name '{name}': {problem}"
        raise ConfigurationError(msg)

    return name


# =============================================================================
# Main Options Model
# =============================================================================

class ProjectOptions(BaseModel):
    """
    Complete, validated options for one generation run.

    The model is frozen: once built it is shared by reference with the
    planner, every generator unit, the lifecycle runner and the verifier,
    and none of them can change it.

    Attributes
    ----------
    project_name : str
        npm-compatible package name, also used as the directory name.

    project_path : Path
        Absolute path of the project root.

    template : Template
        Project shape.

    database : Database
        Prisma datasource provider.

    auth_provider : AuthProvider
        NextAuth provider.

    include_example_code : bool
        Generate the example post router, form and list.

    package_manager : PackageManager
        Package manager used for install and Prisma client generation.

    components : frozenset[ComponentGroup]
        Component groups whose generator units run.

    component_groups : frozenset[ComponentGroup]
        Groups that additionally get the extended data-display and forms
        components.

    init_git : bool
        Initialize a git repository after generation.

    skip_install : bool
        Skip dependency installation and Prisma client generation.

    Examples
    --------
    >>> options = ProjectOptions(project_name="demo", project_path=Path("/tmp/demo"))
    >>> options.template
    <Template.FULL_SYSTEM: 'full-system'>
    """

    model_config = ConfigDict(frozen=True)

    project_name: Annotated[str, Field(
        description="npm package name of the generated project",
        min_length=1,
        max_length=MAX_NAME_LENGTH,
    )]
    project_path: Path = Field(
        description="Absolute path of the generated project",
    )
    template: Template = Field(default=DEFAULT_TEMPLATE)
    database: Database = Field(default=DEFAULT_DATABASE)
    auth_provider: AuthProvider = Field(default=DEFAULT_AUTH_PROVIDER)
    include_example_code: bool = Field(default=True)
    package_manager: PackageManager = Field(default=DEFAULT_PACKAGE_MANAGER)
    components: frozenset[ComponentGroup] = Field(default=DEFAULT_COMPONENTS)
    component_groups: frozenset[ComponentGroup] = Field(default=DEFAULT_COMPONENT_GROUPS)
    init_git: bool = Field(default=True)
    skip_install: bool = Field(default=False)

    @field_validator("project_name")
    @classmethod
    def validate_project_name(cls, v: str) -> str:
        """Apply npm package-name rules."""
        return validate_package_name(v)

    @field_validator("project_path")
    @classmethod
    def validate_project_path(cls, v: Path) -> Path:
        """Project paths are always stored absolute."""
        return v.expanduser().resolve()

    def has_components(self, group: ComponentGroup) -> bool:
        """Whether the component generator unit for ``group`` runs."""
        return group in self.components

    def has_component_group(self, group: ComponentGroup) -> bool:
        """Whether the extended generator for ``group`` runs."""
        return group in self.component_groups

    def marker_fields(self) -> dict[str, str]:
        """
        Option values recorded in the completion marker.

        Returns
        -------
        dict[str, str]
            ``projectName``, ``template``, ``database`` and ``authProvider``.
        """
        return {
            "projectName": self.project_name,
            "template": self.template.value,
            "database": self.database.value,
            "authProvider": self.auth_provider.value,
        }


# =============================================================================
# Normalization
# =============================================================================

def _coerce(enum_cls: type[Enum], field_name: str, value: Any, default: Enum) -> Enum:
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        msg = f"Invalid {field_name} '{value}'. Valid: {valid}"
        raise ConfigurationError(msg) from None


def _coerce_groups(
    field_name: str,
    values: Any,
    default: frozenset[ComponentGroup],
) -> frozenset[ComponentGroup]:
    if values is None:
        return default
    if isinstance(values, str):
        values = values.split(",")
    groups: set[ComponentGroup] = set()
    for value in values:
        if isinstance(value, str):
            value = value.strip()
        if not value:
            continue
        groups.add(_coerce(ComponentGroup, field_name, value, ComponentGroup.UI_ESSENTIALS))
    return frozenset(groups)


def normalize_options(
    project_name: str,
    *,
    project_path: Path | str | None = None,
    output_dir: Path | str | None = None,
    template: Template | str | None = None,
    database: Database | str | None = None,
    auth_provider: AuthProvider | str | None = None,
    include_example_code: bool | None = None,
    package_manager: PackageManager | str | None = None,
    components: Any = None,
    component_groups: Any = None,
    init_git: bool | None = None,
    skip_install: bool | None = None,
) -> ProjectOptions:
    """
    Build a fully resolved ``ProjectOptions`` from raw user input.

    This is the only place defaults are applied. ``None`` or empty values
    fall back to the documented defaults; any other value must name a
    member of its enumeration.

    Parameters
    ----------
    project_name : str
        Requested project name. Validated before the path is derived.

    project_path : Path | str | None
        Explicit project path. Defaults to ``output_dir / project_name``.

    output_dir : Path | str | None
        Parent directory used when ``project_path`` is not given.
        Defaults to the current working directory.

    template, database, auth_provider, package_manager
        Enum members or their string values.

    include_example_code, init_git, skip_install : bool | None
        Flags; ``None`` means "use the default".

    components, component_groups
        Iterables of group ids or a comma-separated string.

    Returns
    -------
    ProjectOptions
        Frozen, validated options.

    Raises
    ------
    ConfigurationError
        If the name is invalid or a value is not a known enum member.
    """
    name = validate_package_name(project_name or "")

    if project_path is None:
        base = Path(output_dir) if output_dir is not None else Path.cwd()
        project_path = base / name

    try:
        return ProjectOptions(
            project_name=name,
            project_path=Path(project_path),
            template=_coerce(Template, "template", template, DEFAULT_TEMPLATE),
            database=_coerce(Database, "database", database, DEFAULT_DATABASE),
            auth_provider=_coerce(AuthProvider, "auth provider", auth_provider, DEFAULT_AUTH_PROVIDER),
            include_example_code=True if include_example_code is None else include_example_code,
            package_manager=_coerce(
                PackageManager, "package manager", package_manager, DEFAULT_PACKAGE_MANAGER
            ),
            components=_coerce_groups("component group", components, DEFAULT_COMPONENTS),
            component_groups=_coerce_groups(
                "component group", component_groups, DEFAULT_COMPONENT_GROUPS
            ),
            init_git=True if init_git is None else init_git,
            skip_install=False if skip_install is None else skip_install,
        )
    except ValidationError as e:
        error = e.errors()[0]
        cause = error.get("ctx", {}).get("error")
        raise ConfigurationError(str(cause) if cause else error["msg"]) from e
