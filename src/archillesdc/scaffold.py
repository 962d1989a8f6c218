"""
archillesdc.scaffold - Code Generators for Existing Projects
============================================================

Backs the ``archillesdc generate`` commands. Each generator renders a few
templates from ``templates/scaffold/`` into a project created by
``create-archillesdc-app``:

    page       src/app/(dashboard)/<route>/{page,loading}.tsx
    api        src/server/api/routers/<model>.ts
    crud       Prisma model + router + list/form components + management page
    module     crud with every part enabled
    component  src/components/<type>/<name>.tsx

Fields
------
CRUD generators take a comma-separated field list, ``name:type`` with an
optional trailing ``?``:

    title:string,price:float,published:boolean,notes:text?

Supported types are listed in ``FIELD_TYPES``. Unknown types are rejected
before anything is written.

Routers are not registered automatically; generators return reminders the
CLI prints after the file list.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import Environment

from archillesdc.models import Database
from archillesdc.renderer import (
    camel_case,
    create_jinja_env,
    kebab_case,
    pascal_case,
    render_template,
    resolve_output_path,
)
from archillesdc.units import WriteOperation
from archillesdc.variants import lookup


# =============================================================================
# Constants
# =============================================================================

@dataclass(frozen=True)
class FieldType:
    """How one field type maps onto Prisma, Zod and TypeScript."""

    prisma: str
    zod: str
    ts: str
    default: str


FIELD_TYPES: dict[str, FieldType] = {
    "string": FieldType("String", "z.string()", "string", '""'),
    "text": FieldType("String", "z.string()", "string", '""'),
    "number": FieldType("Int", "z.number().int()", "number", "0"),
    "float": FieldType("Float", "z.number()", "number", "0"),
    "boolean": FieldType("Boolean", "z.boolean()", "boolean", "false"),
    "date": FieldType("DateTime", "z.coerce.date()", "string", '""'),
    "json": FieldType("Json", "z.unknown()", "string", '""'),
}

COMPONENT_TYPES = ("ui", "layout", "form")

DEFAULT_FIELDS = "name:string"

IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
DATASOURCE_PROVIDER = re.compile(r'datasource\s+\w+\s*\{[^}]*?provider\s*=\s*"(\w+)"', re.DOTALL)


class ScaffoldError(ValueError):
    """Raised when a generator receives input it cannot turn into code."""


# =============================================================================
# Fields and Models
# =============================================================================

def _title_words(value: str) -> str:
    """``createdAt`` -> ``Created At``, ``BlogPost`` -> ``Blog Post``."""
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", value).replace("_", " ")
    return " ".join(word[:1].upper() + word[1:] for word in spaced.split())


@dataclass(frozen=True)
class Field:
    """
    One model field parsed from the ``--fields`` option.

    Attributes
    ----------
    name : str
        Field name, used verbatim in Prisma, Zod and TypeScript.

    type : str
        Key of ``FIELD_TYPES``.

    optional : bool
        Whether the field may be omitted.
    """

    name: str
    type: str
    optional: bool = False

    @property
    def field_type(self) -> FieldType:
        return FIELD_TYPES[self.type]

    @property
    def prisma_type(self) -> str:
        return self.field_type.prisma

    @property
    def zod_type(self) -> str:
        return self.field_type.zod

    @property
    def ts_type(self) -> str:
        return self.field_type.ts

    @property
    def default(self) -> str:
        return self.field_type.default

    @property
    def label(self) -> str:
        return _title_words(self.name)


def parse_fields(value: str) -> list[Field]:
    """
    Parse a ``name:type[?]`` list.

    A missing type means ``string``. Empty entries are ignored.

    Raises
    ------
    ScaffoldError
        On an invalid field name, an unknown type, a duplicate name or an
        empty list.

    Examples
    --------
    >>> [(f.name, f.type, f.optional) for f in parse_fields("title, price:float?")]
    [('title', 'string', False), ('price', 'float', True)]
    """
    fields: list[Field] = []
    seen: set[str] = set()

    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue

        name, _, type_name = entry.partition(":")
        name = name.strip()
        type_name = type_name.strip() or "string"
        optional = type_name.endswith("?")
        type_name = type_name.rstrip("?").strip().lower() or "string"

        if not IDENTIFIER.match(name):
            raise ScaffoldError(f"Invalid field name '{name}'")
        if type_name not in FIELD_TYPES:
            valid = ", ".join(FIELD_TYPES)
            raise ScaffoldError(f"Unknown field type '{type_name}' for '{name}'. Valid types: {valid}")
        if name in seen:
            raise ScaffoldError(f"Duplicate field '{name}'")

        seen.add(name)
        fields.append(Field(name=name, type=type_name, optional=optional))

    if not fields:
        raise ScaffoldError("At least one field is required")

    return fields


def pluralize(word: str) -> str:
    """
    Naive English plural.

    Examples
    --------
    >>> pluralize("category"), pluralize("box"), pluralize("post")
    ('categories', 'boxes', 'posts')
    """
    if word.endswith("y") and word[-2:-1] not in set("aeiou"):
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "ch", "sh")):
        return word + "es"
    return word + "s"


@dataclass(frozen=True)
class ModelSpec:
    """
    Names derived from one ``generate crud`` argument.

    ``name`` is the Prisma model (``BlogPost``), ``var`` the router key and
    Prisma client accessor (``blogPost``), ``file`` the component directory
    and file prefix (``blog-post``).
    """

    name: str
    var: str
    file: str
    fields: list[Field] = field(default_factory=list)

    @property
    def plural(self) -> str:
        return pluralize(self.var)

    @property
    def route(self) -> str:
        return kebab_case(self.plural)

    @property
    def label(self) -> str:
        return _title_words(self.name)

    @property
    def search_field(self) -> str | None:
        """First text-like field, used by the router's ``search`` filter."""
        for f in self.fields:
            if f.type in {"string", "text"}:
                return f.name
        return None

    @property
    def has_boolean(self) -> bool:
        return any(f.type == "boolean" for f in self.fields)


def build_model(name: str, fields: str = DEFAULT_FIELDS) -> ModelSpec:
    """
    Derive model names from ``name`` and parse ``fields``.

    Raises
    ------
    ScaffoldError
        If ``name`` has no usable characters or ``fields`` is invalid.
    """
    model_name = pascal_case(name)
    if not IDENTIFIER.match(model_name):
        raise ScaffoldError(f"Invalid model name '{name}'")

    return ModelSpec(
        name=model_name,
        var=camel_case(name),
        file=kebab_case(model_name),
        fields=parse_fields(fields),
    )


# =============================================================================
# Project Discovery
# =============================================================================

def _depends_on_next(package_json: Path) -> bool:
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return False
    if not isinstance(data, dict):
        return False
    return any("next" in (data.get(key) or {}) for key in ("dependencies", "devDependencies"))


def find_project_root(start: Path | None = None) -> Path:
    """
    Walk up from ``start`` to the nearest Next.js project.

    A directory qualifies when its ``package.json`` lists ``next`` in
    ``dependencies`` or ``devDependencies``.

    Returns
    -------
    Path
        The project root, or ``start`` (default: the working directory) if
        no ancestor qualifies.
    """
    start = (start or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        package_json = directory / "package.json"
        if package_json.is_file() and _depends_on_next(package_json):
            return directory
    return start


def detect_database(root: Path) -> Database:
    """
    Database engine declared by the project's Prisma datasource.

    Falls back to SQLite when the schema is missing or names an engine this
    tool does not generate for.
    """
    schema = root / "prisma" / "schema.prisma"
    if not schema.is_file():
        return Database.SQLITE

    match = DATASOURCE_PROVIDER.search(schema.read_text(encoding="utf-8"))
    if match is None:
        return Database.SQLITE
    try:
        return Database(match.group(1))
    except ValueError:
        return Database.SQLITE


# =============================================================================
# Writing
# =============================================================================

def _write_outputs(root: Path, operations: list[WriteOperation]) -> list[Path]:
    """
    Write ``operations`` under ``root``, creating parent directories.

    Files written before a failure are removed again.
    """
    written: list[Path] = []

    for operation in operations:
        try:
            target = resolve_output_path(root, operation.path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(operation.content, encoding="utf-8")
            written.append(target)
        except Exception as e:
            for path in written:
                if path.exists():
                    path.unlink()
            raise RuntimeError(f"Failed to create {operation.path}: {e}") from e

    return written


def _context(root: Path, **extra: Any) -> dict[str, Any]:
    context: dict[str, Any] = {"db": lookup("database", detect_database(root))}
    context.update(extra)
    return context


@dataclass
class ScaffoldResult:
    """Files a generator wrote and follow-up reminders for the user."""

    files: list[Path] = field(default_factory=list)
    reminders: list[str] = field(default_factory=list)

    def relative_to(self, root: Path) -> list[str]:
        return [path.relative_to(root.resolve()).as_posix() for path in self.files]


# =============================================================================
# Prisma Schema
# =============================================================================

def add_user_relation(schema: str, model: ModelSpec) -> str:
    """
    Add the back-relation for ``model.createdBy`` to the ``User`` model.

    Prisma rejects a relation without its opposite field. The schema is
    returned unchanged if ``User`` is absent or already has one.
    """
    match = re.search(r"^model User \{\n(.*?)^\}", schema, re.DOTALL | re.MULTILINE)
    if match is None:
        return schema

    body = match.group(1)
    if re.search(rf"\b{model.name}\[\]", body):
        return schema

    relation = f"  {model.plural:<13} {model.name}[]\n"
    index = re.search(r"^[ \t]*@@", body, re.MULTILINE)
    insert_at = match.start(1) + (index.start() if index else len(body))

    # Keep a blank line before the @@ block
    if index and body[: index.start()].endswith("\n\n"):
        insert_at -= 1

    return schema[:insert_at] + relation + schema[insert_at:]


def append_prisma_model(root: Path, model: ModelSpec, env: Environment) -> bool:
    """
    Append ``model`` to ``prisma/schema.prisma``.

    Returns
    -------
    bool
        False if a model with that name already exists.

    Raises
    ------
    FileNotFoundError
        If the project has no Prisma schema.
    """
    schema_path = root / "prisma" / "schema.prisma"
    if not schema_path.is_file():
        raise FileNotFoundError(f"No prisma/schema.prisma found at {root}")

    schema = schema_path.read_text(encoding="utf-8")
    if re.search(rf"^model {model.name}\s*\{{", schema, re.MULTILINE):
        return False

    block = render_template(env, "scaffold/model.prisma.j2", _context(root, model=model))
    schema_path.write_text(add_user_relation(schema, model).rstrip("\n") + "\n" + block, encoding="utf-8")
    return True


# =============================================================================
# Generators
# =============================================================================

def generate_page(
    name: str,
    root: Path,
    *,
    route: str | None = None,
    protected: bool = False,
    admin: bool = False,
) -> ScaffoldResult:
    """
    Generate a dashboard page with a loading state.

    Parameters
    ----------
    name : str
        Page name; ``settings-panel`` becomes ``SettingsPanelPage``.

    root : Path
        Project root.

    route : str, optional
        Route segment under ``(dashboard)``. Defaults to the kebab-cased name.

    protected : bool, default=False
        Wrap the page in a ``RoleGuard`` for signed-in users.

    admin : bool, default=False
        Wrap the page in a ``RoleGuard`` requiring the admin role.
    """
    env = create_jinja_env()
    page_name = pascal_case(name)
    route = (route or kebab_case(name)).strip("/")
    guard_role = "admin" if admin else ("user" if protected else None)

    page_dir = f"src/app/(dashboard)/{route}"
    context = _context(root, name=page_name, guard_role=guard_role)
    operations = [
        WriteOperation(f"{page_dir}/page.tsx", render_template(env, "scaffold/page.tsx.j2", context)),
        WriteOperation(f"{page_dir}/loading.tsx", render_template(env, "scaffold/loading.tsx.j2", context)),
    ]

    return ScaffoldResult(files=_write_outputs(root, operations))


def _router_operation(env: Environment, root: Path, model: ModelSpec) -> WriteOperation:
    content = render_template(env, "scaffold/router.ts.j2", _context(root, model=model))
    return WriteOperation(f"src/server/api/routers/{model.var}.ts", content)


def _router_reminders(model: ModelSpec) -> list[str]:
    return [
        "Add the router to src/server/api/root.ts:",
        f'  import {{ {model.var}Router }} from "@/server/api/routers/{model.var}";',
        f"  {model.var}: {model.var}Router,",
    ]


def generate_api(name: str, root: Path, *, fields: str = DEFAULT_FIELDS) -> ScaffoldResult:
    """Generate a tRPC CRUD router for ``name``."""
    env = create_jinja_env()
    model = build_model(name, fields)

    written = _write_outputs(root, [_router_operation(env, root, model)])
    return ScaffoldResult(files=written, reminders=_router_reminders(model))


def generate_crud(
    name: str,
    root: Path,
    *,
    fields: str = DEFAULT_FIELDS,
    page: bool = True,
    api: bool = True,
) -> ScaffoldResult:
    """
    Generate a full CRUD slice for one model.

    Writes, in order: the Prisma model (skipped if it already exists), the
    router, the list and form components with an index, and the
    management page. If any of those writes fails, the files already written
    are removed and the schema is restored before the error propagates.

    Raises
    ------
    ScaffoldError
        If the name or fields are invalid. Nothing is written.
    FileNotFoundError
        If the project has no Prisma schema.
    """
    env = create_jinja_env()
    model = build_model(name, fields)
    context = _context(root, model=model)

    operations: list[WriteOperation] = []
    if api:
        operations.append(_router_operation(env, root, model))

    component_dir = f"src/components/{model.file}"
    operations += [
        WriteOperation(f"{component_dir}/{model.file}-list.tsx", render_template(env, "scaffold/list.tsx.j2", context)),
        WriteOperation(f"{component_dir}/{model.file}-form.tsx", render_template(env, "scaffold/form.tsx.j2", context)),
        WriteOperation(f"{component_dir}/index.ts", render_template(env, "scaffold/components-index.ts.j2", context)),
    ]

    if page:
        operations.append(WriteOperation(
            f"src/app/(dashboard)/{model.route}/page.tsx",
            render_template(env, "scaffold/crud-page.tsx.j2", context),
        ))

    schema_path = root / "prisma" / "schema.prisma"
    original_schema = schema_path.read_text(encoding="utf-8") if schema_path.is_file() else None

    result = ScaffoldResult()
    if append_prisma_model(root, model, env):
        result.files.append(schema_path.resolve())

    try:
        result.files += _write_outputs(root, operations)
    except RuntimeError:
        if original_schema is not None:
            schema_path.write_text(original_schema, encoding="utf-8")
        raise
    result.reminders.append("Run your package manager's db:push script to update the database")
    if api:
        result.reminders += _router_reminders(model)
    return result


def generate_module(name: str, root: Path, *, fields: str = DEFAULT_FIELDS) -> ScaffoldResult:
    """A complete feature module: ``generate_crud`` with page and router."""
    return generate_crud(name, root, fields=fields, page=True, api=True)


def generate_component(name: str, root: Path, *, component_type: str = "ui") -> ScaffoldResult:
    """
    Generate an empty component under ``src/components/<component_type>``.

    Raises
    ------
    ScaffoldError
        If ``component_type`` is not one of ``COMPONENT_TYPES``.
    """
    if component_type not in COMPONENT_TYPES:
        valid = ", ".join(COMPONENT_TYPES)
        raise ScaffoldError(f"Unknown component type '{component_type}'. Valid types: {valid}")

    component_name = pascal_case(name)
    if not IDENTIFIER.match(component_name):
        raise ScaffoldError(f"Invalid component name '{name}'")

    env = create_jinja_env()
    content = render_template(env, "scaffold/component.tsx.j2", _context(root, name=component_name))
    path = f"src/components/{component_type}/{kebab_case(name)}.tsx"

    return ScaffoldResult(files=_write_outputs(root, [WriteOperation(path, content)]))
