"""
Tests for archillesdc.scaffold
==============================

Tests for the ``generate`` code generators run against an existing project.

Test Organization
-----------------
- TestParseFields: Field list parsing and rejection
- TestModelNames: Derived names and pluralization
- TestProjectDiscovery: Root and database detection
- TestPrismaSchema: Model append and User back-relation
- TestGenerators: page, api, crud, module and component
"""

import json
from pathlib import Path

import pytest

from archillesdc.models import Database
from archillesdc.renderer import create_jinja_env
from archillesdc.scaffold import (
    ScaffoldError,
    add_user_relation,
    append_prisma_model,
    build_model,
    detect_database,
    find_project_root,
    generate_api,
    generate_component,
    generate_crud,
    generate_module,
    generate_page,
    parse_fields,
    pluralize,
)


# =============================================================================
# Field Parsing Tests
# =============================================================================

class TestParseFields:
    """Tests for parse_fields."""

    def test_types_and_optional(self) -> None:
        fields = parse_fields("title:string, price:float, published:boolean?, notes:text")

        assert [(f.name, f.type, f.optional) for f in fields] == [
            ("title", "string", False),
            ("price", "float", False),
            ("published", "boolean", True),
            ("notes", "text", False),
        ]

    def test_missing_type_is_string(self) -> None:
        assert parse_fields("title")[0].type == "string"

    def test_optional_without_type(self) -> None:
        field = parse_fields("nickname:?")[0]
        assert (field.type, field.optional) == ("string", True)

    def test_type_mapping(self) -> None:
        count, due = parse_fields("count:number,due:date")

        assert (count.prisma_type, count.zod_type, count.ts_type) == ("Int", "z.number().int()", "number")
        assert due.prisma_type == "DateTime"

    def test_label(self) -> None:
        assert parse_fields("createdOn:date")[0].label == "Created On"

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ScaffoldError, match="Unknown field type 'money' for 'price'"):
            parse_fields("price:money")

    @pytest.mark.parametrize("value", ["", " , ", "1st:string", "my field:string"])
    def test_invalid_lists_rejected(self, value: str) -> None:
        with pytest.raises(ScaffoldError):
            parse_fields(value)

    def test_duplicate_rejected(self) -> None:
        with pytest.raises(ScaffoldError, match="Duplicate field 'title'"):
            parse_fields("title,title:text")


# =============================================================================
# Model Name Tests
# =============================================================================

class TestModelNames:
    """Tests for build_model and pluralize."""

    @pytest.mark.parametrize(
        ("word", "plural"),
        [("post", "posts"), ("category", "categories"), ("box", "boxes"), ("day", "days"), ("match", "matches")],
    )
    def test_pluralize(self, word: str, plural: str) -> None:
        assert pluralize(word) == plural

    @pytest.mark.parametrize("name", ["blog-post", "blog_post", "BlogPost"])
    def test_names(self, name: str) -> None:
        model = build_model(name)

        assert model.name == "BlogPost"
        assert model.var == "blogPost"
        assert model.file == "blog-post"
        assert model.plural == "blogPosts"
        assert model.route == "blog-posts"

    def test_search_field_is_first_text_field(self) -> None:
        assert build_model("item", "count:number,title:string").search_field == "title"
        assert build_model("item", "count:number").search_field is None

    def test_invalid_name(self) -> None:
        with pytest.raises(ScaffoldError, match="Invalid model name"):
            build_model("1-item")


# =============================================================================
# Discovery Tests
# =============================================================================

class TestProjectDiscovery:
    """Tests for find_project_root and detect_database."""

    def test_walks_up_to_next_project(self, next_project: Path) -> None:
        nested = next_project / "src" / "app"
        nested.mkdir(parents=True)

        assert find_project_root(nested) == next_project.resolve()

    def test_ignores_non_next_package(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text(json.dumps({"dependencies": {"express": "^4"}}))

        assert find_project_root(tmp_path) == tmp_path.resolve()

    def test_dev_dependency_counts(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text(json.dumps({"devDependencies": {"next": "^15"}}))
        child = tmp_path / "child"
        child.mkdir()

        assert find_project_root(child) == tmp_path.resolve()

    def test_invalid_package_json_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("{broken")
        assert find_project_root(tmp_path) == tmp_path.resolve()

    def test_detects_datasource(self, next_project: Path) -> None:
        assert detect_database(next_project) is Database.POSTGRESQL

    def test_missing_schema_means_sqlite(self, tmp_path: Path) -> None:
        assert detect_database(tmp_path) is Database.SQLITE


# =============================================================================
# Prisma Schema Tests
# =============================================================================

class TestPrismaSchema:
    """Tests for add_user_relation and append_prisma_model."""

    def test_relation_inserted_before_index_block(self, next_project: Path) -> None:
        schema = (next_project / "prisma" / "schema.prisma").read_text()

        updated = add_user_relation(schema, build_model("product"))

        assert "  posts         Post[]\n  products      Product[]\n\n  @@index([name])" in updated

    def test_relation_not_duplicated(self, next_project: Path) -> None:
        schema = (next_project / "prisma" / "schema.prisma").read_text()
        model = build_model("product")

        once = add_user_relation(schema, model)

        assert add_user_relation(once, model) == once

    def test_no_user_model(self) -> None:
        schema = 'datasource db {\n  provider = "sqlite"\n}\n'
        assert add_user_relation(schema, build_model("product")) == schema

    def test_append_model(self, next_project: Path) -> None:
        model = build_model("product", "title:string,description:text?")

        assert append_prisma_model(next_project, model, create_jinja_env()) is True

        schema = (next_project / "prisma" / "schema.prisma").read_text()
        assert "model Product {" in schema
        assert "String? @db.Text" in schema
        assert "createdBy   User?" in schema

    def test_existing_model_left_alone(self, next_project: Path) -> None:
        env = create_jinja_env()
        model = build_model("product")
        append_prisma_model(next_project, model, env)
        before = (next_project / "prisma" / "schema.prisma").read_text()

        assert append_prisma_model(next_project, model, env) is False
        assert (next_project / "prisma" / "schema.prisma").read_text() == before

    def test_missing_schema(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            append_prisma_model(tmp_path, build_model("product"), create_jinja_env())


# =============================================================================
# Generator Tests
# =============================================================================

class TestGenerators:
    """Tests for the generate_* functions."""

    def test_page(self, next_project: Path) -> None:
        result = generate_page("settings-panel", next_project)

        assert result.relative_to(next_project) == [
            "src/app/(dashboard)/settings-panel/page.tsx",
            "src/app/(dashboard)/settings-panel/loading.tsx",
        ]
        page = (next_project / "src/app/(dashboard)/settings-panel/page.tsx").read_text()
        assert "export default function SettingsPanelPage()" in page
        assert "RoleGuard" not in page

    def test_admin_page_guarded(self, next_project: Path) -> None:
        generate_page("reports", next_project, route="admin/reports", admin=True)

        page = (next_project / "src/app/(dashboard)/admin/reports/page.tsx").read_text()
        assert 'requiredRole="admin"' in page

    def test_protected_page_guarded(self, next_project: Path) -> None:
        generate_page("profile", next_project, protected=True)

        page = (next_project / "src/app/(dashboard)/profile/page.tsx").read_text()
        assert 'requiredRole="user"' in page

    def test_api(self, next_project: Path) -> None:
        result = generate_api("blog-post", next_project, fields="title:string")

        assert result.relative_to(next_project) == ["src/server/api/routers/blogPost.ts"]
        router = result.files[0].read_text()
        assert "export const blogPostRouter" in router
        assert 'mode: "insensitive"' in router
        assert any("blogPost: blogPostRouter," in line for line in result.reminders)

    def test_crud(self, next_project: Path) -> None:
        result = generate_crud("product", next_project, fields="title:string,price:float,active:boolean")

        assert result.relative_to(next_project) == [
            "prisma/schema.prisma",
            "src/server/api/routers/product.ts",
            "src/components/product/product-list.tsx",
            "src/components/product/product-form.tsx",
            "src/components/product/index.ts",
            "src/app/(dashboard)/products/page.tsx",
        ]
        schema = (next_project / "prisma" / "schema.prisma").read_text()
        assert "products      Product[]" in schema
        assert any("db:push" in reminder for reminder in result.reminders)

    def test_crud_without_page_or_api(self, next_project: Path) -> None:
        result = generate_crud("product", next_project, page=False, api=False)

        written = result.relative_to(next_project)
        assert "src/server/api/routers/product.ts" not in written
        assert not any(path.startswith("src/app") for path in written)
        assert not any("root.ts" in reminder for reminder in result.reminders)

    def test_crud_invalid_fields_write_nothing(self, next_project: Path) -> None:
        before = (next_project / "prisma" / "schema.prisma").read_text()

        with pytest.raises(ScaffoldError):
            generate_crud("product", next_project, fields="price:money")

        assert (next_project / "prisma" / "schema.prisma").read_text() == before
        assert not (next_project / "src").exists()

    def test_module_is_full_crud(self, next_project: Path) -> None:
        result = generate_module("order", next_project, fields="total:float")

        written = result.relative_to(next_project)
        assert "src/server/api/routers/order.ts" in written
        assert "src/app/(dashboard)/orders/page.tsx" in written

    def test_component(self, next_project: Path) -> None:
        result = generate_component("UserCard", next_project, component_type="layout")

        assert result.relative_to(next_project) == ["src/components/layout/user-card.tsx"]
        assert "export function UserCard(" in result.files[0].read_text()

    def test_component_type_rejected(self, next_project: Path) -> None:
        with pytest.raises(ScaffoldError, match="Unknown component type 'widget'"):
            generate_component("card", next_project, component_type="widget")

    def test_write_failure_cleans_up(self, next_project: Path) -> None:
        # A file where the component directory should be
        (next_project / "src" / "components").mkdir(parents=True)
        (next_project / "src" / "components" / "ui").write_text("in the way")

        with pytest.raises(RuntimeError, match="Failed to create src/components/ui/card.tsx"):
            generate_component("card", next_project)

    def test_crud_write_failure_restores_schema(self, next_project: Path) -> None:
        schema_path = next_project / "prisma" / "schema.prisma"
        before = schema_path.read_text()
        # A file where the component directory should be
        (next_project / "src" / "components").mkdir(parents=True)
        (next_project / "src" / "components" / "product").write_text("in the way")

        with pytest.raises(RuntimeError, match="Failed to create src/components/product/"):
            generate_crud("product", next_project, fields="title:string")

        assert schema_path.read_text() == before
        assert not (next_project / "src" / "server" / "api" / "routers" / "product.ts").exists()

    def test_crud_retry_after_failure(self, next_project: Path) -> None:
        blocker = next_project / "src" / "components" / "product"
        blocker.parent.mkdir(parents=True)
        blocker.write_text("in the way")
        with pytest.raises(RuntimeError):
            generate_crud("product", next_project)
        blocker.unlink()

        result = generate_crud("product", next_project)

        assert "prisma/schema.prisma" in result.relative_to(next_project)
        assert (next_project / "prisma" / "schema.prisma").read_text().count("model Product {") == 1
