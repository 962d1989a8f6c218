"""
Tests for archillesdc.renderer
==============================

Test Organization
-----------------
- TestCaseFilters: pascal/camel/kebab conversion
- TestJinjaEnvironment: Environment settings and strict undefined
- TestWriteFile: Writing under the project root
"""

import pytest
from pathlib import Path

from jinja2 import UndefinedError

from archillesdc import __version__
from archillesdc.commands import get_prisma_generate_command
from archillesdc.models import PackageManager, Template
from archillesdc.renderer import (
    PathEscapeError,
    build_context,
    camel_case,
    create_jinja_env,
    kebab_case,
    pascal_case,
    render_template,
    resolve_output_path,
    write_file,
)


# =============================================================================
# Filter Tests
# =============================================================================

class TestCaseFilters:
    """Tests for the case conversion filters."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("blog-post", "BlogPost"), ("blog_post", "BlogPost"), ("user", "User"), ("a b", "AB")],
    )
    def test_pascal_case(self, value: str, expected: str) -> None:
        assert pascal_case(value) == expected

    def test_camel_case(self) -> None:
        assert camel_case("blog-post") == "blogPost"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("BlogPost", "blog-post"), ("blog_post", "blog-post"), ("UserCard", "user-card")],
    )
    def test_kebab_case(self, value: str, expected: str) -> None:
        assert kebab_case(value) == expected


# =============================================================================
# Environment Tests
# =============================================================================

class TestJinjaEnvironment:
    """Tests for create_jinja_env and render_template."""

    def test_filters_registered(self) -> None:
        env = create_jinja_env()
        template = env.from_string("{{ 'blog-post' | pascal_case }} {{ 'BlogPost' | kebab_case }}")

        assert template.render() == "BlogPost blog-post"

    def test_undefined_raises(self) -> None:
        env = create_jinja_env()

        with pytest.raises(UndefinedError):
            env.from_string("{{ missing }}").render()

    def test_no_autoescape(self) -> None:
        env = create_jinja_env()
        assert env.from_string("{{ value }}").render(value="<a & b>") == "<a & b>"

    def test_keeps_trailing_newline(self) -> None:
        env = create_jinja_env()
        assert env.from_string("line\n").render() == "line\n"

    def test_build_context(self, make_options) -> None:
        options = make_options(database="postgresql")

        context = build_context(options, groups={})

        assert context["options"] is options
        assert context["generator_version"] == __version__
        assert context["db"].prisma_provider == "postgresql"
        assert context["groups"] == {}

    def test_render_packaged_template(self, make_options) -> None:
        options = make_options()
        env = create_jinja_env()

        content = render_template(env, "base/README.md.j2", build_context(options, groups={}))

        assert "demo-app" in content

    def test_readme_follows_template_and_package_manager(self, make_options) -> None:
        options = make_options(template="admin", package_manager="pnpm")
        context = build_context(options, groups={})

        content = render_template(create_jinja_env(), "base/README.md.j2", context)

        assert Template.ADMIN.description in content
        assert get_prisma_generate_command(PackageManager.PNPM) in content


# =============================================================================
# Writing Tests
# =============================================================================

class TestWriteFile:
    """Tests for resolve_output_path and write_file."""

    def test_resolves_inside_root(self, tmp_path: Path) -> None:
        assert resolve_output_path(tmp_path, "src/app/page.tsx") == tmp_path.resolve() / "src/app/page.tsx"

    def test_escape_refused(self, tmp_path: Path) -> None:
        with pytest.raises(PathEscapeError, match="outside the project root"):
            resolve_output_path(tmp_path, "../outside.txt")

    @pytest.mark.asyncio
    async def test_writes_and_replaces(self, tmp_path: Path) -> None:
        (tmp_path / "README.md").write_text("old")

        path = await write_file(tmp_path, "README.md", "new\n")

        assert path.read_text() == "new\n"

    @pytest.mark.asyncio
    async def test_missing_parent_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            await write_file(tmp_path, "missing/dir/file.ts", "export {};\n")
