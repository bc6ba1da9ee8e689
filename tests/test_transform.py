"""Unit tests for template parameterisation (create_x4.transform)."""

from __future__ import annotations

import json

import pytest
import yaml

from create_x4.transform import (
    placeholder_map,
    read_json,
    rewrite_package_name,
    transform_app_json,
    transform_electron_builder,
    transform_package_json_files,
    transform_template,
    write_json,
)


def load(path):
    return json.loads(path.read_text())


class TestRewritePackageName:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("@x4/shared", "@acme/shared"),
            ("x4-mono", "my-app"),
            ("hono", "hono"),
            ("@x4-other/thing", "@x4-other/thing"),
        ],
    )
    def test_mapping(self, name, expected):
        assert rewrite_package_name(name, "@acme", "my-app") == expected


class TestPlaceholderMap:
    @pytest.mark.unit
    def test_entries(self):
        mapping = placeholder_map("my-app", "@acme", "com.acme")
        assert mapping == {
            "@x4/": "@acme/",
            "@x4": "@acme",
            "x4-mono": "my-app",
            "com.x4.": "com.acme.",
        }


class TestJsonHelpers:
    @pytest.mark.unit
    def test_write_json_format(self, tmp_path):
        write_json(tmp_path / "a.json", {"name": "x"})
        assert (tmp_path / "a.json").read_text() == '{\n  "name": "x"\n}\n'

    @pytest.mark.unit
    def test_read_json_tolerates_bad_input(self, tmp_path):
        (tmp_path / "bad.json").write_text("{nope")
        assert read_json(tmp_path / "bad.json") is None
        assert read_json(tmp_path / "missing.json") is None


class TestTransformPackageJson:
    @pytest.mark.unit
    def test_names_and_dependencies(self, template_dir):
        transform_package_json_files(template_dir, "my-app", "@acme")

        root_pkg = load(template_dir / "package.json")
        assert root_pkg["name"] == "my-app"
        assert root_pkg["devDependencies"] == {"@acme/shared": "workspace:*", "turbo": "^2.0.0"}

        api_pkg = load(template_dir / "apps" / "api" / "package.json")
        assert api_pkg["name"] == "@acme/api"
        assert list(api_pkg["dependencies"]) == ["@acme/shared", "@acme/ai-integrations", "hono"]

    @pytest.mark.unit
    def test_skips_node_modules(self, template_dir):
        (template_dir / "node_modules" / "dep").mkdir(parents=True)
        (template_dir / "node_modules" / "dep" / "package.json").write_text('{"name": "@x4/dep"}')
        transform_package_json_files(template_dir, "my-app", "@acme")
        assert load(template_dir / "node_modules" / "dep" / "package.json")["name"] == "@x4/dep"


class TestTransformAppJson:
    @pytest.mark.unit
    def test_sets_identifiers(self, template_dir):
        modified = transform_app_json(template_dir, "my-app", "com.acme")
        expo = load(template_dir / "apps" / "mobile-main" / "app.json")["expo"]

        assert modified == [template_dir / "apps" / "mobile-main" / "app.json"]
        assert expo["name"] == "my-app"
        assert expo["slug"] == "my-app-mobile"
        assert expo["scheme"] == "my-app"
        assert expo["ios"]["bundleIdentifier"] == "com.acme.mobile"
        assert expo["android"]["package"] == "com.acme.mobile"

    @pytest.mark.unit
    def test_no_apps_dir(self, tmp_path):
        assert transform_app_json(tmp_path, "my-app", "com.acme") == []


class TestTransformElectronBuilder:
    @pytest.mark.unit
    def test_line_edits(self, template_dir):
        path = transform_electron_builder(template_dir, "my-app", "com.acme")
        data = yaml.safe_load(path.read_text())
        assert data["appId"] == "com.acme.desktop"
        assert data["productName"] == "my-app"
        assert data["directories"] == {"output": "dist"}

    @pytest.mark.unit
    def test_missing_file(self, tmp_path):
        assert transform_electron_builder(tmp_path, "my-app", "com.acme") is None


class TestTransformTemplate:
    @pytest.mark.unit
    def test_text_references_rewritten(self, template_dir):
        transform_template(template_dir, "my-app", "@acme", "com.acme")

        trpc = (template_dir / "apps" / "web" / "src" / "lib" / "trpc.ts").read_text()
        assert trpc == 'import type { AppRouter } from "@acme/api";\n'
        readme = (template_dir / "README.md").read_text()
        assert "# my-app" in readme
        assert "@acme/*" in readme

    @pytest.mark.unit
    def test_scope_prefix_of_name_does_not_bleed(self, template_dir):
        # Scope "@my-app" contains the project name; neither rewrite may cascade.
        transform_template(template_dir, "my-app", "@my-app", "com.myapp")
        pkg = load(template_dir / "apps" / "web" / "package.json")
        assert pkg["name"] == "@my-app/web"
        assert pkg["dependencies"] == {"@my-app/api": "workspace:*", "@my-app/shared": "workspace:*"}

    @pytest.mark.unit
    def test_no_template_tokens_left_in_package_files(self, template_dir):
        transform_template(template_dir, "my-app", "@acme", "com.acme")
        for path in template_dir.rglob("package.json"):
            if "node_modules" in path.parts:
                continue
            text = path.read_text()
            assert "@x4/" not in text
            assert '"x4-mono"' not in text
