"""Unit tests for template artifact removal (create_x4.strip)."""

from __future__ import annotations

from pathlib import Path

import pytest

from create_x4.strip import remove_path, strip_non_template_files


def snapshot(root: Path) -> list[str]:
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*"))


class TestRemovePath:
    @pytest.mark.unit
    def test_file(self, tmp_path):
        target = tmp_path / "a.txt"
        target.write_text("x")
        assert remove_path(target) is True
        assert not target.exists()

    @pytest.mark.unit
    def test_directory(self, tmp_path):
        (tmp_path / "d" / "nested").mkdir(parents=True)
        (tmp_path / "d" / "nested" / "f").write_text("x")
        assert remove_path(tmp_path / "d") is True
        assert not (tmp_path / "d").exists()

    @pytest.mark.unit
    def test_missing(self, tmp_path):
        assert remove_path(tmp_path / "missing") is False

    @pytest.mark.unit
    def test_symlink_removes_link_not_target(self, tmp_path):
        (tmp_path / "real").mkdir()
        (tmp_path / "real" / "keep").write_text("x")
        (tmp_path / "link").symlink_to(tmp_path / "real")
        assert remove_path(tmp_path / "link") is True
        assert (tmp_path / "real" / "keep").exists()


class TestStripNonTemplateFiles:
    @pytest.mark.unit
    def test_removes_artifacts(self, template_dir):
        removed = strip_non_template_files(template_dir)

        for relative in ("CLAUDE.md", "wiki", ".claude", "bun.lock", "node_modules", "create-x4"):
            assert relative in removed
            assert not (template_dir / relative).exists()
        assert "apps/api/openapi.json" in removed
        assert not (template_dir / "apps" / "api" / "openapi.json").exists()

    @pytest.mark.unit
    def test_keeps_project_files(self, template_dir):
        strip_non_template_files(template_dir)
        assert (template_dir / "package.json").exists()
        assert (template_dir / "apps" / "web" / "package.json").exists()
        assert (template_dir / "README.md").exists()

    @pytest.mark.unit
    def test_missing_paths_are_skipped(self, tmp_path):
        (tmp_path / "package.json").write_text("{}")
        assert strip_non_template_files(tmp_path) == []
        assert (tmp_path / "package.json").exists()

    @pytest.mark.unit
    def test_idempotent(self, template_dir):
        strip_non_template_files(template_dir)
        once = snapshot(template_dir)
        assert strip_non_template_files(template_dir) == []
        assert snapshot(template_dir) == once

    @pytest.mark.unit
    def test_custom_paths(self, tmp_path):
        (tmp_path / "junk").mkdir()
        (tmp_path / "CLAUDE.md").write_text("x")
        assert strip_non_template_files(tmp_path, paths=["junk"]) == ["junk"]
        assert (tmp_path / "CLAUDE.md").exists()

    @pytest.mark.unit
    def test_verbose_lists_removals(self, template_dir, capsys):
        strip_non_template_files(template_dir, verbose=True)
        assert "Removing CLAUDE.md" in capsys.readouterr().out
