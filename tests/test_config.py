"""
Tests for candi.yaml loading and template discovery.
"""

from pathlib import Path

import pytest

from candi.compiler.codegen import FieldAccessStrategy
from candi.config import TemplateFinder, load_config
from candi.config.load import ConfigError
from candi.config.paths import config_path, template_name
from candi.runtime import FileSystemLoader, TemplateNotFoundError

from tests.infrastructure.file_utils import write


def write_cfg(root: Path, text: str) -> Path:
    return write(root / "candi.yaml", text)


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path):
        cfg = load_config(tmp_path)

        assert cfg.root == tmp_path.resolve()
        assert cfg.templates == tmp_path.resolve() / "templates"
        assert cfg.output == tmp_path.resolve() / "build" / "candi"
        assert cfg.include == ("**/*.html",)
        assert cfg.exclude == ()
        assert cfg.field_access == FieldAccessStrategy.MAPPING
        assert cfg.fields == ()

    def test_project_config(self, tmpproj):
        cfg = load_config(tmpproj)

        assert cfg.templates == tmpproj.resolve() / "templates"
        assert cfg.exclude == ("drafts/",)

    def test_empty_file_uses_defaults(self, tmp_path):
        write_cfg(tmp_path, "")

        assert load_config(tmp_path).include == ("**/*.html",)

    def test_all_keys(self, tmp_path):
        write_cfg(tmp_path, (
            "templates: views\n"
            "output: out\n"
            "include: ['pages/**']\n"
            "exclude: ['*.draft.html']\n"
            "field_access: attribute\n"
            "fields: title\n"
        ))
        cfg = load_config(tmp_path)

        assert cfg.templates.name == "views"
        assert cfg.include == ("pages/**",)
        assert cfg.exclude == ("*.draft.html",)
        assert cfg.fields == ("title",)

        options = cfg.compile_options()
        assert options.field_access == FieldAccessStrategy.ATTRIBUTE
        assert options.fields == ("title",)

    def test_unknown_keys(self, tmp_path):
        write_cfg(tmp_path, "templates: t\nsections: x\nfoo: 1\n")

        with pytest.raises(ConfigError, match="unknown keys: foo, sections"):
            load_config(tmp_path)

    def test_invalid_yaml(self, tmp_path):
        write_cfg(tmp_path, "templates: [\n")

        with pytest.raises(ConfigError, match="invalid YAML"):
            load_config(tmp_path)

    def test_top_level_must_be_mapping(self, tmp_path):
        write_cfg(tmp_path, "- a\n- b\n")

        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(tmp_path)

    def test_invalid_field_access(self, tmp_path):
        write_cfg(tmp_path, "field_access: magic\n")

        with pytest.raises(ConfigError, match="invalid field_access 'magic'"):
            load_config(tmp_path)

    def test_fields_must_be_identifiers(self, tmp_path):
        write_cfg(tmp_path, "fields: [ok, 1bad]\n")

        with pytest.raises(ConfigError, match="1bad"):
            load_config(tmp_path)

    def test_patterns_must_be_strings(self, tmp_path):
        write_cfg(tmp_path, "exclude: [1, 2]\n")

        with pytest.raises(ConfigError, match="'exclude' must be a list of strings"):
            load_config(tmp_path)

    def test_directory_must_be_string(self, tmp_path):
        write_cfg(tmp_path, "output: 5\n")

        with pytest.raises(ConfigError, match="'output' must be a directory path"):
            load_config(tmp_path)

    def test_config_path(self, tmp_path):
        assert config_path(tmp_path) == (tmp_path / "candi.yaml").resolve()


class TestTemplateNames:
    @pytest.mark.parametrize("path,name", [
        ("pages/index.page.html", "pages/index"),
        ("base.layout.html", "base"),
        ("badge.widget.html", "badge"),
        ("partials/nav.html", "partials/nav"),
        ("notes.txt", "notes.txt"),
    ])
    def test_suffix_is_stripped(self, path, name):
        assert template_name(path) == name


class TestTemplateFinder:
    def test_exclude(self, tmpproj):
        finder = TemplateFinder(tmpproj / "templates", exclude=["drafts/"])

        assert [name for name, _ in finder.iter_templates()] == ["badge", "base", "pages/index"]

    def test_without_exclude(self, tmpproj):
        names = [name for name, _ in TemplateFinder(tmpproj / "templates").iter_templates()]

        assert "drafts/wip" in names

    def test_non_templates_and_dot_dirs_are_skipped(self, tmp_path):
        write(tmp_path / "a.html", "a")
        write(tmp_path / "notes.txt", "n")
        write(tmp_path / ".cache" / "b.html", "b")

        assert [name for name, _ in TemplateFinder(tmp_path).iter_templates()] == ["a"]

    def test_include_patterns(self, tmpproj):
        finder = TemplateFinder(tmpproj / "templates", include=["pages/"])

        assert [name for name, _ in finder.iter_templates()] == ["pages/index"]

    def test_find(self, tmpproj):
        finder = TemplateFinder(tmpproj / "templates")

        assert finder.find("pages/index") == (tmpproj / "templates" / "pages" / "index.page.html").resolve()
        assert finder.find("nope") is None

    def test_name_clash_first_path_wins(self, tmp_path):
        write(tmp_path / "card.html", "plain")
        write(tmp_path / "card.widget.html", "widget")

        assert TemplateFinder(tmp_path).find("card").name == "card.html"

    def test_refresh(self, tmp_path):
        finder = TemplateFinder(tmp_path)
        assert finder.find("late") is None

        write(tmp_path / "late.html", "x")
        assert finder.find("late") is None

        finder.refresh()
        assert finder.find("late") is not None

    def test_missing_root(self, tmp_path):
        assert list(TemplateFinder(tmp_path / "none").iter_templates()) == []


class TestFileSystemLoader:
    def test_get_source(self, tmpproj):
        loader = FileSystemLoader(tmpproj / "templates")
        source, file_name = loader.get_source("badge")

        assert source == "<b>{{ label }}</b>\n"
        assert file_name == "badge.widget.html"

    def test_not_found(self, tmpproj):
        loader = FileSystemLoader(tmpproj / "templates", exclude=["drafts/"])

        with pytest.raises(TemplateNotFoundError):
            loader.get_source("drafts/wip")

    def test_list_templates(self, tmpproj):
        loader = FileSystemLoader(tmpproj / "templates", exclude=["drafts/"])

        assert loader.list_templates() == ["badge", "base", "pages/index"]
