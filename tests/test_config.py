"""Tests for routelint.config — LintConfig and [tool.routelint] loading."""

from pathlib import Path

import pytest

from routelint.config import LintConfig, config_from_mapping, find_pyproject, load_config
from routelint.errors import ConfigurationError


class TestLintConfig:
    def test_defaults(self) -> None:
        cfg = LintConfig()

        assert "get" in cfg.route_decorators
        assert "add_route" in cfg.map_calls
        assert cfg.marker_comment == "lang=route"
        assert cfg.include == ("**/*.py",)
        assert cfg.disabled == frozenset()
        assert cfg.log_level == "warning"
        assert cfg.max_workers == 8

    def test_frozen(self) -> None:
        cfg = LintConfig()

        with pytest.raises(AttributeError):
            cfg.max_workers = 2  # type: ignore[misc]

    def test_enabled(self) -> None:
        cfg = LintConfig(disabled=frozenset({"issue"}))

        assert not cfg.enabled("issue")
        assert cfg.enabled("unused-parameter")


class TestConfigFromMapping:
    def test_kebab_and_snake_keys(self) -> None:
        cfg = config_from_mapping({"max-workers": 2, "route_decorators": ["route"]})

        assert cfg.max_workers == 2
        assert cfg.route_decorators == frozenset({"route"})

    def test_disabled_kinds(self) -> None:
        cfg = config_from_mapping({"disabled": ["add-constraint"]})
        assert cfg.disabled == frozenset({"add-constraint"})

    def test_log_level_is_normalized(self) -> None:
        assert config_from_mapping({"log-level": "DEBUG"}).log_level == "debug"

    @pytest.mark.parametrize(
        "table",
        [
            {"unknown": 1},
            {"disabled": ["nope"]},
            {"max-workers": 0},
            {"max-workers": True},
            {"include": "**/*.py"},
            {"marker-comment": 3},
            {"log-level": "loud"},
            {"map-calls": [1, 2]},
        ],
    )
    def test_invalid(self, table: dict) -> None:
        with pytest.raises(ConfigurationError):
            config_from_mapping(table)


class TestLoadConfig:
    def test_reads_tool_table(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.routelint]\nmax-workers = 3\ndisabled = ["issue"]\n',
            encoding="utf-8",
        )

        cfg = load_config(tmp_path)

        assert cfg.max_workers == 3
        assert cfg.disabled == frozenset({"issue"})

    def test_searches_upward(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.routelint]\nmax-workers = 5\n", encoding="utf-8")
        nested = tmp_path / "src" / "app"
        nested.mkdir(parents=True)

        assert find_pyproject(nested) == tmp_path.resolve() / "pyproject.toml"
        assert load_config(nested).max_workers == 5

    def test_no_table_gives_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n', encoding="utf-8")
        assert load_config(tmp_path) == LintConfig()

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "lint.toml"
        path.write_text("[tool.routelint]\nmarker-comment = \"route\"\n", encoding="utf-8")

        assert load_config(path=path).marker_comment == "route"

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text("[tool.routelint\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            load_config(path=path)

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_config(path=tmp_path / "missing.toml")
