"""Tests for configuration loading and layering."""

import json
from pathlib import Path

import pytest

from minebrew.exceptions import ConfigError, ConfigParseError, ConfigValidationError
from minebrew.models import Command, MinebrewConfig, resolve_options, validate_target
from minebrew.models import config as config_module


@pytest.mark.parametrize("target", ["1.1", "1.18", "1.18.2", "1.18.20", "12.18.20"])
def test_validate_target_accepts_version_numbers(target: str) -> None:
    assert validate_target(target) == target


@pytest.mark.parametrize(
    "target", ["", "1", "1.", ".1", ".1.", "1.2.3.4", "..", ".", "a.b.c", "1..2", "1.a"]
)
def test_validate_target_rejects_malformed_versions(target: str) -> None:
    with pytest.raises(ConfigValidationError):
        validate_target(target)


def test_resolve_options_prefers_earlier_layers() -> None:
    merged = resolve_options(
        {"target": None, "directory": "/cli"},
        {"target": "1.18", "directory": "/file"},
        {"target": "1.19", "directory": "/default", "loader": None},
    )

    assert merged == {"target": "1.18", "directory": "/cli"}


def test_build_merges_layers_and_resolves_directory(tmp_path: Path) -> None:
    config = MinebrewConfig.build(
        Command.INSTALL,
        {"queries": ["sodium"], "target": None, "directory": None},
        {"target": "1.18.2", "directory": str(tmp_path), "max_retries": 5},
    )

    assert config.target == "1.18.2"
    assert config.directory == tmp_path.resolve()
    assert config.max_retries == 5
    assert config.mods_dir == tmp_path.resolve() / "mods"
    assert config.manifest_path == tmp_path.resolve() / "minebrew.json"


def test_build_requires_queries_for_install(tmp_path: Path) -> None:
    with pytest.raises(ConfigValidationError):
        MinebrewConfig.build(Command.INSTALL, {"directory": str(tmp_path)})


def test_build_does_not_require_queries_for_update(tmp_path: Path) -> None:
    config = MinebrewConfig.build(Command.UPDATE, {"directory": str(tmp_path)})

    assert config.queries == []
    assert config.target == "1.19"


def test_build_validates_target_from_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigValidationError):
        MinebrewConfig.build(
            Command.SCAN, {"directory": str(tmp_path)}, {"target": "latest"}
        )


def test_load_config_file_reads_toml_and_renames_mc_dir(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('target = "1.18"\nmc_dir = "/games/mc"\n')

    data = config_module.load_config_file(str(path))

    assert data == {"target": "1.18", "directory": "/games/mc"}


def test_load_config_file_reads_json_and_yaml(tmp_path: Path) -> None:
    json_path = tmp_path / "config.json"
    json_path.write_text(json.dumps({"loader": "fabric"}))
    yaml_path = tmp_path / "config.yaml"
    yaml_path.write_text("loader: quilt\n")

    assert config_module.load_config_file(str(json_path)) == {"loader": "fabric"}
    assert config_module.load_config_file(str(yaml_path)) == {"loader": "quilt"}


def test_load_config_file_rejects_unknown_format(tmp_path: Path) -> None:
    path = tmp_path / "config.ini"
    path.write_text("[x]")

    with pytest.raises(ConfigError):
        config_module.load_config_file(str(path))


def test_load_config_file_reports_parse_errors(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("target = = 1")

    with pytest.raises(ConfigParseError):
        config_module.load_config_file(str(path))


def test_missing_explicit_config_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        config_module.load_config_file(str(tmp_path / "nope.toml"))


def test_missing_default_config_is_not_an_error(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(
        config_module, "default_config_path", lambda: tmp_path / "absent.toml"
    )

    assert config_module.load_config_file() == {}


def test_default_game_dir_per_platform(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(config_module.Path, "home", lambda: tmp_path)

    monkeypatch.setattr(config_module.sys, "platform", "linux")
    assert config_module.default_game_dir() == tmp_path / ".minecraft"

    monkeypatch.setattr(config_module.sys, "platform", "darwin")
    assert config_module.default_game_dir() == (
        tmp_path / "Library" / "Application Support" / "minecraft"
    )

    monkeypatch.setattr(config_module.sys, "platform", "win32")
    monkeypatch.setenv("APPDATA", str(tmp_path / "Roaming"))
    assert config_module.default_game_dir() == tmp_path / "Roaming" / ".minecraft"
