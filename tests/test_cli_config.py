from __future__ import annotations

from pathlib import Path

import pytest

from affinidi_cli.cli.config import (
    DEFAULT_IAM_URL,
    DEFAULT_SCHEMA_MANAGER_URL,
    SettingsError,
    load_cli_settings,
)

_ENV_VARS = (
    "AFFINIDI_CLI_HOME",
    "AFFINIDI_IAM_URL",
    "AFFINIDI_USER_MANAGEMENT_URL",
    "AFFINIDI_SCHEMA_MANAGER_URL",
    "AFFINIDI_ANALYTICS_URL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_when_file_missing(tmp_path) -> None:
    settings = load_cli_settings(tmp_path / "missing.toml")
    assert settings.iam_url == DEFAULT_IAM_URL
    assert settings.schema_manager_url == DEFAULT_SCHEMA_MANAGER_URL
    assert settings.http_timeout == 10.0


def test_cli_table_is_read(tmp_path) -> None:
    config_path = tmp_path / "cli.toml"
    config_path.write_text(
        '[cli]\niam_url = "http://localhost:4000"\nhttp_timeout = 3\n', encoding="utf-8"
    )

    settings = load_cli_settings(config_path)

    assert settings.iam_url == "http://localhost:4000"
    assert settings.http_timeout == 3.0


def test_top_level_keys_are_read(tmp_path) -> None:
    config_path = tmp_path / "cli.toml"
    config_path.write_text('schema_manager_url = "http://localhost:5000"\n', encoding="utf-8")

    assert load_cli_settings(config_path).schema_manager_url == "http://localhost:5000"


def test_env_overrides_file(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "cli.toml"
    config_path.write_text('iam_url = "http://localhost:4000"\n', encoding="utf-8")
    monkeypatch.setenv("AFFINIDI_IAM_URL", "https://iam.env.example")

    assert load_cli_settings(config_path).iam_url == "https://iam.env.example"


def test_home_dir_from_env_sets_storage_paths(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("AFFINIDI_CLI_HOME", str(tmp_path))

    settings = load_cli_settings()

    assert settings.config_path == Path(tmp_path) / "config.json"
    assert settings.credentials_path == Path(tmp_path) / "credentials" / "config.json"


def test_home_dir_from_file(tmp_path) -> None:
    config_path = tmp_path / "cli.toml"
    config_path.write_text(f'home_dir = "{tmp_path / "home"}"\n', encoding="utf-8")

    assert load_cli_settings(config_path).home_dir == str(tmp_path / "home")


def test_invalid_toml_raises(tmp_path) -> None:
    config_path = tmp_path / "cli.toml"
    config_path.write_text("iam_url = \n", encoding="utf-8")

    with pytest.raises(SettingsError, match="invalid TOML"):
        load_cli_settings(config_path)


@pytest.mark.parametrize("value", ["0", "-1", '"soon"', "true"])
def test_invalid_timeout_raises(tmp_path, value) -> None:
    config_path = tmp_path / "cli.toml"
    config_path.write_text(f"http_timeout = {value}\n", encoding="utf-8")

    with pytest.raises(SettingsError, match="http_timeout"):
        load_cli_settings(config_path)


def test_empty_url_raises(tmp_path) -> None:
    config_path = tmp_path / "cli.toml"
    config_path.write_text('analytics_url = "  "\n', encoding="utf-8")

    with pytest.raises(SettingsError, match="analytics_url"):
        load_cli_settings(config_path)


def test_cli_section_must_be_table(tmp_path) -> None:
    config_path = tmp_path / "cli.toml"
    config_path.write_text('cli = "nope"\n', encoding="utf-8")

    with pytest.raises(SettingsError, match="must be a table"):
        load_cli_settings(config_path)
