"""Settings helpers for the affinidi CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_HOME_DIR = Path.home() / ".affinidi"
DEFAULT_IAM_URL = "https://affinidi-iam.apse1.affinidi.com/api/v1"
DEFAULT_USER_MANAGEMENT_URL = "https://console-user-management.apse1.affinidi.com/api/v1"
DEFAULT_SCHEMA_MANAGER_URL = "https://affinidi-schema-manager.prod.affinity-project.org/api/v1"
DEFAULT_ANALYTICS_URL = "https://analytics-stream.prod.affinity-project.org"

HOME_ENV_VAR = "AFFINIDI_CLI_HOME"
_URL_ENV_VARS = {
    "iam_url": "AFFINIDI_IAM_URL",
    "user_management_url": "AFFINIDI_USER_MANAGEMENT_URL",
    "schema_manager_url": "AFFINIDI_SCHEMA_MANAGER_URL",
    "analytics_url": "AFFINIDI_ANALYTICS_URL",
}


@dataclass(frozen=True)
class CLISettings:
    home_dir: str = str(DEFAULT_HOME_DIR)
    iam_url: str = DEFAULT_IAM_URL
    user_management_url: str = DEFAULT_USER_MANAGEMENT_URL
    schema_manager_url: str = DEFAULT_SCHEMA_MANAGER_URL
    analytics_url: str = DEFAULT_ANALYTICS_URL
    http_timeout: float = 10.0

    @property
    def config_path(self) -> Path:
        return Path(self.home_dir) / "config.json"

    @property
    def credentials_path(self) -> Path:
        return Path(self.home_dir) / "credentials" / "config.json"


class SettingsError(ValueError):
    """Raised when CLI settings are invalid."""


def _load_toml(path: Path) -> dict[str, Any]:
    raw = path.read_text(encoding="utf-8")

    try:  # Python 3.11+
        import tomllib  # type: ignore[attr-defined]
        try:
            return tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise SettingsError(f"invalid TOML in {path}: {exc}") from exc
    except ModuleNotFoundError:
        try:
            import tomli
        except ModuleNotFoundError as exc:
            raise SettingsError("toml parser unavailable; install tomli for Python < 3.11") from exc
        try:
            return tomli.loads(raw)
        except tomli.TOMLDecodeError as exc:
            raise SettingsError(f"invalid TOML in {path}: {exc}") from exc


def _non_empty(source: dict[str, Any], key: str, default: str) -> str:
    env_var = _URL_ENV_VARS.get(key)
    env_value = os.getenv(env_var) if env_var else None
    value = env_value.strip() if env_value else str(source.get(key, default)).strip()
    if not value:
        raise SettingsError(f"{key} must not be empty")
    return value


def _to_timeout(value: Any) -> float:
    if isinstance(value, bool):
        raise SettingsError("http_timeout must be a positive number")
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise SettingsError("http_timeout must be a positive number") from exc
    if timeout <= 0:
        raise SettingsError("http_timeout must be a positive number")
    return timeout


def load_cli_settings(path: str | Path | None = None) -> CLISettings:
    env_home = os.getenv(HOME_ENV_VAR)
    home_dir = Path(env_home.strip()) if env_home and env_home.strip() else DEFAULT_HOME_DIR
    settings_path = Path(path) if path else home_dir / "cli.toml"

    source: dict[str, Any] = {}
    if settings_path.exists():
        parsed = _load_toml(settings_path)
        section = parsed.get("cli")
        if isinstance(section, dict):
            source = section
        elif section is None:
            source = parsed
        else:
            raise SettingsError("[cli] must be a table")

    if not (env_home and env_home.strip()) and "home_dir" in source:
        configured_home = str(source["home_dir"]).strip()
        if not configured_home:
            raise SettingsError("home_dir must not be empty")
        home_dir = Path(configured_home).expanduser()

    return CLISettings(
        home_dir=str(home_dir),
        iam_url=_non_empty(source, "iam_url", DEFAULT_IAM_URL),
        user_management_url=_non_empty(
            source, "user_management_url", DEFAULT_USER_MANAGEMENT_URL
        ),
        schema_manager_url=_non_empty(source, "schema_manager_url", DEFAULT_SCHEMA_MANAGER_URL),
        analytics_url=_non_empty(source, "analytics_url", DEFAULT_ANALYTICS_URL),
        http_timeout=_to_timeout(source.get("http_timeout", 10.0)),
    )
