"""Per-user configuration document for the affinidi CLI.

The document keeps one record per signed-in user plus a pointer to the
current user::

    {"username": "", "version": 1, "currentUserId": "...",
     "configs": {"<userId>": {"activeProjectId": "", "outputFormat": "plaintext",
                              "analyticsOptIn": true}}}

Every mutation reads the whole document, changes it in memory and writes
it back. There is no locking, so two CLI processes writing at the same time
can overwrite each other's changes.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Protocol

from affinidi_cli.errors import ConfigError, NoConfigFile, NoUserConfigFound

logger = logging.getLogger(__name__)

CONFIG_VERSION = 1
VALID_VERSIONS = (1,)

PLAINTEXT = "plaintext"
JSON = "json"
OUTPUT_FORMATS = (PLAINTEXT, JSON)


class OptIn(Enum):
    """Analytics consent. ``UNSET`` means the user was never asked."""

    UNSET = "unset"
    TRUE = "true"
    FALSE = "false"

    def __bool__(self) -> bool:
        return self is OptIn.TRUE

    @classmethod
    def from_value(cls, value: Any) -> OptIn:
        if isinstance(value, OptIn):
            return value
        if value is None:
            return cls.UNSET
        return cls.TRUE if value else cls.FALSE

    def to_value(self) -> bool | None:
        if self is OptIn.UNSET:
            return None
        return self is OptIn.TRUE


@dataclass
class UserConfig:
    active_project_id: str = ""
    output_format: str = PLAINTEXT
    analytics_opt_in: OptIn = OptIn.UNSET

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> UserConfig:
        return cls(
            active_project_id=str(raw.get("activeProjectId") or ""),
            output_format=str(raw.get("outputFormat") or ""),
            analytics_opt_in=OptIn.from_value(raw.get("analyticsOptIn")),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "activeProjectId": self.active_project_id,
            "outputFormat": self.output_format,
        }
        if self.analytics_opt_in is not OptIn.UNSET:
            payload["analyticsOptIn"] = self.analytics_opt_in.to_value()
        return payload


def is_supported_version(version: int | None) -> bool:
    return version is None or version in VALID_VERSIONS


class ConfigStorer(Protocol):
    def load(self) -> dict[str, Any]: ...

    def save(self, document: dict[str, Any]) -> None: ...

    def clear(self) -> None: ...


class FileConfigStorer:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("ignoring unreadable config file %s", self.path)
            return {}
        return payload if isinstance(payload, dict) else {}

    def save(self, document: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
        logger.debug("config written to %s", self.path)

    def clear(self) -> None:
        self.save({})


class MemoryConfigStorer:
    def __init__(self, document: dict[str, Any] | None = None) -> None:
        self.document: dict[str, Any] = json.loads(json.dumps(document or {}))

    def load(self) -> dict[str, Any]:
        return json.loads(json.dumps(self.document))

    def save(self, document: dict[str, Any]) -> None:
        self.document = json.loads(json.dumps(document))

    def clear(self) -> None:
        self.document = {}


class ConfigService:
    def __init__(
        self,
        storer: ConfigStorer,
        session_user_id: Callable[[], str | None] | None = None,
    ) -> None:
        self.storer = storer
        self._session_user_id = session_user_id

    def _configs(self, document: dict[str, Any]) -> dict[str, Any] | None:
        configs = document.get("configs")
        return configs if isinstance(configs, dict) else None

    def clear(self) -> None:
        self.storer.clear()

    def get_version(self) -> int | None:
        raw = self.storer.load().get("version")
        if isinstance(raw, bool):
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            return None

    def get_current_user(self) -> str:
        return str(self.storer.load().get("currentUserId") or "")

    def get_username(self) -> str:
        return str(self.storer.load().get("username") or "")

    def show(self) -> dict[str, Any]:
        document = self.storer.load()
        return {
            "version": self.get_version(),
            "currentUserId": self.get_current_user(),
            "configs": self._configs(document),
            "username": self.get_username(),
        }

    def _config_file_must_exist(self) -> None:
        if self.get_version() is None:
            raise ConfigError(NoConfigFile)

    def _config_file_exists(self) -> bool:
        return self.get_version() is not None

    def _user_config_must_exist(self) -> str:
        self._config_file_must_exist()
        user_id = self.get_current_user()
        if not user_id and self._session_user_id is not None:
            user_id = self._session_user_id() or ""
        configs = self._configs(self.storer.load())
        if configs is None or user_id not in configs:
            raise ConfigError(NoUserConfigFound)
        return user_id

    def user_config_must_be_valid(self, user_id: str) -> bool:
        configs = self._configs(self.storer.load())
        if configs is None:
            return False
        raw = configs.get(user_id)
        if not isinstance(raw, dict):
            return False
        user_config = UserConfig.from_dict(raw)
        return user_config.analytics_opt_in is not OptIn.UNSET and bool(
            user_config.active_project_id
        )

    def create(
        self,
        user_id: str,
        active_project_id: str = "",
        analytics_opt_in: OptIn | bool | None = OptIn.UNSET,
    ) -> None:
        user_config = UserConfig(
            active_project_id=active_project_id,
            output_format=PLAINTEXT,
            analytics_opt_in=OptIn.from_value(analytics_opt_in),
        )
        self.storer.save(
            {
                "username": "",
                "version": CONFIG_VERSION,
                "currentUserId": user_id,
                "configs": {user_id: user_config.to_dict()},
            }
        )

    def _update_configs(
        self,
        configs: dict[str, Any],
        user_id: str,
        analytics_opt_in: OptIn,
    ) -> dict[str, Any]:
        if user_id not in configs:
            configs[user_id] = UserConfig(analytics_opt_in=analytics_opt_in).to_dict()
            return configs
        existing = UserConfig.from_dict(configs[user_id])
        # An existing opt-in is never downgraded on this path.
        merged = UserConfig(
            active_project_id=existing.active_project_id or "",
            output_format=existing.output_format or PLAINTEXT,
            analytics_opt_in=existing.analytics_opt_in or analytics_opt_in or OptIn.FALSE,
        )
        configs[user_id] = merged.to_dict()
        return configs

    def create_or_update(
        self,
        user_id: str,
        analytics_opt_in: OptIn | bool | None = OptIn.UNSET,
    ) -> None:
        opt_in = OptIn.from_value(analytics_opt_in)
        configs = self._configs(self.storer.load())
        if not self._config_file_exists() or configs is None:
            self.create(user_id, "", opt_in)
            return

        self.storer.save(
            {
                "username": self.get_username(),
                "version": CONFIG_VERSION,
                "currentUserId": user_id,
                "configs": self._update_configs(configs, user_id, opt_in),
            }
        )

    def get_output_format(self) -> str:
        configs = self._configs(self.storer.load())
        user_id = self.get_current_user()
        if configs is None or not isinstance(configs.get(user_id), dict):
            return PLAINTEXT
        return UserConfig.from_dict(configs[user_id]).output_format or PLAINTEXT

    def set_output_format(self, output_format: str) -> None:
        # Only the file is required here, unlike set_current_project_id.
        self._config_file_must_exist()
        document = self.storer.load()
        configs = self._configs(document) or {}
        user_id = self.get_current_user()
        raw = configs.get(user_id)
        user_config = UserConfig.from_dict(raw) if isinstance(raw, dict) else UserConfig()
        user_config.output_format = output_format
        configs[user_id] = user_config.to_dict()
        document["configs"] = configs
        self.storer.save(document)

    def current_user_config(self) -> UserConfig:
        user_id = self.get_current_user()
        configs = self._configs(self.storer.load()) or {}
        raw = configs.get(user_id)
        if not isinstance(raw, dict):
            raise ConfigError(NoUserConfigFound)
        return UserConfig.from_dict(raw)

    def has_analytics_opt_in(self) -> bool:
        try:
            return bool(self.current_user_config().analytics_opt_in)
        except ConfigError:
            return False

    def has_opted_in_or_out(self) -> bool:
        try:
            return self.current_user_config().analytics_opt_in is not OptIn.UNSET
        except ConfigError:
            return False

    def opt_in_or_out(self, opt_in: bool) -> None:
        self._user_config_must_exist()
        user_config = self.current_user_config()
        user_config.analytics_opt_in = OptIn.from_value(opt_in)
        document = self.show()
        configs = document["configs"] or {}
        configs.update({document["currentUserId"]: user_config.to_dict()})
        document["configs"] = configs
        self.storer.save(document)

    def set_current_project_id(self, project_id: str) -> None:
        user_id = self._user_config_must_exist()
        document = self.storer.load()
        configs = self._configs(document) or {}
        configs[user_id]["activeProjectId"] = project_id
        document["configs"] = configs
        self.storer.save(document)

    def set_current_user_id(self, user_id: str) -> None:
        if not self._config_file_exists():
            return
        document = self.storer.load()
        document["currentUserId"] = user_id
        self.storer.save(document)

    def set_username(self, username: str) -> None:
        self._user_config_must_exist()
        document = self.storer.load()
        document["username"] = username
        self.storer.save(document)

    def delete_user_config(self) -> None:
        document = self.storer.load()
        configs = self._configs(document) or {}
        configs.pop(self.get_current_user(), None)
        document["configs"] = configs
        self.storer.save(document)
