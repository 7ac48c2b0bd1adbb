"""Local credential vault for the affinidi CLI."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from affinidi_cli.models import ProjectSummary, Session

logger = logging.getLogger(__name__)

SESSION_TOKEN_KEY_NAME = "sessionToken"
SESSION_KEY_NAME = "session"
ACTIVE_PROJECT_KEY_NAME = "activeProject"


class VaultStorer(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def clear(self) -> None: ...


def _chmod_owner_only(path: Path) -> None:
    if os.name != "posix":
        return
    path.chmod(0o600)


class FileVaultStorer:
    """JSON document on disk, rewritten in full on every change."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("ignoring unreadable credentials file %s", self.path)
            return {}
        return payload if isinstance(payload, dict) else {}

    def _write(self, payload: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        _chmod_owner_only(self.path)

    def get(self, key: str) -> Any | None:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        payload = self._read()
        payload[key] = value
        self._write(payload)
        logger.debug("vault key %s written to %s", key, self.path)

    def clear(self) -> None:
        self._write({})


class MemoryVaultStorer:
    def __init__(self) -> None:
        self.data: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def clear(self) -> None:
        self.data.clear()


class VaultService:
    def __init__(self, storer: VaultStorer) -> None:
        self.storer = storer

    def clear(self) -> None:
        self.storer.clear()

    def get(self, key: str) -> str | None:
        value = self.storer.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self.storer.set(key, value)

    def set_active_project(self, summary: ProjectSummary) -> None:
        self.storer.set(ACTIVE_PROJECT_KEY_NAME, summary.to_wire())

    def get_active_project(self) -> ProjectSummary | None:
        raw = self.storer.get(ACTIVE_PROJECT_KEY_NAME)
        if not isinstance(raw, dict):
            return None
        try:
            return ProjectSummary.model_validate(raw)
        except ValidationError:
            logger.warning("stored active project is malformed; ignoring it")
            return None

    def set_session_snapshot(self, session: Session) -> None:
        self.storer.set(SESSION_KEY_NAME, session.to_wire())

    def get_session_snapshot(self) -> Session | None:
        raw = self.storer.get(SESSION_KEY_NAME)
        if not isinstance(raw, dict):
            return None
        try:
            return Session.model_validate(raw)
        except ValidationError:
            return None
