"""Anonymous usage events, sent only when the user opted in."""

from __future__ import annotations

import logging
import platform
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

from affinidi_cli.client import AnalyticsClient
from affinidi_cli.config_store import ConfigService
from affinidi_cli.errors import CliError

logger = logging.getLogger(__name__)

ANONYMOUS = "anonymous"


def cli_version() -> str:
    try:
        return pkg_version("affinidi-cli")
    except PackageNotFoundError:
        return "0.0.0+local"


def user_metadata(label: str) -> dict[str, object]:
    return {
        "cliVersion": cli_version(),
        "os": platform.system().lower(),
        "isAffinidiUser": label.endswith("@affinidi.com"),
    }


def build_event(
    name: str,
    *,
    user_id: str,
    label: str,
    command_id: str,
    **metadata: object,
) -> dict:
    return {
        "name": name,
        "category": "APPLICATION",
        "component": "Cli",
        "uuid": user_id or ANONYMOUS,
        "metadata": {"commandId": command_id, **metadata, **user_metadata(label)},
    }


class AnalyticsService:
    def __init__(self, client: AnalyticsClient, config: ConfigService) -> None:
        self.client = client
        self.config = config

    def set_analytics_opt_in(self, opt_in: bool) -> None:
        self.config.opt_in_or_out(opt_in)

    def send(self, event: dict) -> bool:
        if not self.config.has_analytics_opt_in():
            return False
        try:
            self.client.send_event(event)
        except CliError as exc:
            logger.warning("analytics event %s not sent: %s", event.get("name"), exc)
            return False
        return True

    def send_enabled_event(self, label: str, user_id: str, opt_in: bool, command_id: str) -> bool:
        event = build_event(
            "CLI_ANALYTICS_ENABLED" if opt_in else "CLI_ANALYTICS_DISABLED",
            user_id=user_id,
            label=label,
            command_id=command_id,
        )
        try:
            self.client.send_event(event)
        except CliError as exc:
            logger.warning("analytics consent event not sent: %s", exc)
            return False
        return True
