"""Map CLI errors to user-facing messages."""

from __future__ import annotations

import json
import re

from affinidi_cli.errors import (
    CliError,
    Conflict,
    InvalidOrExpiredOTPError,
    NotFoundEmail,
    ServiceDownError,
    Unauthorized,
    issuanceBadRequest,
    notFoundProject,
    notFoundSchema,
    schemaBadRequest,
    verifierBadRequest,
)

_BAD_REQUEST_MESSAGES = {
    "userManagement": InvalidOrExpiredOTPError,
    "issuance": issuanceBadRequest,
    "verification": verifierBadRequest,
    "schema": schemaBadRequest,
}

_NOT_FOUND_MESSAGES = {
    "iAm": notFoundProject,
    "userManagement": NotFoundEmail,
    "schema": notFoundSchema,
}

# Escape sequences as they appear once json.dumps has encoded ESC as \u001b.
_ANSI_CODE_RE = re.compile(
    r"\\u001b(?:[78H>]|\[(?:\?\d+[hl]|[0-2]?[KJ]|\d*[ABCDEFGgimnSsTu]|1000D\d+"
    r"|\d*;\d*[fHrm]|\d+;\d+;\d+m))"
)


def _handle_bad_request(service: str) -> str:
    return _BAD_REQUEST_MESSAGES.get(service, f"{service} service bad request")


def _handle_not_found(service: str) -> str:
    return _NOT_FOUND_MESSAGES.get(service, "Service not found")


def classify(error: CliError) -> str:
    """Pick the message template for an HTTP-tagged error.

    401/403, 500 and 409 map to fixed messages, 400 and 404 depend on the
    service that produced the error, anything else keeps its own message.
    """
    code = error.code
    if code in (401, 403):
        return Unauthorized
    if code == 500:
        return ServiceDownError
    if code == 400:
        return _handle_bad_request(error.service)
    if code == 404:
        return _handle_not_found(error.service)
    if code == 409:
        return Conflict
    return error.message


def strip_ansi_codes(value: str) -> str:
    return _ANSI_CODE_RE.sub("", value)


def error_to_json(message: str) -> str:
    payload: dict[str, object] = {
        "error": message.split("\n") if "\n" in message else message,
    }
    return strip_ansi_codes(json.dumps(payload, indent=1, ensure_ascii=False))


def build_invalid_command_usage(
    command: str,
    usage: str,
    description: str,
    missing_args: list[str],
) -> str:
    lines = [
        f"Invalid command usage: {command}",
        "",
        f"Usage: {usage.strip()}",
    ]
    if description:
        lines.extend(["", description])
    lines.extend(["", f"Missing required arguments: {', '.join(missing_args)}"])
    return "\n".join(lines)


def get_error_output(
    error: CliError,
    command: str,
    usage: str,
    description: str,
    as_json: bool = False,
) -> str:
    if error.missing_args:
        missing = [arg["name"] for arg in error.missing_args]
        return build_invalid_command_usage(command, usage, description, missing)
    message = classify(error)
    if as_json:
        return error_to_json(message)
    return message
