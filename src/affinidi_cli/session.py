"""Resolve the signed-in session from the credential vault."""

from __future__ import annotations

import base64
import json
import time
from typing import Any, Callable

from affinidi_cli.errors import CliError, Unauthorized
from affinidi_cli.models import Account, Session
from affinidi_cli.vault import SESSION_TOKEN_KEY_NAME, VaultService


def decode_claims(token: str) -> dict[str, Any]:
    """Return the JWT payload claims without verifying the signature.

    Opaque (non-JWT) tokens yield an empty mapping.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return {}
    segment = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(segment.encode("ascii")))
    except (ValueError, UnicodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _account_from_claims(claims: dict[str, Any]) -> Account:
    user_id = claims.get("userId") or claims.get("sub") or ""
    email = claims.get("username") or claims.get("email") or ""
    return Account(user_id=str(user_id), label=str(email), email=str(email))


class SessionResolver:
    def __init__(self, vault: VaultService, *, clock: Callable[[], float] = time.time) -> None:
        self.vault = vault
        self._clock = clock
        self._session: Session | None = None

    def is_authenticated(self) -> bool:
        token = self.vault.get(SESSION_TOKEN_KEY_NAME)
        if not token:
            return False
        expires_at = decode_claims(token).get("exp")
        if isinstance(expires_at, (int, float)) and expires_at <= self._clock():
            return False
        return True

    def get_session(self) -> Session:
        if self._session is not None:
            return self._session

        token = self.vault.get(SESSION_TOKEN_KEY_NAME)
        if not token:
            raise CliError(Unauthorized, 401, "userManagement")

        snapshot = self.vault.get_session_snapshot()
        if snapshot is not None and snapshot.access_token == token:
            account = snapshot.account
        else:
            account = _account_from_claims(decode_claims(token))
        self._session = Session(account=account, access_token=token)
        return self._session

    def session_user_id(self) -> str | None:
        if not self.vault.get(SESSION_TOKEN_KEY_NAME):
            return None
        return self.get_session().account.user_id or None

    def create_session(self, email: str, user_id: str, token: str) -> Session:
        session = Session(
            account=Account(user_id=user_id, label=email, email=email),
            access_token=token,
        )
        self.vault.set(SESSION_TOKEN_KEY_NAME, token)
        self.vault.set_session_snapshot(session)
        self._session = session
        return session

    def forget(self) -> None:
        self._session = None
