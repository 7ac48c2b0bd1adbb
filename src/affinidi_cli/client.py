"""Typed clients for the hosted Affinidi APIs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from affinidi_cli.errors import ServiceRequestError, ServiceUnavailableError

logger = logging.getLogger(__name__)

AUTH_COOKIE_NAME = "console_authtoken"


@dataclass
class _ServiceClient:
    base_url: str
    timeout: float = 10.0
    retries: int = 2

    service: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._session = requests.Session()
        retry = Retry(
            total=max(0, int(self.retries)),
            connect=max(0, int(self.retries)),
            read=max(0, int(self.retries)),
            status=max(0, int(self.retries)),
            status_forcelist=(429, 502, 503, 504),
            backoff_factor=0.2,
            allowed_methods=("GET",),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _send(
        self,
        method: str,
        path: str,
        *,
        json_payload: Any = None,
        params: dict | None = None,
        headers: dict | None = None,
    ):
        logger.debug("%s %s %s", self.service, method, path)
        try:
            response = self._session.request(
                method,
                self._url(path),
                json=json_payload,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ServiceUnavailableError(
                f"{self.service} service unreachable: {exc}", service=self.service
            ) from exc

        if response.status_code >= 400:
            body: object | None = None
            try:
                body = response.json()
            except ValueError:
                body = None
            detail = body.get("message") if isinstance(body, dict) else None
            if isinstance(detail, str):
                message = f"{self.service} request failed: {response.status_code} {detail}"
            else:
                message = f"{self.service} request failed: {response.status_code}"
            logger.debug("%s responded %s", self.service, response.status_code)
            raise ServiceRequestError(
                message,
                status_code=response.status_code,
                service=self.service,
                detail=detail,
                body=body,
            )
        return response

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._send(method, path, **kwargs)
        if not response.content:
            return None
        return response.json()


def _auth_cookie(token: str) -> dict[str, str]:
    return {"Cookie": f"{AUTH_COOKIE_NAME}={token}"}


class IamClient(_ServiceClient):
    service = "iAm"

    def list_projects(self, token: str, skip: int = 0, limit: int = 100) -> list[dict]:
        result = self._request(
            "GET",
            "/projects",
            params={"skip": skip, "limit": limit},
            headers=_auth_cookie(token),
        )
        if isinstance(result, dict):
            return list(result.get("projects", []))
        return list(result or [])

    def get_project_summary(self, token: str, project_id: str) -> dict:
        return self._request(
            "GET", f"/projects/{project_id}/summary", headers=_auth_cookie(token)
        )

    def create_project(self, token: str, name: str) -> dict:
        return self._request(
            "POST", "/projects", json_payload={"name": name}, headers=_auth_cookie(token)
        )


class UserManagementClient(_ServiceClient):
    service = "userManagement"

    def sign_up(self, email: str) -> str:
        return self._request(
            "POST", "/auth/signup", json_payload={"username": email, "password": None}
        )

    def login(self, email: str) -> str:
        return self._request("POST", "/auth/login/passwordless", json_payload={"username": email})

    def confirm_and_get_token(self, token: str, confirmation_code: str, kind: str) -> str:
        path = "/auth/signup/confirm" if kind == "signup" else "/auth/login/passwordless/confirm"
        response = self._send(
            "POST",
            path,
            json_payload={"token": token, "confirmationCode": confirmation_code},
        )
        session_token = response.cookies.get(AUTH_COOKIE_NAME)
        if session_token:
            return session_token
        body = response.json() if response.content else None
        if isinstance(body, dict):
            return str(body.get("accessToken") or body.get("token") or "")
        return str(body or "")

    def me(self, token: str) -> dict:
        return self._request("GET", "/auth/me", headers=_auth_cookie(token))

    def logout(self, token: str) -> None:
        self._request("POST", "/auth/logout", headers=_auth_cookie(token))


class SchemaManagerClient(_ServiceClient):
    service = "schema"

    def search(
        self,
        *,
        scope: str,
        skip: int = 0,
        limit: int = 10,
        did: str | None = None,
        schema_type: str | None = None,
        api_key: str | None = None,
    ) -> list[dict]:
        params: dict[str, Any] = {"scope": scope, "skip": skip, "limit": limit}
        if schema_type:
            params["type"] = schema_type
        if did:
            params["did"] = did
        headers = {"Api-Key": api_key} if api_key else None
        result = self._request("GET", "/schemas", params=params, headers=headers)
        if isinstance(result, dict):
            return list(result.get("schemas", []))
        return list(result or [])

    def get_by_id(self, schema_id: str, api_key: str | None = None) -> dict:
        headers = {"Api-Key": api_key} if api_key else None
        return self._request("GET", f"/schemas/{schema_id}", headers=headers)

    def create_schema(self, api_key: str, payload: dict) -> dict:
        return self._request(
            "POST", "/schemas", json_payload=payload, headers={"Api-Key": api_key}
        )

    def generate_next_version(
        self,
        *,
        schema_type: str,
        scope: str,
        did: str,
        api_key: str,
    ) -> tuple[int, int]:
        """Return ``(version, revision)`` for a new schema of ``schema_type``.

        The latest schema of the same type bumps the revision; a type seen
        for the first time starts at ``(1, 0)``.
        """
        latest = self.search(
            scope=scope,
            skip=0,
            limit=1,
            did=did,
            schema_type=schema_type,
            api_key=api_key,
        )
        if not latest:
            return 1, 0
        return int(latest[0].get("version", 1)), int(latest[0].get("revision", 0)) + 1


class AnalyticsClient(_ServiceClient):
    service = "analytics"

    def send_event(self, event: dict) -> None:
        self._request("POST", "/api/events", json_payload=event)


__all__ = [
    "IamClient",
    "UserManagementClient",
    "SchemaManagerClient",
    "AnalyticsClient",
]
