"""
AuthSession: client-side holder for the bearer token.

Mirrors what a browser front-end does with the API: keep the token handed
out by ``/login``, send it as ``Authorization: Bearer <token>`` on later
calls, and forget it on logout or whenever the server answers 401.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

_AUTH_PREFIX = "/api/auth"


class AuthClientError(Exception):
    """Non-2xx response from the auth API."""

    def __init__(self, status_code: int, message: str, errors: Optional[List[str]] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class AuthSession:
    """Async client for the auth API that remembers the issued token."""

    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None

    async def __aenter__(self) -> "AuthSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def clear(self) -> None:
        self.token = None
        self.user = None

    # ── Transport ───────────────────────────────────────────────────────

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        resp = await self._client.request(method, f"{_AUTH_PREFIX}{path}", json=json, headers=headers)
        try:
            body = resp.json()
        except ValueError:
            body = {"success": False, "message": resp.text or resp.reason_phrase}

        if resp.status_code == 401:
            if self.token is not None:
                logger.info("Server rejected the stored token; clearing session")
            self.clear()
        if resp.is_error:
            raise AuthClientError(resp.status_code, body.get("message", ""), body.get("errors"))
        return body

    # ── Operations ──────────────────────────────────────────────────────

    async def register(self, email: str, given_names: str, surname: str, password: str) -> Dict[str, Any]:
        body = await self._request(
            "POST",
            "/register",
            json={"email": email, "givenNames": given_names, "surname": surname, "password": password},
        )
        return body["user"]

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        body = await self._request("POST", "/login", json={"email": email, "password": password})
        self.token = body["token"]
        self.user = body["user"]
        return body["user"]

    async def logout(self) -> None:
        """Tell the server, then drop the token regardless of the outcome."""
        try:
            await self._request("POST", "/logout")
        finally:
            self.clear()

    async def profile(self) -> Dict[str, Any]:
        body = await self._request("GET", "/profile")
        self.user = body["user"]
        return body["user"]

    async def verify(self) -> bool:
        """Return whether the held token is still accepted by the server."""
        if not self.token:
            return False
        try:
            await self._request("GET", "/verify")
        except AuthClientError as exc:
            if exc.status_code == 401:
                return False
            raise
        return True
