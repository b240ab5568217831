"""
Supabase adapters — auth (GoTrue) and the ``tasks`` table (PostgREST) over httpx.

One ``httpx.AsyncClient`` is shared by both adapters so the access token
issued at sign-in is sent with every row-store request.

Endpoints used:
    POST   /auth/v1/token?grant_type=password
    POST   /auth/v1/signup
    POST   /auth/v1/logout
    GET    /auth/v1/user
    GET    /rest/v1/{table}?select=*&user_id=eq.{id}&order=created_at.desc
    POST   /rest/v1/{table}
    PATCH  /rest/v1/{table}?id=eq.{id}
    DELETE /rest/v1/{table}?id=eq.{id}
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from tasktrack.engine.config import BackendConfig
from tasktrack.engine.errors import BackendError, RecordError
from tasktrack.engine.logging import log, log_backend_call
from tasktrack.records.auth import AuthUser

logger = logging.getLogger("tasktrack.backend.supabase")

# Keys GoTrue / PostgREST use for the human-readable error text, most specific first
_ERROR_MESSAGE_KEYS = ("msg", "error_description", "message", "error")

SESSION_MISSING_MESSAGE = "Auth session missing!"


def extract_error_message(body: Any, status_code: int) -> str:
    """Pull the provider's error text out of an error response body."""
    if isinstance(body, dict):
        for key in _ERROR_MESSAGE_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    if isinstance(body, str) and body.strip():
        return body.strip()
    return f"HTTP {status_code}"


class SupabaseBackend:
    """
    Shared HTTP session for the Supabase adapters.

    Connection pooled — one client per backend, closed with ``aclose()``.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        timeout: float = 15.0,
        max_connections: int = 10,
        max_keepalive: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._url = url.rstrip("/")
        self._anon_key = anon_key
        self.access_token: Optional[str] = None
        # A caller-supplied client is shared across sessions and closed by its owner
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._url,
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_keepalive,
            ),
            timeout=httpx.Timeout(timeout, connect=10.0),
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: BackendConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "SupabaseBackend":
        return cls(
            url=config.url,
            anon_key=config.anon_key,
            timeout=config.timeout,
            max_connections=config.max_connections,
            max_keepalive=config.max_keepalive,
            transport=transport,
            client=client,
        )

    def with_token(self, access_token: Optional[str]) -> "SupabaseBackend":
        """A view on the same connection pool carrying another user's session token."""
        view = SupabaseBackend(self._url, self._anon_key, client=self._client)
        view.access_token = access_token or None
        return view

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {self.access_token or self._anon_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        service: str,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Send one request and return the decoded body.

        Raises:
            BackendError: transport failure or any status >= 400.
        """
        start = time.monotonic()
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._headers(headers),
            )
        except httpx.HTTPError as e:
            logger.warning(f"{service} {method} {path} failed: {e}")
            raise BackendError(str(e) or e.__class__.__name__, service=service) from e

        duration_ms = (time.monotonic() - start) * 1000
        log(log_backend_call(service, method, path, response.status_code, duration_ms))

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = response.text

        if response.status_code >= 400:
            error_code = None
            if isinstance(body, dict):
                error_code = body.get("error_code") or body.get("code")
            raise BackendError(
                extract_error_message(body, response.status_code),
                service=service,
                status_code=response.status_code,
                error_code=str(error_code) if error_code is not None else None,
            )
        return body

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class SupabaseAuth:
    """GoTrue email/password auth. Keeps the session token on the shared backend."""

    def __init__(self, backend: SupabaseBackend):
        self._backend = backend

    async def sign_in_with_password(self, email: str, password: str) -> AuthUser:
        body = await self._backend.request(
            "auth", "POST", "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        self._backend.access_token = body.get("access_token")
        return AuthUser.from_payload(body["user"])

    async def sign_up(self, email: str, password: str) -> Optional[AuthUser]:
        body = await self._backend.request(
            "auth", "POST", "/auth/v1/signup",
            json={"email": email, "password": password},
        )
        if not isinstance(body, dict):
            return None
        # With email confirmation on, GoTrue returns the bare user and no session
        if body.get("access_token"):
            self._backend.access_token = body["access_token"]
        user = body.get("user") or (body if "id" in body else None)
        return AuthUser.from_payload(user) if user else None

    async def sign_out(self) -> None:
        if not self._backend.access_token:
            return
        try:
            await self._backend.request("auth", "POST", "/auth/v1/logout")
        finally:
            self._backend.access_token = None

    async def get_user(self) -> AuthUser:
        if not self._backend.access_token:
            raise BackendError(SESSION_MISSING_MESSAGE, service="auth")
        body = await self._backend.request("auth", "GET", "/auth/v1/user")
        return AuthUser.from_payload(body)


class SupabaseTaskStore:
    """PostgREST row store over one table."""

    _RETURN_ROWS = {"Prefer": "return=representation"}

    def __init__(self, backend: SupabaseBackend, table: str = "tasks"):
        self._backend = backend
        self._table = table

    @property
    def _path(self) -> str:
        return f"/rest/v1/{self._table}"

    async def insert(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        body = await self._backend.request(
            "store", "POST", self._path, json=rows, headers=self._RETURN_ROWS,
        )
        return list(body or [])

    async def select(
        self,
        filters: Dict[str, Any],
        order_by: str = "created_at",
        descending: bool = True,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"select": "*"}
        for column, value in filters.items():
            params[column] = f"eq.{value}"
        params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        body = await self._backend.request("store", "GET", self._path, params=params)
        return list(body or [])

    async def update(self, row_id: Any, values: Dict[str, Any]) -> Dict[str, Any]:
        body = await self._backend.request(
            "store", "PATCH", self._path,
            params={"id": f"eq.{row_id}"},
            json=values,
            headers=self._RETURN_ROWS,
        )
        if not body:
            raise RecordError(
                "Task not found", record_type=self._table, record_id=row_id, operation="update",
            )
        return body[0]

    async def delete(self, row_id: Any) -> None:
        body = await self._backend.request(
            "store", "DELETE", self._path,
            params={"id": f"eq.{row_id}"},
            headers=self._RETURN_ROWS,
        )
        if not body:
            raise RecordError(
                "Task not found", record_type=self._table, record_id=row_id, operation="delete",
            )
