"""Supabase access for the maintenance scripts.

Table reads, upserts and password sign-in go through the ``supabase`` client.
The auth admin endpoints are called over httpx with the service-role key.
Scripts talk to the hosted project directly instead of going through the
service database session.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Union

import httpx
from libs.common.logging import get_logger

from supabase import AuthError, Client, PostgrestAPIError, create_client

logger = get_logger(__name__)

Row = Dict[str, Any]

DUPLICATE_KEY_CODE = "23505"


class SupabaseError(Exception):
    """Error reported by the hosted store."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details

    @property
    def is_duplicate_key(self) -> bool:
        return self.code == DUPLICATE_KEY_CODE or "duplicate key" in self.message

    @classmethod
    def from_api_error(cls, exc: PostgrestAPIError) -> "SupabaseError":
        code = str(exc.code) if exc.code is not None else None
        return cls(exc.message or str(exc), code=code, details=exc.details)

    @classmethod
    def from_auth_error(cls, exc: AuthError) -> "SupabaseError":
        return cls(
            getattr(exc, "message", None) or str(exc),
            status_code=getattr(exc, "status", None),
            code=getattr(exc, "code", None),
        )

    @classmethod
    def from_response(cls, response: httpx.Response) -> "SupabaseError":
        message = response.text or response.reason_phrase
        code = None
        details = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = (
                body.get("message")
                or body.get("msg")
                or body.get("error_description")
                or body.get("error")
                or message
            )
            code = body.get("code")
            details = body.get("details")
            if code is not None:
                code = str(code)
        return cls(message, status_code=response.status_code, code=code, details=details)


# Failures a caller may record and move past: error responses and transport errors
STORE_ERRORS = (SupabaseError, httpx.HTTPError)


def get_supabase_client(url: str, key: str) -> Client:
    return create_client(url, key)


class SupabaseClient:
    """Per-table select/upsert plus password sign-in and auth admin calls.

    The ``supabase`` client is synchronous, so its calls run in a worker
    thread. It is created on first use; pass ``client`` to supply one.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        client: Optional[Client] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self.api_key = api_key
        self._supabase = client
        self._admin_http = httpx.AsyncClient(
            base_url=self.url, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> "SupabaseClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._admin_http.aclose()

    @property
    def supabase(self) -> Client:
        if self._supabase is None:
            self._supabase = get_supabase_client(self.url, self.api_key)
        return self._supabase

    async def _call(self, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(func, *args)
        except PostgrestAPIError as exc:
            error = SupabaseError.from_api_error(exc)
        except AuthError as exc:
            error = SupabaseError.from_auth_error(exc)
        logger.debug("Supabase call failed: %s", error.message)
        raise error

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        """Sign in; the client then sends the session token on table requests."""
        response = await self._call(
            self.supabase.auth.sign_in_with_password,
            {"email": email, "password": password},
        )
        user = getattr(response, "user", None)
        if user is None:
            return {}
        return {"id": user.id, "email": user.email}

    async def _admin_request(
        self, method: str, path: str, *, json: Any = None
    ) -> httpx.Response:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        response = await self._admin_http.request(method, path, json=json, headers=headers)
        if response.status_code >= 400:
            error = SupabaseError.from_response(response)
            logger.debug("%s %s failed: %s", method, path, error.message)
            raise error
        return response

    async def list_auth_users(self) -> List[Dict[str, Any]]:
        response = await self._admin_request("GET", "/auth/v1/admin/users")
        data = response.json()
        return data.get("users", []) if isinstance(data, dict) else data

    async def create_auth_user(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._admin_request("POST", "/auth/v1/admin/users", json=payload)
        return response.json()

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """Rows of ``table``; ``filters`` are equality predicates."""

        def run():
            query = self.supabase.table(table).select(columns)
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            if order_by:
                query = query.order(order_by, desc=not ascending)
            if limit is not None:
                query = query.limit(limit)
            return query.execute()

        response = await self._call(run)
        return response.data or []

    async def upsert(
        self,
        table: str,
        rows: Union[Row, List[Row]],
        *,
        on_conflict: str = "id",
        ignore_duplicates: bool = False,
    ) -> None:
        """Insert rows, resolving primary-key conflicts by merging or ignoring.

        Keys absent from a row take the column default rather than null.
        """

        def run():
            return (
                self.supabase.table(table)
                .upsert(
                    rows,
                    on_conflict=on_conflict,
                    ignore_duplicates=ignore_duplicates,
                    default_to_null=False,
                )
                .execute()
            )

        await self._call(run)
