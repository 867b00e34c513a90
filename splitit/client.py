"""Async HTTP client for the splitIt REST backend."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from .models import GroupSummaryResult, Page
from .pagination import Pageable, links_from_response

logger = logging.getLogger("splitit.client")


class APIError(Exception):
    """Raised when the REST backend cannot satisfy a request.

    ``data`` mirrors the decoded error body and always carries a ``message``
    entry, so callers can forward ``error.data["message"]`` to the user.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        payload = dict(data) if data else {}
        payload["message"] = message
        self.data: Dict[str, Any] = payload

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


def _extract_error_message(payload: object, default: str) -> str:
    if isinstance(payload, dict):
        for key in ("message", "detail", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return default


def _build_path(path: str) -> str:
    if not path.startswith("/"):
        path = "/" + path
    return path


class SplitItClient:
    """Thin async wrapper over the splitIt REST resources."""

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 10.0,
        verify: str | bool | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        cleaned = (base_url or "").strip()
        if not cleaned:
            raise ValueError("API base URL must not be empty")

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._base_url = cleaned.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout,
            verify=True if verify is None else verify,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "SplitItClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    async def authenticate(self, username: str, password: str, *, remember_me: bool = False) -> str:
        """Exchange credentials for a bearer token."""
        response = await self._request(
            "POST",
            "/api/authenticate",
            json={"username": username, "password": password, "rememberMe": remember_me},
        )
        payload = self._json(response)
        token = payload.get("id_token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise APIError("Authentication response did not include a token", status_code=response.status_code)
        return token

    async def identity(self) -> Dict[str, Any]:
        """Return the account record of the authenticated user."""
        return self._expect_object(await self._request("GET", "/api/account"))

    async def group_summaries(self, group_id: int | str, login: str) -> GroupSummaryResult:
        response = await self._request(
            "GET",
            f"/api/summaries/groups/{group_id}",
            params={"login": login},
        )
        payload = self._expect_object(response)
        try:
            return GroupSummaryResult.from_payload(payload)
        except ValueError as exc:
            raise APIError(str(exc), status_code=response.status_code) from exc

    async def get_transaction(self, transaction_id: int | str) -> Dict[str, Any]:
        return self._expect_object(await self._request("GET", f"/api/transactions/{transaction_id}"))

    async def update_transaction(self, transaction: Mapping[str, Any]) -> Dict[str, Any]:
        if transaction.get("id") is None:
            raise APIError("A transaction must have an id to be updated", status_code=None)
        return self._expect_object(await self._request("PUT", "/api/transactions", json=dict(transaction)))

    async def get_group(self, group_id: int | str) -> Dict[str, Any]:
        return self._expect_object(await self._request("GET", f"/api/groups/{group_id}"))

    async def group_transactions(self, group_id: int | str, pageable: Optional[Pageable] = None) -> Page:
        pageable = pageable or Pageable()
        response = await self._request(
            "GET",
            f"/api/groups/{group_id}/transactions",
            params=pageable.params(),
        )
        payload = self._json(response)
        # Spring serialises a Page as an object with a "content" list.
        if isinstance(payload, dict):
            items = payload.get("content", [])
            total = payload.get("totalElements")
        else:
            items = payload
            total = None
        if not isinstance(items, list):
            raise APIError("Transaction listing returned an unexpected payload", status_code=response.status_code)

        header_total = response.headers.get("X-Total-Count")
        if header_total is not None:
            try:
                total = int(header_total)
            except ValueError:
                logger.warning("Ignoring malformed X-Total-Count header: %r", header_total)

        return Page(
            items=tuple(dict(item) for item in items if isinstance(item, dict)),
            total_count=total if isinstance(total, int) else None,
            links=links_from_response(response.links),
        )

    async def group_members(self, group_id: int | str) -> List[Dict[str, Any]]:
        payload = self._json(await self._request("GET", f"/api/groups/{group_id}/users"))
        if not isinstance(payload, list):
            raise APIError("Group member listing returned an unexpected payload")
        return [dict(item) for item in payload if isinstance(item, dict)]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = _build_path(path)
        logger.debug("%s %s%s", method, self._base_url, url)
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            raise APIError(f"Failed to contact the splitIt API: {exc}") from exc

        if response.status_code >= 400:
            default = f"Request failed with status {response.status_code}"
            try:
                parsed = response.json()
            except ValueError:
                parsed = response.text
            message = _extract_error_message(parsed, default)
            logger.info("%s %s failed with %s: %s", method, url, response.status_code, message)
            raise APIError(
                message,
                status_code=response.status_code,
                data=parsed if isinstance(parsed, dict) else None,
            )

        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise APIError("The splitIt API returned an invalid response", status_code=response.status_code) from exc

    def _expect_object(self, response: httpx.Response) -> Dict[str, Any]:
        payload = self._json(response)
        if not isinstance(payload, dict):
            raise APIError("The splitIt API returned an unexpected response payload", status_code=response.status_code)
        return payload


__all__ = ["APIError", "SplitItClient"]
