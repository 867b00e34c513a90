"""Tests for the REST client against a mocked backend."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import anyio
import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from splitit.client import APIError, SplitItClient
from splitit.pagination import Pageable


def _run(handler, operation):
    async def _main():
        async with SplitItClient(
            "http://backend.test/",
            token="secret-token",
            transport=httpx.MockTransport(handler),
        ) as client:
            return await operation(client)

    return anyio.run(_main)


def test_identity_sends_bearer_token() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"login": "alice"})

    result = _run(handler, lambda client: client.identity())

    assert result == {"login": "alice"}
    assert seen[0].url.path == "/api/account"
    assert seen[0].headers["Authorization"] == "Bearer secret-token"


def test_group_summaries_filters_by_group_and_login_only() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"summaries": [{"login": "alice", "balance": 12.5}]})

    result = _run(handler, lambda client: client.group_summaries(7, "alice"))

    assert result.count == 1
    request = seen[0]
    assert request.url.path == "/api/summaries/groups/7"
    assert dict(request.url.params) == {"login": "alice"}


def test_group_summaries_rejects_payload_without_summaries() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(APIError):
        _run(handler, lambda client: client.group_summaries(7, "alice"))


def test_error_message_comes_from_response_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"message": "error.groupNotFound", "description": "nope"})

    with pytest.raises(APIError) as excinfo:
        _run(handler, lambda client: client.group_summaries(7, "alice"))

    error = excinfo.value
    assert error.status_code == 400
    assert error.message == "error.groupNotFound"
    assert error.data["message"] == "error.groupNotFound"
    assert error.data["description"] == "nope"


def test_error_without_body_gets_default_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    with pytest.raises(APIError) as excinfo:
        _run(handler, lambda client: client.identity())

    assert excinfo.value.data == {"message": "Request failed with status 503"}


def test_transport_errors_are_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(APIError) as excinfo:
        _run(handler, lambda client: client.identity())

    assert excinfo.value.status_code is None
    assert "connection refused" in excinfo.value.message


def test_authenticate_returns_token() -> None:
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"id_token": "jwt-token"})

    token = _run(handler, lambda client: client.authenticate("alice", "pw", remember_me=True))

    assert token == "jwt-token"
    assert bodies == [{"username": "alice", "password": "pw", "rememberMe": True}]


def test_group_transactions_reads_paging_headers() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"content": [{"id": 1}, {"id": 2}], "totalElements": 40},
            headers={
                "X-Total-Count": "41",
                "Link": '</api/groups/3/transactions?page=1&size=2>; rel="next", '
                '</api/groups/3/transactions?page=20&size=2>; rel="last"',
            },
        )

    page = _run(handler, lambda client: client.group_transactions(3, Pageable(size=2, predicate="amount")))

    assert [item["id"] for item in page.items] == [1, 2]
    assert page.total_count == 41
    assert page.has_next
    assert page.links["last"].endswith("page=20&size=2")
    params = seen[0].url.params
    assert params["page"] == "0"
    assert params["size"] == "2"
    assert params.get_list("sort") == ["amount,asc", "id"]


def test_update_transaction_requires_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - never reached
        raise AssertionError("request should not be sent")

    with pytest.raises(APIError):
        _run(handler, lambda client: client.update_transaction({"description": "x"}))


def test_group_members_returns_list() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/groups/3/users"
        return httpx.Response(200, json=[{"login": "alice"}, {"login": "bob"}])

    members = _run(handler, lambda client: client.group_members(3))

    assert [member["login"] for member in members] == ["alice", "bob"]


def test_empty_base_url_rejected() -> None:
    with pytest.raises(ValueError):
        SplitItClient("  ")
