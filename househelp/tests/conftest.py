"""Shared fixtures: an in-memory stand-in for the data store and token authority.

The fake speaks just enough of the REST dialect the gateway uses (``eq.``/``gte.``
filters, ``order``, ``limit``/``offset``, ``Prefer: count=exact``, RPC) and is
served through ``httpx.MockTransport`` so no request leaves the process.
"""

import asyncio
import json
import os
import re
import time
from collections import defaultdict
from typing import Any, Dict, List, Optional

import httpx
import jwt
import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("HOUSEHELP_ENV", "test")

from househelp import config  # noqa: E402
from househelp.api.v1.deps.auth import get_optional_datastore  # noqa: E402
from househelp.main import app  # noqa: E402
from househelp.services.datastore import DatastoreClient  # noqa: E402

TEST_SECRET = "test-signing-secret"
RESERVED_PARAMS = {"select", "order", "limit", "offset"}
SUM_PATTERN = re.compile(r"sum\((\w+)\)")


def make_token(
    user_id: str,
    user_type: str,
    email: str = "user@househelp.test",
    expires_in: int = 3600,
    secret: str = TEST_SECRET,
) -> str:
    payload = {
        "userId": user_id,
        "email": email,
        "userType": user_type,
        "exp": int(time.time()) + expires_in,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def _matches(row: Dict[str, Any], column: str, expression: str) -> bool:
    op, _, expected = expression.partition(".")
    actual = row.get(column)
    actual_str = "" if actual is None else str(actual).lower() if isinstance(actual, bool) else str(actual)
    if op == "eq":
        return actual_str == expected
    if op == "neq":
        return actual_str != expected
    if op == "gte":
        return actual is not None and actual_str >= expected
    if op == "lte":
        return actual is not None and actual_str <= expected
    if op == "in":
        return actual_str in expected.strip("()").split(",")
    raise AssertionError(f"unsupported filter {expression!r}")


class FakeDatastore:
    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []
        self.failures: Dict[str, int] = {}
        self.timeouts: set = set()
        self.omit_count = False

    def add_session(self, token: str, user_id: str, user_type: str, **fields: Any) -> None:
        row = {
            "id": user_id,
            "user_type": user_type,
            "email": fields.pop("email", f"{user_id.lower()}@househelp.test"),
            "name": fields.pop("name", f"User {user_id}"),
            "phone": fields.pop("phone", "+250788000000"),
            "status": fields.pop("status", "active"),
        }
        row.update(fields)
        self.sessions[token] = row

    def login(self, user_id: str, user_type: str, **fields: Any) -> str:
        token = make_token(user_id, user_type)
        self.add_session(token, user_id, user_type, **fields)
        return token

    def requests_to(self, name: str, method: Optional[str] = None) -> List[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.url.path == f"/rest/v1/{name}" and (method is None or r.method == method)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        name = request.url.path[len("/rest/v1/"):]
        if name in self.timeouts:
            raise httpx.ReadTimeout("timed out", request=request)
        if name in self.failures:
            return httpx.Response(self.failures[name], json={"message": "upstream failure"})
        if name.startswith("rpc/"):
            body = json.loads(request.content or b"{}")
            row = self.sessions.get(body.get("session_token", ""))
            return httpx.Response(200, json=[row] if row else [])
        if request.method == "GET":
            return self._select(name, request)
        if request.method == "POST":
            self.tables[name].append(json.loads(request.content))
            return httpx.Response(201)
        if request.method == "DELETE":
            return self._delete(name, request)
        return httpx.Response(405)

    def _select(self, name: str, request: httpx.Request) -> httpx.Response:
        params = list(request.url.params.multi_items())
        rows = list(self.tables.get(name, []))
        for column, expression in params:
            if column in RESERVED_PARAMS:
                continue
            rows = [row for row in rows if _matches(row, column, expression)]
        sums = SUM_PATTERN.findall(request.url.params.get("select", ""))
        if sums:
            totals = {column: sum(row.get(column) or 0 for row in rows) for column in sums}
            aggregate = totals[sums[0]] if len(sums) == 1 else totals
            return httpx.Response(200, json=[{"sum": aggregate}])
        order = request.url.params.get("order")
        if order:
            column, _, direction = order.partition(".")
            rows.sort(key=lambda row: str(row.get(column, "")), reverse=direction == "desc")
        total = len(rows)
        offset = int(request.url.params.get("offset", "0"))
        limit = request.url.params.get("limit")
        end = offset + int(limit) if limit is not None else None
        page = rows[offset:end]
        headers = {}
        if request.headers.get("prefer") == "count=exact" and not self.omit_count:
            if page:
                headers["content-range"] = f"{offset}-{offset + len(page) - 1}/{total}"
            else:
                headers["content-range"] = f"*/{total}"
        return httpx.Response(200, json=page, headers=headers)

    def _delete(self, name: str, request: httpx.Request) -> httpx.Response:
        expression = request.url.params.get("token", "")
        if name == "sessions" and expression.startswith("eq."):
            self.sessions.pop(expression[len("eq."):], None)
        return httpx.Response(204)


@pytest.fixture
def fake_store() -> FakeDatastore:
    return FakeDatastore()


@pytest.fixture
def datastore(fake_store: FakeDatastore):
    client = DatastoreClient(
        "https://db.househelp.test",
        "service-role-key",
        timeout=1.0,
        transport=httpx.MockTransport(fake_store.handler),
    )
    yield client
    asyncio.run(client.close())


@pytest.fixture
def signing_secret(monkeypatch) -> str:
    monkeypatch.setattr(config, "JWT_SECRET", TEST_SECRET)
    return TEST_SECRET


@pytest.fixture
def client(datastore: DatastoreClient, signing_secret: str):
    app.dependency_overrides[get_optional_datastore] = lambda: datastore
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def mint_token():
    return make_token
