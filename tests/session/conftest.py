# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Shared fixtures for session tests: stores, apps and request factories."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from pysession.session.adapters.memory import MemoryStore
from pysession.session.adapters.proxy import as_proxy
from pysession.session.cookie import CookieProperties
from pysession.session.filter import SessionFilter
from pysession.session.id_generator import default_id_generator
from pysession.session.options import SessionOptions
from pysession.session.session import SessionContext
from pysession.session.signer import CookieSigner
from pysession.web.adapters.starlette.filter_chain import WebFilterChainMiddleware

SECRET = "cNaoPYAwF60HZJzkcNaoPYAwF60HZJzk"
OLD_SECRET = "ayYQF5kbLqoMDomyayYQF5kbLqoMDomy"


class RecordingStore:
    """Coroutine-style store that records every call."""

    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []

    async def get(self, session_id: str) -> dict[str, Any] | None:
        self.calls.append(("get", session_id))
        return self.records.get(session_id)

    async def set(self, session_id: str, record: dict[str, Any]) -> None:
        self.calls.append(("set", session_id))
        self.records[session_id] = record

    async def destroy(self, session_id: str) -> None:
        self.calls.append(("destroy", session_id))
        self.records.pop(session_id, None)

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)


class CallbackStore:
    """Callback-style store: every operation ends with ``callback(err, value)``."""

    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}
        self.get_error: BaseException | None = None
        self.set_error: BaseException | None = None
        self.destroy_error: BaseException | None = None

    def get(self, session_id: str, callback: Callable[..., None]) -> None:
        if self.get_error is not None:
            callback(self.get_error)
        else:
            callback(None, self.records.get(session_id))

    def set(self, session_id: str, record: dict[str, Any], callback: Callable[..., None]) -> None:
        if self.set_error is not None:
            callback(self.set_error)
            return
        self.records[session_id] = record
        callback(None)

    def destroy(self, session_id: str, callback: Callable[..., None]) -> None:
        if self.destroy_error is not None:
            callback(self.destroy_error)
            return
        self.records.pop(session_id, None)
        callback(None)


async def read_session(request: Request) -> JSONResponse:
    session = request.session
    return JSONResponse({"id": session.session_id, "data": dict(session)})


async def write_session(request: Request) -> JSONResponse:
    for key, value in request.query_params.items():
        request.session[key] = value
    return JSONResponse({"id": request.session.session_id, "data": dict(request.session)})


def build_app(session_filter: SessionFilter, *extra_routes: Route) -> Starlette:
    return Starlette(
        routes=[
            Route("/", read_session),
            Route("/write", write_session),
            *extra_routes,
        ],
        middleware=[Middleware(WebFilterChainMiddleware, filters=[session_filter])],
    )


def make_request(
    path: str = "/",
    scheme: str = "http",
    headers: dict[str, str] | None = None,
) -> Request:
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": scheme,
        "path": path,
        "raw_path": path.encode(),
        "query_string": b"",
        "headers": raw_headers,
        "server": ("testserver", 443 if scheme == "https" else 80),
        "client": ("testclient", 50000),
    }
    return Request(scope)


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def callback_store() -> CallbackStore:
    return CallbackStore()


@pytest.fixture
def request_factory() -> Callable[..., Request]:
    return make_request


@pytest.fixture
def client_factory() -> Callable[..., TestClient]:
    """Build a TestClient around a SessionFilter made from option kwargs."""

    def _factory(
        *extra_routes: Route,
        base_url: str = "http://testserver",
        raise_server_exceptions: bool = True,
        **option_values: Any,
    ) -> TestClient:
        option_values.setdefault("secret", SECRET)
        option_values.setdefault("cookie", {"secure": False})
        session_filter = SessionFilter(SessionOptions(**option_values))
        app = build_app(session_filter, *extra_routes)
        return TestClient(app, base_url=base_url, raise_server_exceptions=raise_server_exceptions)

    return _factory


@pytest.fixture
def context_factory() -> Callable[..., SessionContext]:
    def _factory(store: Any = None, rolling: bool = True, **cookie: Any) -> SessionContext:
        return SessionContext(
            store=as_proxy(store if store is not None else MemoryStore()),
            signer=CookieSigner(SECRET),
            id_generator=default_id_generator,
            cookie=CookieProperties(**cookie),
            rolling=rolling,
        )

    return _factory
