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
"""WebFilterChainMiddleware: pure ASGI middleware running WebFilters in order."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, cast

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from pysession.web.ordering import get_order
from pysession.web.ports.filter import CallNext, WebFilter


class WebFilterChainMiddleware:
    """Executes a chain of :class:`WebFilter` instances around the app.

    Filters are sorted by :func:`get_order` (stable for equal orders). The
    downstream response is buffered into a Starlette ``Response`` so filters
    can add headers such as ``Set-Cookie`` after the handler has run.
    Non-HTTP scopes (WebSocket, lifespan) pass straight through.

    Usage::

        app = Starlette(
            routes=[...],
            middleware=[Middleware(WebFilterChainMiddleware, filters=[session_filter])],
        )
    """

    def __init__(self, app: ASGIApp, filters: Sequence[WebFilter] = ()) -> None:
        self.app = app
        self._filters = sorted(filters, key=get_order)

    @property
    def filters(self) -> list[WebFilter]:
        return list(self._filters)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def _endpoint(request: Request) -> Response:
            return await _buffered_response(self.app, request.scope, request.receive)

        chain: CallNext = _endpoint
        for web_filter in reversed(self._filters):
            chain = _wrap(web_filter, chain)

        response = cast(Response, await chain(Request(scope, receive, send)))
        await response(scope, receive, send)


async def _buffered_response(app: ASGIApp, scope: Scope, receive: Receive) -> Response:
    """Run *app* and collect what it sends into a single ``Response``."""
    start: Message = {"status": 200, "headers": []}
    body = bytearray()

    async def _capture(message: Message) -> None:
        if message["type"] == "http.response.start":
            start.update(message)
        elif message["type"] == "http.response.body":
            body.extend(message.get("body", b""))

    await app(scope, receive, _capture)

    response = Response(content=bytes(body), status_code=start["status"])
    response.raw_headers[:] = list(start.get("headers", []))
    return response


def _wrap(web_filter: WebFilter, next_call: CallNext) -> CallNext:
    async def _inner(request: Any) -> Response:
        if web_filter.should_not_filter(request):
            return cast(Response, await next_call(request))
        return cast(Response, await web_filter.do_filter(request, next_call))

    return _inner
