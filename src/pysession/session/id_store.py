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
"""Where the signed session id travels: a cookie (default) or a header."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pysession.session.cookie import CookieOptions


@runtime_checkable
class IdStore(Protocol):
    """Reads the signed id from a request and writes/clears it on a response."""

    def get(self, request: Any, name: str) -> str | None: ...

    def set(self, response: Any, name: str, value: str, options: CookieOptions) -> None: ...

    def clear(self, response: Any, name: str, options: CookieOptions) -> None: ...


class CookieIdStore:
    """Session id in a cookie, serialized by Starlette's cookie helpers."""

    def get(self, request: Any, name: str) -> str | None:
        return request.cookies.get(name) or None

    def set(self, response: Any, name: str, value: str, options: CookieOptions) -> None:
        response.set_cookie(key=name, value=value, **options.set_cookie_kwargs())

    def clear(self, response: Any, name: str, options: CookieOptions) -> None:
        response.delete_cookie(
            key=name,
            path=options.path,
            domain=options.domain,
            secure=options.secure,
            httponly=options.http_only,
            samesite=options.same_site,
        )


class HeaderIdStore:
    """Session id in a request/response header named after the cookie name.

    For API clients without cookie jars. Cookie attributes do not apply.
    """

    def get(self, request: Any, name: str) -> str | None:
        return request.headers.get(name.lower()) or None

    def set(self, response: Any, name: str, value: str, options: CookieOptions) -> None:
        response.headers[name] = value

    def clear(self, response: Any, name: str, options: CookieOptions) -> None:
        if name in response.headers:
            del response.headers[name]
