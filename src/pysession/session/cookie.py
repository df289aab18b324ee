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
"""Cookie attributes: static configuration and per-request resolution."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


def _hyphenate(name: str) -> str:
    return name.replace("_", "-")


class CookieProperties(BaseModel):
    """Configured cookie attributes (``pysession.session.cookie``).

    ``max_age`` is in milliseconds and wins over ``expires`` when both are
    set. ``secure="auto"`` decides per request from the connection.
    """

    model_config = ConfigDict(alias_generator=_hyphenate, populate_by_name=True)

    path: str = "/"
    max_age: int | None = None
    expires: datetime | None = None
    http_only: bool = True
    secure: bool | Literal["auto"] = True
    same_site: str | None = None
    domain: str | None = None


@dataclasses.dataclass
class CookieOptions:
    """Resolved attributes of one session's cookie.

    Also the ``cookie`` sub-record persisted with the session, so that
    ``original_max_age`` survives between requests.
    """

    path: str = "/"
    http_only: bool = True
    secure: bool = True
    same_site: str | None = None
    domain: str | None = None
    expires: datetime | None = None
    original_max_age: int | None = None

    def touch(self, now: datetime | None = None) -> None:
        """Move ``expires`` to ``now + original_max_age``; no-op without a max age."""
        if self.original_max_age:
            now = now or utcnow()
            self.expires = now + timedelta(milliseconds=self.original_max_age)

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["expires"] = self.expires.isoformat() if self.expires else None
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CookieOptions:
        known = {f.name for f in dataclasses.fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["expires"] = parse_expires(values.get("expires"))
        return cls(**values)

    def set_cookie_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for Starlette's ``Response.set_cookie``."""
        return {
            "path": self.path,
            "domain": self.domain,
            "secure": self.secure,
            "httponly": self.http_only,
            "samesite": self.same_site,
            "expires": self.expires,
        }


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_expires(value: Any) -> datetime | None:
    """Read an expiry stored as datetime, ISO-8601 string or epoch milliseconds."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise TypeError(f"Unsupported expires value: {value!r}")


def is_connection_secure(request: Any) -> bool:
    """TLS ends at this process, or a proxy reports ``x-forwarded-proto: https``."""
    if request.url.scheme in ("https", "wss"):
        return True
    return request.headers.get("x-forwarded-proto") == "https"


def resolve_cookie_options(
    configured: CookieProperties,
    request: Any,
    previous: CookieOptions | Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> CookieOptions:
    """Effective cookie attributes for *request*.

    ``previous`` is the cookie of the session being continued; only its
    ``original_max_age`` is carried over; everything else is recomputed
    from configuration and the live connection.
    """
    if isinstance(previous, Mapping):
        previous = CookieOptions.from_dict(previous)

    original_max_age = (previous.original_max_age if previous else None) or configured.max_age or None

    expires: datetime | None = None
    if original_max_age:
        expires = (now or utcnow()) + timedelta(milliseconds=original_max_age)
    elif configured.expires:
        expires = parse_expires(configured.expires)

    same_site = configured.same_site
    if configured.secure == "auto":
        secure = is_connection_secure(request)
        if not secure:
            same_site = "Lax"
    else:
        secure = bool(configured.secure)

    return CookieOptions(
        path=configured.path or "/",
        http_only=configured.http_only,
        secure=secure,
        same_site=same_site,
        domain=configured.domain,
        expires=expires,
        original_max_age=original_max_age,
    )
