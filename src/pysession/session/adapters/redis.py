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
"""Redis-backed session store."""

from __future__ import annotations

import json
import logging
from typing import Any, cast

from pysession.session.cookie import parse_expires, utcnow

_logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "sess:"


class RedisSessionStore:
    """Session store backed by ``redis.asyncio``.

    Records are JSON-serialized under ``<prefix><session_id>``. When a
    record carries ``cookie.expires`` the key gets a matching PX expiry, so
    Redis drops sessions on its own; records without one fall back to
    *ttl* seconds, or never expire when *ttl* is ``None``.
    """

    def __init__(self, client: Any, prefix: str = DEFAULT_KEY_PREFIX, ttl: int | None = None) -> None:
        self._client = client
        self._prefix = prefix
        self._ttl = ttl

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    async def get(self, session_id: str) -> dict[str, Any] | None:
        raw = await self._client.get(self._key(session_id))
        if raw is None:
            return None
        try:
            return cast(dict[str, Any], json.loads(raw))
        except (json.JSONDecodeError, TypeError):
            _logger.warning("Discarding undecodable session record under '%s'", self._key(session_id))
            return None

    async def set(self, session_id: str, record: dict[str, Any]) -> None:
        raw = json.dumps(record, default=str)
        px = self._expiry_millis(record)
        if px is not None:
            await self._client.set(self._key(session_id), raw.encode(), px=px)
        elif self._ttl is not None:
            await self._client.set(self._key(session_id), raw.encode(), ex=self._ttl)
        else:
            await self._client.set(self._key(session_id), raw.encode())

    async def destroy(self, session_id: str) -> None:
        await self._client.delete(self._key(session_id))

    @staticmethod
    def _expiry_millis(record: dict[str, Any]) -> int | None:
        cookie = record.get("cookie") or {}
        expires = parse_expires(cookie.get("expires") or record.get("expires"))
        if expires is None:
            return None
        # Already-stale records still need a positive PX.
        return max(int((expires - utcnow()).total_seconds() * 1000), 1)
