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
"""Session store protocol."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SessionStore(Protocol):
    """Persistence for session records, keyed by session id.

    Records are opaque mappings; ``cookie.expires`` (or a top-level
    ``expires``) tells the filter when a record is stale. A store reports a
    missing record either by returning ``None`` or by raising an error the
    filter recognizes as not-found (``SessionNotFoundException``,
    ``FileNotFoundError``, or ``code == "ENOENT"``). Any other error is an
    I/O failure and is propagated.

    Stores may instead expose callback-style methods
    (``get(session_id, callback)``); wrap them in ``ProxyStore``.
    """

    async def get(self, session_id: str) -> dict[str, Any] | None: ...

    async def set(self, session_id: str, record: dict[str, Any]) -> None: ...

    async def destroy(self, session_id: str) -> None: ...
