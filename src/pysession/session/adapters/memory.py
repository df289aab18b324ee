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
"""In-memory session store."""

from __future__ import annotations

import asyncio
import copy
from collections.abc import MutableMapping
from typing import Any


class MemoryStore:
    """Process-local store keeping deep copies of records in a dict.

    Suitable for development, tests and single-process deployments. Records
    are not shared between worker processes and are never evicted, so
    stale sessions are only removed when a request presents them.
    """

    def __init__(self, records: MutableMapping[str, dict[str, Any]] | None = None) -> None:
        self._records: MutableMapping[str, dict[str, Any]] = records if records is not None else {}
        self._lock = asyncio.Lock()

    async def get(self, session_id: str) -> dict[str, Any] | None:
        async with self._lock:
            record = self._records.get(session_id)
            return copy.deepcopy(record) if record is not None else None

    async def set(self, session_id: str, record: dict[str, Any]) -> None:
        async with self._lock:
            self._records[session_id] = copy.deepcopy(record)

    async def destroy(self, session_id: str) -> None:
        async with self._lock:
            self._records.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._records
