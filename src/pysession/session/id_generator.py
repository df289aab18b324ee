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
"""Session id generation from a pooled secure random source."""

from __future__ import annotations

import base64
import secrets
import threading
from typing import Any, Protocol, runtime_checkable

DEFAULT_ID_BYTES = 24
"""Random bytes per id; 24 bytes encode to 32 URL-safe characters."""

_POOL_BATCH_IDS = 128


@runtime_checkable
class IdGenerator(Protocol):
    """Produces a new, unpredictable session id on every call.

    The current request is passed so custom generators can look at it (and
    at ``request.session`` when a session is already bound); the default
    generator ignores it.
    """

    def __call__(self, request: Any = None) -> str: ...


class RandomBytePool:
    """Buffer of secure random bytes refilled in batches.

    Amortizes calls into the OS random source. Reads are serialized by a
    lock so one pool can be shared by every request handler thread.
    """

    def __init__(self, batch_size: int = DEFAULT_ID_BYTES * _POOL_BATCH_IDS) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._batch_size = batch_size
        self._buffer = b""
        self._cursor = 0
        self._lock = threading.Lock()

    @property
    def available(self) -> int:
        return len(self._buffer) - self._cursor

    def take(self, size: int) -> bytes:
        """Return *size* fresh bytes, refilling the buffer when exhausted."""
        with self._lock:
            if size > self.available:
                self._buffer = secrets.token_bytes(max(self._batch_size, size))
                self._cursor = 0
            chunk = self._buffer[self._cursor : self._cursor + size]
            self._cursor += size
            return chunk


class DefaultIdGenerator:
    """URL-safe base64 ids (no padding) drawn from a :class:`RandomBytePool`."""

    def __init__(self, pool: RandomBytePool | None = None, size: int = DEFAULT_ID_BYTES) -> None:
        self._pool = pool or _shared_pool
        self._size = size

    def __call__(self, request: Any = None) -> str:
        raw = self._pool.take(self._size)
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


_shared_pool = RandomBytePool()

default_id_generator = DefaultIdGenerator()
