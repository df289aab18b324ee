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
"""ProxyStore: uniform await/callback access to any session store."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any

from pysession.session.completion import Callback, complete


class ProxyStore:
    """Wraps a store so ``get``/``set``/``destroy`` support both conventions.

    The wrapped store may implement each operation as a coroutine
    (``async def get(session_id)``, or any callable returning an awaitable)
    or callback-style (``def get(session_id, callback)`` calling
    ``callback(err, value)``). A method whose signature accepts the extra
    callback argument is treated as callback-style.
    Callers of the proxy may ``await`` the operation or pass
    ``callback=``. The wrapped store is never modified; any other attribute
    is read straight from it.
    """

    def __init__(self, store: Any) -> None:
        self._store = store

    @property
    def target(self) -> Any:
        return self._store

    def get(self, session_id: str, callback: Callback | None = None) -> Any:
        return complete(self._invoke("get", session_id), callback, with_value=True)

    def set(self, session_id: str, record: dict[str, Any], callback: Callback | None = None) -> Any:
        return complete(self._invoke("set", session_id, record), callback)

    def destroy(self, session_id: str, callback: Callback | None = None) -> Any:
        return complete(self._invoke("destroy", session_id), callback)

    async def _invoke(self, name: str, *args: Any) -> Any:
        method = getattr(self._store, name)
        if not _takes_callback(method, len(args)):
            result = method(*args)
            return await result if inspect.isawaitable(result) else result

        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()

        def _settle(error: BaseException | None, value: Any) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(value)

        def _callback(error: BaseException | None = None, value: Any = None) -> None:
            loop.call_soon_threadsafe(_settle, error, value)

        method(*args, _callback)
        return await future

    def __getattr__(self, name: str) -> Any:
        return getattr(self._store, name)


def _takes_callback(method: Any, arity: int) -> bool:
    if inspect.iscoroutinefunction(method) or inspect.iscoroutinefunction(getattr(method, "__call__", None)):
        return False
    try:
        signature = inspect.signature(method)
    except (TypeError, ValueError):
        return True
    try:
        signature.bind(*([None] * (arity + 1)))
    except TypeError:
        return False
    return True


def as_proxy(store: Any) -> ProxyStore:
    """Wrap *store* unless it already is a :class:`ProxyStore`."""
    return store if isinstance(store, ProxyStore) else ProxyStore(store)
