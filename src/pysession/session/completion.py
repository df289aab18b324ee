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
"""Dual completion: await the coroutine, or pass a callback.

Every store and lifecycle operation is written once as a coroutine.
:func:`complete` returns it untouched for ``await`` callers, or schedules
it as a task and reports the outcome to ``callback(error[, value])``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

T = TypeVar("T")

Callback = Callable[..., Any]

# Strong references to callback-driven tasks until they finish.
_pending: set[asyncio.Task[Any]] = set()


def complete(
    operation: Coroutine[Any, Any, T],
    callback: Callback | None = None,
    *,
    with_value: bool = False,
) -> Awaitable[T]:
    """Run *operation* under the caller's chosen completion convention.

    Args:
        operation: The coroutine doing the work.
        callback: Optional ``callback(error)`` (or ``callback(error, value)``
            when *with_value* is true). ``error`` is ``None`` on success.
        with_value: Pass the coroutine's result as second argument.

    Returns:
        The coroutine itself when no callback is given, otherwise the
        scheduled task (awaiting it re-raises the failure).
    """
    if callback is None:
        return operation

    task = asyncio.ensure_future(operation)
    _pending.add(task)

    def _done(finished: asyncio.Task[T]) -> None:
        _pending.discard(finished)
        if finished.cancelled():
            callback(asyncio.CancelledError())
            return
        error = finished.exception()
        if error is not None:
            callback(error)
        elif with_value:
            callback(None, finished.result())
        else:
            callback(None)

    task.add_done_callback(_done)
    return task
