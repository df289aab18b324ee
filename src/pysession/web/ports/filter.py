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
"""WebFilter protocol: the seam between HTTP plumbing and request filters.

Request and response are typed ``Any`` so vendor types (Starlette) stay in
the adapter layer.
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any, Protocol, runtime_checkable

# Next callable in the chain: Callable[[Request], Coroutine[Any, Any, Response]]
CallNext = Callable[..., Coroutine[Any, Any, Any]]


@runtime_checkable
class WebFilter(Protocol):
    """A request/response interceptor run by ``WebFilterChainMiddleware``."""

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        """Run around the rest of the chain and return the response."""
        ...

    def should_not_filter(self, request: Any) -> bool:
        """Return ``True`` to bypass this filter for *request*."""
        ...
