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
"""OncePerRequestFilter: base class for WebFilters with path scoping.

Framework-agnostic: reads ``request.url.path`` through the attribute
protocol, so no Starlette import is needed here.
"""

from __future__ import annotations

import abc
from fnmatch import fnmatch
from typing import Any

from pysession.web.ports.filter import CallNext


class OncePerRequestFilter(abc.ABC):
    """Base :class:`WebFilter` with prefix and glob based path matching.

    Attributes:
        path_prefix: When set, only paths starting with this literal
            prefix are filtered.
        url_patterns: Glob patterns the path must match (any of them).
            Empty means every path.
        exclude_patterns: Glob patterns that opt a path out, checked last.
    """

    path_prefix: str | None = None
    url_patterns: list[str] = []
    exclude_patterns: list[str] = []

    def should_not_filter(self, request: Any) -> bool:
        path: str = request.url.path

        if self.path_prefix and not path.startswith(self.path_prefix):
            return True

        if self.url_patterns and not any(fnmatch(path, p) for p in self.url_patterns):
            return True

        return bool(self.exclude_patterns and any(fnmatch(path, p) for p in self.exclude_patterns))

    @abc.abstractmethod
    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        """Filter logic; must ``await call_next(request)`` to continue the chain."""
        ...
