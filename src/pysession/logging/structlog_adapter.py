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
"""StructlogAdapter: default LoggingPort implementation using structlog."""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

from pysession.core.config import Config

SENSITIVE_KEYS = frozenset({"secret", "secrets", "token", "cookie", "session_id", "encrypted_session_id"})


def redact_sensitive(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Processor masking values that would let a reader hijack a session."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


class StructlogAdapter:
    """Configures structlog on top of stdlib logging.

    Reads ``pysession.logging.format`` (``console`` or ``json``) and the
    ``pysession.logging.level`` section, where ``root`` is the global level
    and every other key is a logger name (``pysession.session: DEBUG``).
    Session secrets and tokens passed as event fields are always masked.
    """

    def __init__(self) -> None:
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        levels = dict(config.get_section("pysession.logging.level"))
        self._root_level = str(levels.pop("root", "INFO")).upper()
        self._module_levels = {name: str(level).upper() for name, level in levels.items()}
        self._format = str(config.get("pysession.logging.format", "console")).lower()

        structlog.configure(
            processors=self._processors(),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=self._level(self._root_level),
            force=True,
        )
        for name, level in self._module_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(self._level(level))

    @staticmethod
    def _level(name: str) -> int:
        return getattr(logging, name.upper(), logging.INFO)

    def _processors(self) -> list[structlog.types.Processor]:
        renderer: structlog.types.Processor = (
            structlog.processors.JSONRenderer() if self._format == "json" else structlog.dev.ConsoleRenderer()
        )
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            redact_sensitive,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ]


def configure_logging(config: Config) -> StructlogAdapter:
    """Configure structlog from *config* and return the adapter used."""
    adapter = StructlogAdapter()
    adapter.configure(config)
    return adapter
