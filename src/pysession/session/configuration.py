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
"""Build a SessionFilter from application configuration."""

from __future__ import annotations

import importlib
from typing import Any

import structlog

from pysession import __version__
from pysession.core.config import Config
from pysession.session.adapters.memory import MemoryStore
from pysession.session.adapters.redis import RedisSessionStore
from pysession.session.exceptions import SessionConfigurationException
from pysession.session.filter import SessionFilter
from pysession.session.id_store import CookieIdStore, HeaderIdStore, IdStore
from pysession.session.options import SessionOptions, SessionProperties

logger = structlog.get_logger("pysession.session")


def get_default_client_info_tag() -> str:
    """Name this library gives to its connections, e.g. ``pysession_v0.1.0``."""
    return f"pysession_v{__version__}"


def is_available(module_name: str) -> bool:
    """Check if a Python package is importable."""
    try:
        importlib.import_module(module_name)
        return True
    except ImportError:
        return False


def create_store(props: SessionProperties) -> Any:
    """Store selected by ``pysession.session.store``."""
    if props.store == "memory":
        return MemoryStore()

    if not is_available("redis.asyncio"):
        raise SessionConfigurationException(
            "pysession.session.store is 'redis' but the redis package is not installed",
            context={"hint": "pip install 'pysession[redis]'"},
        )
    import redis.asyncio as aioredis

    client = aioredis.from_url(  # type: ignore[no-untyped-call,unused-ignore]
        props.redis_url, client_name=get_default_client_info_tag()
    )
    return RedisSessionStore(client, prefix=props.redis_prefix)


def create_id_store(props: SessionProperties) -> IdStore:
    return HeaderIdStore() if props.id_transport == "header" else CookieIdStore()


def session_options_from_config(config: Config, **overrides: Any) -> SessionOptions:
    """Bind ``pysession.session`` and compose runtime options.

    *overrides* take precedence over anything built from configuration,
    e.g. ``store=my_store`` or ``id_generator=my_generator``.
    """
    try:
        props = config.bind(SessionProperties)
    except ValueError as exc:
        raise SessionConfigurationException(str(exc)) from exc

    # A secret from the environment (PYSESSION_SESSION_SECRET) wins over files.
    secret = config.get("pysession.session.secret", props.secret)

    if "store" not in overrides:
        overrides["store"] = create_store(props)
    if "id_store" not in overrides:
        overrides["id_store"] = create_id_store(props)
    overrides.setdefault("secret", secret)

    options = SessionOptions.from_properties(props, **overrides)
    logger.info(
        "session_configured",
        store=type(options.store).__name__,
        id_transport=props.id_transport,
        cookie_name=options.cookie_name,
    )
    return options


def session_filter_from_config(config: Config, **overrides: Any) -> SessionFilter:
    """:class:`SessionFilter` configured from *config*; see :func:`session_options_from_config`."""
    return SessionFilter(session_options_from_config(config, **overrides))
