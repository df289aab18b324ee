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
"""PySession session management: signed-id server-side sessions for Starlette."""

from pysession.session.adapters.memory import MemoryStore
from pysession.session.adapters.proxy import ProxyStore, as_proxy
from pysession.session.adapters.redis import RedisSessionStore
from pysession.session.configuration import (
    get_default_client_info_tag,
    session_filter_from_config,
    session_options_from_config,
)
from pysession.session.cookie import CookieOptions, CookieProperties, resolve_cookie_options
from pysession.session.exceptions import (
    SessionConfigurationException,
    SessionNotFoundException,
    SessionStoreException,
)
from pysession.session.filter import SessionFilter
from pysession.session.id_generator import DefaultIdGenerator, IdGenerator, default_id_generator
from pysession.session.id_store import CookieIdStore, HeaderIdStore, IdStore
from pysession.session.options import SessionOptions, SessionProperties
from pysession.session.ports.outbound import SessionStore
from pysession.session.session import Session
from pysession.session.signer import CookieSigner, SessionSigner, sign, unsign

__all__ = [
    "CookieIdStore",
    "CookieOptions",
    "CookieProperties",
    "CookieSigner",
    "DefaultIdGenerator",
    "HeaderIdStore",
    "IdGenerator",
    "IdStore",
    "MemoryStore",
    "ProxyStore",
    "RedisSessionStore",
    "Session",
    "SessionConfigurationException",
    "SessionFilter",
    "SessionNotFoundException",
    "SessionOptions",
    "SessionProperties",
    "SessionSigner",
    "SessionStore",
    "SessionStoreException",
    "as_proxy",
    "default_id_generator",
    "get_default_client_info_tag",
    "resolve_cookie_options",
    "session_filter_from_config",
    "session_options_from_config",
    "sign",
    "unsign",
]
