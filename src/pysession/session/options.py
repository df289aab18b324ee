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
"""Session options: bindable configuration properties and the validated runtime options."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from pysession.core.config import config_properties
from pysession.session.adapters.memory import MemoryStore
from pysession.session.cookie import CookieProperties
from pysession.session.exceptions import SessionConfigurationException
from pysession.session.id_generator import IdGenerator, default_id_generator
from pysession.session.id_store import CookieIdStore, IdStore
from pysession.session.signer import is_signer_object

DEFAULT_COOKIE_NAME = "sessionId"
MIN_SECRET_LENGTH = 32

INVALID_SECRET = (
    "the secret option is required, and must be a string, a list of strings, "
    "or a signer object with sign and unsign methods"
)
SECRET_TOO_SHORT = "the secret must have length 32 or greater"
NO_SECRETS = "at least one secret is required"


def _hyphenate(name: str) -> str:
    return name.replace("_", "-")


@config_properties(prefix="pysession.session")
class SessionProperties(BaseModel):
    """Session settings under ``pysession.session`` in the application config."""

    model_config = ConfigDict(alias_generator=_hyphenate, populate_by_name=True)

    secret: str | list[str] | None = None
    cookie_name: str = DEFAULT_COOKIE_NAME
    cookie: CookieProperties = Field(default_factory=CookieProperties)
    save_uninitialized: bool = True
    rolling: bool = True
    unsign_signed_cookie: bool = False
    store: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    redis_prefix: str = "sess:"
    id_transport: Literal["cookie", "header"] = "cookie"


def check_secret(secret: Any) -> Any:
    """Validate *secret* and return it in the form the signer expects.

    A single string must be at least 32 characters. Secrets inside a list
    are only required to be non-empty strings, so that older short secrets
    can still verify during rotation. A tuple is accepted and turned into a
    list; a list is returned as is, so later changes to it take effect.
    """
    if isinstance(secret, str):
        if len(secret) < MIN_SECRET_LENGTH:
            raise SessionConfigurationException(SECRET_TOO_SHORT)
        return secret
    if isinstance(secret, tuple):
        secret = list(secret)
    if isinstance(secret, list):
        if not secret:
            raise SessionConfigurationException(NO_SECRETS)
        if not all(isinstance(item, str) and item for item in secret):
            raise SessionConfigurationException(INVALID_SECRET)
        return secret
    if is_signer_object(secret):
        return secret
    raise SessionConfigurationException(INVALID_SECRET)


@dataclasses.dataclass
class SessionOptions:
    """Validated options for one :class:`~pysession.session.filter.SessionFilter`.

    ``cookie`` may be given as a mapping (hyphenated or underscored keys).
    ``store`` may follow either the coroutine or the callback convention.
    """

    secret: Any
    cookie_name: str = DEFAULT_COOKIE_NAME
    cookie: CookieProperties = dataclasses.field(default_factory=CookieProperties)
    store: Any = dataclasses.field(default_factory=MemoryStore)
    save_uninitialized: bool = True
    id_generator: IdGenerator = default_id_generator
    rolling: bool = True
    id_store: IdStore = dataclasses.field(default_factory=CookieIdStore)
    unsign_signed_cookie: bool = False

    def __post_init__(self) -> None:
        self.secret = check_secret(self.secret)
        if isinstance(self.cookie, Mapping):
            self.cookie = CookieProperties.model_validate(self.cookie)
        if not self.cookie_name:
            raise SessionConfigurationException("cookie_name must not be empty")

    @classmethod
    def from_properties(cls, props: SessionProperties, **overrides: Any) -> SessionOptions:
        """Build options from bound properties; *overrides* supply objects config cannot hold."""
        values: dict[str, Any] = {
            "secret": props.secret,
            "cookie_name": props.cookie_name,
            "cookie": props.cookie,
            "save_uninitialized": props.save_uninitialized,
            "rolling": props.rolling,
            "unsign_signed_cookie": props.unsign_signed_cookie,
        }
        values.update(overrides)
        return cls(**values)
