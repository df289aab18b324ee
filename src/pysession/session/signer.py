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
"""Cookie signing with ordered secrets (HMAC-SHA256 via itsdangerous).

A signed token is ``<value>.<signature>`` where the signature is the
URL-safe base64 HMAC-SHA256 of the value. New tokens are always signed
with the first secret; verification tries every secret in order, so a new
secret can be prepended while older ones keep validating outstanding
cookies until they expire.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from functools import lru_cache
from typing import Any, Protocol, runtime_checkable

import structlog
from itsdangerous import BadSignature, Signer

_SEPARATOR = "."

logger = structlog.get_logger("pysession.session")


@runtime_checkable
class SessionSigner(Protocol):
    """Anything that can sign an id and verify a token back to it."""

    def sign(self, value: str) -> str: ...

    def unsign(self, token: str) -> str | None: ...


@lru_cache(maxsize=64)
def _signer_for(secret: str) -> Signer:
    return Signer(
        secret,
        sep=_SEPARATOR,
        key_derivation="none",
        digest_method=hashlib.sha256,
    )


def sign(value: str, secret: str) -> str:
    """Sign *value* with *secret*."""
    return _signer_for(secret).sign(value).decode("utf-8")


def unsign(token: str, secrets: Sequence[str]) -> str | None:
    """Return the value of *token* for the first secret that verifies it.

    Returns ``None`` when no secret validates the token; a bad token is
    never an exception here.
    """
    for secret in secrets:
        try:
            return _signer_for(secret).unsign(token).decode("utf-8")
        except BadSignature:
            continue
    return None


class CookieSigner:
    """:class:`SessionSigner` over an ordered list of secrets.

    The list is kept by reference: callers may rotate secrets in place
    (``secrets.insert(0, new)``) and the next request picks it up.
    """

    def __init__(self, secrets: str | list[str]) -> None:
        self.secrets: list[str] = [secrets] if isinstance(secrets, str) else secrets

    def sign(self, value: str) -> str:
        return sign(value, self.secrets[0])

    def unsign(self, token: str) -> str | None:
        return unsign(token, self.secrets)


class _DelegatingSigner:
    """Normalizes a user-supplied signer object to the :class:`SessionSigner` contract."""

    def __init__(self, delegate: Any) -> None:
        self._delegate = delegate

    def sign(self, value: str) -> str:
        return str(self._delegate.sign(value))

    def unsign(self, token: str) -> str | None:
        try:
            result = self._delegate.unsign(token)
        except Exception as exc:
            logger.debug("session_signer_rejected", error=type(exc).__name__)
            return None
        if result is None or result is False:
            return None
        return str(result)


def is_signer_object(candidate: Any) -> bool:
    return callable(getattr(candidate, "sign", None)) and callable(getattr(candidate, "unsign", None))


def build_signer(secret: Any) -> SessionSigner:
    """Signer for the ``secret`` option: a string, list of strings, or signer object."""
    if isinstance(secret, (str, list)):
        return CookieSigner(secret)
    return _DelegatingSigner(secret)
