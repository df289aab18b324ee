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
"""Session: per-request view of one client's server-side state."""

from __future__ import annotations

import copy
import dataclasses
import hashlib
import json
from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import Any

from pysession.session.completion import Callback, complete
from pysession.session.cookie import CookieOptions, CookieProperties, resolve_cookie_options
from pysession.session.id_generator import IdGenerator
from pysession.session.signer import SessionSigner

IDENTITY_FIELDS = frozenset({"cookie", "session_id", "encrypted_session_id"})
"""Record keys that are never copied into, or set on, the user data."""


def _canonical(value: Any) -> Any:
    """Key-order-free form of *value* for mappings whose keys do not sort together."""
    if isinstance(value, Mapping):
        items = [[repr(key), _canonical(item)] for key, item in value.items()]
        return sorted(items, key=lambda pair: pair[0])
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    return value


@dataclasses.dataclass
class SessionContext:
    """Collaborators shared by every session a filter creates.

    Kept apart from the user data so none of it is persisted or
    fingerprinted.
    """

    store: Any
    signer: SessionSigner
    id_generator: IdGenerator
    cookie: CookieProperties
    rolling: bool = True


def bind_session(request: Any, session: Session | None) -> None:
    """Attach *session* to the request (``request.session``); ``None`` unbinds."""
    request.scope["session"] = session


def bound_session(request: Any) -> Session | None:
    return request.scope.get("session")


class Session(MutableMapping[str, Any]):
    """User data plus identity and cookie attributes for one request.

    Behaves as a mutable mapping of application fields::

        request.session["user_id"] = 42
        request.session.get("cart", [])

    ``session_id`` never changes on an instance; :meth:`regenerate` builds
    a replacement and rebinds the request to it. Modification is detected
    by comparing a hash of the user fields (the cookie is excluded) with
    the hash taken at construction or at the last successful save.

    Args:
        context: Shared store, signer, id generator and cookie config.
        request: The request (or WebSocket) the session is bound to.
        session_id: Plain session id.
        previous: Session or store record to continue from. Its user
            fields are copied; its identity fields and cookie are not.
        encrypted_session_id: Already-signed token for *session_id*,
            reused instead of signing again.
    """

    def __init__(
        self,
        context: SessionContext,
        request: Any,
        session_id: str,
        previous: Session | Mapping[str, Any] | None = None,
        encrypted_session_id: str | None = None,
    ) -> None:
        self._context = context
        self._request = request
        self._session_id = session_id

        previous_data: Mapping[str, Any]
        previous_cookie: CookieOptions | None = None
        if isinstance(previous, Session):
            previous_data = previous._data
            previous_cookie = previous.cookie
            if encrypted_session_id is None and previous.session_id == session_id:
                encrypted_session_id = previous.encrypted_session_id
        elif previous is not None:
            previous_data = previous
            if isinstance(previous.get("cookie"), Mapping):
                previous_cookie = CookieOptions.from_dict(previous["cookie"])
            if previous_cookie is None or previous_cookie.expires is None:
                # top-level expires is the record's expiry, not a user field
                previous_data = {k: v for k, v in previous.items() if k != "expires"}
        else:
            previous_data = {}

        self._encrypted_session_id = encrypted_session_id or context.signer.sign(session_id)
        self._cookie_config = context.cookie
        self._data: dict[str, Any] = {k: v for k, v in previous_data.items() if k not in IDENTITY_FIELDS}

        self.cookie = resolve_cookie_options(context.cookie, request, previous_cookie)
        if previous_cookie is not None and previous_cookie.expires and not context.rolling:
            self.cookie.expires = previous_cookie.expires

        self._saved = False
        self._fingerprint = self._compute_fingerprint()

    # -- identity ------------------------------------------------------------

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def encrypted_session_id(self) -> str:
        """Signed token sent to the client."""
        return self._encrypted_session_id

    # -- mapping protocol ----------------------------------------------------

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key in IDENTITY_FIELDS:
            raise KeyError(f"'{key}' is reserved for session bookkeeping")
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def set(self, key: str, value: Any) -> None:
        """Same as ``session[key] = value``."""
        self[key] = value

    def __repr__(self) -> str:
        return f"Session(keys={sorted(self._data)!r}, saved={self._saved})"

    # -- state ---------------------------------------------------------------

    def _compute_fingerprint(self) -> str:
        try:
            payload = json.dumps(self._data, sort_keys=True, separators=(",", ":"), default=repr)
        except TypeError:
            payload = json.dumps(_canonical(self._data), separators=(",", ":"), default=repr)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def is_modified(self) -> bool:
        """Whether user fields differ from the last persisted (or loaded) state."""
        return self._compute_fingerprint() != self._fingerprint

    def is_saved(self) -> bool:
        """Whether :meth:`save` has completed on this instance."""
        return self._saved

    def to_record(self) -> dict[str, Any]:
        """The store record: user fields plus the ``cookie`` sub-record."""
        record = dict(self._data)
        record["cookie"] = self.cookie.to_dict()
        return record

    def touch(self) -> None:
        """Restart the expiry window from now, when a max age is configured."""
        self.cookie.touch()

    def options(self, **overrides: Any) -> None:
        """Re-resolve this session's cookie with attribute *overrides*.

        Accepts the :class:`CookieProperties` fields, e.g.
        ``session.options(max_age=3_600_000)``.
        """
        self._cookie_config = self._cookie_config.model_copy(update=overrides)
        self.cookie = resolve_cookie_options(self._cookie_config, self._request)

    # -- lifecycle -----------------------------------------------------------

    def save(self, callback: Callback | None = None) -> Any:
        """Persist the current state now. Does not by itself emit a cookie."""
        return complete(self._save(), callback)

    async def _save(self) -> None:
        await self._context.store.set(self._session_id, self.to_record())
        self._fingerprint = self._compute_fingerprint()
        self._saved = True

    def reload(self, callback: Callback | None = None) -> Any:
        """Replace the request's session with the stored state, dropping unsaved changes."""
        return complete(self._reload(), callback, with_value=True)

    async def _reload(self) -> Session:
        record = await self._context.store.get(self._session_id)
        reloaded = Session(
            self._context,
            self._request,
            self._session_id,
            previous=record or {},
            encrypted_session_id=self._encrypted_session_id,
        )
        bind_session(self._request, reloaded)
        return reloaded

    def regenerate(self, keys_to_keep: Iterable[str] | None = None, callback: Callback | None = None) -> Any:
        """Move to a fresh id, keeping only *keys_to_keep*, and persist it.

        On success the request is rebound to the new session; this instance
        is left detached.
        """
        return complete(self._regenerate(keys_to_keep), callback, with_value=True)

    async def _regenerate(self, keys_to_keep: Iterable[str] | None) -> Session:
        carried = copy.deepcopy({key: self._data[key] for key in keys_to_keep or () if key in self._data})
        session_id = self._context.id_generator(self._request)
        regenerated = Session(self._context, self._request, session_id, previous=carried)
        regenerated._cookie_config = self._cookie_config
        regenerated.cookie = resolve_cookie_options(self._cookie_config, self._request, self.cookie)
        await regenerated._save()
        bind_session(self._request, regenerated)
        return regenerated

    def destroy(self, callback: Callback | None = None) -> Any:
        """Delete the stored record and unbind the session from the request.

        When the store fails the request keeps this session.
        """
        return complete(self._destroy(), callback)

    async def _destroy(self) -> None:
        await self._context.store.destroy(self._session_id)
        bind_session(self._request, None)
