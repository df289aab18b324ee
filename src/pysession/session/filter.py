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
"""SessionFilter: loads the session before the handler and persists it after."""

from __future__ import annotations

import dataclasses
import functools
import hashlib
from collections.abc import Mapping
from typing import Any

import structlog

from pysession.session.adapters.proxy import ProxyStore, as_proxy
from pysession.session.completion import Callback, complete
from pysession.session.cookie import is_connection_secure, parse_expires, resolve_cookie_options, utcnow
from pysession.session.exceptions import is_not_found
from pysession.session.options import SessionOptions
from pysession.session.session import Session, SessionContext, bind_session, bound_session
from pysession.session.signer import SessionSigner, build_signer
from pysession.web.filters import OncePerRequestFilter
from pysession.web.ordering import HIGHEST_PRECEDENCE, order
from pysession.web.ports.filter import CallNext

logger = structlog.get_logger("pysession.session")


def _log_id(session_id: str) -> str:
    """Short, non-reversible handle for a session id in log events."""
    return hashlib.sha256(session_id.encode("utf-8")).hexdigest()[:12]


def _record_expiry(record: Mapping[str, Any]) -> Any:
    cookie = record.get("cookie")
    if isinstance(cookie, Mapping) and cookie.get("expires"):
        return parse_expires(cookie["expires"])
    return parse_expires(record.get("expires"))


@order(HIGHEST_PRECEDENCE + 150)
class SessionFilter(OncePerRequestFilter):
    """Binds a :class:`Session` to every request under the cookie path.

    Before the handler the signed id is read from the request (cookie by
    default), verified and looked up in the store; a missing, forged or
    expired id yields a fresh session. After the handler the session is
    saved and its cookie emitted when the save policy allows it.

    The request also gains ``request.state.session_store`` (the store
    behind a :class:`ProxyStore`) and ``request.state.destroy_session``.

    Usage::

        session_filter = SessionFilter(SessionOptions(secret=SECRET))
        app = Starlette(
            routes=[...],
            middleware=[Middleware(WebFilterChainMiddleware, filters=[session_filter])],
        )
    """

    def __init__(self, options: SessionOptions) -> None:
        self._options = options
        self._store = as_proxy(options.store)
        self._signer = build_signer(options.secret)
        self._context = SessionContext(
            store=self._store,
            signer=self._signer,
            id_generator=options.id_generator,
            cookie=options.cookie,
            rolling=options.rolling,
        )
        self.path_prefix = options.cookie.path or "/"

    @property
    def options(self) -> SessionOptions:
        return self._options

    @property
    def store(self) -> ProxyStore:
        return self._store

    @property
    def signer(self) -> SessionSigner:
        return self._signer

    # -- filter --------------------------------------------------------------

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        self._decorate(request)
        token = self._read_token(request)
        await self._load(request, token, self._context)

        response = await call_next(request)

        await self._commit(request, response, token)
        return response

    def _decorate(self, request: Any) -> None:
        request.state.session_store = self._store
        request.state.destroy_session = functools.partial(self.destroy_session, request)
        request.scope.setdefault("session", None)

    def _read_token(self, request: Any) -> str | None:
        token = self._options.id_store.get(request, self._options.cookie_name)
        return self._strip_outer_signature(token) if token else None

    def _strip_outer_signature(self, token: str) -> str:
        if self._options.unsign_signed_cookie:
            inner = self._signer.unsign(token)
            if inner is not None and self._signer.unsign(inner) is not None:
                return inner
        return token

    # -- load ----------------------------------------------------------------

    def _new_session(self, request: Any, context: SessionContext) -> Session:
        session = Session(context, request, context.id_generator(request))
        bind_session(request, session)
        logger.debug("session_created", session=_log_id(session.session_id))
        return session

    async def _load(self, request: Any, token: str | None, context: SessionContext) -> Session:
        if not token:
            return self._new_session(request, context)

        session_id = self._signer.unsign(token)
        if session_id is None:
            logger.info("session_signature_invalid", path=request.url.path)
            return self._new_session(request, context)

        try:
            record = await self._store.get(session_id)
        except Exception as exc:
            if is_not_found(exc):
                logger.debug("session_not_found", session=_log_id(session_id))
                return self._new_session(request, context)
            logger.error("session_store_failed", operation="get", session=_log_id(session_id), error=str(exc))
            raise

        if not record:
            logger.debug("session_not_found", session=_log_id(session_id))
            return self._new_session(request, context)

        expires = _record_expiry(record)
        if expires is not None and expires <= utcnow():
            logger.info("session_expired", session=_log_id(session_id))
            try:
                await self._store.destroy(session_id)
            except Exception as exc:
                logger.error(
                    "session_store_failed", operation="destroy", session=_log_id(session_id), error=str(exc)
                )
                raise
            return self._new_session(request, context)

        session = Session(context, request, session_id, previous=record, encrypted_session_id=token)
        bind_session(request, session)
        return session

    # -- commit --------------------------------------------------------------

    def _should_save(self, request: Any, session: Session) -> bool:
        if not self._options.save_uninitialized and not session.is_modified() and not session.is_saved():
            return False
        if self._options.cookie.secure is not True:
            return True
        return is_connection_secure(request)

    async def _commit(self, request: Any, response: Any, token: str | None) -> None:
        session = bound_session(request)
        if session is None or not self._should_save(request, session):
            if token and (session is None or session.encrypted_session_id != token):
                cookie = session.cookie if session is not None else resolve_cookie_options(self._options.cookie, request)
                self._options.id_store.clear(response, self._options.cookie_name, cookie)
                logger.debug("session_cookie_cleared", path=request.url.path)
            return

        if not (session.is_saved() and not session.is_modified()):
            try:
                await session.save()
            except Exception as exc:
                logger.error(
                    "session_store_failed", operation="set", session=_log_id(session.session_id), error=str(exc)
                )
                raise
            logger.debug("session_saved", session=_log_id(session.session_id))

        self._options.id_store.set(response, self._options.cookie_name, session.encrypted_session_id, session.cookie)

    # -- request helpers -----------------------------------------------------

    def destroy_session(self, request: Any, callback: Callback | None = None) -> Any:
        """Delete the request's session from the store and unbind it.

        The request is left without a session even when the store fails;
        the failure is still reported.
        """
        return complete(self._destroy_session(request), callback)

    async def _destroy_session(self, request: Any) -> None:
        session = bound_session(request)
        try:
            if session is not None:
                await self._store.destroy(session.session_id)
        finally:
            bind_session(request, None)

    def decrypt_session(
        self,
        token: str,
        request: Any,
        cookie_overrides: Mapping[str, Any] | None = None,
        callback: Callback | None = None,
    ) -> Any:
        """Load the session for a signed *token* onto an arbitrary request.

        For connections that never pass through the filter, such as
        WebSockets. *cookie_overrides* replace configured cookie attributes
        for the resulting session only.
        """
        return complete(self._decrypt_session(token, request, cookie_overrides), callback, with_value=True)

    async def _decrypt_session(
        self, token: str, request: Any, cookie_overrides: Mapping[str, Any] | None
    ) -> Session:
        context = self._context
        if cookie_overrides:
            overrides = {key.replace("-", "_"): value for key, value in cookie_overrides.items()}
            context = dataclasses.replace(context, cookie=self._options.cookie.model_copy(update=overrides))
        self._decorate(request)
        return await self._load(request, self._strip_outer_signature(token) if token else None, context)
