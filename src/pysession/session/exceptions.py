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
"""Session-specific exceptions."""

from __future__ import annotations

from pysession.kernel.exceptions import (
    InfrastructureException,
    ResourceNotFoundException,
    SecurityException,
)

NOT_FOUND_CODE = "ENOENT"


class SessionConfigurationException(SecurityException):
    """Invalid session set-up (missing or weak secret, bad signer)."""

    def __init__(self, message: str, context: dict | None = None) -> None:
        super().__init__(message, code="SESSION_CONFIG", context=context)


class SessionNotFoundException(ResourceNotFoundException):
    """A store has no record for the id, which is not an error condition.

    The filter treats it exactly like a missing cookie and starts a fresh
    session.
    """

    def __init__(self, session_id: str | None = None) -> None:
        super().__init__("Session not found", code=NOT_FOUND_CODE)
        self.session_id = session_id


class SessionStoreException(InfrastructureException):
    """A store could not read, write or delete a record."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message, code="SESSION_STORE_IO")
        self.cause = cause


def is_not_found(error: BaseException) -> bool:
    """Whether *error* means "no such session" rather than a real failure."""
    if isinstance(error, (SessionNotFoundException, FileNotFoundError)):
        return True
    return getattr(error, "code", None) == NOT_FOUND_CODE
