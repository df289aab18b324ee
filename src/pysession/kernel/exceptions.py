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
"""PySession exception hierarchy.

Every error raised by the library derives from :class:`PySessionException`
so applications can catch the whole family with one handler, or pick the
specific branch (business, security, infrastructure) they care about.
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class PySessionException(Exception):
    """Base exception for all PySession errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. ``"ENOENT"``).
        context: Arbitrary key-value pairs describing the failure.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(PySessionException):
    """Errors caused by the caller's input or by missing domain state."""


class ResourceNotFoundException(BusinessException):
    """Requested resource does not exist."""


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(PySessionException):
    """Errors in the security set-up: secrets, signers, transport security."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(PySessionException):
    """Infrastructure failures: storage backends, network, filesystem."""
