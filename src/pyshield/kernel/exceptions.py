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
"""Unified exception hierarchy for PyShield.

All PyShield exceptions inherit from PyShieldException so hosts can catch
one base type, or target a category:

- SecurityException: forged requests, tampered payloads
- InfrastructureException: session store, encryption backend, wiring
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class PyShieldException(Exception):
    """Base exception for all PyShield errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "E_BAD_CSRF_TOKEN").
        context: Arbitrary key-value pairs for error context and debugging.
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
# Security Exceptions
# =============================================================================


class SecurityException(PyShieldException):
    """Authentication, authorization and request-integrity errors."""


class ForbiddenException(SecurityException):
    """Caller is not allowed to perform the operation."""


class BadCsrfTokenException(ForbiddenException):
    """A request subject to CSRF validation carried a missing or invalid token."""

    def __init__(self, message: str = "Invalid CSRF Token", context: dict | None = None) -> None:
        super().__init__(message, code="E_BAD_CSRF_TOKEN", context=context)


class DecryptionException(SecurityException):
    """Ciphertext is corrupt, was produced with another key, or for another purpose."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(PyShieldException):
    """Infrastructure failures: session store, encryption backend, wiring."""


class ServiceUnavailableException(InfrastructureException):
    """Downstream service (e.g. session backend) is unavailable."""
