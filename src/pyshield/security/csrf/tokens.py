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
"""CSRF secret and token derivation.

A token is ``salt + "-" + digest`` where ``digest`` is the unpadded
url-safe base64 of ``SHA-256(salt + "-" + secret)``. Verification
recomputes the digest from the embedded salt, so any token derived from
the current secret verifies and nothing about issued tokens is stored.

Salt length and hash algorithm must stay fixed for the lifetime of the
secrets already handed out to live sessions.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import string

DEFAULT_SALT_LENGTH = 8
DEFAULT_SECRET_BYTES = 18
SEPARATOR = "-"

_SALT_ALPHABET = string.ascii_letters + string.digits


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


class CsrfTokens:
    """Stateless factory for CSRF secrets and tokens."""

    def __init__(
        self,
        salt_length: int = DEFAULT_SALT_LENGTH,
        secret_bytes: int = DEFAULT_SECRET_BYTES,
    ) -> None:
        if salt_length < 1:
            raise ValueError("salt_length must be at least 1")
        if secret_bytes < DEFAULT_SECRET_BYTES:
            raise ValueError(f"secret_bytes must be at least {DEFAULT_SECRET_BYTES}")
        self._salt_length = salt_length
        self._secret_bytes = secret_bytes

    def create_secret(self) -> str:
        """Return a new random secret (url-safe, never sent to the client)."""
        return _b64url(secrets.token_bytes(self._secret_bytes))

    def create(self, secret: str) -> str:
        """Derive a fresh token from *secret*."""
        if not secret:
            raise ValueError("Cannot derive a CSRF token from an empty secret")
        salt = "".join(secrets.choice(_SALT_ALPHABET) for _ in range(self._salt_length))
        return self._tokenize(secret, salt)

    def verify(self, secret: str, token: str) -> bool:
        """Check *token* against *secret*; returns ``False`` for any malformed input."""
        if not isinstance(secret, str) or not secret:
            return False
        if not isinstance(token, str) or not token:
            return False

        salt, separator, _ = token.partition(SEPARATOR)
        if not separator or not salt:
            return False

        expected = self._tokenize(secret, salt)
        return hmac.compare_digest(expected.encode("utf-8"), token.encode("utf-8"))

    @staticmethod
    def _tokenize(secret: str, salt: str) -> str:
        digest = hashlib.sha256(f"{salt}{SEPARATOR}{secret}".encode()).digest()
        return f"{salt}{SEPARATOR}{_b64url(digest)}"
