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
"""Fernet-backed encrypter with purpose-bound envelopes and key rotation."""

from __future__ import annotations

import base64
import hashlib
import json
from collections.abc import Sequence

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

from pyshield.kernel.exceptions import DecryptionException


class FernetEncrypter:
    """Encrypts strings with ``MultiFernet``.

    The plaintext is wrapped in a JSON envelope carrying the purpose label,
    so ciphertext issued for ``"XSRF-TOKEN"`` cannot be replayed as, say, a
    remember-me cookie. The first key encrypts; every key can decrypt,
    which allows rotating keys without invalidating live cookies.

    Keys may be raw Fernet keys (44 url-safe base64 characters) or
    arbitrary application secrets, which are stretched with SHA-256.
    """

    def __init__(self, keys: Sequence[str | bytes]) -> None:
        if not keys:
            raise ValueError("FernetEncrypter requires at least one key")
        self._fernet = MultiFernet([Fernet(_normalize_fernet_key(k)) for k in keys])

    @classmethod
    def generate_key(cls) -> str:
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, value: str, purpose: str | None = None) -> str:
        envelope = json.dumps({"message": value, "purpose": purpose}, separators=(",", ":"))
        token = self._fernet.encrypt(envelope.encode("utf-8"))
        # Strip padding so the value survives cookie serialization untouched
        return token.decode("ascii").rstrip("=")

    def decrypt(self, value: str, purpose: str | None = None) -> str:
        if not value:
            raise DecryptionException("Cannot decrypt an empty value")

        padded = value + "=" * (-len(value) % 4)
        try:
            raw = self._fernet.decrypt(padded.encode("ascii"))
            envelope = json.loads(raw)
        except (InvalidToken, UnicodeError, ValueError) as exc:
            raise DecryptionException("Invalid or tampered ciphertext") from exc

        if not isinstance(envelope, dict) or "message" not in envelope:
            raise DecryptionException("Malformed encryption envelope")
        if envelope.get("purpose") != purpose:
            raise DecryptionException(
                "Ciphertext was issued for a different purpose",
                context={"expected": purpose},
            )

        message = envelope["message"]
        if not isinstance(message, str):
            raise DecryptionException("Malformed encryption envelope")
        return message


def _normalize_fernet_key(key: str | bytes) -> bytes:
    raw = key.encode("utf-8") if isinstance(key, str) else key
    if len(raw) == 44:
        return raw
    return base64.urlsafe_b64encode(hashlib.sha256(raw).digest())
