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
"""Encrypter protocol: payload encryption bound to a purpose label."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Encrypter(Protocol):
    """Symmetric encryption with domain separation.

    A value encrypted for one ``purpose`` must fail to decrypt under any
    other purpose. Implementations raise
    :class:`~pyshield.kernel.exceptions.DecryptionException` for tampered
    ciphertext or a purpose mismatch.
    """

    def encrypt(self, value: str, purpose: str | None = None) -> str: ...

    def decrypt(self, value: str, purpose: str | None = None) -> str: ...
