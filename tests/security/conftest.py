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
"""Fixtures for CSRF core tests: an in-memory request context and view."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import pytest
from cryptography.fernet import Fernet

from pyshield.encryption.adapters.fernet import FernetEncrypter
from pyshield.session.session import HttpSession


class FakeView:
    def __init__(self) -> None:
        self.shared: dict[str, Any] = {}

    def share(self, values: Mapping[str, Any]) -> None:
        self.shared.update(values)


class FakeContext:
    """Implements the CsrfContext protocol without a web framework."""

    def __init__(
        self,
        method: str = "POST",
        route_pattern: str | None = "/posts",
        fields: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        session: HttpSession | None = None,
        view: FakeView | None = None,
    ) -> None:
        self.method = method
        self.route_pattern = route_pattern
        self._fields = fields or {}
        self._headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.session = session if session is not None else HttpSession("sid", is_new=True)
        self.view = view
        self.csrf_token: str | None = None
        self.cookies_set: list[tuple[str, str, Any]] = []

    async def input(self, name: str) -> Any | None:
        return self._fields.get(name)

    def header(self, name: str) -> str | None:
        return self._headers.get(name.lower())

    def cookie(self, name: str) -> str | None:
        return None

    def set_cookie(self, name: str, value: str, options: Any) -> None:
        self.cookies_set.append((name, value, options))


@pytest.fixture()
def make_ctx() -> Callable[..., FakeContext]:
    return FakeContext


@pytest.fixture()
def encrypter() -> FernetEncrypter:
    return FernetEncrypter([Fernet.generate_key()])


@pytest.fixture()
def fake_view() -> FakeView:
    return FakeView()
