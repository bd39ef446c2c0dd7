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
"""Contracts the CSRF core needs from the host framework."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from pyshield.security.csrf.options import CookieOptions


class CsrfSession(Protocol):
    """The slice of :class:`~pyshield.session.session.HttpSession` used for the secret."""

    def get_attribute(self, name: str) -> Any | None: ...

    def set_attribute(self, name: str, value: Any) -> None: ...


class ViewContext(Protocol):
    """Template-layer hook: values (or zero-argument callables) shared with views."""

    def share(self, values: Mapping[str, Any]) -> None: ...


class CsrfContext(Protocol):
    """Per-request view of the HTTP exchange.

    ``csrf_token`` is the public slot the guard fills with the token minted
    for this response. ``set_cookie`` writes a response cookie; adapters
    may queue it until the response exists.
    """

    csrf_token: str | None

    @property
    def method(self) -> str: ...

    @property
    def route_pattern(self) -> str | None: ...

    @property
    def session(self) -> CsrfSession: ...

    @property
    def view(self) -> ViewContext | None: ...

    async def input(self, name: str) -> Any | None: ...

    def header(self, name: str) -> str | None: ...

    def cookie(self, name: str) -> str | None: ...

    def set_cookie(self, name: str, value: str, options: CookieOptions) -> None: ...
