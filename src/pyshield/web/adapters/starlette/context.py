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
"""StarletteCsrfContext: CsrfContext over a Starlette request."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import BaseRoute, Match
from starlette.types import Scope

from pyshield.kernel.exceptions import InfrastructureException
from pyshield.security.csrf.context import CsrfSession, ViewContext
from pyshield.security.csrf.options import CookieOptions

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class StarletteCsrfContext:
    """Adapts a Starlette :class:`Request` to the CSRF core.

    Filters run before routing, so the route pattern is resolved by
    matching the request scope against the application's routes. Body
    fields are parsed once, from urlencoded or multipart forms or a JSON
    object; the raw body is kept on ``request.state.consumed_body`` so the
    filter chain can replay it to the endpoint. Cookies are queued and
    written by :meth:`apply_cookies` once the response exists.
    """

    def __init__(self, request: Request) -> None:
        self._request = request
        self._fields: Mapping[str, Any] | None = None
        self._pending_cookies: list[tuple[str, str, CookieOptions]] = []

    @property
    def request(self) -> Request:
        return self._request

    @property
    def method(self) -> str:
        return self._request.method

    @property
    def route_pattern(self) -> str | None:
        router = getattr(self._request.scope.get("app"), "router", None)
        if router is None:
            return None
        return _resolve_route_pattern(router.routes, self._request.scope)

    @property
    def session(self) -> CsrfSession:
        session = getattr(self._request.state, "session", None)
        if session is None:
            raise InfrastructureException(
                "No session bound to the request; register SessionFilter before CsrfFilter",
                code="E_MISSING_SESSION",
            )
        return session

    @property
    def csrf_token(self) -> str | None:
        return getattr(self._request.state, "csrf_token", None)

    @csrf_token.setter
    def csrf_token(self, value: str | None) -> None:
        self._request.state.csrf_token = value

    @property
    def view(self) -> ViewContext | None:
        return getattr(self._request.state, "view", None)

    async def input(self, name: str) -> Any | None:
        if self._fields is None:
            self._fields = await self._read_fields()
        return self._fields.get(name)

    def header(self, name: str) -> str | None:
        return self._request.headers.get(name)

    def cookie(self, name: str) -> str | None:
        return self._request.cookies.get(name)

    def set_cookie(self, name: str, value: str, options: CookieOptions) -> None:
        self._pending_cookies.append((name, value, options))

    def apply_cookies(self, response: Response) -> None:
        for name, value, options in self._pending_cookies:
            response.set_cookie(key=name, value=value, **options.as_set_cookie_kwargs())

    async def _read_fields(self) -> Mapping[str, Any]:
        content_type = self._request.headers.get("content-type", "").lower()

        if content_type.startswith(_FORM_CONTENT_TYPES):
            self._request.state.consumed_body = await self._request.body()
            form = await self._request.form()
            fields = {key: value for key, value in form.items() if isinstance(value, str)}
            await form.close()
            return fields

        if content_type.startswith("application/json"):
            body = await self._request.body()
            self._request.state.consumed_body = body
            try:
                payload = json.loads(body) if body else None
            except ValueError:
                return {}
            return payload if isinstance(payload, dict) else {}

        return {}


def _resolve_route_pattern(routes: Sequence[BaseRoute], scope: Scope, prefix: str = "") -> str | None:
    """Full pattern of the route Starlette will dispatch to, e.g. ``/api/transfer`` under ``Mount("/api")``.

    Follows the router's rules: the first full match wins, otherwise the
    first partial match (wrong method). Mount prefixes are joined onto the
    child's path.
    """
    partial: str | None = None
    for route in routes:
        match, child_scope = route.matches(scope)
        if match == Match.NONE:
            continue

        path = prefix + getattr(route, "path", "")
        children = getattr(route, "routes", None)
        if children:
            pattern = _resolve_route_pattern(children, {**scope, **child_scope}, path)
            if pattern is None:
                continue
        else:
            pattern = path

        if match == Match.FULL:
            return pattern
        if partial is None:
            partial = pattern
    return partial
