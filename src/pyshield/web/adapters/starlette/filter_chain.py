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
"""WebFilterChainMiddleware: runs the ordered WebFilter chain as one ASGI middleware."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, cast

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from pyshield.container.ordering import sort_by_order
from pyshield.kernel.exceptions import PyShieldException
from pyshield.web.errors import error_response
from pyshield.web.ports.filter import CallNext, WebFilter


class WebFilterChainMiddleware:
    """Pure ASGI middleware executing :class:`WebFilter` instances by ``@order``.

    The downstream app's response is buffered into a :class:`Response` so
    filters can add cookies or headers after ``call_next`` returns. Filters
    whose ``should_not_filter()`` is true for a request are passed over.

    Filters run before the endpoint reads the body. When one of them reads
    it (the CSRF filter looks for a ``_csrf`` field), it leaves the bytes on
    ``request.state.consumed_body`` and they are fed to the app again.

    A :class:`~pyshield.kernel.exceptions.PyShieldException` escaping a
    filter is turned into the JSON error response. Files sent with the
    ``http.response.pathsend`` extension are read into memory.
    """

    def __init__(self, app: ASGIApp, filters: Sequence[WebFilter] = ()) -> None:
        self.app = app
        self._filters = sort_by_order(filters)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def endpoint(request: Request) -> Response:
            return await self._call_app(scope, request, receive)

        chain: CallNext = endpoint
        for web_filter in reversed(self._filters):
            chain = _link(web_filter, chain)

        request = Request(scope, receive, send)
        try:
            response = cast(Response, await chain(request))
        except PyShieldException as exc:
            # Raised outside Starlette's ExceptionMiddleware, so mapped here
            response = error_response(request, exc)
        await response(scope, receive, send)

    async def _call_app(self, scope: Scope, request: Request, receive: Receive) -> Response:
        start: dict[str, Any] = {"status": 200, "headers": []}
        chunks: list[bytes] = []

        async def capture(message: Message) -> None:
            if message["type"] == "http.response.start":
                start["status"] = message["status"]
                start["headers"] = list(message.get("headers", []))
            elif message["type"] == "http.response.body" and message.get("body"):
                chunks.append(message["body"])
            elif message["type"] == "http.response.pathsend" and message.get("path"):
                chunks.append(Path(message["path"]).read_bytes())

        consumed = getattr(request.state, "consumed_body", None)
        if consumed is not None:
            receive = _replay_body(consumed, receive)
        await self.app(scope, receive, capture)

        response = Response(content=b"".join(chunks), status_code=start["status"])
        response.raw_headers[:] = start["headers"]
        return response


def _link(web_filter: WebFilter, call_next: CallNext) -> CallNext:
    async def step(request: Request) -> Response:
        if web_filter.should_not_filter(request):
            return cast(Response, await call_next(request))
        return cast(Response, await web_filter.do_filter(request, call_next))

    return step


def _replay_body(body: bytes, receive: Receive) -> Receive:
    replayed = False

    async def replay() -> Message:
        nonlocal replayed
        if replayed:
            return await receive()
        replayed = True
        return {"type": "http.request", "body": body, "more_body": False}

    return replay
