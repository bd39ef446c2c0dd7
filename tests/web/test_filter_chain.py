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
"""Tests for WebFilterChainMiddleware: ordering, short-circuit, skip, body replay."""

from __future__ import annotations

import pytest
from cryptography.fernet import Fernet
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from pyshield.container.ordering import HIGHEST_PRECEDENCE, get_order, order
from pyshield.encryption.adapters.fernet import FernetEncrypter
from pyshield.security.csrf import CsrfOptions, csrf_factory
from pyshield.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from pyshield.web.adapters.starlette.filters import CsrfFilter
from pyshield.web.filters import OncePerRequestFilter

# ---------------------------------------------------------------------------
# Test filters
# ---------------------------------------------------------------------------


@order(HIGHEST_PRECEDENCE + 10)
class FirstFilter(OncePerRequestFilter):
    async def do_filter(self, request, call_next):
        request.state.trail = ["first"]
        response = await call_next(request)
        response.headers["X-First"] = "applied"
        return response


@order(HIGHEST_PRECEDENCE + 20)
class SecondFilter(OncePerRequestFilter):
    async def do_filter(self, request, call_next):
        request.state.trail.append("second")
        response = await call_next(request)
        response.headers["X-Second"] = "applied"
        return response


@order(5)
class ApiOnlyFilter(OncePerRequestFilter):
    url_patterns = ["/api/*"]

    async def do_filter(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Api-Filter"] = "applied"
        return response


@order(10)
class ShortCircuitFilter(OncePerRequestFilter):
    """Returns 429 without calling next."""

    async def do_filter(self, request, call_next):
        return JSONResponse({"error": "rate limited"}, status_code=429)


class BodyPeekFilter(OncePerRequestFilter):
    """Reads the body the way the CSRF filter does and records it for replay."""

    async def do_filter(self, request, call_next):
        request.state.consumed_body = await request.body()
        return await call_next(request)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _ok_handler(request: Request) -> PlainTextResponse:
    return PlainTextResponse("OK")


async def _trail_handler(request: Request) -> JSONResponse:
    return JSONResponse({"trail": getattr(request.state, "trail", [])})


async def _echo_handler(request: Request) -> PlainTextResponse:
    return PlainTextResponse((await request.body()).decode())


def _make_app(*filters) -> Starlette:
    return Starlette(
        routes=[
            Route("/test", _ok_handler),
            Route("/trail", _trail_handler),
            Route("/api/data", _ok_handler),
            Route("/health", _ok_handler),
            Route("/echo", _echo_handler, methods=["POST"]),
        ],
        middleware=[Middleware(WebFilterChainMiddleware, filters=list(filters))],
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestFilterChainOrdering:
    def test_filters_applied_in_order(self):
        client = TestClient(_make_app(SecondFilter(), FirstFilter()))
        resp = client.get("/trail")
        assert resp.status_code == 200
        assert resp.json() == {"trail": ["first", "second"]}
        assert resp.headers["X-First"] == "applied"
        assert resp.headers["X-Second"] == "applied"

    def test_order_decorator_determines_sequence(self):
        assert get_order(FirstFilter) < get_order(SecondFilter)
        assert get_order(SecondFilter) < get_order(ApiOnlyFilter)
        assert get_order(BodyPeekFilter) == 0


class TestFilterChainConditionalSkip:
    def test_url_pattern_filter_applies_to_matching_path(self):
        client = TestClient(_make_app(ApiOnlyFilter()))
        assert client.get("/api/data").headers.get("X-Api-Filter") == "applied"

    def test_url_pattern_filter_skipped_for_non_matching_path(self):
        client = TestClient(_make_app(ApiOnlyFilter()))
        assert "X-Api-Filter" not in client.get("/health").headers


class TestFilterChainShortCircuit:
    def test_short_circuit_returns_early(self):
        client = TestClient(_make_app(ShortCircuitFilter()))
        resp = client.get("/test")
        assert resp.status_code == 429
        assert resp.json() == {"error": "rate limited"}


class TestFilterChainBodyReplay:
    def test_consumed_body_is_replayed_to_endpoint(self):
        client = TestClient(_make_app(BodyPeekFilter()))
        resp = client.post("/echo", content=b"payload")
        assert resp.text == "payload"

    def test_unread_body_reaches_endpoint(self):
        client = TestClient(_make_app())
        resp = client.post("/echo", content=b"untouched")
        assert resp.text == "untouched"


class TestFilterChainErrors:
    def test_exception_in_filter_mapped_to_json(self):
        encrypter = FernetEncrypter([Fernet.generate_key()])
        csrf_only = CsrfFilter(csrf_factory(CsrfOptions(), encrypter))
        client = TestClient(_make_app(csrf_only))

        resp = client.get("/test")

        assert resp.status_code == 502
        assert resp.json()["error"]["code"] == "E_MISSING_SESSION"

    def test_other_exceptions_propagate(self):
        class Broken(OncePerRequestFilter):
            async def do_filter(self, request, call_next):
                raise RuntimeError("boom")

        client = TestClient(_make_app(Broken()))
        with pytest.raises(RuntimeError):
            client.get("/test")


class TestFilterChainPathsend:
    def test_pathsend_body_buffered_for_filters(self, tmp_path):
        report = tmp_path / "report.txt"
        report.write_bytes(b"file contents")

        async def file_app(scope, receive, send):
            await send(
                {
                    "type": "http.response.start",
                    "status": 200,
                    "headers": [(b"content-type", b"text/plain"), (b"content-length", b"13")],
                }
            )
            await send({"type": "http.response.pathsend", "path": str(report)})

        client = TestClient(WebFilterChainMiddleware(file_app, filters=[FirstFilter()]))
        resp = client.get("/report")

        assert resp.text == "file contents"
        assert resp.headers["X-First"] == "applied"
