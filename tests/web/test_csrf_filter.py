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
"""End-to-end tests for the CSRF filter inside a create_app() application."""

from __future__ import annotations

from unittest.mock import AsyncMock
from urllib.parse import quote

import jinja2
import pytest
from cryptography.fernet import Fernet
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Mount, Route
from starlette.templating import Jinja2Templates
from starlette.testclient import TestClient

from pyshield.core.config import Config
from pyshield.encryption.adapters.fernet import FernetEncrypter
from pyshield.kernel.exceptions import InfrastructureException, ServiceUnavailableException
from pyshield.session.adapters.memory import InMemorySessionStore
from pyshield.web.adapters.starlette import create_app, view_context_processor
from pyshield.web.adapters.starlette.context import StarletteCsrfContext

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

templates = Jinja2Templates(
    env=jinja2.Environment(
        loader=jinja2.DictLoader({"form.html": "<form method='post'>{{ csrf_field() }}</form>"}),
        autoescape=True,
    ),
    context_processors=[view_context_processor],
)


async def token_endpoint(request: Request) -> JSONResponse:
    return JSONResponse({"token": getattr(request.state, "csrf_token", None)})


async def submit_endpoint(request: Request) -> JSONResponse:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        payload = await request.json()
    else:
        form = await request.form()
        payload = {key: value for key, value in form.items() if isinstance(value, str)}
    return JSONResponse({"received": payload})


async def webhook_endpoint(request: Request) -> PlainTextResponse:
    return PlainTextResponse("accepted")


async def form_page(request: Request):
    return templates.TemplateResponse(request, "form.html")


ROUTES = [
    Route("/token", token_endpoint, methods=["GET"]),
    Route("/submit", submit_endpoint, methods=["POST", "PUT", "PATCH", "DELETE"]),
    Route("/webhooks/{provider}", webhook_endpoint, methods=["POST"]),
    Route("/form", form_page, methods=["GET"]),
    Mount(
        "/api",
        routes=[
            Route("/transfer", submit_endpoint, methods=["POST"]),
            Route("/webhooks/{provider}", webhook_endpoint, methods=["POST"]),
        ],
    ),
]


def _config(**csrf) -> Config:
    return Config({"pyshield": {"csrf": csrf}})


def _client(config: Config | None = None, **kwargs) -> TestClient:
    app = create_app(
        ROUTES,
        config=config or _config(),
        encrypter=FernetEncrypter([Fernet.generate_key()]),
        session_store=InMemorySessionStore(),
        **kwargs,
    )
    return TestClient(app)


def _fetch_token(client: TestClient) -> str:
    resp = client.get("/token")
    assert resp.status_code == 200
    return resp.json()["token"]


# ---------------------------------------------------------------------------
# Token issuance
# ---------------------------------------------------------------------------


class TestTokenIssuance:
    def test_get_issues_token_and_cookies(self):
        client = _client()
        resp = client.get("/token")

        assert resp.status_code == 200
        assert resp.json()["token"]
        assert "PYSHIELD_SESSION" in resp.cookies
        assert resp.cookies["XSRF-TOKEN"].startswith("e:")

    def test_xsrf_cookie_is_readable_by_script(self):
        client = _client()
        resp = client.get("/token")
        xsrf_header = next(h for h in resp.headers.get_list("set-cookie") if h.startswith("XSRF-TOKEN="))
        assert "httponly" not in xsrf_header.lower()
        assert "samesite=lax" in xsrf_header.lower()

    def test_each_response_carries_a_fresh_token(self):
        client = _client()
        assert _fetch_token(client) != _fetch_token(client)

    def test_xsrf_cookie_disabled(self):
        client = _client(_config(**{"enable-xsrf-cookie": False}))
        resp = client.get("/token")
        assert resp.json()["token"]
        assert "XSRF-TOKEN" not in resp.cookies

    def test_disabled_guard_issues_nothing(self):
        client = _client(_config(enabled=False))
        resp = client.get("/token")
        assert resp.json() == {"token": None}
        assert "XSRF-TOKEN" not in resp.cookies
        assert client.post("/submit", data={"name": "x"}).status_code == 200


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_form_field_accepted_and_body_replayed(self):
        client = _client()
        token = _fetch_token(client)

        resp = client.post("/submit", data={"_csrf": token, "name": "alice"})

        assert resp.status_code == 200
        assert resp.json() == {"received": {"_csrf": token, "name": "alice"}}

    def test_multipart_form_field_accepted(self):
        client = _client()
        token = _fetch_token(client)

        resp = client.post(
            "/submit",
            data={"_csrf": token},
            files={"upload": ("notes.txt", b"hello", "text/plain")},
        )

        assert resp.status_code == 200

    def test_json_body_field_accepted(self):
        client = _client()
        token = _fetch_token(client)

        resp = client.post("/submit", json={"_csrf": token, "amount": 10})

        assert resp.status_code == 200
        assert resp.json()["received"]["amount"] == 10

    def test_csrf_header_accepted(self):
        client = _client()
        token = _fetch_token(client)

        resp = client.put("/submit", data={"name": "bob"}, headers={"X-CSRF-Token": token})

        assert resp.status_code == 200

    def test_xsrf_header_mirrors_cookie(self):
        client = _client()
        client.get("/token")
        cookie = client.cookies["XSRF-TOKEN"]

        resp = client.patch("/submit", json={}, headers={"X-XSRF-TOKEN": quote(cookie)})

        assert resp.status_code == 200

    def test_xsrf_header_ignored_when_cookie_disabled(self):
        encrypter = FernetEncrypter([Fernet.generate_key()])
        config = _config(**{"enable-xsrf-cookie": False})
        client = TestClient(
            create_app(ROUTES, config=config, encrypter=encrypter, session_store=InMemorySessionStore())
        )
        token = _fetch_token(client)
        sealed = "e:" + encrypter.encrypt(token, purpose="XSRF-TOKEN")

        resp = client.patch("/submit", json={}, headers={"X-XSRF-TOKEN": sealed})

        assert resp.status_code == 403

    def test_missing_token_rejected(self):
        client = _client()
        client.get("/token")

        resp = client.post("/submit", data={"name": "mallory"})

        assert resp.status_code == 403
        error = resp.json()["error"]
        assert error["code"] == "E_BAD_CSRF_TOKEN"
        assert error["message"] == "Invalid CSRF Token"
        assert error["path"] == "/submit"

    def test_token_from_other_session_rejected(self):
        victim = _client()
        attacker = _client()
        forged = _fetch_token(attacker)
        victim.get("/token")

        resp = victim.delete("/submit", headers={"X-CSRF-Token": forged})

        assert resp.status_code == 403

    def test_first_request_without_session_rejected(self):
        client = _client()
        resp = client.post("/submit", data={"_csrf": "abc-def"})
        assert resp.status_code == 403

    def test_rejection_issues_no_cookie(self):
        client = _client()
        resp = client.post("/submit", data={})
        assert "XSRF-TOKEN" not in resp.cookies

    def test_safe_method_never_validated(self):
        client = _client()
        assert client.get("/token").status_code == 200

    def test_custom_method_list(self):
        client = _client(_config(methods=["DELETE"]))
        client.get("/token")
        assert client.post("/submit", data={"name": "x"}).status_code == 200
        assert client.delete("/submit").status_code == 403


# ---------------------------------------------------------------------------
# Route exemption
# ---------------------------------------------------------------------------


class TestRouteExemption:
    def test_config_route_pattern_exempt(self):
        client = _client(_config(**{"except-routes": ["/webhooks/{provider}"]}))
        resp = client.post("/webhooks/stripe", content=b"{}")
        assert resp.status_code == 200
        assert resp.text == "accepted"

    def test_predicate_exemption(self):
        client = _client(csrf_except_routes=lambda ctx: ctx.route_pattern.startswith("/webhooks"))
        assert client.post("/webhooks/github").status_code == 200
        assert client.post("/submit", data={}).status_code == 403

    def test_exempt_request_still_receives_token(self):
        client = _client(csrf_except_routes=["/webhooks/{provider}"])
        resp = client.post("/webhooks/stripe")
        assert resp.cookies["XSRF-TOKEN"].startswith("e:")

    def test_mounted_route_reports_full_pattern(self):
        seen: list[str | None] = []

        def record(ctx) -> bool:
            seen.append(ctx.route_pattern)
            return False

        client = _client(csrf_except_routes=record)
        client.post("/api/webhooks/stripe")
        client.post("/api/transfer")
        assert seen == ["/api/webhooks/{provider}", "/api/transfer"]

    def test_mounted_route_exempt_by_full_pattern(self):
        client = _client(_config(**{"except-routes": ["/api/webhooks/{provider}"]}))
        resp = client.post("/api/webhooks/stripe")
        assert resp.status_code == 200
        assert resp.text == "accepted"

    def test_mount_prefix_does_not_exempt_children(self):
        client = _client(_config(**{"except-routes": ["/api"]}))
        resp = client.post("/api/transfer", data={"amount": "100"})
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "E_BAD_CSRF_TOKEN"

    def test_mounted_route_still_validated_with_token(self):
        client = _client()
        token = _fetch_token(client)
        resp = client.post("/api/transfer", data={"_csrf": token, "amount": "100"})
        assert resp.status_code == 200
        assert resp.json()["received"]["amount"] == "100"


# ---------------------------------------------------------------------------
# Errors raised inside the filter chain
# ---------------------------------------------------------------------------


class TestFilterChainErrors:
    def test_session_store_outage_returns_json_error(self):
        store = AsyncMock()
        store.get.side_effect = ServiceUnavailableException("session store offline", code="E_STORE_DOWN")
        app = create_app(
            ROUTES,
            config=_config(),
            encrypter=FernetEncrypter([Fernet.generate_key()]),
            session_store=store,
        )
        client = TestClient(app, cookies={"PYSHIELD_SESSION": "abc"})

        resp = client.get("/token")

        assert resp.status_code == 503
        assert resp.headers["content-type"].startswith("application/json")
        assert resp.json()["error"]["code"] == "E_STORE_DOWN"


# ---------------------------------------------------------------------------
# View sharing
# ---------------------------------------------------------------------------


class TestViewSharing:
    def test_csrf_field_rendered_into_template(self):
        client = _client()
        resp = client.get("/form")

        assert resp.status_code == 200
        assert "<input type='hidden' name='_csrf' value='" in resp.text

    def test_rendered_token_submits(self):
        client = _client()
        html = client.get("/form").text
        token = html.split("value='", 1)[1].split("'", 1)[0]

        assert client.post("/submit", data={"_csrf": token}).status_code == 200


# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------


class TestStarletteCsrfContext:
    def test_missing_session_raises(self):
        request = Request({"type": "http", "method": "GET", "path": "/", "headers": [], "state": {}})
        ctx = StarletteCsrfContext(request)
        with pytest.raises(InfrastructureException) as exc_info:
            _ = ctx.session
        assert exc_info.value.code == "E_MISSING_SESSION"

    def test_route_pattern_none_outside_an_app(self):
        request = Request({"type": "http", "method": "GET", "path": "/", "headers": [], "state": {}})
        assert StarletteCsrfContext(request).route_pattern is None

    def test_csrf_token_slot_on_request_state(self):
        request = Request({"type": "http", "method": "GET", "path": "/", "headers": [], "state": {}})
        ctx = StarletteCsrfContext(request)
        assert ctx.csrf_token is None
        ctx.csrf_token = "salt-digest"
        assert request.state.csrf_token == "salt-digest"
