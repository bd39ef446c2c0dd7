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
"""CSRF protection: session-bound, stateless-to-verify anti-forgery tokens."""

from pyshield.security.csrf.context import CsrfContext, CsrfSession, ViewContext
from pyshield.security.csrf.guard import CsrfGuard, CsrfHandler, CsrfResult, csrf_factory
from pyshield.security.csrf.options import CookieOptions, CsrfOptions, CsrfProperties
from pyshield.security.csrf.policy import (
    RequestValidationPolicy,
    RouteExemption,
    RouteList,
    RoutePredicate,
    resolve_route_exemption,
)
from pyshield.security.csrf.secret_store import SECRET_SESSION_KEY, CsrfSecretStore
from pyshield.security.csrf.token_source import (
    CSRF_HEADER_NAME,
    CSRF_INPUT_NAME,
    XSRF_COOKIE_NAME,
    XSRF_HEADER_NAME,
    CsrfTokenSource,
    open_xsrf_token,
    seal_xsrf_token,
)
from pyshield.security.csrf.tokens import CsrfTokens
from pyshield.security.csrf.view import csrf_field, csrf_meta, share_csrf_locals

__all__ = [
    "CSRF_HEADER_NAME",
    "CSRF_INPUT_NAME",
    "CookieOptions",
    "CsrfContext",
    "CsrfGuard",
    "CsrfHandler",
    "CsrfOptions",
    "CsrfProperties",
    "CsrfResult",
    "CsrfSecretStore",
    "CsrfSession",
    "CsrfTokenSource",
    "CsrfTokens",
    "RequestValidationPolicy",
    "RouteExemption",
    "RouteList",
    "RoutePredicate",
    "SECRET_SESSION_KEY",
    "ViewContext",
    "XSRF_COOKIE_NAME",
    "XSRF_HEADER_NAME",
    "csrf_factory",
    "csrf_field",
    "csrf_meta",
    "open_xsrf_token",
    "resolve_route_exemption",
    "seal_xsrf_token",
    "share_csrf_locals",
]
