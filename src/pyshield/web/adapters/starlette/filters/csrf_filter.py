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
"""CsrfFilter: runs the CSRF guard for every request in the chain."""

from __future__ import annotations

from typing import Any, cast

from starlette.requests import Request
from starlette.responses import Response

from pyshield.core.config import Config
from pyshield.encryption.ports.outbound import Encrypter
from pyshield.security.csrf.guard import CsrfHandler, csrf_factory
from pyshield.security.csrf.options import CsrfOptions
from pyshield.web.adapters.starlette.context import StarletteCsrfContext
from pyshield.web.errors import error_response
from pyshield.web.filters import OncePerRequestFilter
from pyshield.web.ports.filter import CallNext


class CsrfFilter(OncePerRequestFilter):
    """Rejects forged requests with 403 and issues a token for every response.

    Ordering: runs after SessionFilter and ViewFilter, which provide the
    session holding the secret and the view the token is shared with. A
    rejected request never reaches later filters or the endpoint.
    """

    __pyshield_order__ = -50

    def __init__(self, handler: CsrfHandler) -> None:
        self._handler = handler

    @classmethod
    def from_config(cls, config: Config, encrypter: Encrypter, except_routes: Any = None) -> CsrfFilter:
        return cls(csrf_factory(CsrfOptions.from_config(config, except_routes=except_routes), encrypter))

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        ctx = StarletteCsrfContext(request)
        result = await self._handler(ctx)
        if result.error is not None:
            return error_response(request, result.error)

        response = cast(Response, await call_next(request))
        ctx.apply_cookies(response)
        return response
