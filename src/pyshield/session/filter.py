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
"""SessionFilter: binds a server-side HttpSession to every request."""

from __future__ import annotations

import uuid
from typing import Any

import structlog

from pyshield.container.ordering import HIGHEST_PRECEDENCE, order
from pyshield.session.ports.outbound import SessionStore
from pyshield.session.session import HttpSession
from pyshield.web.filters import OncePerRequestFilter
from pyshield.web.ports.filter import CallNext

logger = structlog.get_logger("pyshield.session")

DEFAULT_COOKIE_NAME = "PYSHIELD_SESSION"
DEFAULT_TTL = 7200


@order(HIGHEST_PRECEDENCE + 150)
class SessionFilter(OncePerRequestFilter):
    """Loads the session named by the session cookie into ``request.state.session``.

    An unknown or expired id is replaced by a fresh session. After the
    rest of the chain has run (even when it raised) a modified session is
    saved and an invalidated one deleted. The CSRF filter runs later in the
    chain and keeps its per-session secret here.
    """

    def __init__(
        self,
        store: SessionStore,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        ttl: int = DEFAULT_TTL,
        secure: bool = False,
    ) -> None:
        self._store = store
        self._cookie_name = cookie_name
        self._ttl = ttl
        self._secure = secure

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        session = await self._open(request.cookies.get(self._cookie_name))
        request.state.session = session
        try:
            response = await call_next(request)
        finally:
            await self._close(session)

        if session.invalidated:
            response.delete_cookie(key=self._cookie_name)
        elif session.is_new:
            response.set_cookie(
                key=self._cookie_name,
                value=session.id,
                max_age=self._ttl,
                secure=self._secure,
                httponly=True,
                samesite="lax",
            )
        return response

    async def _open(self, session_id: str | None) -> HttpSession:
        if session_id:
            data = await self._store.get(session_id)
            if data is not None:
                return HttpSession(session_id, data)
            logger.debug("session_not_found", reason="expired_or_unknown")
        return HttpSession(uuid.uuid4().hex, is_new=True)

    async def _close(self, session: HttpSession) -> None:
        if session.invalidated:
            await self._store.delete(session.id)
        elif session.modified:
            await self._store.save(session.id, session.get_data(), self._ttl)
