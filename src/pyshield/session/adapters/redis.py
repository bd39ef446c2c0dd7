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
"""Redis-backed :class:`~pyshield.session.ports.outbound.SessionStore`."""

from __future__ import annotations

import json
from typing import Any

import structlog

logger = structlog.get_logger("pyshield.session")

DEFAULT_KEY_PREFIX = "pyshield:session:"


class RedisSessionStore:
    """Keeps each session as one JSON document with a server-side expiry.

    *client* is a ``redis.asyncio`` client (``redis.asyncio.from_url``).
    Network errors are not caught; a request whose session cannot be
    loaded or saved fails.
    """

    def __init__(self, client: Any, key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        self._client = client
        self._key_prefix = key_prefix

    def _key(self, session_id: str) -> str:
        return self._key_prefix + session_id

    async def get(self, session_id: str) -> dict[str, Any] | None:
        raw = await self._client.get(self._key(session_id))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            data = None
        if not isinstance(data, dict):
            # Treated as expired; the filter starts a fresh session
            logger.warning("session_deserialization_failed", session_id=session_id)
            return None
        return data

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        await self._client.set(self._key(session_id), json.dumps(data).encode(), ex=ttl)

    async def delete(self, session_id: str) -> None:
        await self._client.delete(self._key(session_id))

    async def exists(self, session_id: str) -> bool:
        return bool(await self._client.exists(self._key(session_id)))
