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
"""In-memory session store with TTL-based expiry."""

from __future__ import annotations

import asyncio
import copy
import time
from typing import Any


class InMemorySessionStore:
    """Process-local session store for development and tests.

    Data is deep-copied on the way in and out so a request only sees what
    was last committed, the same contract a networked store gives.
    """

    def __init__(self) -> None:
        self._store: dict[str, tuple[dict[str, Any], float]] = {}
        self._lock = asyncio.Lock()

    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Retrieve session data. Returns ``None`` if missing or expired."""
        async with self._lock:
            entry = self._live_entry(session_id)
            return copy.deepcopy(entry[0]) if entry is not None else None

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        async with self._lock:
            self._store[session_id] = (copy.deepcopy(data), time.monotonic() + ttl)

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            self._store.pop(session_id, None)

    async def exists(self, session_id: str) -> bool:
        async with self._lock:
            return self._live_entry(session_id) is not None

    def _live_entry(self, session_id: str) -> tuple[dict[str, Any], float] | None:
        entry = self._store.get(session_id)
        if entry is None:
            return None
        if time.monotonic() > entry[1]:
            del self._store[session_id]
            return None
        return entry
