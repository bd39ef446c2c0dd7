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
"""Session configuration properties and store selection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pyshield.core.config import Config, config_properties
from pyshield.session.filter import DEFAULT_COOKIE_NAME, DEFAULT_TTL, SessionFilter
from pyshield.session.ports.outbound import SessionStore


@config_properties(prefix="pyshield.session")
@dataclass
class SessionProperties:
    """Configuration for server-side sessions (pyshield.session.*)."""

    store: str = "memory"
    cookie_name: str = DEFAULT_COOKIE_NAME
    ttl: int = DEFAULT_TTL
    secure: bool = False
    redis: dict[str, Any] = field(default_factory=lambda: {"url": "redis://localhost:6379/0"})


def session_store_from_config(config: Config) -> SessionStore:
    """Build the configured store: ``memory`` (default) or ``redis``."""
    props = config.bind(SessionProperties)

    if props.store == "redis":
        import redis.asyncio as aioredis

        from pyshield.session.adapters.redis import RedisSessionStore

        url = str(props.redis.get("url", "redis://localhost:6379/0"))
        return RedisSessionStore(client=aioredis.from_url(url))
    if props.store != "memory":
        raise ValueError(f"Unknown session store '{props.store}' (expected 'memory' or 'redis')")

    from pyshield.session.adapters.memory import InMemorySessionStore

    return InMemorySessionStore()


def session_filter_from_config(config: Config, store: SessionStore) -> SessionFilter:
    props = config.bind(SessionProperties)
    return SessionFilter(store=store, cookie_name=props.cookie_name, ttl=props.ttl, secure=props.secure)
