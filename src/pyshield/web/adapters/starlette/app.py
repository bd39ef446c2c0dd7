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
"""Starlette application factory with session and CSRF protection wired in."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.routing import BaseRoute

from pyshield.core.config import Config
from pyshield.encryption.ports.outbound import Encrypter
from pyshield.encryption.properties import encrypter_from_config
from pyshield.kernel.exceptions import PyShieldException
from pyshield.logging.structlog_adapter import StructlogAdapter
from pyshield.session.ports.outbound import SessionStore
from pyshield.session.properties import session_filter_from_config, session_store_from_config
from pyshield.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from pyshield.web.adapters.starlette.filters.csrf_filter import CsrfFilter
from pyshield.web.adapters.starlette.filters.view_filter import ViewFilter
from pyshield.web.errors import global_exception_handler
from pyshield.web.ports.filter import WebFilter


def create_app(
    routes: Sequence[BaseRoute] = (),
    *,
    config: Config | None = None,
    encrypter: Encrypter | None = None,
    session_store: SessionStore | None = None,
    filters: Iterable[WebFilter] = (),
    csrf_except_routes: Iterable[str] | Callable[[Any], bool] | None = None,
    configure_logging: bool = False,
    debug: bool = False,
) -> Starlette:
    """Build a Starlette app protected by the PyShield filter chain.

    Chain: SessionFilter → ViewFilter → CsrfFilter → *filters* (sorted by
    ``@order``). When *config* is omitted it is loaded from
    ``pyshield.yaml``/``pyshield.toml`` in the working directory; when
    *encrypter* is omitted it is built from ``pyshield.encryption``.

    Args:
        routes: Application routes.
        config: Loaded configuration.
        encrypter: Encrypter for the XSRF cookie.
        session_store: Session backend; defaults to ``pyshield.session.store``.
        filters: Extra filters to run in the same chain.
        csrf_except_routes: Route patterns or predicate exempt from CSRF
            validation; overrides ``pyshield.csrf.except-routes``.
        configure_logging: Configure structlog from ``pyshield.logging``.
        debug: Starlette debug mode.
    """
    config = config if config is not None else Config.from_sources(Path.cwd())
    if configure_logging:
        StructlogAdapter().configure(config)

    encrypter = encrypter if encrypter is not None else encrypter_from_config(config)
    store = session_store if session_store is not None else session_store_from_config(config)

    chain: list[WebFilter] = [
        session_filter_from_config(config, store),
        ViewFilter(),
        CsrfFilter.from_config(config, encrypter, except_routes=csrf_except_routes),
        *filters,
    ]

    return Starlette(
        debug=debug,
        routes=list(routes),
        middleware=[Middleware(WebFilterChainMiddleware, filters=chain)],
        exception_handlers={PyShieldException: global_exception_handler},
    )

