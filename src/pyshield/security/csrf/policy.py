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
"""Request validation policy: which requests must carry a CSRF token."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RouteList:
    """Exempts requests whose matched route pattern is in ``patterns``."""

    patterns: frozenset[str] = frozenset()

    def exempts(self, ctx: Any) -> bool:
        return ctx.route_pattern is not None and ctx.route_pattern in self.patterns


@dataclass(frozen=True)
class RoutePredicate:
    """Exempts requests for which ``predicate(ctx)`` returns ``True``."""

    predicate: Callable[[Any], bool]

    def exempts(self, ctx: Any) -> bool:
        return bool(self.predicate(ctx))


RouteExemption = RouteList | RoutePredicate


def resolve_route_exemption(value: Any) -> RouteExemption:
    """Turn ``None``, a pattern, a list of patterns or a callable into a RouteExemption."""
    if isinstance(value, RouteList | RoutePredicate):
        return value
    if value is None:
        return RouteList()
    if isinstance(value, str):
        return RouteList(frozenset({value}))
    if callable(value):
        return RoutePredicate(value)
    if isinstance(value, Iterable):
        return RouteList(frozenset(str(pattern) for pattern in value))
    raise ValueError(f"except_routes must be a list of route patterns or a callable, got {type(value).__name__}")


class RequestValidationPolicy:
    """Decides whether a request is subject to CSRF validation.

    The method whitelist is checked first: a method outside a non-empty
    whitelist is never validated, whatever the route. Route exemption is
    consulted only for whitelisted methods.
    """

    def __init__(self, methods: Iterable[str] = (), except_routes: Any = None) -> None:
        self._methods = frozenset(m.lower() for m in methods)
        self._exemption = resolve_route_exemption(except_routes)

    @classmethod
    def from_options(cls, options: Any) -> RequestValidationPolicy:
        return cls(options.methods, options.except_routes)

    def should_validate(self, ctx: Any) -> bool:
        if self._methods and ctx.method.lower() not in self._methods:
            return False
        return not self._exemption.exempts(ctx)
