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
"""CSRF configuration: bindable properties and the immutable runtime options."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pyshield.core.config import Config, config_properties, parse_bool
from pyshield.security.csrf.policy import RouteExemption, RouteList, resolve_route_exemption

DEFAULT_METHODS: tuple[str, ...] = ("POST", "PUT", "PATCH", "DELETE")

_SAME_SITE_VALUES = frozenset({"lax", "strict", "none"})
_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")
_COOKIE_ALIASES = {"httponly": "http_only", "samesite": "same_site", "maxage": "max_age"}


@config_properties(prefix="pyshield.csrf")
@dataclass
class CsrfProperties:
    """CSRF settings as they appear in configuration (pyshield.csrf.*)."""

    enabled: bool = True
    methods: list[str] = field(default_factory=lambda: list(DEFAULT_METHODS))
    except_routes: list[str] = field(default_factory=list)
    enable_xsrf_cookie: bool = True
    cookie: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CookieOptions:
    """Attributes applied to cookies written by the CSRF guard."""

    path: str = "/"
    domain: str | None = None
    max_age: int | None = 7200
    secure: bool = False
    http_only: bool = True
    same_site: str | None = "lax"

    def __post_init__(self) -> None:
        if self.same_site is not None:
            same_site = self.same_site.lower()
            if same_site not in _SAME_SITE_VALUES:
                raise ValueError(f"Invalid same_site value '{self.same_site}'")
            object.__setattr__(self, "same_site", same_site)
        if isinstance(self.max_age, str):
            object.__setattr__(self, "max_age", int(self.max_age))
        for flag in ("secure", "http_only"):
            object.__setattr__(self, flag, parse_bool(getattr(self, flag)))

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> CookieOptions:
        """Build from a config mapping; accepts snake_case, kebab-case or camelCase keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs: dict[str, Any] = {}
        for raw_key, value in (values or {}).items():
            key = _CAMEL_RE.sub("_", raw_key).lower().replace("-", "_")
            key = _COOKIE_ALIASES.get(key, key)
            if key not in known:
                raise ValueError(f"Unknown cookie option '{raw_key}'")
            kwargs[key] = value
        return cls(**kwargs)

    def replace(self, **changes: Any) -> CookieOptions:
        return dataclasses.replace(self, **changes)

    def as_set_cookie_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for Starlette's ``Response.set_cookie``."""
        kwargs: dict[str, Any] = {
            "path": self.path,
            "domain": self.domain,
            "max_age": self.max_age,
            "secure": self.secure,
            "httponly": self.http_only,
        }
        if self.same_site is not None:
            kwargs["samesite"] = self.same_site
        return kwargs


@dataclass(frozen=True)
class CsrfOptions:
    """Fully-resolved CSRF configuration, fixed for the life of a guard.

    ``methods`` is normalized to lower case (empty means every method is
    validated) and ``except_routes`` is resolved once into a
    :data:`~pyshield.security.csrf.policy.RouteExemption`, so nothing is
    re-inspected per request.
    """

    enabled: bool = True
    methods: frozenset[str] = frozenset(m.lower() for m in DEFAULT_METHODS)
    except_routes: RouteExemption = field(default_factory=RouteList)
    enable_xsrf_cookie: bool = True
    cookie: CookieOptions = field(default_factory=CookieOptions)

    def __post_init__(self) -> None:
        methods = self.methods
        if isinstance(methods, str):
            methods = [methods]
        object.__setattr__(self, "methods", frozenset(m.lower() for m in methods))
        object.__setattr__(self, "except_routes", resolve_route_exemption(self.except_routes))
        if isinstance(self.cookie, Mapping):
            object.__setattr__(self, "cookie", CookieOptions.from_mapping(self.cookie))

    @classmethod
    def from_properties(
        cls,
        props: CsrfProperties,
        except_routes: Iterable[str] | Callable[[Any], bool] | None = None,
    ) -> CsrfOptions:
        """Build from bound properties. A code-supplied *except_routes* wins over config."""
        return cls(
            enabled=props.enabled,
            methods=frozenset(props.methods),
            except_routes=except_routes if except_routes is not None else props.except_routes,
            enable_xsrf_cookie=props.enable_xsrf_cookie,
            cookie=CookieOptions.from_mapping(props.cookie),
        )

    @classmethod
    def from_config(
        cls,
        config: Config,
        except_routes: Iterable[str] | Callable[[Any], bool] | None = None,
    ) -> CsrfOptions:
        return cls.from_properties(config.bind(CsrfProperties), except_routes=except_routes)
