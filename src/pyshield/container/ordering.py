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
"""Filter ordering: @order decorator and precedence constants."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TypeVar

T = TypeVar("T", bound=type)
F = TypeVar("F")

HIGHEST_PRECEDENCE: int = -(2**31)

_ORDER_ATTR = "__pyshield_order__"


def order(value: int) -> Callable[[T], T]:
    """Place a filter class in the chain; lower values run first, the default is 0."""

    def decorator(cls: T) -> T:
        setattr(cls, _ORDER_ATTR, value)
        return cls

    return decorator


def get_order(obj: object) -> int:
    return int(getattr(obj, _ORDER_ATTR, 0))


def sort_by_order(items: Iterable[F]) -> list[F]:
    """Stable sort by :func:`get_order`; equal orders keep registration order."""
    return sorted(items, key=get_order)
