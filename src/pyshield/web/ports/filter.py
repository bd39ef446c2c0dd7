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
"""Filter contract shared by the session, view and CSRF filters.

Request and response are typed as ``Any`` here; only the Starlette adapter
knows the concrete classes.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

CallNext = Callable[[Any], Awaitable[Any]]


@runtime_checkable
class WebFilter(Protocol):
    """One link of the request pipeline run by ``WebFilterChainMiddleware``.

    A filter either returns the response produced by ``call_next`` (after
    decorating it, e.g. with cookies) or answers the request itself, in
    which case nothing further down the chain runs. CSRF rejection relies
    on the latter.
    """

    async def do_filter(self, request: Any, call_next: CallNext) -> Any: ...

    def should_not_filter(self, request: Any) -> bool:
        """``True`` when this filter does not apply to *request*."""
        ...
