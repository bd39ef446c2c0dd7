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
"""ViewFilter: binds a RequestView to each request."""

from __future__ import annotations

from typing import Any

from pyshield.container.ordering import HIGHEST_PRECEDENCE, order
from pyshield.web.adapters.starlette.view import RequestView
from pyshield.web.filters import OncePerRequestFilter
from pyshield.web.ports.filter import CallNext


@order(HIGHEST_PRECEDENCE + 200)
class ViewFilter(OncePerRequestFilter):
    """Attaches an empty :class:`RequestView` as ``request.state.view``."""

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        request.state.view = RequestView()
        return await call_next(request)
