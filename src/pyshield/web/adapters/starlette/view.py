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
"""Template view sharing: per-request locals for Jinja2 templates."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from starlette.requests import Request


class RequestView:
    """Collects values shared with templates during one request.

    Values may be zero-argument callables, e.g. ``{{ csrf_field() }}``.
    """

    def __init__(self) -> None:
        self._locals: dict[str, Any] = {}

    def share(self, values: Mapping[str, Any]) -> None:
        self._locals.update(values)

    @property
    def locals(self) -> dict[str, Any]:
        return dict(self._locals)


def view_context_processor(request: Request) -> dict[str, Any]:
    """Jinja2 context processor exposing the request's shared view locals.

    Usage::

        templates = Jinja2Templates(directory="templates", context_processors=[view_context_processor])
    """
    view = getattr(request.state, "view", None)
    return view.locals if isinstance(view, RequestView) else {}

