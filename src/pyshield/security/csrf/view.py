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
"""View helpers: the CSRF token and two HTML snippets shared with templates."""

from __future__ import annotations

from markupsafe import Markup

from pyshield.security.csrf.context import ViewContext


def csrf_meta(token: str) -> Markup:
    return Markup("<meta name='csrf-token' content='{}'>").format(token)


def csrf_field(token: str) -> Markup:
    return Markup("<input type='hidden' name='_csrf' value='{}'>").format(token)


def share_csrf_locals(view: ViewContext, token: str) -> None:
    view.share(
        {
            "csrf_token": token,
            "csrf_meta": lambda: csrf_meta(token),
            "csrf_field": lambda: csrf_field(token),
        }
    )
