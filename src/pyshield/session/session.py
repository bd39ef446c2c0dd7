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
"""HttpSession: request-scoped view onto server-side session data."""

from __future__ import annotations

import time
from typing import Any

_CREATED_AT = "_created_at"


class HttpSession:
    """Attribute map for one session, bound to ``request.state.session``.

    :class:`~pyshield.session.filter.SessionFilter` loads it before the
    request and saves it afterwards only if :attr:`modified` is set, so
    reads and writes here never touch the store. Keys with a leading
    underscore are bookkeeping and are hidden from
    :meth:`get_attribute_names`.
    """

    def __init__(
        self,
        session_id: str,
        data: dict[str, Any] | None = None,
        *,
        is_new: bool = False,
    ) -> None:
        self._id = session_id
        self._data: dict[str, Any] = data if data is not None else {}
        self._data.setdefault(_CREATED_AT, time.time())
        self._is_new = is_new
        self._modified = is_new
        self._invalidated = False

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_new(self) -> bool:
        return self._is_new

    @property
    def created_at(self) -> float:
        return float(self._data[_CREATED_AT])

    @property
    def modified(self) -> bool:
        return self._modified

    @property
    def invalidated(self) -> bool:
        return self._invalidated

    def get_attribute(self, name: str) -> Any | None:
        return self._data.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        self._data[name] = value
        self._modified = True

    def remove_attribute(self, name: str) -> None:
        if self._data.pop(name, None) is not None:
            self._modified = True

    def get_attribute_names(self) -> list[str]:
        return [name for name in self._data if not name.startswith("_")]

    def invalidate(self) -> None:
        """Discard the session when the response is sent, e.g. on logout.

        The CSRF secret goes with it, so tokens issued earlier stop
        verifying.
        """
        self._invalidated = True
        self._modified = True

    def get_data(self) -> dict[str, Any]:
        return self._data
