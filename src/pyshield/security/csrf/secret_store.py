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
"""Per-session CSRF secret storage."""

from __future__ import annotations

import structlog

from pyshield.security.csrf.context import CsrfSession
from pyshield.security.csrf.tokens import CsrfTokens

logger = structlog.get_logger("pyshield.security.csrf")

SECRET_SESSION_KEY = "csrf-secret"


class CsrfSecretStore:
    """Reads the CSRF secret from the session, creating it on first use.

    Two first requests racing on a brand-new session may both create a
    secret; the last write wins and each request keeps using the secret it
    read or wrote itself. Secrets are never rotated here; removing the
    session attribute (or invalidating the session) is the caller's job.
    """

    def __init__(self, tokens: CsrfTokens, session_key: str = SECRET_SESSION_KEY) -> None:
        self._tokens = tokens
        self._session_key = session_key

    @property
    def session_key(self) -> str:
        return self._session_key

    def get_or_create(self, session: CsrfSession) -> str:
        secret = session.get_attribute(self._session_key)
        if isinstance(secret, str) and secret:
            return secret

        secret = self._tokens.create_secret()
        session.set_attribute(self._session_key, secret)
        logger.debug("csrf_secret_created", session_key=self._session_key)
        return secret
