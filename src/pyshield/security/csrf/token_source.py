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
"""Token extraction from the request."""

from __future__ import annotations

from urllib.parse import unquote

import structlog

from pyshield.encryption.ports.outbound import Encrypter
from pyshield.kernel.exceptions import DecryptionException
from pyshield.security.csrf.context import CsrfContext

logger = structlog.get_logger("pyshield.security.csrf")

CSRF_INPUT_NAME = "_csrf"
CSRF_HEADER_NAME = "x-csrf-token"
XSRF_HEADER_NAME = "x-xsrf-token"
XSRF_COOKIE_NAME = "XSRF-TOKEN"
ENCRYPTED_COOKIE_PREFIX = "e:"


def seal_xsrf_token(encrypter: Encrypter, token: str) -> str:
    """Encrypt *token* into the ``XSRF-TOKEN`` cookie value."""
    return ENCRYPTED_COOKIE_PREFIX + encrypter.encrypt(token, purpose=XSRF_COOKIE_NAME)


def open_xsrf_token(encrypter: Encrypter, header_value: str) -> str:
    """Reverse :func:`seal_xsrf_token` for a value mirrored back by client script.

    Raises:
        DecryptionException: if the value was tampered with or sealed for
            another purpose.
    """
    return encrypter.decrypt(unquote(header_value)[len(ENCRYPTED_COOKIE_PREFIX):], purpose=XSRF_COOKIE_NAME)


class CsrfTokenSource:
    """Finds the candidate token, trying in order:

    - the ``_csrf`` body field
    - the ``x-csrf-token`` header
    - the ``x-xsrf-token`` header, only when the XSRF cookie is enabled.
      Its value is the encrypted ``XSRF-TOKEN`` cookie read by client script.
    """

    def __init__(self, encrypter: Encrypter, enable_xsrf_cookie: bool = False) -> None:
        self._encrypter = encrypter
        self._enable_xsrf_cookie = enable_xsrf_cookie

    async def extract(self, ctx: CsrfContext) -> str | None:
        field_value = await ctx.input(CSRF_INPUT_NAME)
        if isinstance(field_value, str) and field_value:
            logger.debug("csrf_token_found", source="input")
            return field_value

        header_value = ctx.header(CSRF_HEADER_NAME)
        if header_value:
            logger.debug("csrf_token_found", source=CSRF_HEADER_NAME)
            return header_value

        if not self._enable_xsrf_cookie:
            return None

        encrypted = ctx.header(XSRF_HEADER_NAME)
        if not encrypted:
            return None

        try:
            token = open_xsrf_token(self._encrypter, encrypted)
        except DecryptionException:
            logger.info("xsrf_header_decryption_failed")
            return None

        logger.debug("csrf_token_found", source=XSRF_HEADER_NAME)
        return token
