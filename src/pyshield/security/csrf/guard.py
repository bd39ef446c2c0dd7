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
"""CsrfGuard: per-request CSRF protection flow.

For every request:

1. resolve the session secret (creating it on first use);
2. if the request is subject to validation, extract a candidate token and
   verify it against the secret, rejecting the request on failure;
3. mint a fresh token and store it on ``ctx.csrf_token``;
4. optionally publish it as the encrypted, script-readable ``XSRF-TOKEN``
   cookie;
5. optionally share the token and snippet renderers with the view layer.

A rejection is returned as a :class:`CsrfResult` carrying a
:class:`~pyshield.kernel.exceptions.BadCsrfTokenException`; the caller
decides how to terminate the request.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from pyshield.encryption.ports.outbound import Encrypter
from pyshield.kernel.exceptions import BadCsrfTokenException
from pyshield.security.csrf.context import CsrfContext
from pyshield.security.csrf.options import CsrfOptions
from pyshield.security.csrf.policy import RequestValidationPolicy
from pyshield.security.csrf.secret_store import CsrfSecretStore
from pyshield.security.csrf.token_source import XSRF_COOKIE_NAME, CsrfTokenSource, seal_xsrf_token
from pyshield.security.csrf.tokens import CsrfTokens
from pyshield.security.csrf.view import share_csrf_locals

logger = structlog.get_logger("pyshield.security.csrf")

CsrfHandler = Callable[[CsrfContext], Awaitable["CsrfResult"]]


@dataclass(frozen=True)
class CsrfResult:
    """Outcome of :meth:`CsrfGuard.handle`.

    Attributes:
        token: Token minted for this response (``None`` when rejected or disabled).
        error: Set when the request failed validation.
        validated: ``True`` if the request was checked (and passed).
    """

    token: str | None = None
    error: BadCsrfTokenException | None = None
    validated: bool = False

    @property
    def rejected(self) -> bool:
        return self.error is not None

    def unwrap(self) -> str | None:
        """Return the token, raising the rejection error if there is one."""
        if self.error is not None:
            raise self.error
        return self.token


class CsrfGuard:
    """Composes secret storage, validation policy, token extraction and derivation.

    Built once from immutable options and shared by all requests; it keeps
    no per-request state.
    """

    def __init__(
        self,
        options: CsrfOptions,
        encrypter: Encrypter,
        *,
        tokens: CsrfTokens | None = None,
    ) -> None:
        self._options = options
        self._encrypter = encrypter
        self._tokens = tokens or CsrfTokens()
        self._secrets = CsrfSecretStore(self._tokens)
        self._policy = RequestValidationPolicy.from_options(options)
        self._source = CsrfTokenSource(encrypter, enable_xsrf_cookie=options.enable_xsrf_cookie)
        # Client script must be able to read the cookie to mirror it back
        self._xsrf_cookie_options = options.cookie.replace(http_only=False)

    @property
    def options(self) -> CsrfOptions:
        return self._options

    async def validate(self, ctx: CsrfContext, secret: str) -> BadCsrfTokenException | None:
        """Return an error when the request's token is missing or does not match *secret*."""
        candidate = await self._source.extract(ctx)
        if candidate is None:
            reason = "missing"
        elif not self._tokens.verify(secret, candidate):
            reason = "mismatch"
        else:
            return None

        logger.warning(
            "csrf_token_rejected",
            method=ctx.method,
            route=ctx.route_pattern,
            reason=reason,
        )
        return BadCsrfTokenException()

    async def handle(self, ctx: CsrfContext) -> CsrfResult:
        secret = self._secrets.get_or_create(ctx.session)

        validated = self._policy.should_validate(ctx)
        if validated:
            error = await self.validate(ctx, secret)
            if error is not None:
                return CsrfResult(error=error)

        token = self._tokens.create(secret)
        ctx.csrf_token = token

        if self._options.enable_xsrf_cookie:
            ctx.set_cookie(XSRF_COOKIE_NAME, seal_xsrf_token(self._encrypter, token), self._xsrf_cookie_options)

        if ctx.view is not None:
            share_csrf_locals(ctx.view, token)

        return CsrfResult(token=token, validated=validated)


async def _skip(ctx: CsrfContext) -> CsrfResult:
    return CsrfResult()


def csrf_factory(
    options: CsrfOptions,
    encrypter: Encrypter,
    *,
    tokens: CsrfTokens | None = None,
) -> CsrfHandler:
    """Return the CSRF handler for *options*, or a no-op when CSRF is disabled."""
    if not options.enabled:
        return _skip
    return CsrfGuard(options, encrypter, tokens=tokens).handle
