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
"""Tests for the PyShield exception hierarchy."""

from pyshield.kernel.exceptions import (
    BadCsrfTokenException,
    DecryptionException,
    ForbiddenException,
    InfrastructureException,
    PyShieldException,
    SecurityException,
    ServiceUnavailableException,
)


class TestPyShieldException:
    def test_basic_creation(self):
        exc = PyShieldException("something went wrong")
        assert str(exc) == "something went wrong"
        assert exc.code is None
        assert exc.context == {}

    def test_with_code_and_context(self):
        exc = PyShieldException("store offline", code="E_STORE", context={"store": "redis"})
        assert exc.code == "E_STORE"
        assert exc.context["store"] == "redis"

    def test_context_not_shared_between_instances(self):
        exc = PyShieldException("test")
        exc.context["key"] = "value"
        assert PyShieldException("test2").context == {}


class TestBadCsrfTokenException:
    def test_defaults(self):
        exc = BadCsrfTokenException()
        assert str(exc) == "Invalid CSRF Token"
        assert exc.code == "E_BAD_CSRF_TOKEN"

    def test_is_forbidden(self):
        assert isinstance(BadCsrfTokenException(), ForbiddenException)


class TestExceptionHierarchy:
    def test_security_is_pyshield(self):
        assert issubclass(SecurityException, PyShieldException)

    def test_forbidden_is_security(self):
        assert issubclass(ForbiddenException, SecurityException)

    def test_decryption_is_security(self):
        assert issubclass(DecryptionException, SecurityException)

    def test_infrastructure_is_pyshield(self):
        assert issubclass(InfrastructureException, PyShieldException)

    def test_service_unavailable_is_infrastructure(self):
        assert issubclass(ServiceUnavailableException, InfrastructureException)
