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
"""Encryption configuration properties (pyshield.encryption.*)."""

from __future__ import annotations

from dataclasses import dataclass, field

from pyshield.core.config import Config, config_properties
from pyshield.encryption.adapters.fernet import FernetEncrypter
from pyshield.kernel.exceptions import InfrastructureException


@config_properties(prefix="pyshield.encryption")
@dataclass
class EncryptionProperties:
    """``keys`` wins over ``app_key``; the first key encrypts."""

    app_key: str = ""
    keys: list[str] = field(default_factory=list)


def encrypter_from_config(config: Config) -> FernetEncrypter:
    props = config.bind(EncryptionProperties)
    keys = [k for k in props.keys if k] or ([props.app_key] if props.app_key else [])
    if not keys:
        raise InfrastructureException(
            "No encryption key configured; set pyshield.encryption.app-key or PYSHIELD_APP_KEY",
            code="E_MISSING_APP_KEY",
        )
    return FernetEncrypter(keys)
