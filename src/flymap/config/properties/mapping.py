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
"""Mapping engine configuration properties."""

from __future__ import annotations

from dataclasses import dataclass

from flymap.core.config import config_properties


@config_properties(prefix="flymap.mapping")
@dataclass
class MappingProperties:
    """Configuration for the mapping engine (flymap.mapping.*).

    Attributes:
        strict: Raise ``UnresolvedMemberError`` for target members with no
            rule and no same-name source member instead of leaving defaults.
        max_depth: Maximum nesting depth for delegated mappings. ``None``
            disables the guard.
        validate_on_startup: Run ``assert_configuration_is_valid`` before
            sealing the registry.
    """

    strict: bool = False
    max_depth: int | None = None
    validate_on_startup: bool = False
