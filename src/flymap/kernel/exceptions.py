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
"""Exception hierarchy for the mapping engine.

Every error carries an optional machine-readable code and a context dict so
that the calling layer (a web handler, a CLI, a message consumer) can
translate engine failures into its own protocol without parsing messages.

Configuration errors surface while profiles are being registered and point
at a bug in the mapping setup. Execution errors surface from
``MappingExecutor.map`` while serving.
"""

from __future__ import annotations

# =============================================================================
# Base Exception
# =============================================================================


class FlymapException(Exception):
    """Base exception for all flymap errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "MAPPING_NOT_FOUND").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    default_code: str | None = None

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code if code is not None else self.default_code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class MappingConfigurationException(FlymapException):
    """Mapping setup errors detected while profiles are being registered."""


class UnsupportedTypeError(MappingConfigurationException):
    """A type has no introspectable member list."""

    default_code = "MAPPING_UNSUPPORTED_TYPE"


class DuplicateMappingError(MappingConfigurationException):
    """A type pair, or a member rule within one, was configured twice."""

    default_code = "MAPPING_DUPLICATE"


class RegistrySealedError(MappingConfigurationException):
    """Registration was attempted after the registry was sealed."""

    default_code = "MAPPING_REGISTRY_SEALED"


class UnknownMemberError(MappingConfigurationException):
    """A rule names a target member the target type does not declare."""

    default_code = "MAPPING_UNKNOWN_MEMBER"


# =============================================================================
# Execution Exceptions
# =============================================================================


class MappingExecutionException(FlymapException):
    """Errors raised while mapping a concrete source instance."""


class MappingNotFoundError(MappingExecutionException):
    """No definition (forward or derived) exists for an ordered type pair."""

    default_code = "MAPPING_NOT_FOUND"


class SourceMemberMissingError(MappingExecutionException):
    """A copy rule names a member the source instance does not have."""

    default_code = "MAPPING_SOURCE_MEMBER_MISSING"


class TypeMismatchError(MappingExecutionException):
    """A copied value is not assignable to the target member's type."""

    default_code = "MAPPING_TYPE_MISMATCH"


class UnresolvedMemberError(MappingExecutionException):
    """A target member has neither a rule nor a same-name source member."""

    default_code = "MAPPING_UNRESOLVED_MEMBER"


class MappingDepthExceededError(MappingExecutionException):
    """Nested delegation went deeper than the configured ``max_depth``."""

    default_code = "MAPPING_DEPTH_EXCEEDED"
