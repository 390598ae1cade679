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
"""flymap Mapping — declarative object-to-object mapping.

Configuration phase: declare maps in :class:`MappingProfile` subclasses,
register them into a :class:`MappingRegistry` and seal it. Serving phase:
call :meth:`MappingExecutor.map` from any thread.
"""

from flymap.mapping.auto_configuration import configure_mapping
from flymap.mapping.conversions import ConversionRegistry
from flymap.mapping.definition import MappingDefinition, MappingDefinitionBuilder
from flymap.mapping.descriptor import (
    MemberDescriptor,
    TypeDescriptor,
    TypeKey,
    describe,
    describe_type,
    type_name,
)
from flymap.mapping.executor import MappingExecutor
from flymap.mapping.profile import MappingProfile
from flymap.mapping.registry import MappingRegistry
from flymap.mapping.rules import Computed, CopyMember, Delegate, Ignore, MappingRule

__all__ = [
    # Introspection
    "MemberDescriptor",
    "TypeDescriptor",
    "TypeKey",
    "describe",
    "describe_type",
    "type_name",
    # Rules
    "Computed",
    "CopyMember",
    "Delegate",
    "Ignore",
    "MappingRule",
    # Configuration
    "ConversionRegistry",
    "MappingDefinition",
    "MappingDefinitionBuilder",
    "MappingProfile",
    "MappingRegistry",
    "configure_mapping",
    # Execution
    "MappingExecutor",
]
