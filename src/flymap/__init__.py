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
"""flymap — declarative object-to-object mapping for Python services."""

from flymap.core.config import Config
from flymap.kernel.exceptions import FlymapException
from flymap.mapping import (
    Computed,
    CopyMember,
    Delegate,
    Ignore,
    MappingDefinition,
    MappingDefinitionBuilder,
    MappingExecutor,
    MappingProfile,
    MappingRegistry,
    configure_mapping,
)

__version__ = "0.1.0"

__all__ = [
    "Computed",
    "Config",
    "CopyMember",
    "Delegate",
    "FlymapException",
    "Ignore",
    "MappingDefinition",
    "MappingDefinitionBuilder",
    "MappingExecutor",
    "MappingProfile",
    "MappingRegistry",
    "configure_mapping",
]
