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
"""Mapping profiles — named groups of related mapping definitions.

Subclass :class:`MappingProfile` and declare maps in :meth:`configure`::

    class UserProfile(MappingProfile):
        def configure(self) -> None:
            self.create_map(Person, PersonView).compute(
                "full_name", lambda p: f"{p.first_name} {p.last_name}"
            )
            self.create_map(Address, AddressView).derive_reverse()

A profile is registered as a unit with ``MappingRegistry.register_profile``.
"""

from __future__ import annotations

from flymap.kernel.exceptions import DuplicateMappingError
from flymap.mapping.definition import MappingDefinition, MappingDefinitionBuilder
from flymap.mapping.descriptor import type_name


class MappingProfile:
    """Collects :class:`MappingDefinitionBuilder` instances, one per type pair."""

    def __init__(self) -> None:
        self._builders: dict[tuple[type, type], MappingDefinitionBuilder] = {}
        self.configure()

    @property
    def name(self) -> str:
        return type(self).__name__

    def configure(self) -> None:
        """Declare this profile's maps. The base profile declares none."""

    def create_map(self, source_type: type, target_type: type) -> MappingDefinitionBuilder:
        """Start the definition for ``source_type -> target_type``.

        Raises:
            DuplicateMappingError: If the pair was already created in this
                profile.
        """
        key = (source_type, target_type)
        if key in self._builders:
            raise DuplicateMappingError(
                f"Profile '{self.name}' already maps {type_name(source_type)} -> {type_name(target_type)}",
                context={"profile": self.name, "source": type_name(source_type), "target": type_name(target_type)},
            )
        builder = MappingDefinitionBuilder(source_type, target_type)
        self._builders[key] = builder
        return builder

    def definitions(self) -> list[MappingDefinition]:
        """Build every declared definition, in declaration order."""
        return [builder.build() for builder in self._builders.values()]

    def __len__(self) -> int:
        return len(self._builders)
