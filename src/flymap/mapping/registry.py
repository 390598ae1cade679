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
"""Mapping registry — the table of definitions keyed by ordered type pair.

The registry has a two-phase lifecycle. While open, profiles, definitions and
conversions are registered. :meth:`MappingRegistry.seal` ends the
configuration phase; afterwards the registry is read-only, so executors on
any number of threads can resolve definitions without locking.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import structlog

from flymap.kernel.exceptions import (
    DuplicateMappingError,
    MappingNotFoundError,
    RegistrySealedError,
    UnresolvedMemberError,
)
from flymap.mapping.conversions import ConversionRegistry, Converter
from flymap.mapping.definition import MappingDefinition
from flymap.mapping.descriptor import describe_type, type_name
from flymap.mapping.profile import MappingProfile
from flymap.mapping.rules import CopyMember, Delegate

logger = structlog.get_logger("flymap.mapping.registry")


class MappingRegistry:
    """Process-wide table of :class:`MappingDefinition` by (source, target).

    Usage::

        registry = MappingRegistry()
        registry.register_profile(UserProfile())
        registry.register_conversion(datetime, str, datetime.isoformat)
        registry.seal()

        definition = registry.resolve(Person, PersonView)
    """

    def __init__(self) -> None:
        self._definitions: dict[tuple[type, type], MappingDefinition] = {}
        self._conversions = ConversionRegistry()
        self._sealed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """End the configuration phase. Sealing twice is a no-op."""
        if self._sealed:
            return
        self._sealed = True
        logger.info("mapping_registry_sealed", definitions=len(self._definitions), conversions=len(self._conversions))

    def _ensure_open(self, operation: str) -> None:
        if self._sealed:
            raise RegistrySealedError(
                f"Cannot {operation}: the mapping registry is sealed",
                context={"operation": operation},
            )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, definition: MappingDefinition) -> None:
        """Add *definition*, plus its derived reverse when requested.

        Nothing is registered if either pair is already present.

        Raises:
            RegistrySealedError: If the registry is sealed.
            DuplicateMappingError: If the forward or reverse pair exists.
        """
        self._ensure_open("register a mapping")

        pending = [definition]
        if definition.reverse_requested and definition.source_type is not definition.target_type:
            pending.append(definition.reverse())

        for candidate in pending:
            if candidate.key in self._definitions:
                raise DuplicateMappingError(
                    f"A mapping for {candidate} is already registered",
                    context={"source": type_name(candidate.source_type), "target": type_name(candidate.target_type)},
                )

        for candidate in pending:
            self._definitions[candidate.key] = candidate
            logger.info(
                "mapping_registered",
                source=type_name(candidate.source_type),
                target=type_name(candidate.target_type),
                rules=len(candidate.rules),
                derived=candidate is not definition,
            )

    def register_profile(self, profile: MappingProfile | type[MappingProfile]) -> None:
        """Register every definition declared by *profile* (instance or class)."""
        self._ensure_open("register a profile")
        if isinstance(profile, type):
            profile = profile()
        for definition in profile.definitions():
            self.register(definition)
        logger.debug("mapping_profile_registered", profile=profile.name, definitions=len(profile))

    def register_conversion(self, source_type: type, target_type: type, converter: Converter) -> None:
        """Register a scalar conversion used when copying mismatched values."""
        self._ensure_open("register a conversion")
        self._conversions.register(source_type, target_type, converter)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def resolve(self, source_type: type, target_type: type) -> MappingDefinition:
        """Return the definition for the exact ordered pair.

        Raises:
            MappingNotFoundError: If no definition exists for the pair.
        """
        try:
            return self._definitions[(source_type, target_type)]
        except KeyError:
            raise MappingNotFoundError(
                f"No mapping registered for {type_name(source_type)} -> {type_name(target_type)}",
                context={"source": type_name(source_type), "target": type_name(target_type)},
            ) from None

    def contains(self, source_type: type, target_type: Any) -> bool:
        return (source_type, target_type) in self._definitions

    def find_conversion(self, source_type: type, target_type: Any) -> Callable[[Any], Any] | None:
        return self._conversions.find(source_type, target_type)

    def definitions(self) -> list[MappingDefinition]:
        """All registered definitions, in registration order."""
        return list(self._definitions.values())

    def __contains__(self, key: object) -> bool:
        return key in self._definitions

    def __iter__(self) -> Iterator[MappingDefinition]:
        return iter(self.definitions())

    def __len__(self) -> int:
        return len(self._definitions)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def assert_configuration_is_valid(self) -> None:
        """Check every definition for members that can never be resolved.

        A target member is reported when it has no rule and the source type
        declares no member of the same name, when a copy rule names a member
        the source type lacks, or when a delegate rule points at a pair that
        is not registered.

        Raises:
            UnresolvedMemberError: Listing every problem found.
        """
        problems: list[str] = []
        for definition in self._definitions.values():
            source = describe_type(definition.source_type)
            target = describe_type(definition.target_type)
            for member in target.members:
                where = f"{type_name(definition.target_type)}.{member.name}"
                rule = definition.rule_for(member.name)
                if rule is None:
                    if member.name not in source and not hasattr(definition.source_type, member.name):
                        problems.append(f"{where}: no rule and no source member '{member.name}'")
                elif isinstance(rule, CopyMember):
                    if rule.source_member not in source and not hasattr(definition.source_type, rule.source_member):
                        problems.append(f"{where}: source member '{rule.source_member}' does not exist")
                elif isinstance(rule, Delegate):
                    nested = self._delegate_source_type(rule, member.name, source)
                    if nested is not None and not self.contains(nested, rule.target_type):
                        problems.append(
                            f"{where}: no mapping registered for {type_name(nested)} -> {type_name(rule.target_type)}"
                        )

        if problems:
            raise UnresolvedMemberError(
                "Mapping configuration is invalid:\n  " + "\n  ".join(problems),
                context={"problems": problems},
            )
        logger.debug("mapping_configuration_valid", definitions=len(self._definitions))

    @staticmethod
    def _delegate_source_type(rule: Delegate, target_member: str, source: Any) -> type | None:
        if rule.source_type is not None:
            return rule.source_type
        member = source.member(rule.source_member or target_member)
        if member is None:
            return None
        nested = member.element_type if member.is_collection else member.value_type
        return nested if isinstance(nested, type) else None
