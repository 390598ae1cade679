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
"""Mapping definitions and the fluent builder that produces them.

Example::

    definition = (
        MappingDefinitionBuilder(Person, PersonView)
        .compute("full_name", lambda p: f"{p.first_name} {p.last_name}")
        .map_from("since", "created_at")
        .ignore("notes")
        .build()
    )
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from flymap.kernel.exceptions import DuplicateMappingError, UnknownMemberError
from flymap.mapping.descriptor import describe_type, type_name
from flymap.mapping.rules import Computed, CopyMember, Delegate, Ignore, MappingRule


def _empty_rules() -> Mapping[str, MappingRule]:
    return MappingProxyType({})


@dataclass(frozen=True)
class MappingDefinition:
    """Immutable rule set for one ordered (source, target) type pair.

    Attributes:
        source_type: Type of the instances being mapped from.
        target_type: Type of the instances being produced.
        rules: Rule per target member name.
        reverse_requested: Whether the registry should also register the
            reverse (target -> source) definition.
        reverse_rules: Explicit rules for the reverse direction, keyed by
            source-type member name.
    """

    source_type: type
    target_type: type
    rules: Mapping[str, MappingRule] = field(default_factory=_empty_rules)
    reverse_requested: bool = False
    reverse_rules: Mapping[str, MappingRule] = field(default_factory=_empty_rules)

    @property
    def key(self) -> tuple[type, type]:
        return (self.source_type, self.target_type)

    def rule_for(self, member: str) -> MappingRule | None:
        return self.rules.get(member)

    def reverse(self) -> MappingDefinition:
        """Derive the target -> source definition.

        Copy rules are inverted (``target.a <- source.b`` becomes
        ``source.b <- target.a``) when ``b`` is a member of the source type.
        Computed and delegate rules have no inverse; the reverse side only
        gets what ``reverse_rules`` supplies, and explicit reverse rules win
        over inverted copies.
        """
        source_members = describe_type(self.source_type)
        rules: dict[str, MappingRule] = {}
        for target_member, rule in self.rules.items():
            if isinstance(rule, CopyMember) and rule.source_member in source_members:
                rules[rule.source_member] = CopyMember(target_member)
        rules.update(self.reverse_rules)
        return MappingDefinition(
            source_type=self.target_type,
            target_type=self.source_type,
            rules=MappingProxyType(rules),
        )

    def __str__(self) -> str:
        return f"{type_name(self.source_type)} -> {type_name(self.target_type)}"


class MappingDefinitionBuilder:
    """Fluent builder accumulating member rules for one type pair.

    Every method returns the builder for chaining. :meth:`build` validates
    member names against the target (and, for reverse rules, the source)
    type and returns an immutable :class:`MappingDefinition`.
    """

    def __init__(self, source_type: type, target_type: type) -> None:
        self._source_type = source_type
        self._target_type = target_type
        self._rules: dict[str, MappingRule] = {}
        self._reverse_rules: dict[str, MappingRule] = {}
        self._reverse_requested = False

    @property
    def key(self) -> tuple[type, type]:
        return (self._source_type, self._target_type)

    # ------------------------------------------------------------------
    # Forward rules
    # ------------------------------------------------------------------

    def for_member(self, target_member: str, rule: MappingRule) -> MappingDefinitionBuilder:
        """Set the rule producing *target_member*.

        Raises:
            DuplicateMappingError: If *target_member* already has a rule.
        """
        self._add(self._rules, target_member, rule, self._source_type, self._target_type)
        return self

    def map_from(self, target_member: str, source_member: str) -> MappingDefinitionBuilder:
        """Copy *source_member* into *target_member*."""
        return self.for_member(target_member, CopyMember(source_member))

    def compute(self, target_member: str, fn: Callable[[Any], Any]) -> MappingDefinitionBuilder:
        """Set *target_member* to ``fn(source)``."""
        return self.for_member(target_member, Computed(fn))

    def delegate(
        self,
        target_member: str,
        target_type: type,
        *,
        source_member: str | None = None,
        source_type: type | None = None,
    ) -> MappingDefinitionBuilder:
        """Map *target_member* through the registered definition for its nested type."""
        return self.for_member(target_member, Delegate(target_type, source_member, source_type))

    def ignore(self, target_member: str) -> MappingDefinitionBuilder:
        """Leave *target_member* at its default."""
        return self.for_member(target_member, Ignore())

    # ------------------------------------------------------------------
    # Reverse direction
    # ------------------------------------------------------------------

    def derive_reverse(self) -> MappingDefinitionBuilder:
        """Also register the target -> source definition derived from copy rules."""
        self._reverse_requested = True
        return self

    def for_reverse_member(self, source_member: str, rule: MappingRule) -> MappingDefinitionBuilder:
        """Set the reverse-direction rule producing *source_member*.

        Implies :meth:`derive_reverse`.
        """
        self._add(self._reverse_rules, source_member, rule, self._target_type, self._source_type)
        self._reverse_requested = True
        return self

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self) -> MappingDefinition:
        """Validate the accumulated rules and produce the definition.

        Raises:
            UnsupportedTypeError: If either type cannot be described.
            UnknownMemberError: If a rule names a member the produced type
                does not declare.
        """
        source = describe_type(self._source_type)
        target = describe_type(self._target_type)
        self._check_members(self._rules, target.names, self._target_type)
        self._check_members(self._reverse_rules, source.names, self._source_type)

        return MappingDefinition(
            source_type=self._source_type,
            target_type=self._target_type,
            rules=MappingProxyType(dict(self._rules)),
            reverse_requested=self._reverse_requested,
            reverse_rules=MappingProxyType(dict(self._reverse_rules)),
        )

    @staticmethod
    def _add(
        rules: dict[str, MappingRule],
        member: str,
        rule: MappingRule,
        source_type: type,
        target_type: type,
    ) -> None:
        if not isinstance(rule, (CopyMember, Computed, Delegate, Ignore)):
            raise TypeError(f"Unsupported mapping rule {rule!r} for member '{member}'")
        if member in rules:
            raise DuplicateMappingError(
                f"Member '{member}' already has a rule in {type_name(source_type)} -> {type_name(target_type)}",
                context={"source": type_name(source_type), "target": type_name(target_type), "member": member},
            )
        rules[member] = rule

    @staticmethod
    def _check_members(rules: Mapping[str, MappingRule], names: tuple[str, ...], owner: type) -> None:
        unknown = sorted(set(rules) - set(names))
        if unknown:
            raise UnknownMemberError(
                f"{type_name(owner)} has no member(s) {', '.join(unknown)}",
                context={"type": type_name(owner), "members": unknown},
            )
