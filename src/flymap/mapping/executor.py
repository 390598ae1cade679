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
"""Mapping executor — turns a source instance into a new target instance.

For every target member, in declaration order, the executor applies the
member's rule from the resolved definition or, when there is none, copies
the same-named source member. Nested objects and collections are mapped by
recursing into the registry. The source is only read through attribute
access and the target is built in one constructor call, so a failed mapping
never leaves a half-built instance behind.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any, TypeVar

import structlog
from pydantic import ValidationError

from flymap.kernel.exceptions import (
    FlymapException,
    MappingDepthExceededError,
    SourceMemberMissingError,
    TypeMismatchError,
    UnresolvedMemberError,
)
from flymap.mapping.definition import MappingDefinition
from flymap.mapping.descriptor import (
    COLLECTION_VALUE_TYPES,
    MemberDescriptor,
    describe_type,
    is_assignable,
    type_name,
)
from flymap.mapping.registry import MappingRegistry
from flymap.mapping.rules import Computed, CopyMember, Delegate, Ignore, MappingRule

T = TypeVar("T")

logger = structlog.get_logger("flymap.mapping.executor")

# Marks "no value produced": the member keeps its default.
_UNSET: Any = object()


class MappingExecutor:
    """Maps instances between registered type pairs.

    Args:
        registry: The registry to resolve definitions from. It should be
            sealed before the executor is shared between threads.
        strict: Raise ``UnresolvedMemberError`` for members with no rule and
            no usable same-name source member. When ``False`` such members
            keep their default (``None`` if they declare none).
        max_depth: Maximum nesting depth of delegated mappings, or ``None``
            for no limit.

    Usage::

        executor = MappingExecutor(registry)
        view = executor.map(person, PersonView)
        views = executor.map_list(people, PersonView)
    """

    def __init__(
        self,
        registry: MappingRegistry,
        *,
        strict: bool = False,
        max_depth: int | None = None,
    ) -> None:
        self._registry = registry
        self._strict = strict
        self._max_depth = max_depth
        if not registry.is_sealed:
            logger.warning("mapping_registry_not_sealed", definitions=len(registry))

    @property
    def registry(self) -> MappingRegistry:
        return self._registry

    @property
    def strict(self) -> bool:
        return self._strict

    def map(self, source: Any, target_type: type[T]) -> T:
        """Map *source* to a new instance of *target_type*.

        Raises:
            MappingNotFoundError: If ``(type(source), target_type)`` is not
                registered.
            SourceMemberMissingError: If a rule names a missing source member.
            TypeMismatchError: If a copied value does not fit its target
                member and cannot be converted.
            UnresolvedMemberError: In strict mode, for members with no rule
                and no same-name source member, or when the target
                rejects the None given to such a member in permissive mode.
            MappingDepthExceededError: If nesting exceeds ``max_depth``.
        """
        return self._map(source, target_type, 0)

    def map_list(self, sources: Iterable[Any], target_type: type[T]) -> list[T]:
        """Map every item of *sources*, preserving order."""
        return [self._map(source, target_type, 0) for source in sources]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _map(self, source: Any, target_type: type[T], depth: int) -> T:
        if self._max_depth is not None and depth > self._max_depth:
            raise MappingDepthExceededError(
                f"Mapping {type_name(type(source))} -> {type_name(target_type)} exceeds max depth {self._max_depth}",
                context={"source": type_name(type(source)), "target": type_name(target_type), "depth": depth},
            )

        definition = self._registry.resolve(type(source), target_type)
        target = describe_type(target_type)

        values: dict[str, Any] = {}
        defaulted: list[str] = []
        for member in target.members:
            rule = definition.rule_for(member.name)
            if rule is None:
                value = self._by_convention(source, member, definition, depth)
            else:
                value = self._apply(rule, source, member, definition, depth)

            if value is not _UNSET:
                values[member.name] = value
            elif not member.has_default:
                values[member.name] = None
                defaulted.append(member.name)

        try:
            return target.construct(values)
        except (ValidationError, TypeError) as exc:
            raise self._construction_error(exc, definition, defaulted) from exc

    @staticmethod
    def _construction_error(
        exc: Exception, definition: MappingDefinition, defaulted: list[str]
    ) -> FlymapException:
        context = {
            "source": type_name(definition.source_type),
            "target": type_name(definition.target_type),
            "reason": str(exc),
        }
        if defaulted:
            return UnresolvedMemberError(
                f"{type_name(definition.target_type)} rejected None for unresolved members {', '.join(defaulted)}",
                context={**context, "member": defaulted[0], "members": defaulted},
            )
        return TypeMismatchError(
            f"{type_name(definition.target_type)} rejected the mapped values",
            context=context,
        )

    def _apply(
        self,
        rule: MappingRule,
        source: Any,
        member: MemberDescriptor,
        definition: MappingDefinition,
        depth: int,
    ) -> Any:
        if isinstance(rule, CopyMember):
            value = self._read(source, rule.source_member, member, definition)
            converted = self._coerce(value, member, depth)
            if converted is _UNSET:
                raise TypeMismatchError(
                    f"Cannot assign {type(value).__name__} from '{rule.source_member}' to "
                    f"{type_name(definition.target_type)}.{member.name}",
                    context={
                        "source": type_name(definition.source_type),
                        "target": type_name(definition.target_type),
                        "member": member.name,
                        "source_member": rule.source_member,
                        "value_type": type_name(type(value)),
                    },
                )
            return converted
        if isinstance(rule, Computed):
            return rule.compute(source)
        if isinstance(rule, Delegate):
            return self._delegate(rule, source, member, definition, depth)
        if isinstance(rule, Ignore):
            return _UNSET
        raise TypeError(f"Unsupported mapping rule {rule!r}")

    def _delegate(
        self,
        rule: Delegate,
        source: Any,
        member: MemberDescriptor,
        definition: MappingDefinition,
        depth: int,
    ) -> Any:
        source_member = rule.source_member or member.name
        value = self._read(source, source_member, member, definition)
        if value is None:
            return None
        if self._is_collection_member(definition.source_type, source_member, value):
            return member.collect(
                None if item is None else self._map(item, rule.target_type, depth + 1) for item in value
            )
        return self._map(value, rule.target_type, depth + 1)

    def _by_convention(
        self,
        source: Any,
        member: MemberDescriptor,
        definition: MappingDefinition,
        depth: int,
    ) -> Any:
        value = getattr(source, member.name, _UNSET)
        if value is not _UNSET:
            value = self._coerce(value, member, depth)
        if value is not _UNSET:
            return value

        if self._strict:
            raise UnresolvedMemberError(
                f"{type_name(definition.target_type)}.{member.name} has no rule and no matching source member",
                context={
                    "source": type_name(definition.source_type),
                    "target": type_name(definition.target_type),
                    "member": member.name,
                },
            )
        logger.debug(
            "mapping_member_unresolved",
            source=type_name(definition.source_type),
            target=type_name(definition.target_type),
            member=member.name,
        )
        return _UNSET

    def _coerce(self, value: Any, member: MemberDescriptor, depth: int) -> Any:
        """Fit *value* to *member*, or return ``_UNSET`` if it cannot be made to fit.

        In order: direct assignment (collections are copied into a fresh
        container), a registered conversion, then a registered mapping for
        the value's type. Collections go through the same steps per element.
        One-shot iterators are read exactly once into a list first.
        """
        if member.is_collection and isinstance(value, Iterator):
            value = list(value)
        if member.accepts(value):
            if member.is_collection and isinstance(value, COLLECTION_VALUE_TYPES):
                return member.collect(value)
            return value
        if value is None:
            return _UNSET
        if member.is_collection:
            if not isinstance(value, COLLECTION_VALUE_TYPES) or member.element_type is None:
                return _UNSET
            items = [self._coerce_scalar(item, member.element_type, depth) for item in value]
            if any(item is _UNSET for item in items):
                return _UNSET
            return member.collect(items)
        return self._coerce_scalar(value, member.value_type, depth)

    def _coerce_scalar(self, value: Any, declared: Any, depth: int) -> Any:
        if value is None or is_assignable(value, declared):
            return value
        converter = self._registry.find_conversion(type(value), declared)
        if converter is not None:
            return converter(value)
        if self._registry.contains(type(value), declared):
            return self._map(value, declared, depth + 1)
        return _UNSET

    @staticmethod
    def _read(source: Any, name: str, member: MemberDescriptor, definition: MappingDefinition) -> Any:
        value = getattr(source, name, _UNSET)
        if value is _UNSET:
            raise SourceMemberMissingError(
                f"{type_name(type(source))} has no member '{name}' required by "
                f"{type_name(definition.target_type)}.{member.name}",
                context={
                    "source": type_name(type(source)),
                    "target": type_name(definition.target_type),
                    "member": member.name,
                    "source_member": name,
                },
            )
        return value

    @staticmethod
    def _is_collection_member(source_type: type, name: str, value: Any) -> bool:
        declared = describe_type(source_type).member(name)
        if declared is not None and declared.is_collection:
            return True
        return declared is None and isinstance(value, COLLECTION_VALUE_TYPES)
