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
"""Type descriptors — cached member introspection for mappable types.

A descriptor lists a type's members in declaration order together with the
declared value type of each member, and knows how to construct an instance
from a dict of member values. Descriptors are computed once per type and
cached for the lifetime of the process.

Supported shapes, checked in this order:

* dataclasses (``init=True`` fields)
* pydantic ``BaseModel`` subclasses
* ``typing.NamedTuple`` classes
* plain classes with class-level annotations
"""

from __future__ import annotations

import collections.abc
import dataclasses
import functools
import inspect
import types
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, Any, ClassVar, Literal, TypeVar, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from flymap.kernel.exceptions import UnsupportedTypeError

TypeKey = type
"""Registry key for a type: the class object itself (identity-equal, hashable)."""

_NoneType = type(None)

# Declared collection kinds whose items are mapped element-wise.
_COLLECTION_ORIGINS: frozenset[Any] = frozenset(
    {
        list,
        tuple,
        set,
        frozenset,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Set,
        collections.abc.MutableSet,
        collections.abc.Collection,
        collections.abc.Iterable,
    }
)

# Runtime values treated as collections when copying or delegating.
COLLECTION_VALUE_TYPES: tuple[type, ...] = (list, tuple, set, frozenset)


def type_name(tp: Any) -> str:
    """Stable ``module.qualname`` rendering of *tp* for logs and errors."""
    if isinstance(tp, type):
        return f"{tp.__module__}.{tp.__qualname__}"
    return repr(tp)


@dataclass(frozen=True)
class MemberDescriptor:
    """One member of a mappable type.

    Attributes:
        name: Attribute / field name.
        value_type: Declared type with ``Optional`` unwrapped. For collection
            members this is the collection kind (``list``, ``tuple``, ...).
        is_collection: Whether the member holds a homogeneous collection.
        element_type: Declared element type for collection members.
        optional: Whether ``None`` is an allowed value.
        has_default: Whether the type supplies a default when the member is
            not given at construction.
        default_factory: Produces the member's default value, if any.
    """

    name: str
    value_type: Any
    is_collection: bool = False
    element_type: Any = None
    optional: bool = False
    has_default: bool = False
    default_factory: Callable[[], Any] | None = dataclasses.field(default=None, compare=False)

    def default_value(self) -> Any:
        """The member's default, or ``None`` when it declares none."""
        if self.default_factory is None:
            return None
        return self.default_factory()

    def accepts(self, value: Any) -> bool:
        """Whether *value* can be assigned to this member without conversion."""
        if value is None:
            return self.optional or _is_unconstrained(self.value_type)
        if not self.is_collection:
            return is_assignable(value, self.value_type)
        if not is_assignable(value, self.value_type) or isinstance(value, (str, bytes)):
            return False
        if self.element_type is None:
            return True
        return all(item is None or is_assignable(item, self.element_type) for item in value)

    def collect(self, items: collections.abc.Iterable[Any]) -> Any:
        """Build a fresh collection of this member's declared kind from *items*."""
        if self.is_collection and self.value_type in (tuple, set, frozenset):
            return self.value_type(items)
        return list(items)


@dataclass(frozen=True)
class TypeDescriptor:
    """Introspected shape of a type: its ordered members and constructor style."""

    type: type
    members: tuple[MemberDescriptor, ...]
    keyword_init: bool = True

    @functools.cached_property
    def _by_name(self) -> dict[str, MemberDescriptor]:
        return {m.name: m for m in self.members}

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(m.name for m in self.members)

    def member(self, name: str) -> MemberDescriptor | None:
        return self._by_name.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def construct(self, values: dict[str, Any]) -> Any:
        """Create an instance from member *values*.

        Keyword-constructible types receive *values* as keyword arguments;
        other types are default-constructed and then assigned attribute by
        attribute. Members absent from *values* keep the type's defaults.
        """
        if self.keyword_init:
            return self.type(**values)
        instance = self.type()
        for name, value in values.items():
            setattr(instance, name, value)
        return instance


# ---------------------------------------------------------------------------
# Introspection
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def describe_type(tp: type) -> TypeDescriptor:
    """Return the cached :class:`TypeDescriptor` for *tp*.

    Raises:
        UnsupportedTypeError: If *tp* is not a class, is a builtin, or has
            no introspectable members.
    """
    if not isinstance(tp, type):
        raise UnsupportedTypeError(
            f"{tp!r} is not a class and cannot be described",
            context={"type": repr(tp)},
        )
    if tp.__module__ == "builtins":
        raise UnsupportedTypeError(
            f"Builtin type '{tp.__qualname__}' has no member list",
            context={"type": type_name(tp)},
        )

    if dataclasses.is_dataclass(tp):
        return _describe_dataclass(tp)
    if issubclass(tp, BaseModel):
        return _describe_pydantic(tp)
    if issubclass(tp, tuple) and hasattr(tp, "_fields"):
        return _describe_namedtuple(tp)
    return _describe_annotated_class(tp)


def describe(tp: type) -> tuple[MemberDescriptor, ...]:
    """Ordered member descriptors of *tp* (cached)."""
    return describe_type(tp).members


def _resolve_hints(tp: type) -> dict[str, Any]:
    try:
        return get_type_hints(tp)
    except (NameError, TypeError) as exc:
        raise UnsupportedTypeError(
            f"Cannot resolve annotations of '{type_name(tp)}': {exc}",
            context={"type": type_name(tp)},
        ) from exc


def _describe_dataclass(tp: type) -> TypeDescriptor:
    hints = _resolve_hints(tp)
    members = []
    for field in dataclasses.fields(tp):
        if not field.init:
            continue
        factory: Callable[[], Any] | None = None
        if field.default is not dataclasses.MISSING:
            factory = functools.partial(_identity, field.default)
        elif field.default_factory is not dataclasses.MISSING:
            factory = field.default_factory
        members.append(_member(field.name, hints.get(field.name, Any), factory))
    return TypeDescriptor(tp, tuple(members))


def _describe_pydantic(tp: type[BaseModel]) -> TypeDescriptor:
    members = []
    for name, info in tp.model_fields.items():
        factory = None
        if not info.is_required():
            factory = functools.partial(info.get_default, call_default_factory=True)
        members.append(_member(name, info.annotation, factory))
    return TypeDescriptor(tp, tuple(members))


def _describe_namedtuple(tp: type) -> TypeDescriptor:
    hints = _resolve_hints(tp)
    defaults: dict[str, Any] = getattr(tp, "_field_defaults", {})
    members = []
    for name in tp._fields:  # type: ignore[attr-defined]
        factory = functools.partial(_identity, defaults[name]) if name in defaults else None
        members.append(_member(name, hints.get(name, Any), factory))
    return TypeDescriptor(tp, tuple(members))


def _describe_annotated_class(tp: type) -> TypeDescriptor:
    hints = {
        name: hint
        for name, hint in _resolve_hints(tp).items()
        if not name.startswith("_") and get_origin(hint) is not ClassVar and hint is not ClassVar
    }
    if not hints:
        raise UnsupportedTypeError(
            f"'{type_name(tp)}' declares no annotated members",
            context={"type": type_name(tp)},
        )

    members = []
    for name, hint in hints.items():
        factory = functools.partial(getattr, tp, name) if hasattr(tp, name) else None
        members.append(_member(name, hint, factory))
    return TypeDescriptor(tp, tuple(members), keyword_init=_accepts_keywords(tp, hints))


def _accepts_keywords(tp: type, names: collections.abc.Iterable[str]) -> bool:
    if tp.__init__ is object.__init__:
        return False
    try:
        params = inspect.signature(tp).parameters
    except (TypeError, ValueError):
        return False
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in params.values()):
        return True
    return all(name in params for name in names)


def _identity(value: Any) -> Any:
    return value


def _member(name: str, hint: Any, default_factory: Callable[[], Any] | None) -> MemberDescriptor:
    value_type, optional = _unwrap_optional(hint)
    origin = get_origin(value_type) or value_type
    if origin in _COLLECTION_ORIGINS:
        return MemberDescriptor(
            name=name,
            value_type=origin,
            is_collection=True,
            element_type=_element_type(value_type),
            optional=optional,
            has_default=default_factory is not None,
            default_factory=default_factory,
        )
    return MemberDescriptor(
        name=name,
        value_type=value_type,
        optional=optional,
        has_default=default_factory is not None,
        default_factory=default_factory,
    )


def _unwrap_optional(hint: Any) -> tuple[Any, bool]:
    """Strip ``Annotated`` and ``None`` from *hint*; report whether it was optional."""
    if get_origin(hint) is Annotated:
        hint = get_args(hint)[0]
    if hint is None or hint is _NoneType:
        return Any, True
    if get_origin(hint) is Union or isinstance(hint, types.UnionType):
        args = get_args(hint)
        non_none = tuple(a for a in args if a is not _NoneType)
        optional = len(non_none) < len(args)
        if len(non_none) == 1:
            return _unwrap_optional(non_none[0])[0], optional
        return Union[non_none], optional  # noqa: UP007
    return hint, False


def _element_type(hint: Any) -> Any:
    args = get_args(hint)
    if not args:
        return None
    if get_origin(hint) is tuple:
        # tuple[X, ...] is homogeneous; fixed-shape tuples have no single element type.
        if len(args) == 2 and args[1] is Ellipsis:
            return _unwrap_optional(args[0])[0]
        return None
    return _unwrap_optional(args[0])[0]


# ---------------------------------------------------------------------------
# Assignability
# ---------------------------------------------------------------------------


def _is_unconstrained(declared: Any) -> bool:
    return declared is Any or declared is object or isinstance(declared, (TypeVar, str))


def is_assignable(value: Any, declared: Any) -> bool:
    """Shallow runtime check that *value* fits the *declared* type.

    Generic parameters are not inspected (``dict[str, int]`` checks
    ``dict``). ``int`` is accepted where ``float`` is declared. Typing
    constructs that cannot be checked at runtime are accepted.
    """
    if _is_unconstrained(declared):
        return True
    origin = get_origin(declared)
    if origin is Annotated:
        return is_assignable(value, get_args(declared)[0])
    if origin is Union or isinstance(declared, types.UnionType):
        return any(
            value is None if arg is _NoneType else is_assignable(value, arg) for arg in get_args(declared)
        )
    if origin is Literal:
        return value in get_args(declared)
    if origin is not None:
        declared = origin
    if not isinstance(declared, type):
        return True
    if declared is float and isinstance(value, int) and not isinstance(value, bool):
        return True
    return isinstance(value, declared)
