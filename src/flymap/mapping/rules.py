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
"""Member-level mapping rules.

Each rule describes how one target member gets its value. A definition holds
at most one rule per target member; members without a rule fall back to the
same-name convention in the executor.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar, TypeAlias


@dataclass(frozen=True)
class CopyMember:
    """Copy the value of a named source member."""

    kind: ClassVar[str] = "copy"

    source_member: str


@dataclass(frozen=True)
class Computed:
    """Derive the value from the whole source instance.

    ``compute`` must be pure with respect to anything outside the source
    instance; it is called once per mapping and its result is assigned
    without a type check.
    """

    kind: ClassVar[str] = "computed"

    compute: Callable[[Any], Any]


@dataclass(frozen=True)
class Delegate:
    """Map a nested member through another registered definition.

    Collection-valued members are mapped element by element. ``source_member``
    defaults to the target member's name; ``source_type`` is only used to
    validate configuration and is inferred from the source member's declared
    type when omitted.
    """

    kind: ClassVar[str] = "delegate"

    target_type: type
    source_member: str | None = None
    source_type: type | None = None


@dataclass(frozen=True)
class Ignore:
    """Leave the member at its default and never report it unresolved."""

    kind: ClassVar[str] = "ignore"


MappingRule: TypeAlias = CopyMember | Computed | Delegate | Ignore


def is_invertible(rule: MappingRule) -> bool:
    """Whether a reverse definition can be derived from *rule* mechanically."""
    return isinstance(rule, CopyMember)
