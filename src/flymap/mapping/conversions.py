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
"""Scalar conversions applied when a copied value's type differs from the target's."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from flymap.kernel.exceptions import DuplicateMappingError
from flymap.mapping.descriptor import type_name

Converter = Callable[[Any], Any]


class ConversionRegistry:
    """Converters keyed by ordered (value type, target type).

    Lookup walks the value type's MRO, so a converter registered for a base
    class also applies to its subclasses. The target type must match exactly.
    """

    def __init__(self) -> None:
        self._converters: dict[tuple[type, type], Converter] = {}

    def register(self, source_type: type, target_type: type, converter: Converter) -> None:
        key = (source_type, target_type)
        if key in self._converters:
            raise DuplicateMappingError(
                f"Conversion {type_name(source_type)} -> {type_name(target_type)} is already registered",
                context={"source": type_name(source_type), "target": type_name(target_type)},
            )
        self._converters[key] = converter

    def find(self, source_type: type, target_type: Any) -> Converter | None:
        for base in source_type.__mro__:
            converter = self._converters.get((base, target_type))
            if converter is not None:
                return converter
        return None

    def __contains__(self, key: object) -> bool:
        return key in self._converters

    def __len__(self) -> int:
        return len(self._converters)
