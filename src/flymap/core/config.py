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
"""Layered configuration: YAML/TOML files, env vars, and typed binding."""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, get_type_hints

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

T = TypeVar("T")

ENV_PREFIX = "FLYMAP_"

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")

_CONFIG_PROPERTIES_ATTR = "__flymap_config_prefix__"


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a dataclass or pydantic model as bindable to a configuration prefix.

    Usage:
        @config_properties(prefix="flymap.mapping")
        @dataclass
        class MappingProperties:
            strict: bool = False
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Hierarchical configuration with dot-notation access.

    Priority (highest wins):
    1. Environment variables (``flymap.mapping.strict`` -> ``FLYMAP_MAPPING_STRICT``)
    2. Profile overlay files, then the base file
    3. Packaged defaults (``flymap/resources/flymap-defaults.yaml``)
    4. Dataclass / model defaults
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._loaded_sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """Config file paths that were merged, in merge order."""
        return list(self._loaded_sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load *path* on top of the packaged defaults.

        For every active profile, a sibling ``{stem}-{profile}{suffix}`` file
        is merged over the base file when it exists. Missing files are
        skipped silently so a service can run on defaults alone.
        """
        path = Path(path)
        data: dict[str, Any] = {}
        sources: list[str] = []

        if load_defaults:
            data = cls._load_defaults()
            sources.append("flymap-defaults.yaml (defaults)")

        candidates = [(path, None)]
        candidates += [
            (path.parent / f"{path.stem}-{profile}{path.suffix}", profile) for profile in active_profiles or []
        ]
        for candidate, profile in candidates:
            if not candidate.is_file():
                continue
            data = cls._deep_merge(data, cls._load_config_data(candidate))
            sources.append(str(candidate) if profile is None else f"{candidate} (profile: {profile})")

        instance = cls(data)
        instance._loaded_sources = sources
        return instance

    @classmethod
    def defaults(cls) -> Config:
        """Configuration holding only the packaged defaults."""
        instance = cls(cls._load_defaults())
        instance._loaded_sources = ["flymap-defaults.yaml (defaults)"]
        return instance

    @staticmethod
    def _load_config_data(path: Path) -> dict[str, Any]:
        if path.suffix == ".toml":
            with open(path, "rb") as f:
                return tomllib.load(f) or {}
        with open(path) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _load_defaults() -> dict[str, Any]:
        defaults_file = importlib.resources.files("flymap.resources").joinpath("flymap-defaults.yaml")
        with importlib.resources.as_file(defaults_file) as p, open(p) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        merged = dict(base)
        for key, value in override.items():
            if isinstance(merged.get(key), dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    @staticmethod
    def env_key(key: str) -> str:
        """Environment variable that overrides the dot-notation *key*."""
        base = key.removeprefix("flymap.")
        return ENV_PREFIX + base.upper().replace(".", "_").replace("-", "_")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key, checking env vars first.

        String values may reference ``${ENV_VAR}`` or ``${ENV_VAR:default}``.
        """
        env_val = os.environ.get(self.env_key(key))
        if env_val is not None:
            return env_val

        current = self._walk(key)
        if current is None:
            return default
        if isinstance(current, str) and "${" in current:
            return _PLACEHOLDER_RE.sub(self._substitute, current)
        return current

    def _walk(self, key: str) -> Any:
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None
        return current

    @staticmethod
    def _substitute(match: re.Match[str]) -> str:
        name, sep, fallback = match.group(1).partition(":")
        value = os.environ.get(name)
        if value is not None:
            return value
        if sep:
            return fallback
        raise ValueError(f"Cannot resolve placeholder '${{{match.group(1)}}}': {name} is not set")

    def get_section(self, prefix: str) -> dict[str, Any]:
        """All values under *prefix* as a dict (empty when absent)."""
        current = self._walk(prefix)
        return dict(current) if isinstance(current, dict) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Bind the section under the class's prefix onto *config_cls*.

        Environment overrides are applied per field before binding. Pydantic
        models are validated (fail-fast at startup); dataclass fields get
        string coercion for ``int``, ``float`` and ``bool``.
        """
        prefix = getattr(config_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        section = self.get_section(prefix)

        if isinstance(config_cls, type) and issubclass(config_cls, BaseModel):
            for name in config_cls.model_fields:
                env_val = os.environ.get(self.env_key(f"{prefix}.{name}"))
                if env_val is not None:
                    section[name] = env_val
            try:
                return config_cls.model_validate(section)
            except ValidationError as exc:
                raise ValueError(
                    f"Configuration validation failed for '{config_cls.__name__}' (prefix='{prefix}'):\n{exc}"
                ) from exc

        hints = get_type_hints(config_cls)
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            value = self.get(f"{prefix}.{field.name}")
            if value is None:
                continue
            kwargs[field.name] = _coerce(value, hints.get(field.name))

        return config_cls(**kwargs)


def _coerce(value: Any, expected: Any) -> Any:
    if not isinstance(value, str):
        return value
    if expected is bool or expected == bool | None:
        return value.lower() in ("true", "1", "yes")
    if expected is int or expected == int | None:
        return int(value)
    if expected is float or expected == float | None:
        return float(value)
    return value
