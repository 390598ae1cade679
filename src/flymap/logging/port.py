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
"""Logging port used by the mapping bootstrap.

:func:`flymap.mapping.auto_configuration.configure_mapping` accepts any
object satisfying :class:`LoggingPort` and configures it from the same
:class:`~flymap.core.config.Config` that drives ``flymap.mapping.*``.
:class:`~flymap.logging.structlog_adapter.StructlogAdapter` is the shipped
implementation.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from flymap.core.config import Config


@runtime_checkable
class LoggingPort(Protocol):
    """Sets up logging from ``flymap.logging.*`` and hands out loggers."""

    def configure(self, config: Config) -> None:
        """Apply the ``flymap.logging`` section (format, root and per-logger levels)."""
        ...

    def get_logger(self, name: str) -> Any:
        """Return a logger bound to *name*, e.g. ``"flymap.mapping.executor"``."""
        ...

    def set_level(self, name: str, level: str) -> None:
        """Change the level of one logger after configuration."""
        ...
