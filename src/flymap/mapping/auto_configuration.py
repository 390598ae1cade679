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
"""Mapping auto-configuration — from configuration and profiles to an executor.

Runs the whole configuration phase in one call: bind ``flymap.mapping.*``,
register conversions and profiles, optionally validate, seal the registry
and hand back a ready executor::

    config = Config.from_file("flymap.yaml", active_profiles=["dev"])
    executor = configure_mapping(UserProfile, config=config, logging_port=StructlogAdapter())
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from flymap.config.properties.mapping import MappingProperties
from flymap.core.config import Config
from flymap.logging.port import LoggingPort
from flymap.mapping.conversions import Converter
from flymap.mapping.executor import MappingExecutor
from flymap.mapping.profile import MappingProfile
from flymap.mapping.registry import MappingRegistry

logger = structlog.get_logger("flymap.mapping.auto")


def configure_mapping(
    *profiles: MappingProfile | type[MappingProfile],
    config: Config | None = None,
    conversions: Iterable[tuple[type, type, Converter]] = (),
    logging_port: LoggingPort | None = None,
) -> MappingExecutor:
    """Build a sealed registry from *profiles* and return an executor over it.

    Args:
        profiles: Profile instances or classes to register, in order.
        config: Source of ``flymap.mapping.*`` settings. Defaults to the
            packaged defaults (plus ``FLYMAP_*`` environment overrides).
        conversions: ``(source_type, target_type, converter)`` triples.
        logging_port: When given, configured from the ``flymap.logging``
            section of the same configuration before anything is registered.

    Raises:
        MappingConfigurationException: For any registration error.
        UnresolvedMemberError: If ``validate_on_startup`` is enabled and the
            configuration has unresolvable members.
    """
    config = config or Config.defaults()
    if logging_port is not None:
        logging_port.configure(config)
    properties = config.bind(MappingProperties)

    registry = MappingRegistry()
    for source_type, target_type, converter in conversions:
        registry.register_conversion(source_type, target_type, converter)
    for profile in profiles:
        registry.register_profile(profile)

    if properties.validate_on_startup:
        registry.assert_configuration_is_valid()
    registry.seal()

    logger.info(
        "mapping_configured",
        profiles=len(profiles),
        definitions=len(registry),
        strict=properties.strict,
        max_depth=properties.max_depth,
    )
    return MappingExecutor(registry, strict=properties.strict, max_depth=properties.max_depth)
