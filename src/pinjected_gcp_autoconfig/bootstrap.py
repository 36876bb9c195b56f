"""
Two-phase startup.

1. ``load_config_data`` resolves the locations listed under ``config.import``
   (``sm://`` for Secret Manager) and attaches their property sources.
2. ``autoconfigure`` receives the resolved ``ConfigData`` and returns the design
   holding exactly the bindings the configuration asks for.

User designs added after the returned one override any binding in it.
"""

import importlib.util
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from loguru import logger

from pinjected_gcp_autoconfig.core import core_design
from pinjected_gcp_autoconfig.core.config_data import (
    ConfigDataLoader,
    ConfigDataLocationResolver,
    config_import_locations,
)
from pinjected_gcp_autoconfig.core.properties import (
    ConfigEnvironment,
    EnvironmentPropertySource,
    GcpProperties,
    MapPropertySource,
    bind,
    properties_from_file,
)
from pinjected_gcp_autoconfig.exceptions import ConfigDataLocationNotFoundError

SECRET_MANAGER_MODULE = "google.cloud.secretmanager"
VERTEX_RAG_MODULE = "google.cloud.aiplatform_v1"


def module_available(name: str) -> bool:
    try:
        return importlib.util.find_spec(name) is not None
    except ModuleNotFoundError:
        return False


@dataclass
class ConfigData:
    environment: ConfigEnvironment
    resources: list[Any] = field(default_factory=list)

    def secret_manager_components(self):
        if not module_available(SECRET_MANAGER_MODULE):
            return None
        from pinjected_gcp_autoconfig.secretmanager.config_data import (
            SecretManagerConfigDataResource,
        )

        for resource in self.resources:
            if isinstance(resource, SecretManagerConfigDataResource):
                return resource.components
        return None


def environment_from(
    properties: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
    files: Sequence[Union[str, Path]] = (),
) -> ConfigEnvironment:
    """Environment variables first, then ``properties``, then ``files`` in order."""
    sources = [EnvironmentPropertySource(dict(os.environ) if environ is None else environ)]
    if properties is not None:
        sources.append(MapPropertySource("properties", properties))
    sources.extend(properties_from_file(path) for path in files)
    return ConfigEnvironment(sources)


def default_config_data_handlers() -> tuple[list[ConfigDataLocationResolver], list[ConfigDataLoader]]:
    if not module_available(SECRET_MANAGER_MODULE):
        logger.debug("google-cloud-secret-manager is not installed, sm:// locations are not resolvable")
        return [], []
    from pinjected_gcp_autoconfig.secretmanager.config_data import (
        SecretManagerConfigDataLoader,
        SecretManagerConfigDataLocationResolver,
    )

    return [SecretManagerConfigDataLocationResolver()], [SecretManagerConfigDataLoader()]


def load_config_data(
    environment: ConfigEnvironment,
    resolvers: Optional[Sequence[ConfigDataLocationResolver]] = None,
    loaders: Optional[Sequence[ConfigDataLoader]] = None,
) -> ConfigData:
    """
    Phase one. Resolve every ``config.import`` location and append the loaded property
    sources to ``environment``.

    Raises:
        ConfigDataLocationNotFoundError: If a location without ``optional:`` cannot
            be resolved or loaded
    """
    if resolvers is None or loaders is None:
        default_resolvers, default_loaders = default_config_data_handlers()
        resolvers = default_resolvers if resolvers is None else resolvers
        loaders = default_loaders if loaders is None else loaders

    config_data = ConfigData(environment)
    for location in config_import_locations(environment):
        resolver = next((r for r in resolvers if r.is_resolvable(environment, location)), None)
        if resolver is None:
            if location.optional:
                logger.debug(f"Skipping optional config location {location}")
                continue
            raise ConfigDataLocationNotFoundError(str(location))
        for resource in resolver.resolve(environment, location):
            loader = next((l for l in loaders if l.is_loadable(resource)), None)
            if loader is None:
                raise ConfigDataLocationNotFoundError(str(location))
            source = loader.load(resource)
            if all(s.name != source.name for s in environment.property_sources):
                environment.add_last(source)
                logger.debug(f"Added property source '{source.name}' for {location}")
            config_data.resources.append(resource)
    return config_data


def autoconfigure(config_data: ConfigData):
    """Phase two. Build the design from the resolved configuration."""
    environment = config_data.environment
    result = core_design(bind(environment, GcpProperties.PREFIX, GcpProperties))

    components = config_data.secret_manager_components()
    if components is not None:
        from pinjected_gcp_autoconfig.secretmanager.config_data import secret_manager_design

        result += secret_manager_design(components)
        logger.debug("Promoted Secret Manager config data objects to the design")

    if module_available(VERTEX_RAG_MODULE):
        from pinjected_gcp_autoconfig.vertex_rag import (
            VertexRagServiceProperties,
            vertex_rag_service_design,
        )

        properties = bind(environment, VertexRagServiceProperties.PREFIX, VertexRagServiceProperties)
        if properties.enabled:
            result += vertex_rag_service_design(properties)
        else:
            logger.debug("VertexRagService autoconfiguration is disabled")
    else:
        logger.debug("google-cloud-aiplatform is not installed, skipping VertexRagService")
    return result


def bootstrap_design(
    properties: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
    files: Sequence[Union[str, Path]] = (),
):
    """Run both phases over the given configuration and return the design."""
    return autoconfigure(load_config_data(environment_from(properties, environ, files)))
