"""
Resolution of ``sm://`` config locations at bootstrap, and promotion of the objects
built for it into the application design.
"""

import threading
from dataclasses import dataclass
from typing import Optional

from google.cloud import secretmanager
from loguru import logger
from pinjected import Injected, design, destructors, instance

from pinjected_gcp_autoconfig.core.config_data import ConfigDataLocation
from pinjected_gcp_autoconfig.core.project_id import GcpProjectIdProvider, project_id_provider_for
from pinjected_gcp_autoconfig.core.properties import ConfigEnvironment, GcpProperties, bind
from pinjected_gcp_autoconfig.secretmanager.client_cache import SecretManagerClientCache
from pinjected_gcp_autoconfig.secretmanager.properties import GcpSecretManagerProperties
from pinjected_gcp_autoconfig.secretmanager.property_source import SecretManagerPropertySource
from pinjected_gcp_autoconfig.secretmanager.syntax import (
    get_matched_prefix,
    warn_if_using_deprecated_syntax,
)
from pinjected_gcp_autoconfig.secretmanager.template import SecretManagerTemplate, a_secret_value


@dataclass(frozen=True)
class SecretManagerComponents:
    properties: GcpSecretManagerProperties
    client_cache: SecretManagerClientCache
    project_id_provider: GcpProjectIdProvider
    template: SecretManagerTemplate


@dataclass(frozen=True)
class SecretManagerConfigDataResource:
    location: ConfigDataLocation
    components: SecretManagerComponents


def create_secret_manager_components(
    environment: ConfigEnvironment,
    client_cache: Optional[SecretManagerClientCache] = None,
) -> SecretManagerComponents:
    """
    Bind the core and Secret Manager properties and build the objects secret
    resolution needs. The client itself is created on first use.

    Project id precedence: ``gcp.secretmanager.project-id`` > ``gcp.project-id`` >
    the default lookup. Credentials fall back to ``gcp.credentials`` when the Secret
    Manager ones name no key.
    """
    gcp_properties = bind(environment, GcpProperties.PREFIX, GcpProperties)
    properties = bind(environment, GcpSecretManagerProperties.PREFIX, GcpSecretManagerProperties)
    project_id_provider = project_id_provider_for(properties.project_id, gcp_properties.project_id)
    if client_cache is None:
        credentials = (
            properties.credentials
            if properties.credentials.has_key()
            else gcp_properties.credentials
        )
        client_cache = SecretManagerClientCache.from_credentials(credentials)
    template = SecretManagerTemplate(
        client_cache,
        project_id_provider,
        allow_default_secret=properties.allow_default_secret,
    )
    return SecretManagerComponents(
        properties=properties,
        client_cache=client_cache,
        project_id_provider=project_id_provider,
        template=template,
    )


class SecretManagerConfigDataLocationResolver:
    """
    Resolves ``sm://`` (and deprecated ``sm@``) config locations. Every location
    resolved by one resolver shares the same components, built on first use.
    """

    def __init__(self, client_cache: Optional[SecretManagerClientCache] = None):
        self._client_cache = client_cache
        self._components: Optional[SecretManagerComponents] = None
        self._lock = threading.Lock()

    def is_resolvable(self, environment: ConfigEnvironment, location: ConfigDataLocation) -> bool:
        prefix = get_matched_prefix(location.value)
        warn_if_using_deprecated_syntax(prefix)
        if prefix is None:
            return False
        enabled = bind(
            environment, GcpSecretManagerProperties.PREFIX, GcpSecretManagerProperties
        ).enabled
        if not enabled:
            logger.debug(f"Secret Manager is disabled, not resolving {location}")
        return enabled

    def components(self, environment: ConfigEnvironment) -> SecretManagerComponents:
        with self._lock:
            if self._components is None:
                self._components = create_secret_manager_components(
                    environment, self._client_cache
                )
            return self._components

    def resolve(
        self, environment: ConfigEnvironment, location: ConfigDataLocation
    ) -> list[SecretManagerConfigDataResource]:
        logger.debug(f"Resolving config location {location} with Secret Manager")
        return [SecretManagerConfigDataResource(location, self.components(environment))]


class SecretManagerConfigDataLoader:
    def is_loadable(self, resource) -> bool:
        return isinstance(resource, SecretManagerConfigDataResource)

    def load(self, resource: SecretManagerConfigDataResource) -> SecretManagerPropertySource:
        return SecretManagerPropertySource(resource.components.template)


@instance
def secret_manager_service_client(
    secret_manager_client_cache: SecretManagerClientCache,
) -> secretmanager.SecretManagerServiceClient:
    return secret_manager_client_cache.get_client()


def close_secret_manager_client_cache(client_cache: SecretManagerClientCache):
    client_cache.close()


def secret_manager_design(components: SecretManagerComponents):
    """Bindings for the objects built while resolving ``sm://`` locations."""
    return design(
        gcp_secret_manager_properties=components.properties,
        secret_manager_client_cache=components.client_cache,
        secret_manager_project_id_provider=components.project_id_provider,
        secret_manager_template=components.template,
        secret_manager_service_client=secret_manager_service_client,
        a_secret_value=a_secret_value,
    ) + destructors(
        secret_manager_client_cache=Injected.pure(close_secret_manager_client_cache),
    )
