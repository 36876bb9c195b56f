"""Shared configuration, credentials and client plumbing."""

import loguru
from pinjected import design

from .credentials import (
    DEFAULT_GCP_SCOPES,
    gcp_credentials,
    load_credentials,
    resolve_scopes,
)
from .executor import BackgroundExecutorProvider, default_executor_thread_count
from .project_id import (
    DefaultGcpProjectIdProvider,
    GcpProjectIdProvider,
    StaticProjectIdProvider,
    gcp_project_id,
    gcp_project_id_provider,
    project_id_provider_for,
)
from .properties import (
    ConfigEnvironment,
    CredentialsProperties,
    EnvironmentPropertySource,
    GcpProperties,
    MapPropertySource,
    PropertiesModel,
    PropertySource,
    RetryProperties,
    bind,
    parse_duration,
    properties_from_file,
)
from .retry import (
    DEFAULT_UNLIMITED_RETRY_TIMEOUT,
    LIBRARY_DEFAULT_RETRY_SETTINGS,
    RetrySettings,
    update_retry_settings,
)
from .user_agent import user_agent_client_info

__all__ = [
    "DEFAULT_GCP_SCOPES",
    "DEFAULT_UNLIMITED_RETRY_TIMEOUT",
    "LIBRARY_DEFAULT_RETRY_SETTINGS",
    "BackgroundExecutorProvider",
    "ConfigEnvironment",
    "CredentialsProperties",
    "DefaultGcpProjectIdProvider",
    "EnvironmentPropertySource",
    "GcpProjectIdProvider",
    "GcpProperties",
    "MapPropertySource",
    "PropertiesModel",
    "PropertySource",
    "RetryProperties",
    "RetrySettings",
    "StaticProjectIdProvider",
    "bind",
    "core_design",
    "default_executor_thread_count",
    "gcp_credentials",
    "gcp_project_id",
    "gcp_project_id_provider",
    "load_credentials",
    "parse_duration",
    "project_id_provider_for",
    "properties_from_file",
    "resolve_scopes",
    "update_retry_settings",
    "user_agent_client_info",
]


def core_design(gcp_properties: GcpProperties):
    return design(
        logger=loguru.logger,
        gcp_properties=gcp_properties,
        gcp_credentials=gcp_credentials,
        gcp_project_id_provider=gcp_project_id_provider,
        gcp_project_id=gcp_project_id,
    )
