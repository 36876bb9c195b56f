"""Google Cloud Secret Manager config data for pinjected."""

from .client_cache import SecretManagerClientCache, create_secret_manager_client
from .config_data import (
    SecretManagerComponents,
    SecretManagerConfigDataLoader,
    SecretManagerConfigDataLocationResolver,
    SecretManagerConfigDataResource,
    create_secret_manager_components,
    secret_manager_design,
    secret_manager_service_client,
)
from .properties import GcpSecretManagerProperties
from .property_source import SecretManagerPropertySource
from .syntax import (
    SecretVersionName,
    get_matched_prefix,
    get_secret_version_name,
    warn_if_using_deprecated_syntax,
)
from .template import ASecretValueProtocol, SecretManagerTemplate, a_secret_value

__all__ = [
    "ASecretValueProtocol",
    "GcpSecretManagerProperties",
    "SecretManagerClientCache",
    "SecretManagerComponents",
    "SecretManagerConfigDataLoader",
    "SecretManagerConfigDataLocationResolver",
    "SecretManagerConfigDataResource",
    "SecretManagerPropertySource",
    "SecretManagerTemplate",
    "SecretVersionName",
    "a_secret_value",
    "create_secret_manager_client",
    "create_secret_manager_components",
    "get_matched_prefix",
    "get_secret_version_name",
    "secret_manager_design",
    "secret_manager_service_client",
    "warn_if_using_deprecated_syntax",
]
