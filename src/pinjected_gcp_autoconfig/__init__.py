"""Google Cloud client autoconfiguration for pinjected."""

from . import core
from .bootstrap import (
    ConfigData,
    autoconfigure,
    bootstrap_design,
    environment_from,
    load_config_data,
)
from .core import ConfigEnvironment, GcpProperties, bind
from .exceptions import (
    ClientCreationError,
    ConfigDataLocationNotFoundError,
    CredentialsLoadError,
    GcpAutoConfigurationError,
    InvalidSecretReferenceError,
    ProjectIdResolutionError,
    PropertyBindingError,
    SecretAccessError,
)

__version__ = "0.1.0"

__all__ = [
    "ClientCreationError",
    "ConfigData",
    "ConfigDataLocationNotFoundError",
    "ConfigEnvironment",
    "CredentialsLoadError",
    "GcpAutoConfigurationError",
    "GcpProperties",
    "InvalidSecretReferenceError",
    "ProjectIdResolutionError",
    "PropertyBindingError",
    "SecretAccessError",
    "autoconfigure",
    "bind",
    "bootstrap_design",
    "core",
    "environment_from",
    "load_config_data",
]
