from typing import Any


class GcpAutoConfigurationError(RuntimeError):
    """Base class for failures while wiring GCP clients at startup."""


class PropertyBindingError(GcpAutoConfigurationError, ValueError):
    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(f"Failed to bind property '{key}' with value {value!r}: {reason}")
        self.key = key
        self.value = value
        self.reason = reason


class CredentialsLoadError(GcpAutoConfigurationError):
    pass


class ProjectIdResolutionError(GcpAutoConfigurationError):
    pass


class ClientCreationError(GcpAutoConfigurationError):
    pass


class InvalidSecretReferenceError(GcpAutoConfigurationError, ValueError):
    def __init__(self, reference: str):
        super().__init__(
            f"Unrecognized format for specifying a GCP Secret Manager secret: {reference}"
        )
        self.reference = reference


class ConfigDataLocationNotFoundError(GcpAutoConfigurationError):
    def __init__(self, location: str):
        super().__init__(
            f"No resolver found for config location '{location}'. "
            f"Prefix it with 'optional:' to ignore it."
        )
        self.location = location


class SecretAccessError(GcpAutoConfigurationError):
    pass
