from dataclasses import dataclass
from typing import Optional

from pinjected_gcp_autoconfig.secretmanager.syntax import get_matched_prefix
from pinjected_gcp_autoconfig.secretmanager.template import SecretManagerTemplate

SECRET_MANAGER_PROPERTY_SOURCE_NAME = "secret-manager"


@dataclass(frozen=True)
class SecretManagerPropertySource:
    """Answers ``sm://`` keys with the secret they reference; ignores every other key."""

    template: SecretManagerTemplate
    name: str = SECRET_MANAGER_PROPERTY_SOURCE_NAME

    def get_property(self, key: str) -> Optional[str]:
        if get_matched_prefix(key) is None:
            return None
        return self.template.get_secret_string(key)
