"""Credential provider selection: explicit key, key file, or Application Default Credentials."""

import base64
import binascii
import json
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from google.auth import default
from google.auth.credentials import Credentials
from google.auth.exceptions import DefaultCredentialsError, GoogleAuthError
from google.oauth2 import service_account
from loguru import logger
from pinjected import instance

from pinjected_gcp_autoconfig.core.properties import CredentialsProperties, GcpProperties
from pinjected_gcp_autoconfig.exceptions import CredentialsLoadError

DEFAULT_SCOPES_PLACEHOLDER = "DEFAULT_SCOPES"
DEFAULT_GCP_SCOPES = ("https://www.googleapis.com/auth/cloud-platform",)


def resolve_scopes(scopes: Optional[Sequence[str]]) -> list[str]:
    """
    Configured scopes, or the defaults when none are configured.
    ``DEFAULT_SCOPES`` inside the configured list expands to the defaults.
    """
    if not scopes:
        return list(DEFAULT_GCP_SCOPES)
    resolved = []
    for scope in scopes:
        expanded = DEFAULT_GCP_SCOPES if scope == DEFAULT_SCOPES_PLACEHOLDER else (scope,)
        for item in expanded:
            if item not in resolved:
                resolved.append(item)
    return resolved


def decode_service_account_key(encoded_key: str) -> Dict[str, Any]:
    try:
        return json.loads(base64.b64decode(encoded_key, validate=True))
    except (binascii.Error, ValueError) as e:
        raise CredentialsLoadError(
            "credentials.encoded-key is not a base64 encoded JSON key"
        ) from e


def _strip_file_prefix(location: str) -> Path:
    if location.startswith("file:"):
        location = location[len("file:"):]
    return Path(location).expanduser()


def credentials_from_encoded_key(encoded_key: str, scopes: list[str]) -> Credentials:
    info = decode_service_account_key(encoded_key)
    logger.info(
        f"Loading GCP credentials from encoded key for project: {info.get('project_id', 'unknown')}"
    )
    return service_account.Credentials.from_service_account_info(info, scopes=scopes)


def credentials_from_location(location: str, scopes: list[str]) -> Credentials:
    path = _strip_file_prefix(location)
    if not path.exists():
        raise FileNotFoundError(f"Service account file not found: {path}")
    logger.info(f"Loading GCP credentials from {path}")
    return service_account.Credentials.from_service_account_file(str(path), scopes=scopes)


def credentials_from_environment(scopes: list[str]) -> Credentials:
    """
    Application Default Credentials, looked up in this order:
    1. GOOGLE_APPLICATION_CREDENTIALS environment variable
    2. gcloud auth application-default login
    3. GCE/GKE metadata service
    """
    logger.info("Loading GCP credentials from environment (ADC)")
    credentials, project = default(scopes=scopes)
    if project:
        logger.debug(f"ADC reports GCP project: {project}")
    return credentials


def load_credentials(properties: CredentialsProperties) -> Credentials:
    """
    Create credentials for the given properties.

    Precedence: ``encoded-key`` > ``location`` > Application Default Credentials.
    Any failure is fatal and surfaces as ``CredentialsLoadError``.
    """
    scopes = resolve_scopes(properties.scopes)
    try:
        if properties.encoded_key:
            return credentials_from_encoded_key(properties.encoded_key, scopes)
        if properties.location:
            return credentials_from_location(properties.location, scopes)
        return credentials_from_environment(scopes)
    except CredentialsLoadError:
        raise
    except (DefaultCredentialsError, GoogleAuthError, OSError, ValueError) as e:
        raise CredentialsLoadError(f"Failed to load GCP credentials: {e}") from e


@instance
def gcp_credentials(gcp_properties: GcpProperties) -> Credentials:
    """Shared credentials, used by every client without service-specific credentials."""
    return load_credentials(gcp_properties.credentials)
