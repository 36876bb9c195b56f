"""Project id providers."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol

from google.auth import default
from google.auth.exceptions import DefaultCredentialsError
from loguru import logger
from pinjected import instance

from pinjected_gcp_autoconfig.core.properties import GcpProperties
from pinjected_gcp_autoconfig.exceptions import ProjectIdResolutionError

PROJECT_ID_ENVIRONMENT_VARIABLES = ("GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT")


class GcpProjectIdProvider(Protocol):
    def get_project_id(self) -> str: ...


@dataclass(frozen=True)
class StaticProjectIdProvider:
    project_id: str

    def get_project_id(self) -> str:
        return self.project_id


class DefaultGcpProjectIdProvider:
    """
    Looks the project up in GOOGLE_CLOUD_PROJECT, then GCLOUD_PROJECT, then asks
    Application Default Credentials. The first successful answer is remembered.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ
        self._project_id: Optional[str] = None

    def get_project_id(self) -> str:
        if self._project_id is None:
            self._project_id = self._lookup()
        return self._project_id

    def _lookup(self) -> str:
        for name in PROJECT_ID_ENVIRONMENT_VARIABLES:
            if self._environ.get(name):
                logger.trace(f"Using GCP project id from {name}")
                return self._environ[name]
        try:
            _, project = default()
        except DefaultCredentialsError as e:
            raise ProjectIdResolutionError(
                "Could not determine GCP project ID from Application Default Credentials"
            ) from e
        if not project:
            raise ProjectIdResolutionError(
                "Could not determine GCP project ID from Application Default Credentials"
            )
        return project


def project_id_provider_for(*project_ids: Optional[str]) -> GcpProjectIdProvider:
    """The first configured project id wins, otherwise the default lookup."""
    for project_id in project_ids:
        if project_id is not None:
            return StaticProjectIdProvider(project_id)
    return DefaultGcpProjectIdProvider()


@instance
def gcp_project_id_provider(gcp_properties: GcpProperties) -> GcpProjectIdProvider:
    return project_id_provider_for(gcp_properties.project_id)


@instance
def gcp_project_id(gcp_project_id_provider: GcpProjectIdProvider) -> str:
    return gcp_project_id_provider.get_project_id()
