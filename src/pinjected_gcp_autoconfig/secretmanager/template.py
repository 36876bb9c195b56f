"""Secret retrieval and management on top of the Secret Manager client."""

import asyncio
from typing import Dict, Optional, Protocol, Union

from google.api_core.exceptions import AlreadyExists, NotFound, PermissionDenied
from google.cloud import secretmanager
from loguru import logger
from pinjected import injected

from pinjected_gcp_autoconfig.core.project_id import GcpProjectIdProvider
from pinjected_gcp_autoconfig.exceptions import SecretAccessError
from pinjected_gcp_autoconfig.secretmanager.client_cache import SecretManagerClientCache
from pinjected_gcp_autoconfig.secretmanager.syntax import (
    LATEST_VERSION,
    SecretVersionName,
    get_secret_version_name,
)


class SecretManagerTemplate:
    """
    Reads and writes secrets in one default project.

    Identifiers passed to the read methods may be full references
    (``sm://project/secret/version`` and friends) or a bare secret id, which reads
    the latest version in the default project.
    """

    def __init__(
        self,
        client_cache: SecretManagerClientCache,
        project_id_provider: GcpProjectIdProvider,
        allow_default_secret: bool = False,
    ):
        self.client_cache = client_cache
        self.project_id_provider = project_id_provider
        self.allow_default_secret = allow_default_secret

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        return self.client_cache.get_client()

    def _project(self, project_id: Optional[str]) -> str:
        return project_id if project_id is not None else self.project_id_provider.get_project_id()

    def _version_name(self, secret_identifier: str) -> SecretVersionName:
        name = get_secret_version_name(secret_identifier, self.project_id_provider)
        if name is None:
            name = SecretVersionName(
                project=self.project_id_provider.get_project_id(),
                secret=secret_identifier,
                secret_version=LATEST_VERSION,
            )
        return name

    def get_secret_bytes(self, secret_identifier: str) -> Optional[bytes]:
        """
        Returns:
            The payload, or ``None`` if the secret is missing and default secrets are allowed

        Raises:
            SecretAccessError: If the secret is missing (and defaults are not allowed)
                or access is denied
        """
        name = self._version_name(secret_identifier)
        logger.debug(f"Fetching secret {name.secret} from project {name.project}")
        try:
            response = self.client.access_secret_version(request={"name": str(name)})
        except NotFound as e:
            if self.allow_default_secret:
                logger.warning(
                    f"Secret '{name.secret}' not found in project '{name.project}', "
                    f"falling back to the default value"
                )
                return None
            raise SecretAccessError(
                f"Secret '{name.secret}' not found in project '{name.project}'. "
                f"Please ensure the secret exists in GCP Secret Manager."
            ) from e
        except PermissionDenied as e:
            raise SecretAccessError(
                f"Permission denied accessing secret '{name.secret}' in project '{name.project}'. "
                f"Please check IAM permissions for the service account."
            ) from e
        return response.payload.data

    def get_secret_string(self, secret_identifier: str) -> Optional[str]:
        payload = self.get_secret_bytes(secret_identifier)
        return None if payload is None else payload.decode("UTF-8")

    def secret_exists(self, secret_id: str, project_id: Optional[str] = None) -> bool:
        name = f"projects/{self._project(project_id)}/secrets/{secret_id}"
        try:
            self.client.get_secret(request={"name": name})
        except NotFound:
            return False
        return True

    def create_secret(
        self,
        secret_id: str,
        payload: Union[str, bytes],
        project_id: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Create the secret if needed and add ``payload`` as its newest version.

        Returns:
            The resource name of the new secret version
        """
        project_id = self._project(project_id)
        parent = f"projects/{project_id}"
        secret_name = f"{parent}/secrets/{secret_id}"
        if isinstance(payload, str):
            payload = payload.encode("UTF-8")

        if not self.secret_exists(secret_id, project_id):
            logger.info(f"Creating secret {secret_id} in project {project_id}")
            try:
                self.client.create_secret(
                    request={
                        "parent": parent,
                        "secret_id": secret_id,
                        "secret": {
                            "replication": {"automatic": {}},
                            "labels": labels or {},
                        },
                    }
                )
            except AlreadyExists:
                logger.debug(f"Secret {secret_id} was created concurrently")

        version = self.client.add_secret_version(
            request={"parent": secret_name, "payload": {"data": payload}}
        )
        logger.info(f"Added a new version to secret {secret_id}")
        return version.name

    def delete_secret(self, secret_id: str, project_id: Optional[str] = None) -> bool:
        """
        Returns:
            True if the secret was deleted, False if it did not exist
        """
        project_id = self._project(project_id)
        logger.info(f"Deleting secret {secret_id} from project {project_id}")
        try:
            self.client.delete_secret(
                request={"name": f"projects/{project_id}/secrets/{secret_id}"}
            )
        except NotFound:
            logger.warning(f"Secret {secret_id} not found in project {project_id}")
            return False
        return True

    def _version_path(self, secret_id: str, version: str, project_id: Optional[str]) -> str:
        return str(
            SecretVersionName(
                project=self._project(project_id), secret=secret_id, secret_version=version
            )
        )

    def delete_secret_version(
        self, secret_id: str, version: str, project_id: Optional[str] = None
    ):
        self.client.destroy_secret_version(
            request={"name": self._version_path(secret_id, version, project_id)}
        )

    def enable_secret_version(
        self, secret_id: str, version: str, project_id: Optional[str] = None
    ):
        self.client.enable_secret_version(
            request={"name": self._version_path(secret_id, version, project_id)}
        )

    def disable_secret_version(
        self, secret_id: str, version: str, project_id: Optional[str] = None
    ):
        self.client.disable_secret_version(
            request={"name": self._version_path(secret_id, version, project_id)}
        )


class ASecretValueProtocol(Protocol):
    async def __call__(self, secret_identifier: str) -> Optional[str]: ...


@injected(protocol=ASecretValueProtocol)
async def a_secret_value(
    secret_manager_template: SecretManagerTemplate,
    logger: logger,
    /,
    secret_identifier: str,
) -> Optional[str]:
    """
    Fetch a secret value without blocking the event loop.

    Args:
        secret_identifier: ``sm://`` reference or bare secret id

    Returns:
        The secret value as a string
    """
    logger.info(f"Fetching secret {secret_identifier}")
    return await asyncio.get_running_loop().run_in_executor(
        None, secret_manager_template.get_secret_string, secret_identifier
    )
