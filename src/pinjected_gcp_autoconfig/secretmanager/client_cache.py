"""Long-lived Secret Manager client, created once and shared."""

import threading
from typing import Callable, Optional

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import secretmanager
from loguru import logger

from pinjected_gcp_autoconfig.core.credentials import load_credentials
from pinjected_gcp_autoconfig.core.properties import CredentialsProperties
from pinjected_gcp_autoconfig.core.user_agent import user_agent_client_info
from pinjected_gcp_autoconfig.exceptions import ClientCreationError, CredentialsLoadError

USER_AGENT_LIBRARY = "pinjected-secretmanager-config-data"

SecretManagerClientFactory = Callable[[], secretmanager.SecretManagerServiceClient]


def create_secret_manager_client(
    credentials_properties: CredentialsProperties,
) -> secretmanager.SecretManagerServiceClient:
    try:
        credentials = load_credentials(credentials_properties)
        return secretmanager.SecretManagerServiceClient(
            credentials=credentials,
            client_info=user_agent_client_info(USER_AGENT_LIBRARY),
        )
    except (CredentialsLoadError, GoogleAuthError, GoogleAPIError, OSError, ValueError) as e:
        raise ClientCreationError(
            "Failed to create the Secret Manager client for config data loading."
        ) from e


class SecretManagerClientCache:
    """
    Hands out one Secret Manager client. A new client is built only on first use or
    after the cached one was closed; concurrent first calls build exactly one.
    """

    def __init__(self, client_factory: SecretManagerClientFactory):
        self._client_factory = client_factory
        self._client: Optional[secretmanager.SecretManagerServiceClient] = None
        self._closed = False
        self._lock = threading.Lock()

    @classmethod
    def from_credentials(
        cls, credentials_properties: CredentialsProperties
    ) -> "SecretManagerClientCache":
        return cls(lambda: create_secret_manager_client(credentials_properties))

    def _usable(self) -> bool:
        return self._client is not None and not self._closed

    def _watch(self, client: secretmanager.SecretManagerServiceClient):
        """Closing the transport from outside, e.g. via ``with client:``, closes the cache too."""
        transport = client.transport
        close_transport = transport.close

        def close():
            # called with or without the lock held
            if self._client is client:
                self._closed = True
            close_transport()

        transport.close = close
        return client

    def get_client(self) -> secretmanager.SecretManagerServiceClient:
        if self._usable():
            return self._client
        with self._lock:
            if not self._usable():
                logger.info("Creating GCP Secret Manager client")
                self._client = self._watch(self._client_factory())
                self._closed = False
            return self._client

    def set_client(self, client: secretmanager.SecretManagerServiceClient):
        with self._lock:
            self._client = self._watch(client)
            self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self):
        with self._lock:
            if self._client is not None and not self._closed:
                logger.info("Closing GCP Secret Manager client")
                self._client.transport.close()
                self._closed = True
