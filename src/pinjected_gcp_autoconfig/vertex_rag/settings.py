"""Immutable settings for the Vertex AI RAG service client."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Type

from frozendict import frozendict
from google.api_core.client_options import ClientOptions
from google.api_core.gapic_v1.client_info import ClientInfo
from google.auth.credentials import Credentials
from google.cloud.aiplatform_v1 import VertexRagServiceClient
from loguru import logger

from pinjected_gcp_autoconfig.core.executor import BackgroundExecutorProvider
from pinjected_gcp_autoconfig.core.retry import (
    DEFAULT_UNLIMITED_RETRY_TIMEOUT,
    LIBRARY_DEFAULT_RETRY_SETTINGS,
    RetrySettings,
    update_retry_settings,
)
from pinjected_gcp_autoconfig.core.user_agent import user_agent_client_info
from pinjected_gcp_autoconfig.vertex_rag.properties import (
    VERTEX_RAG_SERVICE_METHODS,
    VertexRagServiceProperties,
)

USER_AGENT_LIBRARY = "pinjected-autogen-vertex-rag-service"


@dataclass(frozen=True)
class TransportChannelProvider:
    """Names the GAPIC transport (``grpc`` or ``rest``) the client is built with."""

    transport_name: str = "grpc"

    @property
    def transport_class(self) -> Type:
        return VertexRagServiceClient.get_transport_class(self.transport_name)


def default_transport_channel_provider(use_rest: bool = False) -> TransportChannelProvider:
    return TransportChannelProvider("rest" if use_rest else "grpc")


def _default_method_settings() -> frozendict:
    return frozendict({m: LIBRARY_DEFAULT_RETRY_SETTINGS for m in VERTEX_RAG_SERVICE_METHODS})


@dataclass(frozen=True, eq=False)
class VertexRagServiceSettings:
    credentials: Credentials
    transport_channel_provider: TransportChannelProvider
    endpoint: str
    client_info: ClientInfo
    background_executor_provider: BackgroundExecutorProvider
    quota_project_id: Optional[str] = None
    method_settings: frozendict = field(default_factory=_default_method_settings)

    def retry_settings(self, method: str) -> RetrySettings:
        if method not in self.method_settings:
            raise ValueError(f"Unknown VertexRagService method: {method}")
        return self.method_settings[method]

    def client_options(self) -> ClientOptions:
        return ClientOptions(
            api_endpoint=self.endpoint,
            quota_project_id=self.quota_project_id,
        )

    def call_options(self, method: str) -> Dict[str, Any]:
        """
        Keyword arguments for a generated client call. Empty when the method keeps the
        library defaults, so the client applies its own retry and timeout.
        """
        settings = self.retry_settings(method)
        if settings == LIBRARY_DEFAULT_RETRY_SETTINGS:
            return {}
        return {"retry": settings.to_retry(), "timeout": settings.to_timeout()}


def build_method_settings(properties: VertexRagServiceProperties) -> frozendict:
    """Per-method retry settings: method-level > service-level > library default."""
    method_settings = dict(_default_method_settings())
    if properties.retry is not None:
        for method in VERTEX_RAG_SERVICE_METHODS:
            method_settings[method] = update_retry_settings(
                method_settings[method], properties.retry
            )
        logger.trace("Configured service-level retry settings from properties.")
    for method in VERTEX_RAG_SERVICE_METHODS:
        method_retry = properties.method_retry(method)
        if method_retry is not None:
            method_settings[method] = update_retry_settings(
                method_settings[method], method_retry
            )
            logger.trace(f"Configured method-level retry settings for {method} from properties.")
    for method, settings in method_settings.items():
        if settings.max_attempts <= 0 and settings.total_timeout is None:
            logger.warning(
                f"{method} retries without an attempt limit or total-timeout; "
                f"stopping after {DEFAULT_UNLIMITED_RETRY_TIMEOUT}s."
            )
    return frozendict(method_settings)


def build_vertex_rag_service_settings(
    properties: VertexRagServiceProperties,
    credentials: Credentials,
    transport_channel_provider: TransportChannelProvider,
) -> VertexRagServiceSettings:
    endpoint = properties.endpoint or VertexRagServiceClient.DEFAULT_ENDPOINT
    if properties.endpoint:
        logger.trace(f"Endpoint set to {endpoint}")

    if properties.quota_project_id is not None:
        logger.trace(
            f"Quota project id set to {properties.quota_project_id}, "
            f"this overrides project id from credentials."
        )

    executor_provider = BackgroundExecutorProvider(
        properties.executor_thread_count, thread_name_prefix="vertex-rag-service"
    )
    if properties.executor_thread_count is not None:
        logger.trace(f"Background executor thread count is {properties.executor_thread_count}")

    return VertexRagServiceSettings(
        credentials=credentials,
        transport_channel_provider=transport_channel_provider,
        endpoint=endpoint,
        client_info=user_agent_client_info(USER_AGENT_LIBRARY),
        background_executor_provider=executor_provider,
        quota_project_id=properties.quota_project_id,
        method_settings=build_method_settings(properties),
    )
