"""Vertex AI RAG service client and operations."""

import asyncio
import functools
from typing import Any, Protocol

from google.api_core.exceptions import GoogleAPIError
from google.auth.credentials import Credentials
from google.auth.exceptions import GoogleAuthError
from google.cloud import aiplatform_v1
from google.cloud.aiplatform_v1 import VertexRagServiceClient
from loguru import logger
from pinjected import Injected, design, destructors, injected, instance

from pinjected_gcp_autoconfig.core.credentials import load_credentials
from pinjected_gcp_autoconfig.exceptions import ClientCreationError
from pinjected_gcp_autoconfig.vertex_rag.properties import (
    VERTEX_RAG_SERVICE_METHODS,
    VertexRagServiceProperties,
)
from pinjected_gcp_autoconfig.vertex_rag.settings import (
    TransportChannelProvider,
    VertexRagServiceSettings,
    build_vertex_rag_service_settings,
    default_transport_channel_provider,
)


def create_vertex_rag_service_client(
    settings: VertexRagServiceSettings,
) -> VertexRagServiceClient:
    logger.info(
        f"Creating Vertex AI RAG service client for {settings.endpoint} "
        f"({settings.transport_channel_provider.transport_name})"
    )
    try:
        return VertexRagServiceClient(
            credentials=settings.credentials,
            transport=settings.transport_channel_provider.transport_name,
            client_options=settings.client_options(),
            client_info=settings.client_info,
        )
    except (GoogleAuthError, GoogleAPIError, OSError, ValueError) as e:
        raise ClientCreationError(
            f"Failed to create the Vertex AI RAG service client: {e}"
        ) from e


async def a_invoke_vertex_rag_method(
    client: VertexRagServiceClient,
    settings: VertexRagServiceSettings,
    method: str,
    request: Any,
) -> Any:
    """Run a blocking client call on the settings' background executor."""
    call = functools.partial(
        getattr(client, method), request=request, **settings.call_options(method)
    )
    executor = settings.background_executor_provider.get_executor()
    return await asyncio.get_running_loop().run_in_executor(executor, call)


@instance
def vertex_rag_service_specific_credentials(
    vertex_rag_service_properties: VertexRagServiceProperties,
) -> Credentials:
    logger.trace("Using credentials from VertexRagService-specific configuration")
    return load_credentials(vertex_rag_service_properties.credentials)


@instance
def vertex_rag_service_shared_credentials(gcp_credentials: Credentials) -> Credentials:
    return gcp_credentials


@instance
def default_vertex_rag_service_transport_channel_provider(
    vertex_rag_service_properties: VertexRagServiceProperties,
) -> TransportChannelProvider:
    return default_transport_channel_provider(vertex_rag_service_properties.use_rest)


@instance
def vertex_rag_service_settings(
    vertex_rag_service_properties: VertexRagServiceProperties,
    vertex_rag_service_credentials: Credentials,
    default_vertex_rag_service_transport_channel_provider: TransportChannelProvider,
) -> VertexRagServiceSettings:
    return build_vertex_rag_service_settings(
        vertex_rag_service_properties,
        vertex_rag_service_credentials,
        default_vertex_rag_service_transport_channel_provider,
    )


@instance
def vertex_rag_service_client(
    vertex_rag_service_settings: VertexRagServiceSettings,
) -> VertexRagServiceClient:
    return create_vertex_rag_service_client(vertex_rag_service_settings)


class ARetrieveContextsProtocol(Protocol):
    async def __call__(
        self,
        request: aiplatform_v1.RetrieveContextsRequest | dict,
    ) -> aiplatform_v1.RetrieveContextsResponse: ...


class AAugmentPromptProtocol(Protocol):
    async def __call__(
        self,
        request: aiplatform_v1.AugmentPromptRequest | dict,
    ) -> aiplatform_v1.AugmentPromptResponse: ...


class ACorroborateContentProtocol(Protocol):
    async def __call__(
        self,
        request: aiplatform_v1.CorroborateContentRequest | dict,
    ) -> aiplatform_v1.CorroborateContentResponse: ...


class ACallVertexRagServiceProtocol(Protocol):
    async def __call__(self, method: str, request: Any) -> Any: ...


@injected(protocol=ARetrieveContextsProtocol)
async def a_retrieve_contexts(
    vertex_rag_service_client: VertexRagServiceClient,
    vertex_rag_service_settings: VertexRagServiceSettings,
    logger: logger,
    /,
    request: aiplatform_v1.RetrieveContextsRequest | dict,
) -> aiplatform_v1.RetrieveContextsResponse:
    """
    Retrieve contexts for a query from the configured RAG resources.

    Args:
        request: A ``RetrieveContextsRequest`` or its dict form

    Returns:
        The ``RetrieveContextsResponse``
    """
    logger.debug("Calling VertexRagService.retrieve_contexts")
    return await a_invoke_vertex_rag_method(
        vertex_rag_service_client, vertex_rag_service_settings, "retrieve_contexts", request
    )


@injected(protocol=AAugmentPromptProtocol)
async def a_augment_prompt(
    vertex_rag_service_client: VertexRagServiceClient,
    vertex_rag_service_settings: VertexRagServiceSettings,
    logger: logger,
    /,
    request: aiplatform_v1.AugmentPromptRequest | dict,
) -> aiplatform_v1.AugmentPromptResponse:
    """Augment a prompt with retrieved contexts."""
    logger.debug("Calling VertexRagService.augment_prompt")
    return await a_invoke_vertex_rag_method(
        vertex_rag_service_client, vertex_rag_service_settings, "augment_prompt", request
    )


@injected(protocol=ACorroborateContentProtocol)
async def a_corroborate_content(
    vertex_rag_service_client: VertexRagServiceClient,
    vertex_rag_service_settings: VertexRagServiceSettings,
    logger: logger,
    /,
    request: aiplatform_v1.CorroborateContentRequest | dict,
) -> aiplatform_v1.CorroborateContentResponse:
    logger.debug("Calling VertexRagService.corroborate_content")
    return await a_invoke_vertex_rag_method(
        vertex_rag_service_client, vertex_rag_service_settings, "corroborate_content", request
    )


@injected(protocol=ACallVertexRagServiceProtocol)
async def a_call_vertex_rag_service(
    vertex_rag_service_client: VertexRagServiceClient,
    vertex_rag_service_settings: VertexRagServiceSettings,
    logger: logger,
    /,
    method: str,
    request: Any,
) -> Any:
    """
    Call any configured VertexRagService method, including the location and IAM mixins.

    Args:
        method: Snake case method name, e.g. ``list_locations``
        request: The request message or its dict form

    Raises:
        ValueError: If the method is not part of the service
    """
    if method not in VERTEX_RAG_SERVICE_METHODS:
        raise ValueError(f"Unknown VertexRagService method: {method}")
    logger.debug(f"Calling VertexRagService.{method}")
    return await a_invoke_vertex_rag_method(
        vertex_rag_service_client, vertex_rag_service_settings, method, request
    )


def close_vertex_rag_service_client(client: VertexRagServiceClient):
    logger.info("Closing Vertex AI RAG service client")
    client.transport.close()


def shutdown_vertex_rag_service_executor(settings: VertexRagServiceSettings):
    settings.background_executor_provider.shutdown(wait=False)


__design__ = design(
    default_vertex_rag_service_transport_channel_provider=default_vertex_rag_service_transport_channel_provider,
    vertex_rag_service_settings=vertex_rag_service_settings,
    vertex_rag_service_client=vertex_rag_service_client,
    a_retrieve_contexts=a_retrieve_contexts,
    a_augment_prompt=a_augment_prompt,
    a_corroborate_content=a_corroborate_content,
    a_call_vertex_rag_service=a_call_vertex_rag_service,
) + destructors(
    vertex_rag_service_client=Injected.pure(close_vertex_rag_service_client),
    vertex_rag_service_settings=Injected.pure(shutdown_vertex_rag_service_executor),
)


def vertex_rag_service_design(properties: VertexRagServiceProperties):
    """
    Bindings for the Vertex AI RAG service. Service-specific credentials are used when
    ``credentials`` names a key, otherwise the shared ``gcp_credentials``.
    """
    credentials = (
        vertex_rag_service_specific_credentials
        if properties.credentials.has_key()
        else vertex_rag_service_shared_credentials
    )
    return __design__ + design(
        vertex_rag_service_properties=properties,
        vertex_rag_service_credentials=credentials,
    )
