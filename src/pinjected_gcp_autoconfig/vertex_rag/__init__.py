"""Vertex AI RAG service integration for pinjected."""

from .client import (
    AAugmentPromptProtocol,
    ACallVertexRagServiceProtocol,
    ACorroborateContentProtocol,
    ARetrieveContextsProtocol,
    a_augment_prompt,
    a_call_vertex_rag_service,
    a_corroborate_content,
    a_retrieve_contexts,
    create_vertex_rag_service_client,
    default_vertex_rag_service_transport_channel_provider,
    vertex_rag_service_client,
    vertex_rag_service_design,
    vertex_rag_service_settings,
)
from .properties import VERTEX_RAG_SERVICE_METHODS, VertexRagServiceProperties
from .settings import (
    TransportChannelProvider,
    VertexRagServiceSettings,
    build_vertex_rag_service_settings,
)

__all__ = [
    "AAugmentPromptProtocol",
    "ACallVertexRagServiceProtocol",
    "ACorroborateContentProtocol",
    "ARetrieveContextsProtocol",
    "VERTEX_RAG_SERVICE_METHODS",
    "TransportChannelProvider",
    "VertexRagServiceProperties",
    "VertexRagServiceSettings",
    "a_augment_prompt",
    "a_call_vertex_rag_service",
    "a_corroborate_content",
    "a_retrieve_contexts",
    "build_vertex_rag_service_settings",
    "create_vertex_rag_service_client",
    "default_vertex_rag_service_transport_channel_provider",
    "vertex_rag_service_client",
    "vertex_rag_service_design",
    "vertex_rag_service_settings",
]
