from typing import ClassVar, Optional

from pydantic import Field

from pinjected_gcp_autoconfig.core.properties import (
    CredentialsProperties,
    PropertiesModel,
    RetryProperties,
)

VERTEX_RAG_SERVICE_METHODS = (
    "retrieve_contexts",
    "augment_prompt",
    "corroborate_content",
    "list_locations",
    "get_location",
    "set_iam_policy",
    "get_iam_policy",
    "test_iam_permissions",
)


class VertexRagServiceProperties(PropertiesModel):
    """
    Properties under ``gcp.aiplatform.vertex-rag-service``.

    ``retry`` applies to every method; ``<method>_retry`` (key ``<method>-retry``)
    overrides it field by field for a single method.
    """

    PREFIX: ClassVar[str] = "gcp.aiplatform.vertex-rag-service"

    enabled: bool = True
    credentials: CredentialsProperties = Field(default_factory=CredentialsProperties)
    endpoint: Optional[str] = None
    quota_project_id: Optional[str] = None
    executor_thread_count: Optional[int] = None
    use_rest: bool = False
    retry: Optional[RetryProperties] = None
    retrieve_contexts_retry: Optional[RetryProperties] = None
    augment_prompt_retry: Optional[RetryProperties] = None
    corroborate_content_retry: Optional[RetryProperties] = None
    list_locations_retry: Optional[RetryProperties] = None
    get_location_retry: Optional[RetryProperties] = None
    set_iam_policy_retry: Optional[RetryProperties] = None
    get_iam_policy_retry: Optional[RetryProperties] = None
    test_iam_permissions_retry: Optional[RetryProperties] = None

    def method_retry(self, method: str) -> Optional[RetryProperties]:
        if method not in VERTEX_RAG_SERVICE_METHODS:
            raise ValueError(f"Unknown VertexRagService method: {method}")
        return getattr(self, f"{method}_retry")
