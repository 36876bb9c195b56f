from google.auth.credentials import Credentials

from pinjected import DesignSpec, SimpleBindSpec, design

from pinjected_gcp_autoconfig.core.properties import GcpProperties

__design__ = design()


def validate_gcp_properties(item):
    return "gcp_properties must be a GcpProperties" if not isinstance(item, GcpProperties) else None


def validate_gcp_credentials(item):
    return "gcp_credentials must be google.auth Credentials" if not isinstance(item, Credentials) else None


def validate_gcp_project_id(item):
    if not isinstance(item, str) or not item:
        return "gcp_project_id must be a non-empty string"
    return None


def validate_callable(name):
    def validator(item):
        return f"{name} must be a callable" if not callable(item) else None

    return validator


__design_spec__ = DesignSpec.new(
    gcp_properties=SimpleBindSpec(
        validator=validate_gcp_properties,
        documentation="Core properties bound from the 'gcp' prefix (project id, credentials)",
    ),
    gcp_credentials=SimpleBindSpec(
        validator=validate_gcp_credentials,
        documentation="Shared credentials: encoded key > key file location > Application Default Credentials",
    ),
    gcp_project_id=SimpleBindSpec(
        validator=validate_gcp_project_id,
        documentation="Project id from gcp.project-id, GOOGLE_CLOUD_PROJECT, GCLOUD_PROJECT or ADC",
    ),
    logger=SimpleBindSpec(
        validator=lambda item: "logger must provide info()" if not callable(getattr(item, "info", None)) else None,
        documentation="Logger instance for logging operations",
    ),
    a_retrieve_contexts=SimpleBindSpec(
        validator=validate_callable("a_retrieve_contexts"),
        documentation="""
        Async call to VertexRagService.RetrieveContexts.

        Signature:
        async def a_retrieve_contexts(
            vertex_rag_service_client,
            vertex_rag_service_settings,
            logger,
            /,
            request: RetrieveContextsRequest | dict,
        ) -> RetrieveContextsResponse:
        """,
    ),
    a_secret_value=SimpleBindSpec(
        validator=validate_callable("a_secret_value"),
        documentation="""
        Async lookup of a Secret Manager secret, bound when config.import lists an sm:// location.

        Signature:
        async def a_secret_value(
            secret_manager_template,
            logger,
            /,
            secret_identifier: str,
        ) -> Optional[str]:
        """,
    ),
)
