from google.auth.credentials import AnonymousCredentials

from pinjected_gcp_autoconfig.__pinjected__ import (
    validate_callable,
    validate_gcp_credentials,
    validate_gcp_project_id,
    validate_gcp_properties,
)
from pinjected_gcp_autoconfig.core.properties import GcpProperties
from pinjected_gcp_autoconfig.core.user_agent import library_version, user_agent_client_info


def test_validators():
    assert validate_gcp_properties(GcpProperties()) is None
    assert validate_gcp_properties({}) is not None
    assert validate_gcp_credentials(AnonymousCredentials()) is None
    assert validate_gcp_credentials("token") is not None
    assert validate_gcp_project_id("p") is None
    assert validate_gcp_project_id("") is not None
    assert validate_callable("a_secret_value")(print) is None
    assert "a_secret_value" in validate_callable("a_secret_value")(42)


def test_user_agent_client_info():
    info = user_agent_client_info("my-library")
    assert info.user_agent == f"my-library/{library_version()}"
