from typing import ClassVar, Optional

from pydantic import Field

from pinjected_gcp_autoconfig.core.properties import CredentialsProperties, PropertiesModel


class GcpSecretManagerProperties(PropertiesModel):
    """
    Properties under ``gcp.secretmanager``.

    With ``allow_default_secret`` a missing secret resolves to ``None`` so that a
    placeholder default such as ``${sm://db-password:changeme}`` can apply;
    otherwise a missing secret is an error.
    """

    PREFIX: ClassVar[str] = "gcp.secretmanager"

    enabled: bool = True
    credentials: CredentialsProperties = Field(default_factory=CredentialsProperties)
    project_id: Optional[str] = None
    allow_default_secret: bool = False
