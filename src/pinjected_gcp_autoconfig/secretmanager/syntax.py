"""Parsing of ``sm://`` secret references."""

from dataclasses import dataclass
from typing import Optional

from beartype import beartype
from loguru import logger

from pinjected_gcp_autoconfig.core.project_id import GcpProjectIdProvider
from pinjected_gcp_autoconfig.exceptions import InvalidSecretReferenceError

DEPRECATED_PREFIX = "sm@"
PREFIX = "sm://"
PREFIXES = (DEPRECATED_PREFIX, PREFIX)
LATEST_VERSION = "latest"


@dataclass(frozen=True)
class SecretVersionName:
    project: str
    secret: str
    secret_version: str = LATEST_VERSION

    def __str__(self) -> str:
        return f"projects/{self.project}/secrets/{self.secret}/versions/{self.secret_version}"

    @property
    def secret_name(self) -> str:
        return f"projects/{self.project}/secrets/{self.secret}"


@beartype
def get_matched_prefix(value: str) -> Optional[str]:
    for prefix in PREFIXES:
        if value.startswith(prefix):
            return prefix
    return None


def warn_if_using_deprecated_syntax(prefix: Optional[str]):
    if prefix == DEPRECATED_PREFIX:
        logger.warning(
            f"{DEPRECATED_PREFIX} syntax will be deprecated in a future version. "
            f"Please use {PREFIX} instead, e.g. {PREFIX}my-secret instead of {DEPRECATED_PREFIX}my-secret"
        )


def get_secret_version_name(
    value: str, project_id_provider: GcpProjectIdProvider
) -> Optional[SecretVersionName]:
    """
    Parse a secret reference. Returns ``None`` if ``value`` has no secret prefix.

    Accepted shapes after the prefix::

        <secret>
        <secret>/<version>
        <project>/<secret>/<version>
        projects/<project>/secrets/<secret>
        projects/<project>/secrets/<secret>/versions/<version>

    Raises:
        InvalidSecretReferenceError: for any other shape
    """
    prefix = get_matched_prefix(value)
    if prefix is None:
        return None
    warn_if_using_deprecated_syntax(prefix)

    tokens = value[len(prefix):].split("/")
    project = None
    version = LATEST_VERSION
    if len(tokens) == 1:
        secret = tokens[0]
    elif len(tokens) == 2:
        secret, version = tokens
    elif len(tokens) == 3:
        project, secret, version = tokens
    elif len(tokens) == 4 and tokens[0] == "projects" and tokens[2] == "secrets":
        project, secret = tokens[1], tokens[3]
    elif (
        len(tokens) == 6
        and tokens[0] == "projects"
        and tokens[2] == "secrets"
        and tokens[4] == "versions"
    ):
        project, secret, version = tokens[1], tokens[3], tokens[5]
    else:
        raise InvalidSecretReferenceError(value)

    if not secret or not version or project == "":
        raise InvalidSecretReferenceError(value)
    if project is None:
        project = project_id_provider.get_project_id()
    return SecretVersionName(project=project, secret=secret, secret_version=version)
