from importlib.metadata import PackageNotFoundError, version

from google.api_core.gapic_v1.client_info import ClientInfo

DISTRIBUTION_NAME = "pinjected-gcp-autoconfig"


def library_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "unknown"


def user_agent_client_info(library: str) -> ClientInfo:
    """``ClientInfo`` that tags requests with ``<library>/<version>``."""
    return ClientInfo(user_agent=f"{library}/{library_version()}")
