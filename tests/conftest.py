from types import SimpleNamespace

import pytest
from google.api_core.exceptions import AlreadyExists, NotFound, PermissionDenied
from loguru import logger

from pinjected_gcp_autoconfig.core.properties import ConfigEnvironment, MapPropertySource


def environment_of(**properties) -> ConfigEnvironment:
    return ConfigEnvironment([MapPropertySource("test", properties)])


class FakeTransport:
    def __init__(self):
        self.close_calls = 0

    def close(self):
        self.close_calls += 1


class FakeSecretManagerClient:
    """In-memory stand-in for SecretManagerServiceClient keyed by resource name."""

    def __init__(self, secrets=None, denied=()):
        # "projects/p/secrets/s" -> list of payload versions
        self.secrets = {name: list(versions) for name, versions in (secrets or {}).items()}
        self.denied = set(denied)
        self.calls = []
        self.transport = FakeTransport()

    def _split(self, version_name):
        secret_name, _, version = version_name.rpartition("/versions/")
        return secret_name, version

    def access_secret_version(self, request):
        name = request["name"]
        self.calls.append(("access_secret_version", name))
        secret_name, version = self._split(name)
        if secret_name in self.denied:
            raise PermissionDenied(name)
        versions = self.secrets.get(secret_name)
        if not versions:
            raise NotFound(name)
        index = len(versions) - 1 if version == "latest" else int(version) - 1
        if not 0 <= index < len(versions):
            raise NotFound(name)
        return SimpleNamespace(payload=SimpleNamespace(data=versions[index]))

    def get_secret(self, request):
        if request["name"] not in self.secrets:
            raise NotFound(request["name"])
        return SimpleNamespace(name=request["name"])

    def create_secret(self, request):
        name = f"{request['parent']}/secrets/{request['secret_id']}"
        self.calls.append(("create_secret", name))
        if name in self.secrets:
            raise AlreadyExists(name)
        self.secrets[name] = []
        return SimpleNamespace(name=name)

    def add_secret_version(self, request):
        versions = self.secrets[request["parent"]]
        versions.append(request["payload"]["data"])
        return SimpleNamespace(name=f"{request['parent']}/versions/{len(versions)}")

    def delete_secret(self, request):
        self.calls.append(("delete_secret", request["name"]))
        if request["name"] not in self.secrets:
            raise NotFound(request["name"])
        del self.secrets[request["name"]]

    def destroy_secret_version(self, request):
        self.calls.append(("destroy_secret_version", request["name"]))

    def enable_secret_version(self, request):
        self.calls.append(("enable_secret_version", request["name"]))

    def disable_secret_version(self, request):
        self.calls.append(("disable_secret_version", request["name"]))


@pytest.fixture
def fake_secret_client():
    return FakeSecretManagerClient(
        secrets={
            "projects/my-project/secrets/db-password": [b"hunter2"],
            "projects/other-project/secrets/api-key": [b"v1", b"v2"],
        },
        denied={"projects/my-project/secrets/forbidden"},
    )


@pytest.fixture
def log_messages():
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
