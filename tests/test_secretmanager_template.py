import asyncio

import loguru
import pytest

from pinjected import AsyncResolver, design
from pinjected_gcp_autoconfig.core.project_id import StaticProjectIdProvider
from pinjected_gcp_autoconfig.exceptions import SecretAccessError
from pinjected_gcp_autoconfig.secretmanager.client_cache import SecretManagerClientCache
from pinjected_gcp_autoconfig.secretmanager.property_source import SecretManagerPropertySource
from pinjected_gcp_autoconfig.secretmanager.template import SecretManagerTemplate, a_secret_value


def template_for(client, allow_default_secret=False):
    cache = SecretManagerClientCache(lambda: client)
    return SecretManagerTemplate(
        cache, StaticProjectIdProvider("my-project"), allow_default_secret=allow_default_secret
    )


def test_reads_secrets_by_reference(fake_secret_client):
    template = template_for(fake_secret_client)
    assert template.get_secret_string("sm://db-password") == "hunter2"
    assert template.get_secret_string("db-password") == "hunter2"
    assert template.get_secret_bytes("sm://other-project/api-key/1") == b"v1"
    assert template.get_secret_string("sm://projects/other-project/secrets/api-key") == "v2"


def test_missing_secret_fails_by_default(fake_secret_client):
    with pytest.raises(SecretAccessError, match="not found"):
        template_for(fake_secret_client).get_secret_string("sm://nope")


def test_missing_secret_is_none_when_defaults_allowed(fake_secret_client):
    assert template_for(fake_secret_client, allow_default_secret=True).get_secret_string("sm://nope") is None


def test_permission_denied(fake_secret_client):
    with pytest.raises(SecretAccessError, match="Permission denied"):
        template_for(fake_secret_client, allow_default_secret=True).get_secret_string("sm://forbidden")


def test_create_secret_adds_versions(fake_secret_client):
    template = template_for(fake_secret_client)
    assert template.create_secret("new-secret", "first", labels={"team": "rag"}) == (
        "projects/my-project/secrets/new-secret/versions/1"
    )
    assert template.create_secret("new-secret", b"second") == (
        "projects/my-project/secrets/new-secret/versions/2"
    )
    creates = [c for c in fake_secret_client.calls if c[0] == "create_secret"]
    assert creates == [("create_secret", "projects/my-project/secrets/new-secret")]
    assert template.get_secret_string("new-secret") == "second"
    assert template.secret_exists("new-secret")


def test_delete_secret(fake_secret_client):
    template = template_for(fake_secret_client)
    assert template.delete_secret("db-password")
    assert not template.secret_exists("db-password")
    assert not template.delete_secret("db-password")


def test_version_management(fake_secret_client):
    template = template_for(fake_secret_client)
    template.disable_secret_version("api-key", "1", project_id="other-project")
    template.enable_secret_version("api-key", "1", project_id="other-project")
    template.delete_secret_version("db-password", "1")
    assert fake_secret_client.calls == [
        ("disable_secret_version", "projects/other-project/secrets/api-key/versions/1"),
        ("enable_secret_version", "projects/other-project/secrets/api-key/versions/1"),
        ("destroy_secret_version", "projects/my-project/secrets/db-password/versions/1"),
    ]


def test_property_source_answers_only_secret_keys(fake_secret_client):
    source = SecretManagerPropertySource(template_for(fake_secret_client))
    assert source.get_property("sm://db-password") == "hunter2"
    assert source.get_property("db-password") is None
    assert source.get_property("gcp.project-id") is None


def test_a_secret_value(fake_secret_client):
    d = design(
        logger=loguru.logger,
        secret_manager_template=template_for(fake_secret_client),
    )
    a_value = AsyncResolver(d).to_blocking().provide(a_secret_value)
    assert asyncio.run(a_value("sm://db-password")) == "hunter2"
