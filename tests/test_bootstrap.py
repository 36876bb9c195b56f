import asyncio
from dataclasses import dataclass

import pytest

from conftest import environment_of
from pinjected import AsyncResolver
from pinjected.v2.keys import StrBindKey
from pinjected_gcp_autoconfig.bootstrap import (
    autoconfigure,
    bootstrap_design,
    environment_from,
    load_config_data,
)
from pinjected_gcp_autoconfig.core.config_data import ConfigDataLocation, config_import_locations
from pinjected_gcp_autoconfig.core.properties import MapPropertySource
from pinjected_gcp_autoconfig.exceptions import ConfigDataLocationNotFoundError
from pinjected_gcp_autoconfig.secretmanager.client_cache import SecretManagerClientCache
from pinjected_gcp_autoconfig.secretmanager.config_data import (
    SecretManagerConfigDataLoader,
    SecretManagerConfigDataLocationResolver,
)
from pinjected_gcp_autoconfig.secretmanager.property_source import (
    SECRET_MANAGER_PROPERTY_SOURCE_NAME,
)


@dataclass(frozen=True)
class StaticResource:
    location: ConfigDataLocation


class StaticResolver:
    def __init__(self, prefix):
        self.prefix = prefix

    def is_resolvable(self, environment, location):
        return location.has_prefix(self.prefix)

    def resolve(self, environment, location):
        return [StaticResource(location)]


class StaticLoader:
    def is_loadable(self, resource):
        return isinstance(resource, StaticResource)

    def load(self, resource):
        return MapPropertySource(f"static:{resource.location.value}", {"static.value": resource.location.value})


def secret_manager_handlers(client):
    cache = SecretManagerClientCache(lambda: client)
    return [SecretManagerConfigDataLocationResolver(cache)], [SecretManagerConfigDataLoader()]


def test_config_import_locations():
    env = environment_of(**{"config.import": "sm://, optional:static:a ,"})
    assert config_import_locations(env) == [
        ConfigDataLocation("sm://"),
        ConfigDataLocation("static:a", optional=True),
    ]
    assert str(ConfigDataLocation("static:a", optional=True)) == "optional:static:a"
    assert config_import_locations(environment_of()) == []


def test_static_locations_are_loaded():
    env = environment_of(**{"config.import": "static:a"})
    config_data = load_config_data(env, [StaticResolver("static:")], [StaticLoader()])
    assert env.get_property("static.value") == "a"
    assert config_data.resources == [StaticResource(ConfigDataLocation("static:a"))]
    assert config_data.secret_manager_components() is None


def test_optional_unresolvable_location_is_skipped():
    env = environment_of(**{"config.import": "optional:vault://x"})
    assert load_config_data(env, [StaticResolver("static:")], [StaticLoader()]).resources == []


def test_mandatory_unresolvable_location_fails():
    env = environment_of(**{"config.import": "vault://x"})
    with pytest.raises(ConfigDataLocationNotFoundError, match="vault://x"):
        load_config_data(env, [StaticResolver("static:")], [StaticLoader()])


def test_secret_placeholders_resolve_after_import(fake_secret_client):
    env = environment_of(
        **{
            "config.import": "sm://",
            "gcp.project-id": "my-project",
            "db.password": "${sm://db-password}",
            "api.key": "${sm://other-project/api-key/1}",
        }
    )
    resolvers, loaders = secret_manager_handlers(fake_secret_client)
    config_data = load_config_data(env, resolvers, loaders)

    assert env.get_property("db.password") == "hunter2"
    assert env.get_property("api.key") == "v1"
    names = [s.name for s in env.property_sources]
    assert names.count(SECRET_MANAGER_PROPERTY_SOURCE_NAME) == 1
    assert config_data.secret_manager_components() is not None


def test_secret_placeholder_default_needs_allow_default_secret(fake_secret_client):
    env = environment_of(
        **{
            "config.import": "sm://",
            "gcp.project-id": "my-project",
            "gcp.secretmanager.allow-default-secret": "true",
            "db.user": "${sm://db-user:admin}",
        }
    )
    load_config_data(env, *secret_manager_handlers(fake_secret_client))
    assert env.get_property("db.user") == "admin"


def test_secret_manager_project_id_takes_precedence(fake_secret_client):
    env = environment_of(
        **{
            "config.import": "sm://",
            "gcp.project-id": "core-project",
            "gcp.secretmanager.project-id": "my-project",
        }
    )
    config_data = load_config_data(env, *secret_manager_handlers(fake_secret_client))
    components = config_data.secret_manager_components()
    assert components.project_id_provider.get_project_id() == "my-project"
    assert env.get_property("sm://db-password") == "hunter2"


def test_deprecated_location_syntax_warns(fake_secret_client, log_messages):
    env = environment_of(**{"config.import": "sm@", "gcp.project-id": "my-project"})
    load_config_data(env, *secret_manager_handlers(fake_secret_client))
    assert any("sm@ syntax will be deprecated" in m for m in log_messages)


def test_disabled_secret_manager_does_not_resolve(fake_secret_client):
    env = environment_of(**{"config.import": "sm://", "gcp.secretmanager.enabled": "false"})
    with pytest.raises(ConfigDataLocationNotFoundError):
        load_config_data(env, *secret_manager_handlers(fake_secret_client))

    env = environment_of(
        **{"config.import": "optional:sm://", "gcp.secretmanager.enabled": "false"}
    )
    config_data = load_config_data(env, *secret_manager_handlers(fake_secret_client))
    assert config_data.secret_manager_components() is None


def test_autoconfigure_promotes_secret_manager_objects(fake_secret_client):
    env = environment_of(**{"config.import": "sm://", "gcp.project-id": "my-project"})
    config_data = load_config_data(env, *secret_manager_handlers(fake_secret_client))
    components = config_data.secret_manager_components()

    resolver = AsyncResolver(autoconfigure(config_data))
    blocking = resolver.to_blocking()
    assert blocking["secret_manager_template"] is components.template
    assert blocking["secret_manager_client_cache"] is components.client_cache
    assert blocking["secret_manager_service_client"] is fake_secret_client
    assert blocking["gcp_project_id"] == "my-project"

    asyncio.run(resolver.destruct())
    assert components.client_cache.closed
    assert fake_secret_client.transport.close_calls == 1


def test_autoconfigure_without_imports():
    d = autoconfigure(load_config_data(environment_of(**{"gcp.project-id": "p"})))
    assert StrBindKey("gcp_credentials") in d
    assert StrBindKey("secret_manager_template") not in d
    assert StrBindKey("vertex_rag_service_client") in d
    assert AsyncResolver(d).to_blocking()["gcp_project_id"] == "p"


def test_autoconfigure_respects_disabled_vertex_rag_service():
    env = environment_of(**{"gcp.aiplatform.vertex-rag-service.enabled": "false"})
    d = autoconfigure(load_config_data(env))
    assert StrBindKey("vertex_rag_service_client") not in d
    assert StrBindKey("a_retrieve_contexts") not in d


def test_environment_from_orders_sources(tmp_path):
    path = tmp_path / "app.properties"
    path.write_text("gcp.project-id=from-file\nfile.only=yes\n")
    env = environment_from(
        {"gcp.project-id": "from-properties"}, environ={"GCP_PROJECT_ID": "from-env"}, files=[path]
    )
    assert env.get_property("gcp.project-id") == "from-env"
    assert env.get_property("file.only") == "yes"

    env = environment_from({"gcp.project-id": "from-properties"}, environ={}, files=[path])
    assert env.get_property("gcp.project-id") == "from-properties"


def test_bootstrap_design():
    d = bootstrap_design({"gcp.project-id": "boot"}, environ={})
    assert AsyncResolver(d).to_blocking()["gcp_project_id"] == "boot"
