import base64
import json
from types import SimpleNamespace

import pytest
from google.auth.exceptions import DefaultCredentialsError

from pinjected_gcp_autoconfig.core import credentials as credentials_module
from pinjected_gcp_autoconfig.core.credentials import (
    DEFAULT_GCP_SCOPES,
    decode_service_account_key,
    load_credentials,
    resolve_scopes,
)
from pinjected_gcp_autoconfig.core.properties import CredentialsProperties
from pinjected_gcp_autoconfig.exceptions import CredentialsLoadError

SERVICE_ACCOUNT_INFO = {"type": "service_account", "project_id": "key-project"}


@pytest.fixture
def service_account_calls(monkeypatch):
    calls = []
    fake = SimpleNamespace(
        Credentials=SimpleNamespace(
            from_service_account_info=lambda info, scopes: calls.append(("info", info, scopes)) or "info-creds",
            from_service_account_file=lambda path, scopes: calls.append(("file", path, scopes)) or "file-creds",
        )
    )
    monkeypatch.setattr(credentials_module, "service_account", fake)
    return calls


@pytest.fixture
def adc_calls(monkeypatch):
    calls = []

    def fake_default(scopes):
        calls.append(scopes)
        return "adc-creds", "adc-project"

    monkeypatch.setattr(credentials_module, "default", fake_default)
    return calls


def encode(info) -> str:
    return base64.b64encode(json.dumps(info).encode()).decode()


def test_resolve_scopes():
    assert resolve_scopes([]) == list(DEFAULT_GCP_SCOPES)
    assert resolve_scopes(None) == list(DEFAULT_GCP_SCOPES)
    assert resolve_scopes(["a", "DEFAULT_SCOPES", "a"]) == ["a", *DEFAULT_GCP_SCOPES]


def test_decode_service_account_key():
    assert decode_service_account_key(encode(SERVICE_ACCOUNT_INFO)) == SERVICE_ACCOUNT_INFO
    with pytest.raises(CredentialsLoadError):
        decode_service_account_key("not base64 !!")


def test_encoded_key_wins_over_location(service_account_calls, adc_calls, tmp_path):
    key_file = tmp_path / "sa.json"
    key_file.write_text("{}")
    props = CredentialsProperties(
        location=str(key_file), encoded_key=encode(SERVICE_ACCOUNT_INFO), scopes=["s"]
    )
    assert load_credentials(props) == "info-creds"
    assert service_account_calls == [("info", SERVICE_ACCOUNT_INFO, ["s"])]
    assert adc_calls == []


def test_location_with_file_prefix(service_account_calls, adc_calls, tmp_path):
    key_file = tmp_path / "sa.json"
    key_file.write_text("{}")
    assert load_credentials(CredentialsProperties(location=f"file:{key_file}")) == "file-creds"
    assert service_account_calls == [("file", str(key_file), list(DEFAULT_GCP_SCOPES))]
    assert adc_calls == []


def test_missing_key_file_fails(service_account_calls, tmp_path):
    with pytest.raises(CredentialsLoadError):
        load_credentials(CredentialsProperties(location=str(tmp_path / "missing.json")))
    assert service_account_calls == []


def test_falls_back_to_application_default_credentials(service_account_calls, adc_calls):
    assert load_credentials(CredentialsProperties()) == "adc-creds"
    assert adc_calls == [list(DEFAULT_GCP_SCOPES)]
    assert service_account_calls == []


def test_application_default_credentials_failure(monkeypatch):
    def no_adc(scopes):
        raise DefaultCredentialsError("no ADC")

    monkeypatch.setattr(credentials_module, "default", no_adc)
    with pytest.raises(CredentialsLoadError, match="no ADC"):
        load_credentials(CredentialsProperties())
