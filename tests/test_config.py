import pytest

_VARS = [
    "DDB_GATEWAY_REGION",
    "AWS_REGION",
    "AWS_DEFAULT_REGION",
    "DDB_GATEWAY_ENDPOINT_URL",
    "DDB_GATEWAY_PROFILE",
    "DDB_GATEWAY_ROLE_ARN",
    "DDB_GATEWAY_POOL_CONNECTIONS",
    "DDB_GATEWAY_ACTION_ALLOWLIST",
    "DDB_GATEWAY_READ_ONLY",
    "DDB_GATEWAY_MAX_ATTEMPTS",
    "DDB_GATEWAY_CONNECT_TIMEOUT",
    "DDB_GATEWAY_READ_TIMEOUT",
    "DDB_GATEWAY_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    from ddb_gateway.config import load_settings

    s = load_settings(dotenv=False)
    assert s.region is None
    assert s.pool_connections is False
    assert s.read_only is False
    assert s.action_allowlist is None
    assert s.max_attempts == 3
    assert s.log_level == "INFO"


def test_region_falls_back_to_aws_variables(monkeypatch):
    from ddb_gateway.config import load_settings

    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")
    assert load_settings(dotenv=False).region == "eu-west-1"
    monkeypatch.setenv("AWS_REGION", "eu-west-2")
    assert load_settings(dotenv=False).region == "eu-west-2"
    monkeypatch.setenv("DDB_GATEWAY_REGION", "us-east-2")
    assert load_settings(dotenv=False).region == "us-east-2"


def test_datasource_from_settings(monkeypatch):
    from ddb_gateway.config import load_settings
    from ddb_gateway.connection import DatasourceConfig

    monkeypatch.setenv("DDB_GATEWAY_REGION", "us-east-1")
    monkeypatch.setenv("DDB_GATEWAY_ENDPOINT_URL", "http://localhost:8000")
    monkeypatch.setenv("DDB_GATEWAY_PROFILE", "dev")
    assert load_settings(dotenv=False).datasource() == DatasourceConfig(
        region="us-east-1", endpoint_url="http://localhost:8000", profile_name="dev"
    )


def test_registry_allowlist_and_read_only(monkeypatch):
    from ddb_gateway.config import load_settings

    monkeypatch.setenv("DDB_GATEWAY_ACTION_ALLOWLIST", "getItem, putItem ,query")
    assert load_settings(dotenv=False).registry().names() == ["getItem", "putItem", "query"]

    monkeypatch.setenv("DDB_GATEWAY_READ_ONLY", "true")
    assert load_settings(dotenv=False).registry().names() == ["getItem", "query"]


def test_connection_provider_settings(monkeypatch):
    from ddb_gateway.config import load_settings

    monkeypatch.setenv("DDB_GATEWAY_POOL_CONNECTIONS", "yes")
    monkeypatch.setenv("DDB_GATEWAY_MAX_ATTEMPTS", "5")
    provider = load_settings(dotenv=False).connection_provider()
    assert provider.pool is True
    assert provider._client_config.retries == {"max_attempts": 5, "mode": "standard"}
