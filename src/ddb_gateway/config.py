"""
Environment-driven settings.

Values come from the process environment, after loading a ``.env`` file when
one is present:

- DDB_GATEWAY_REGION (falls back to AWS_REGION, then AWS_DEFAULT_REGION)
- DDB_GATEWAY_ENDPOINT_URL: endpoint override (DynamoDB Local, LocalStack)
- DDB_GATEWAY_PROFILE: named AWS profile
- DDB_GATEWAY_ROLE_ARN: role assumed before building the client
- DDB_GATEWAY_POOL_CONNECTIONS: cache clients per datasource (default false)
- DDB_GATEWAY_ACTION_ALLOWLIST: comma-separated actions the gateway may invoke
- DDB_GATEWAY_READ_ONLY: drop every mutating action (default false)
- DDB_GATEWAY_MAX_ATTEMPTS: SDK retry attempts (default 3)
- DDB_GATEWAY_CONNECT_TIMEOUT / DDB_GATEWAY_READ_TIMEOUT: seconds (default 5 / 30)
- DDB_GATEWAY_LOG_LEVEL: log level used by the entry points (default INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from ddb_gateway.connection import ConnectionProvider, DatasourceConfig
from ddb_gateway.registry import DEFAULT_REGISTRY, ActionRegistry

_TRUE = ("1", "true", "yes", "on")


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.lower() in _TRUE


def _env_list(name: str) -> Optional[List[str]]:
    raw = _env(name)
    if not raw:
        return None
    return [x.strip() for x in raw.split(",") if x.strip()]


@dataclass(frozen=True)
class Settings:
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    profile_name: Optional[str] = None
    role_arn: Optional[str] = None
    pool_connections: bool = False
    action_allowlist: Optional[List[str]] = field(default=None, hash=False)
    read_only: bool = False
    max_attempts: int = 3
    connect_timeout: float = 5
    read_timeout: float = 30
    log_level: str = "INFO"

    def datasource(self) -> DatasourceConfig:
        """Default datasource; credentials come from the boto3 chain (env, profile, instance role)."""
        return DatasourceConfig(
            region=self.region,
            endpoint_url=self.endpoint_url,
            profile_name=self.profile_name,
            role_arn=self.role_arn,
        )

    def registry(self, base: ActionRegistry = DEFAULT_REGISTRY) -> ActionRegistry:
        registry = base
        if self.action_allowlist is not None:
            registry = registry.restrict(self.action_allowlist)
        if self.read_only:
            registry = registry.read_only()
        return registry

    def connection_provider(self) -> ConnectionProvider:
        return ConnectionProvider(
            pool=self.pool_connections,
            max_attempts=self.max_attempts,
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
        )


def load_settings(dotenv: bool = True) -> Settings:
    if dotenv:
        load_dotenv()
    return Settings(
        region=_env("DDB_GATEWAY_REGION") or _env("AWS_REGION") or _env("AWS_DEFAULT_REGION"),
        endpoint_url=_env("DDB_GATEWAY_ENDPOINT_URL"),
        profile_name=_env("DDB_GATEWAY_PROFILE"),
        role_arn=_env("DDB_GATEWAY_ROLE_ARN"),
        pool_connections=_env_bool("DDB_GATEWAY_POOL_CONNECTIONS"),
        action_allowlist=_env_list("DDB_GATEWAY_ACTION_ALLOWLIST"),
        read_only=_env_bool("DDB_GATEWAY_READ_ONLY"),
        max_attempts=int(_env("DDB_GATEWAY_MAX_ATTEMPTS", "3")),
        connect_timeout=float(_env("DDB_GATEWAY_CONNECT_TIMEOUT", "5")),
        read_timeout=float(_env("DDB_GATEWAY_READ_TIMEOUT", "30")),
        log_level=(_env("DDB_GATEWAY_LOG_LEVEL", "INFO") or "INFO").upper(),
    )
