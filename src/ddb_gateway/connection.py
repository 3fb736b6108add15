"""
Connection provider: builds (and optionally pools) boto3 DynamoDB clients.

Client construction performs no network I/O, so the default is a fresh client
per request. With ``pool=True`` clients are cached per datasource identity and
evicted when a call through them fails with an authentication or
connection-class error.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
)

from ddb_gateway.errors import DatasourceConnectionError

logger = logging.getLogger(__name__)

# ClientError codes that mean "this client's credentials are bad", not "this request was bad".
AUTH_ERROR_CODES = frozenset(
    {
        "AccessDeniedException",
        "ExpiredToken",
        "ExpiredTokenException",
        "IncompleteSignature",
        "InvalidClientTokenId",
        "InvalidSignatureException",
        "MissingAuthenticationToken",
        "UnrecognizedClientException",
    }
)

# Host payload keys -> DatasourceConfig fields.
_KEY_ALIASES = {
    "region": "region",
    "region_name": "region",
    "access_key_id": "access_key_id",
    "accessKeyId": "access_key_id",
    "accessKeyID": "access_key_id",
    "aws_access_key_id": "access_key_id",
    "secret_access_key": "secret_access_key",
    "secretAccessKey": "secret_access_key",
    "secretKey": "secret_access_key",
    "aws_secret_access_key": "secret_access_key",
    "session_token": "session_token",
    "sessionToken": "session_token",
    "aws_session_token": "session_token",
    "endpoint_url": "endpoint_url",
    "endpoint": "endpoint_url",
    "endpointUrl": "endpoint_url",
    "profile_name": "profile_name",
    "profile": "profile_name",
    "role_arn": "role_arn",
    "roleArn": "role_arn",
    "iamRoleArn": "role_arn",
    "role_session_name": "role_session_name",
    "roleSessionName": "role_session_name",
}


@dataclass(frozen=True)
class DatasourceConfig:
    region: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    endpoint_url: Optional[str] = None
    profile_name: Optional[str] = None
    role_arn: Optional[str] = None
    role_session_name: str = "ddb-gateway"

    @classmethod
    def from_dict(
        cls, data: Optional[Dict[str, Any]], base: Optional["DatasourceConfig"] = None
    ) -> "DatasourceConfig":
        """
        Build a config from a host payload.

        Accepts flat snake_case or camelCase keys, and the nested
        ``{"authentication": {"custom": {"region": {"value": ...}}}}`` shape
        where every leaf may be wrapped in ``{"value": ...}``. Fields missing
        from ``data`` are taken from ``base``.
        """
        if data is not None and not isinstance(data, dict):
            raise ValueError(f"datasource must be an object, got {type(data).__name__}")
        flat: Dict[str, Any] = {}

        def collect(node: Dict[str, Any]) -> None:
            for k, v in node.items():
                if isinstance(v, dict) and "value" in v:
                    v = v["value"]
                if isinstance(v, dict):
                    collect(v)
                elif k in _KEY_ALIASES and v not in (None, ""):
                    flat[_KEY_ALIASES[k]] = str(v)

        collect(data or {})
        if base is not None:
            return replace(base, **flat)
        return cls(**flat)

    def cache_key(self) -> str:
        payload = json.dumps(asdict(self), sort_keys=True)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def session_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        if self.region:
            kwargs["region_name"] = self.region
        if self.profile_name:
            kwargs["profile_name"] = self.profile_name
        if self.access_key_id or self.secret_access_key:
            kwargs["aws_access_key_id"] = self.access_key_id
            kwargs["aws_secret_access_key"] = self.secret_access_key
            if self.session_token:
                kwargs["aws_session_token"] = self.session_token
        return kwargs

    def __repr__(self) -> str:
        return (
            f"DatasourceConfig(region={self.region!r}, endpoint_url={self.endpoint_url!r}, "
            f"profile_name={self.profile_name!r}, role_arn={self.role_arn!r}, "
            f"access_key_id={'***' if self.access_key_id else None})"
        )


def should_invalidate(exc: BaseException) -> bool:
    """True when ``exc`` (or anything in its cause chain) is an auth or connection failure."""
    seen = set()
    cur: Optional[BaseException] = exc
    while cur is not None and id(cur) not in seen:
        seen.add(id(cur))
        if isinstance(cur, (EndpointConnectionError, ConnectTimeoutError, NoCredentialsError)):
            return True
        if isinstance(cur, ClientError):
            code = (cur.response.get("Error") or {}).get("Code")
            if code in AUTH_ERROR_CODES:
                return True
        cur = cur.__cause__
    return False


class ConnectionProvider:
    def __init__(
        self,
        *,
        pool: bool = False,
        max_attempts: int = 3,
        connect_timeout: float = 5,
        read_timeout: float = 30,
        session_factory: Callable[..., Any] = boto3.session.Session,
    ):
        self.pool = pool
        self._session_factory = session_factory
        self._client_config = Config(
            retries={"max_attempts": max_attempts, "mode": "standard"},
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
        )
        self._cache: Dict[str, Any] = {}
        self._key_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def acquire(self, config: DatasourceConfig) -> Any:
        """Return a DynamoDB client for ``config``; raises DatasourceConnectionError."""
        if not self.pool:
            return self._build(config)
        key = config.cache_key()
        client = self._cache.get(key)
        if client is not None:
            return client
        # Per-key lock: a slow build (STS assume_role) never blocks other datasources.
        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())
        with key_lock:
            client = self._cache.get(key)
            if client is None:
                client = self._build(config)
                with self._lock:
                    self._cache[key] = client
            return client

    def invalidate(self, config: DatasourceConfig) -> bool:
        with self._lock:
            dropped = self._cache.pop(config.cache_key(), None)
        if dropped is not None:
            logger.warning(f"Evicted pooled DynamoDB client for {config!r}")
        return dropped is not None

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._key_locks.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def _build(self, config: DatasourceConfig) -> Any:
        try:
            session = self._session_factory(**config.session_kwargs())
            if config.role_arn:
                session = self._assume_role(session, config)
            return session.client("dynamodb", endpoint_url=config.endpoint_url, config=self._client_config)
        except (BotoCoreError, ClientError, ValueError) as e:
            raise DatasourceConnectionError(f"Unable to create DynamoDB client: {e}") from e

    def _assume_role(self, session: Any, config: DatasourceConfig) -> Any:
        sts = session.client("sts", config=self._client_config)
        resp = sts.assume_role(RoleArn=config.role_arn, RoleSessionName=config.role_session_name)
        creds = resp["Credentials"]
        return self._session_factory(
            aws_access_key_id=creds["AccessKeyId"],
            aws_secret_access_key=creds["SecretAccessKey"],
            aws_session_token=creds["SessionToken"],
            region_name=config.region or session.region_name,
        )
