"""
DynamoDB plugin: the execution facade hosts talk to.

    plugin = DynamoDBPlugin()
    out = plugin.execute(DatasourceConfig(region="us-east-1"),
                         ActionConfiguration(action="getItem", body='{"TableName": "t", "Key": {...}}'))

Every public entry point acquires a client from the connection provider
first. Internal gateway errors are converted to IntegrationError with a
context prefix; nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ddb_gateway.config import Settings
from ddb_gateway.connection import ConnectionProvider, DatasourceConfig, should_invalidate
from ddb_gateway.display import camel_case_to_display
from ddb_gateway.dispatcher import ActionDispatcher
from ddb_gateway.errors import (
    ConnectivityError,
    GatewayError,
    IntegrationError,
    MetadataError,
)
from ddb_gateway.models import ActionConfiguration, DatasourceMetadata, ExecutionOutput, Table
from ddb_gateway.normalizer import Parsed, parse
from ddb_gateway.registry import DEFAULT_REGISTRY

logger = logging.getLogger(__name__)

EXECUTE_CONTEXT = "DynamoDB request"
LIST_TABLES_CONTEXT = "DynamoDB listTables operation"
INTROSPECTION_ACTION = "listTables"


class DynamoDBPlugin:
    def __init__(
        self,
        provider: Optional[ConnectionProvider] = None,
        dispatcher: Optional[ActionDispatcher] = None,
    ):
        self.provider = provider if provider is not None else ConnectionProvider()
        self.dispatcher = dispatcher if dispatcher is not None else ActionDispatcher()
        # Introspection ignores allow-lists: metadata and test always need listTables.
        self._introspection = ActionDispatcher(DEFAULT_REGISTRY.restrict([INTROSPECTION_ACTION]))

    @classmethod
    def from_settings(cls, settings: Settings) -> "DynamoDBPlugin":
        return cls(provider=settings.connection_provider(), dispatcher=ActionDispatcher(settings.registry()))

    def execute(self, datasource: DatasourceConfig, action_configuration: ActionConfiguration) -> ExecutionOutput:
        try:
            client = self.provider.acquire(datasource)
            params = parse(action_configuration.body, logger)
            return self.dispatcher.invoke(client, action_configuration.action, params)
        except GatewayError as e:
            self._maybe_invalidate(datasource, e)
            raise IntegrationError(EXECUTE_CONTEXT, e.message) from e

    def metadata(self, datasource: DatasourceConfig) -> DatasourceMetadata:
        """List every table (following LastEvaluatedTableName) as a column-less schema entry."""
        try:
            names = self._introspect(datasource, MetadataError, paginate=True)
        except GatewayError as e:
            raise IntegrationError(LIST_TABLES_CONTEXT, e.message) from e
        return DatasourceMetadata(tables=[Table(name=n) for n in names])

    def test(self, datasource: DatasourceConfig) -> None:
        try:
            self._introspect(datasource, ConnectivityError, paginate=False)
        except GatewayError as e:
            raise IntegrationError(LIST_TABLES_CONTEXT, e.message) from e

    def describe_request(self, action_configuration: ActionConfiguration) -> str:
        if isinstance(action_configuration, dict):
            action_configuration = ActionConfiguration.from_dict(action_configuration)
        action = getattr(action_configuration, "action", None) or ""
        body = getattr(action_configuration, "body", None)
        return f"Action: {camel_case_to_display(str(action))}\n\nParams:\n{'' if body is None else body}"

    def dynamic_properties(self) -> List[str]:
        return ["action", "body"]

    def escape_string_properties(self) -> List[str]:
        return ["body"]

    def _introspect(self, datasource: DatasourceConfig, error_cls: type, paginate: bool) -> List[str]:
        try:
            client = self.provider.acquire(datasource)
            names: List[str] = []
            params: Dict[str, Any] = {}
            while True:
                out = self._introspection.invoke(client, INTROSPECTION_ACTION, Parsed(dict(params))).output or {}
                names.extend(out.get("TableNames") or [])
                last = out.get("LastEvaluatedTableName")
                if not paginate or not last or last == params.get("ExclusiveStartTableName"):
                    return names
                params["ExclusiveStartTableName"] = last
        except GatewayError as e:
            self._maybe_invalidate(datasource, e)
            raise error_cls(e.message) from e

    def _maybe_invalidate(self, datasource: DatasourceConfig, err: BaseException) -> None:
        if self.provider.pool and should_invalidate(err):
            self.provider.invalidate(datasource)
