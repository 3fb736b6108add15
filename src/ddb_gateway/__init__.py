"""
ddb-action-gateway: invoke DynamoDB operations by name.

A small gateway for plugin hosts and agents: a closed registry of DynamoDB
operations, a connection provider for boto3 clients, lenient JSON parameter
parsing, a dispatcher that folds every completion style into one outcome, and
a plugin facade exposing execute / metadata / test / describe_request.
"""

# Core gateway (require boto3)
# Strands agent tool lives in ddb_gateway.tool (require strands-agents: pip install ddb-action-gateway[agent])
from ddb_gateway.config import Settings, load_settings
from ddb_gateway.connection import ConnectionProvider, DatasourceConfig
from ddb_gateway.dispatcher import ActionDispatcher, Completion
from ddb_gateway.errors import (
    ConnectivityError,
    DatasourceConnectionError,
    GatewayError,
    IntegrationError,
    MetadataError,
    MissingAction,
    RemoteOperationError,
    UnknownAction,
)
from ddb_gateway.models import ActionConfiguration, DatasourceMetadata, ExecutionOutput, Table, TableType
from ddb_gateway.normalizer import Parsed, Raw, parse
from ddb_gateway.plugin import DynamoDBPlugin
from ddb_gateway.registry import DEFAULT_REGISTRY, ActionRegistry, ActionSpec

__version__ = "0.1.0"

__all__ = [
    "ActionConfiguration",
    "ActionDispatcher",
    "ActionRegistry",
    "ActionSpec",
    "Completion",
    "ConnectionProvider",
    "ConnectivityError",
    "DEFAULT_REGISTRY",
    "DatasourceConfig",
    "DatasourceConnectionError",
    "DatasourceMetadata",
    "DynamoDBPlugin",
    "ExecutionOutput",
    "GatewayError",
    "IntegrationError",
    "MetadataError",
    "MissingAction",
    "Parsed",
    "Raw",
    "RemoteOperationError",
    "Settings",
    "Table",
    "TableType",
    "UnknownAction",
    "load_settings",
    "parse",
]
