"""
DynamoDB Gateway Tool

Invoke any DynamoDB API operation by name with a JSON body, list the tables of
the configured datasource, or check connectivity.

The body is the operation's request exactly as the DynamoDB API reference
describes it (low-level attribute-value format):

    dynamodb_gateway(action="getItem", body='{"TableName": "users", "Key": {"pk": {"S": "u#1"}}}')

Gateway actions
---------------
- list_actions: operations this gateway is allowed to invoke
- metadata: tables of the datasource
- test: verify credentials / reachability
- any DynamoDB operation (``listTables``, ``query``, ``putItem``, ...; snake_case names also resolve)

Set ``preview=True`` to render the request without sending it.

Configuration
-------------
Region, endpoint, profile, role, allow-list and read-only mode are read from
the environment (see ``ddb_gateway.config``). ``region`` and ``endpoint_url``
arguments override the environment for one call.

Requires:
    pip install ddb-action-gateway[agent]
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any, Dict, Optional

from strands import tool

from ddb_gateway.config import load_settings
from ddb_gateway.errors import IntegrationError
from ddb_gateway.models import ActionConfiguration
from ddb_gateway.plugin import DynamoDBPlugin

logger = logging.getLogger(__name__)

_plugin: Optional[DynamoDBPlugin] = None


def _get_plugin() -> DynamoDBPlugin:
    global _plugin
    if _plugin is None:
        _plugin = DynamoDBPlugin.from_settings(load_settings())
    return _plugin


def _ok(**data: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {"success": True}
    out.update(data)
    return out


def _err(message: str, *, error_type: Optional[str] = None, **data: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {"success": False, "error": message}
    if error_type:
        out["error_type"] = error_type
    out.update(data)
    return out


def _jsonable(value: Any) -> Any:
    # boto3 responses carry datetimes and bytes; the model only sees JSON.
    return json.loads(json.dumps(value, default=str))


def _action_list_actions(plugin: DynamoDBPlugin, datasource, body: str) -> Dict[str, Any]:
    registry = plugin.dispatcher.registry
    return _ok(
        action="list_actions",
        actions=[{"name": s.name, "method": s.method, "mutating": s.mutating} for s in registry],
        count=len(registry),
    )


def _action_metadata(plugin: DynamoDBPlugin, datasource, body: str) -> Dict[str, Any]:
    meta = plugin.metadata(datasource)
    return _ok(action="metadata", tables=[t.name for t in meta.tables], metadata=meta.to_dict())


def _action_test(plugin: DynamoDBPlugin, datasource, body: str) -> Dict[str, Any]:
    plugin.test(datasource)
    return _ok(action="test", reachable=True)


_ACTIONS = {
    "list_actions": _action_list_actions,
    "metadata": _action_metadata,
    "test": _action_test,
}


@tool
def dynamodb_gateway(
    action: str,
    body: str = "{}",
    preview: bool = False,
    region: Optional[str] = None,
    endpoint_url: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run a DynamoDB API operation by name.

    Args:
        action: One of "list_actions", "metadata", "test", or a DynamoDB operation
            name such as "listTables", "describeTable", "getItem", "query", "putItem".
        body: JSON request parameters for the operation (e.g. '{"TableName": "users"}').
        preview: Render the request instead of sending it.
        region: AWS region override for this call.
        endpoint_url: Endpoint override for this call (e.g. DynamoDB Local).

    Returns:
        dict with success status and either the operation output or an error

    Examples:
        >>> dynamodb_gateway(action="listTables")
        >>> dynamodb_gateway(action="describeTable", body='{"TableName": "users"}')
        >>> dynamodb_gateway(action="putItem", body='{"TableName": "users", "Item": {"pk": {"S": "u#1"}}}', preview=True)
    """
    action = (action or "").strip()
    action_configuration = ActionConfiguration(action=action, body=body)

    try:
        plugin = _get_plugin()
        if preview:
            return _ok(action=action, preview=plugin.describe_request(action_configuration))

        datasource = load_settings(dotenv=False).datasource()
        if region:
            datasource = replace(datasource, region=region)
        if endpoint_url:
            datasource = replace(datasource, endpoint_url=endpoint_url)

        if action in _ACTIONS:
            return _ACTIONS[action](plugin, datasource, body)

        if action not in plugin.dispatcher.registry:
            return _err(
                f"Unknown action: {action}",
                error_type="InvalidAction",
                hint='Use action="list_actions" to see available operations.',
            )

        out = plugin.execute(datasource, action_configuration)
        result = out.output
        if isinstance(result, dict):
            result = {k: v for k, v in result.items() if k != "ResponseMetadata"}
        return _ok(action=action, output=_jsonable(result))
    except IntegrationError as e:
        logger.info(f"DynamoDB gateway action {action} failed: {e}")
        return _err(str(e), error_type=type(e.__cause__ or e).__name__, action=action)
    except Exception as e:
        return _err(str(e), error_type=type(e).__name__, action=action)
