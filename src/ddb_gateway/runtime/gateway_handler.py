"""
DynamoDB gateway Lambda handler

Invoked directly or behind an API Gateway proxy integration. The request (the
event itself, or the JSON ``body`` of a proxy event) looks like:

  {
    "operation": "execute",                      # execute | metadata | test | describe_request
    "datasource": {"region": "us-east-1"},       # optional; merged over environment defaults
    "action_configuration": {"action": "getItem", "body": "{...}"}
  }

``action`` and ``body`` may also be given at the top level.

Responses are ``{"statusCode", "headers", "body"}`` with a JSON body:
  - 200 {"output": ...} / {"dbSchema": ...} / {"ok": true} / {"request": "..."}
  - 400 malformed request or unknown operation
  - 502 the DynamoDB call (or client construction) failed

Environment variables: see ``ddb_gateway.config``.

Security:
  - Credentials in the datasource payload are never logged or echoed.
  - Run with least-privilege IAM scoped to the tables the gateway may touch.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Dict, Optional

from ddb_gateway.config import load_settings
from ddb_gateway.connection import DatasourceConfig
from ddb_gateway.errors import IntegrationError
from ddb_gateway.models import ActionConfiguration
from ddb_gateway.plugin import DynamoDBPlugin

logger = logging.getLogger(__name__)

_plugin: Optional[DynamoDBPlugin] = None


def _get_plugin() -> DynamoDBPlugin:
    # Module scope so warm invocations reuse pooled clients.
    global _plugin
    if _plugin is None:
        _plugin = DynamoDBPlugin.from_settings(load_settings())
    return _plugin


def _json(status: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {
            "Content-Type": "application/json",
            "Cache-Control": "no-store",
        },
        "body": json.dumps(payload, default=str),
    }


def _parse_event(event: Dict[str, Any]) -> Dict[str, Any]:
    # API Gateway proxy events carry the request as a (possibly base64) JSON string.
    if "requestContext" not in event and "httpMethod" not in event:
        return event
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    if isinstance(body, str):
        msg = json.loads(body) if body else {}
        if not isinstance(msg, dict):
            raise ValueError("request body must be a JSON object")
        return msg
    return event


def _datasource(request: Dict[str, Any]) -> DatasourceConfig:
    return DatasourceConfig.from_dict(request.get("datasource"), base=load_settings(dotenv=False).datasource())


def _action_configuration(request: Dict[str, Any]) -> ActionConfiguration:
    nested = request.get("action_configuration") or request.get("actionConfiguration")
    return ActionConfiguration.from_dict(nested if isinstance(nested, dict) else request)


def handler(event: Dict[str, Any], _context: Any) -> Dict[str, Any]:
    if not isinstance(event or {}, dict):
        return _json(400, {"error": "Invalid request: event must be a JSON object"})
    try:
        request = _parse_event(event or {})
    except ValueError as e:
        return _json(400, {"error": f"Invalid request: {e}"})

    operation = str(request.get("operation") or "execute").strip()
    plugin = _get_plugin()

    if operation == "describe_request":
        return _json(200, {"request": plugin.describe_request(_action_configuration(request))})

    try:
        datasource = _datasource(request)
        if operation == "execute":
            out = plugin.execute(datasource, _action_configuration(request))
            return _json(200, out.to_dict())
        if operation == "metadata":
            return _json(200, plugin.metadata(datasource).to_dict())
        if operation == "test":
            plugin.test(datasource)
            return _json(200, {"ok": True})
    except IntegrationError as e:
        logger.error(f"Gateway operation {operation} failed: {e}")
        return _json(502, {"error": str(e)})
    except (TypeError, ValueError) as e:
        return _json(400, {"error": f"Invalid request: {e}"})

    return _json(400, {"error": f"Unknown operation: {operation}"})
