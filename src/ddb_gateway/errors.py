"""
Error taxonomy for the DynamoDB action gateway.

Internal kinds are raised by the registry, connection provider and dispatcher.
Only IntegrationError crosses the plugin boundary; it carries a context prefix
("DynamoDB request failed, ...") and chains the internal error as __cause__.
"""

from __future__ import annotations

from typing import Optional


class GatewayError(Exception):
    """Base class for every error raised inside the gateway."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingAction(GatewayError):
    def __init__(self):
        super().__init__("No DynamoDB action specified")


class UnknownAction(GatewayError):
    def __init__(self, action: str):
        super().__init__(f"Invalid DynamoDB action {action}")
        self.action = action


class DatasourceConnectionError(GatewayError):
    """Credential assembly or client construction failed."""


class RemoteOperationError(GatewayError):
    """The remote call raised, reported an error, or rejected its parameters."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class MetadataError(GatewayError):
    pass


class ConnectivityError(GatewayError):
    pass


class IntegrationError(Exception):
    """The single error kind surfaced to hosts."""

    def __init__(self, context: str, message: str):
        super().__init__(f"{context} failed, {message}")
        self.context = context
        self.message = message
