"""Request and result models shared by the plugin, tool and Lambda surfaces."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ActionConfiguration:
    """One invocation request: a DynamoDB action name plus its raw JSON body."""

    action: Optional[str] = None
    body: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ActionConfiguration":
        data = data or {}
        body = data.get("body")
        if body is not None and not isinstance(body, str):
            # Hosts sometimes pre-parse the body; keep the raw-string contract.
            body = json.dumps(body)
        return cls(action=data.get("action"), body=body)


@dataclass
class ExecutionOutput:
    output: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"output": self.output}


class TableType(str, Enum):
    TABLE = "TABLE"


@dataclass(frozen=True)
class Table:
    name: str
    type: TableType = TableType.TABLE
    columns: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "name": self.name, "columns": list(self.columns)}


@dataclass(frozen=True)
class DatasourceMetadata:
    tables: List[Table] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"dbSchema": {"tables": [t.to_dict() for t in self.tables]}}
