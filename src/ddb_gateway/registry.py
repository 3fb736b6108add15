"""
Action registry: the closed set of DynamoDB operations the gateway may invoke.

Hosts name actions the way the DynamoDB API reference does, in camelCase
(``listTables``, ``putItem``). Each name maps to a statically known boto3
client method (``list_tables``, ``put_item``), so dispatch never performs an
unchecked attribute lookup on the client: anything outside this table
(``close``, ``meta``, ``get_paginator``, dunder members) is unresolvable.

The registry also records whether an operation may mutate remote state. The
dispatcher does not use that flag itself; it lets configuration build a
read-only registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from botocore import xform_name

from ddb_gateway.errors import UnknownAction

logger = logging.getLogger(__name__)


READ_OPERATIONS = (
    "BatchGetItem",
    "DescribeBackup",
    "DescribeContinuousBackups",
    "DescribeContributorInsights",
    "DescribeEndpoints",
    "DescribeExport",
    "DescribeGlobalTable",
    "DescribeGlobalTableSettings",
    "DescribeImport",
    "DescribeKinesisStreamingDestination",
    "DescribeLimits",
    "DescribeTable",
    "DescribeTableReplicaAutoScaling",
    "DescribeTimeToLive",
    "GetItem",
    "GetResourcePolicy",
    "ListBackups",
    "ListContributorInsights",
    "ListExports",
    "ListGlobalTables",
    "ListImports",
    "ListTables",
    "ListTagsOfResource",
    "Query",
    "Scan",
    "TransactGetItems",
)

# PartiQL statements can write, so ExecuteStatement is treated as mutating.
WRITE_OPERATIONS = (
    "BatchExecuteStatement",
    "BatchWriteItem",
    "CreateBackup",
    "CreateGlobalTable",
    "CreateTable",
    "DeleteBackup",
    "DeleteItem",
    "DeleteResourcePolicy",
    "DeleteTable",
    "DisableKinesisStreamingDestination",
    "EnableKinesisStreamingDestination",
    "ExecuteStatement",
    "ExecuteTransaction",
    "ExportTableToPointInTime",
    "ImportTable",
    "PutItem",
    "PutResourcePolicy",
    "RestoreTableFromBackup",
    "RestoreTableToPointInTime",
    "TagResource",
    "TransactWriteItems",
    "UntagResource",
    "UpdateContinuousBackups",
    "UpdateContributorInsights",
    "UpdateGlobalTable",
    "UpdateGlobalTableSettings",
    "UpdateItem",
    "UpdateKinesisStreamingDestination",
    "UpdateTable",
    "UpdateTableReplicaAutoScaling",
    "UpdateTimeToLive",
)


@dataclass(frozen=True)
class ActionSpec:
    """
    One invocable operation.

    ``callback`` marks operations with the (params, callback(err, data))
    calling convention; boto3 methods are plain synchronous calls.
    """

    name: str
    method: str
    mutating: bool
    callback: bool = False

    @classmethod
    def for_operation(cls, operation: str, *, mutating: bool) -> "ActionSpec":
        return cls(name=operation[:1].lower() + operation[1:], method=xform_name(operation), mutating=mutating)

    def bind(self, client: Any) -> Callable[..., Any]:
        fn = getattr(client, self.method, None)
        if not callable(fn):
            raise UnknownAction(self.name)
        return fn


class ActionRegistry:
    def __init__(self, specs: Iterable[ActionSpec]):
        self._by_name: Dict[str, ActionSpec] = {}
        self._by_method: Dict[str, ActionSpec] = {}
        for spec in specs:
            self._by_name[spec.name] = spec
            self._by_method[spec.method] = spec

    @classmethod
    def default(cls) -> "ActionRegistry":
        specs = [ActionSpec.for_operation(op, mutating=False) for op in READ_OPERATIONS]
        specs += [ActionSpec.for_operation(op, mutating=True) for op in WRITE_OPERATIONS]
        return cls(specs)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __iter__(self) -> Iterator[ActionSpec]:
        return iter(sorted(self._by_name.values(), key=lambda s: s.name))

    def __len__(self) -> int:
        return len(self._by_name)

    def get(self, name: str) -> Optional[ActionSpec]:
        name = (name or "").strip()
        return self._by_name.get(name) or self._by_method.get(name)

    def resolve(self, name: str) -> ActionSpec:
        """Return the spec for a camelCase action or boto3 method name, or raise UnknownAction."""
        spec = self.get(name)
        if spec is None:
            raise UnknownAction(name)
        return spec

    def names(self) -> List[str]:
        return [s.name for s in self]

    def restrict(self, names: Iterable[str]) -> "ActionRegistry":
        """Narrow the registry to an allow-list. Names outside the registry are ignored."""
        kept: List[ActionSpec] = []
        for name in names:
            spec = self.get(name)
            if spec is None:
                logger.warning(f"Ignoring unknown action in allow-list: {name}")
                continue
            kept.append(spec)
        return ActionRegistry(kept)

    def read_only(self) -> "ActionRegistry":
        return ActionRegistry(s for s in self._by_name.values() if not s.mutating)


DEFAULT_REGISTRY = ActionRegistry.default()
