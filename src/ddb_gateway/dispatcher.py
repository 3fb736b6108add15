"""
Action dispatcher.

Resolves an action against the registry and invokes it through a client,
folding every completion style into one settled outcome:

- synchronous boto3 calls return their response or raise;
- future-returning operations settle when their ``concurrent.futures.Future`` does;
- callback-style operations (``ActionSpec.callback``) receive
  ``(params, callback(err, data))``.

``Completion`` accepts only the first outcome; later settle attempts are
logged and dropped.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Any, Optional

from botocore.exceptions import ClientError

from ddb_gateway.errors import GatewayError, MissingAction, RemoteOperationError
from ddb_gateway.models import ExecutionOutput
from ddb_gateway.normalizer import Parsed, ParsedParams, Raw
from ddb_gateway.registry import DEFAULT_REGISTRY, ActionRegistry, ActionSpec

logger = logging.getLogger(__name__)


class Completion:
    """Exactly-once settle wrapper around a Future."""

    def __init__(self, action: str):
        self.action = action
        self.future: Future = Future()
        self._lock = threading.Lock()
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled

    def _claim(self) -> bool:
        with self._lock:
            if self._settled:
                logger.debug(f"Ignoring duplicate completion for {self.action}")
                return False
            self._settled = True
            return True

    def resolve(self, data: Any) -> bool:
        if not self._claim():
            return False
        self.future.set_result(data)
        return True

    def reject(self, err: BaseException) -> bool:
        if not self._claim():
            return False
        self.future.set_exception(err)
        return True

    def callback(self, err: Optional[BaseException], data: Any = None) -> None:
        if err is not None:
            self.reject(err if isinstance(err, BaseException) else RemoteOperationError(str(err)))
        else:
            self.resolve(data)

    def follow(self, other: Future) -> None:
        def _done(f: Future) -> None:
            if f.cancelled():
                self.reject(RemoteOperationError(f"DynamoDB action {self.action} was cancelled"))
                return
            exc = f.exception()
            if exc is not None:
                self.reject(exc)
            else:
                self.resolve(f.result())

        other.add_done_callback(_done)

    def result(self) -> Any:
        return self.future.result()


def _remote_error(err: BaseException) -> RemoteOperationError:
    if isinstance(err, RemoteOperationError):
        return err
    if isinstance(err, ClientError):
        error = err.response.get("Error") or {}
        code = error.get("Code")
        message = error.get("Message") or str(err)
        return RemoteOperationError(f"{code}: {message}" if code else message, code=code)
    return RemoteOperationError(str(err) or type(err).__name__)


class ActionDispatcher:
    def __init__(self, registry: ActionRegistry = DEFAULT_REGISTRY):
        self.registry = registry

    def resolve(self, name: Optional[str]) -> ActionSpec:
        if not name or not str(name).strip():
            raise MissingAction()
        return self.registry.resolve(str(name).strip())

    def invoke(self, handle: Any, name: Optional[str], params: ParsedParams) -> ExecutionOutput:
        """
        Invoke ``name`` on ``handle`` with ``params``.

        Raises:
            MissingAction: ``name`` is empty.
            UnknownAction: ``name`` is not in the registry or the client lacks it.
            RemoteOperationError: the call raised or reported an error.
        """
        spec = self.resolve(name)
        fn = spec.bind(handle)
        logger.info(f"Dispatching DynamoDB action {spec.name}")

        completion = Completion(spec.name)
        try:
            self._call(spec, fn, params, completion)
        except Exception as e:  # synchronous throw during invocation
            completion.reject(e)

        try:
            return ExecutionOutput(output=completion.result())
        except GatewayError as e:
            if isinstance(e, RemoteOperationError):
                raise
            raise RemoteOperationError(e.message) from e
        except Exception as e:
            raise _remote_error(e) from e

    def _call(self, spec: ActionSpec, fn: Any, params: ParsedParams, completion: Completion) -> None:
        value = params.value if isinstance(params, (Parsed, Raw)) else params
        if isinstance(params, Parsed) and value is None:
            # A JSON null body means no parameters.
            value = {}
        if spec.callback:
            fn(value, completion.callback)
            return
        if isinstance(params, Parsed) and isinstance(value, dict):
            result = fn(**value)
        else:
            # boto3 accepts keyword arguments only; let the SDK reject anything else.
            result = fn(value)
        if isinstance(result, Future):
            completion.follow(result)
        else:
            completion.resolve(result)
