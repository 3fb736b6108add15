from concurrent.futures import Future
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError


def test_unknown_action_makes_no_client_call():
    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.errors import UnknownAction
    from ddb_gateway.normalizer import Parsed

    handle = MagicMock()
    with pytest.raises(UnknownAction):
        ActionDispatcher().invoke(handle, "dropEverything", Parsed({}))
    assert handle.mock_calls == []


@pytest.mark.parametrize("name", [None, "", "   "])
def test_missing_action(name):
    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.errors import MissingAction
    from ddb_gateway.normalizer import Parsed

    handle = MagicMock()
    with pytest.raises(MissingAction):
        ActionDispatcher().invoke(handle, name, Parsed({}))
    assert handle.mock_calls == []


def test_every_action_dispatches_to_its_method():
    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.normalizer import Parsed
    from ddb_gateway.registry import DEFAULT_REGISTRY

    dispatcher = ActionDispatcher()
    for spec in DEFAULT_REGISTRY:
        handle = MagicMock()
        getattr(handle, spec.method).return_value = {"action": spec.name}
        out = dispatcher.invoke(handle, spec.name, Parsed({}))
        assert out.output == {"action": spec.name}
        getattr(handle, spec.method).assert_called_once_with()


def test_params_are_passed_as_keywords():
    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.normalizer import Parsed

    class FakeClient:
        def __init__(self):
            self.calls = []

        def get_item(self, **kwargs):
            self.calls.append(kwargs)
            return {"Item": {"pk": {"S": "u#1"}}}

    client = FakeClient()
    params = {"TableName": "users", "Key": {"pk": {"S": "u#1"}}}
    out = ActionDispatcher().invoke(client, "getItem", Parsed(params))
    assert out.output == {"Item": {"pk": {"S": "u#1"}}}
    assert client.calls == [params]


def test_raw_params_are_attempted_and_rejected_remotely():
    import boto3

    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.errors import RemoteOperationError
    from ddb_gateway.normalizer import Raw

    client = boto3.client("dynamodb", region_name="us-east-1", aws_access_key_id="a", aws_secret_access_key="b")
    with pytest.raises(RemoteOperationError):
        ActionDispatcher().invoke(client, "listTables", Raw("not json"))


def test_param_validation_error_is_remote_error():
    import boto3

    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.errors import RemoteOperationError
    from ddb_gateway.normalizer import Parsed

    client = boto3.client("dynamodb", region_name="us-east-1", aws_access_key_id="a", aws_secret_access_key="b")
    with pytest.raises(RemoteOperationError) as exc:
        ActionDispatcher().invoke(client, "getItem", Parsed({}))
    assert "TableName" in exc.value.message


def test_client_error_carries_code():
    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.errors import RemoteOperationError
    from ddb_gateway.normalizer import Parsed

    class FakeClient:
        def describe_table(self, **kwargs):
            raise ClientError(
                {"Error": {"Code": "ResourceNotFoundException", "Message": "Requested resource not found"}},
                "DescribeTable",
            )

    with pytest.raises(RemoteOperationError) as exc:
        ActionDispatcher().invoke(FakeClient(), "describeTable", Parsed({"TableName": "t"}))
    assert exc.value.code == "ResourceNotFoundException"
    assert exc.value.message == "ResourceNotFoundException: Requested resource not found"
    assert isinstance(exc.value.__cause__, ClientError)


def test_future_returning_operation():
    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.errors import RemoteOperationError
    from ddb_gateway.normalizer import Parsed

    class FakeClient:
        def __init__(self, fail=False):
            self.fail = fail

        def list_tables(self, **kwargs):
            f = Future()
            if self.fail:
                f.set_exception(RuntimeError("throttled"))
            else:
                f.set_result({"TableNames": ["a"]})
            return f

    assert ActionDispatcher().invoke(FakeClient(), "listTables", Parsed({})).output == {"TableNames": ["a"]}
    with pytest.raises(RemoteOperationError) as exc:
        ActionDispatcher().invoke(FakeClient(fail=True), "listTables", Parsed({}))
    assert exc.value.message == "throttled"


def test_callback_operation_settles_once():
    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.normalizer import Parsed
    from ddb_gateway.registry import ActionRegistry, ActionSpec

    class FakeClient:
        def fetch(self, params, callback):
            callback(None, {"echo": params})
            callback(RuntimeError("late failure"), None)
            callback(None, {"echo": "second"})

    registry = ActionRegistry([ActionSpec(name="fetch", method="fetch", mutating=False, callback=True)])
    out = ActionDispatcher(registry).invoke(FakeClient(), "fetch", Parsed({"a": 1}))
    assert out.output == {"echo": {"a": 1}}


def test_callback_error_is_remote_error():
    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.errors import RemoteOperationError
    from ddb_gateway.normalizer import Parsed
    from ddb_gateway.registry import ActionRegistry, ActionSpec

    class FakeClient:
        def fetch(self, params, callback):
            callback("boom", None)

    registry = ActionRegistry([ActionSpec(name="fetch", method="fetch", mutating=False, callback=True)])
    with pytest.raises(RemoteOperationError) as exc:
        ActionDispatcher(registry).invoke(FakeClient(), "fetch", Parsed({}))
    assert exc.value.message == "boom"


def test_synchronous_throw_is_remote_error():
    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.errors import RemoteOperationError
    from ddb_gateway.normalizer import Parsed

    handle = MagicMock()
    handle.scan.side_effect = ValueError("bad limit")
    with pytest.raises(RemoteOperationError) as exc:
        ActionDispatcher().invoke(handle, "scan", Parsed({"TableName": "t"}))
    assert exc.value.message == "bad limit"
    handle.scan.assert_called_once_with(TableName="t")


def test_completion_keeps_first_outcome():
    from ddb_gateway.dispatcher import Completion

    c = Completion("listTables")
    assert c.resolve(1) is True
    assert c.reject(RuntimeError("x")) is False
    assert c.resolve(2) is False
    assert c.settled is True
    assert c.result() == 1


def test_restricted_registry_rejects_disallowed_action():
    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.errors import UnknownAction
    from ddb_gateway.normalizer import Parsed
    from ddb_gateway.registry import DEFAULT_REGISTRY

    handle = MagicMock()
    dispatcher = ActionDispatcher(DEFAULT_REGISTRY.read_only())
    with pytest.raises(UnknownAction) as exc:
        dispatcher.invoke(handle, "putItem", Parsed({"TableName": "t", "Item": {}}))
    assert exc.value.message == "Invalid DynamoDB action putItem"
    assert handle.mock_calls == []


def test_cancelled_future_is_remote_error():
    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.errors import RemoteOperationError
    from ddb_gateway.normalizer import Parsed

    class FakeClient:
        def list_tables(self, **kwargs):
            f = Future()
            f.cancel()
            return f

    with pytest.raises(RemoteOperationError) as exc:
        ActionDispatcher().invoke(FakeClient(), "listTables", Parsed({}))
    assert exc.value.message == "DynamoDB action listTables was cancelled"


def test_null_body_calls_without_params():
    from ddb_gateway.dispatcher import ActionDispatcher
    from ddb_gateway.normalizer import parse

    client = MagicMock()
    client.list_tables.return_value = {"TableNames": []}
    out = ActionDispatcher().invoke(client, "listTables", parse("null"))
    assert out.output == {"TableNames": []}
    client.list_tables.assert_called_once_with()
