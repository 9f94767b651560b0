import json
from dataclasses import replace
from unittest.mock import MagicMock, patch

from tool_gate import registry, tools
from tool_gate.harness import verify_and_execute
from tool_gate.models import AgentState, ExecutionTrace, ToolCallRequest
from tool_gate.registry import ToolName


def _state(*calls: ToolCallRequest, step: int = 1, max_step: int = 3) -> AgentState:
    state = AgentState.initial("What is 5 times 5?", max_step)
    return state.model_copy(update={"tool_calls": list(calls), "step": step})


def _call(name: str, args: dict, call_id: str = "1") -> ToolCallRequest:
    return ToolCallRequest(id=call_id, name=name, args=args)


def _content(update, index: int = 0) -> dict:
    return json.loads(update.messages[index]["content"])


def _swap_executor(executor):
    contract = registry.REGISTRY[ToolName.CALCULATOR]
    return patch.dict(registry.REGISTRY, {ToolName.CALCULATOR: replace(contract, executor=executor)})

# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

def test_unknown_tool_is_invalid_input():
    update = verify_and_execute(_state(_call("does_not_exist", {})))

    content = _content(update)
    assert content["success"] is False
    assert content["error_type"] == "invalid_input"
    assert content["error_message"] == "Unknown tool call: does_not_exist"

    (entry,) = update.trace
    assert entry.input_valid is False
    assert entry.validation_error == "Unknown tool"
    assert entry.success is False

def test_very_long_unknown_tool_name_is_bounded():
    update = verify_and_execute(_state(_call("x" * 500, {})))
    assert len(_content(update)["error_message"]) <= 100

# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def test_invalid_schema_never_reaches_executor():
    spy = MagicMock(wraps=tools._tool_calculator)

    with _swap_executor(spy):
        update = verify_and_execute(
            _state(_call("calculator", {"a": "5", "b": 5, "operation": "multiply"}))
        )

    spy.assert_not_called()
    content = _content(update)
    assert content == {
        "success": False,
        "error_type": "invalid_schema",
        "error_message": "Schema Validation Failed",
    }

    (entry,) = update.trace
    assert entry.input_valid is False
    issues = json.loads(entry.validation_error)
    assert issues and all(issue["loc"][0] == "a" for issue in issues)

def test_missing_argument_is_invalid_schema():
    update = verify_and_execute(_state(_call("calculator", {"a": 5, "operation": "add"})))
    assert _content(update)["error_type"] == "invalid_schema"

def test_stringified_nested_argument_validates_as_object():
    args = {
        "table": "candidates",
        "columns": '["name"]',
        "where": '{"field": "name", "operator": "=", "value": "Alice Johnson"}',
    }
    update = verify_and_execute(_state(_call("db_query_candidates", args)))

    content = _content(update)
    assert content["success"] is True
    assert content["rows"] == [{"name": "Alice Johnson"}]

    (entry,) = update.trace
    assert entry.input_valid is True
    assert entry.input["where"] == {"field": "name", "operator": "=", "value": "Alice Johnson"}
    assert entry.input["limit"] == 10

# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

def test_valid_call_produces_tool_observation():
    update = verify_and_execute(
        _state(_call("calculator", {"a": 5, "b": 5, "operation": "multiply"}))
    )

    assert _content(update) == {
        "success": True,
        "result": 25,
        "a": 5,
        "b": 5,
        "operation": "multiply",
    }
    (entry,) = update.trace
    assert entry.success is True
    assert entry.tool_name == "calculator"
    assert entry.call_id == "1"
    assert entry.duration_ms >= 0

def test_division_by_zero_is_a_domain_failure():
    update = verify_and_execute(_state(_call("calculator", {"a": 5, "b": 0, "operation": "divide"})))

    content = _content(update)
    assert content["success"] is False
    assert content["error_type"] == "invalid_calculation"
    assert "division by zero" in content["error_message"].lower()
    assert len(update.trace) == 1
    assert len(update.messages) == 1

def test_executor_exception_becomes_runtime_error():
    with _swap_executor(MagicMock(side_effect=RuntimeError("boom"))):
        update = verify_and_execute(
            _state(_call("calculator", {"a": 9999, "b": 5, "operation": "multiply"}))
        )

    content = _content(update)
    assert content["success"] is False
    assert content["error_type"] == "runtime_error"
    assert "boom" in content["error_message"]
    (entry,) = update.trace
    assert entry.input_valid is True
    assert entry.success is False

def test_executor_returning_garbage_becomes_runtime_error():
    with _swap_executor(MagicMock(return_value={"success": True, "result": "lots"})):
        update = verify_and_execute(
            _state(_call("calculator", {"a": 1, "b": 2, "operation": "add"}))
        )
    assert _content(update)["error_type"] == "runtime_error"

def test_not_found_lookup_through_gate():
    args = {
        "table": "candidates",
        "columns": ["name"],
        "where": {"field": "name", "operator": "=", "value": "Sarah Connor"},
    }
    update = verify_and_execute(_state(_call("db_query_candidates", args)))

    content = _content(update)
    assert content["success"] is False
    assert content["error_type"] == "not_found"
    assert update.trace[0].success is False

# ---------------------------------------------------------------------------
# Batch bookkeeping
# ---------------------------------------------------------------------------

def test_batch_is_processed_in_order_with_one_message_per_call():
    calls = [
        _call("calculator", {"a": 2, "b": 3, "operation": "add"}, call_id="a"),
        _call("nope", {}, call_id="b"),
        _call("calculator", {"a": "x", "b": 3, "operation": "add"}, call_id="c"),
    ]
    update = verify_and_execute(_state(*calls))

    assert [m["role"] for m in update.messages] == ["tool", "tool", "tool"]
    assert [m["tool_call_id"] for m in update.messages] == ["a", "b", "c"]
    assert [e.call_id for e in update.trace] == ["a", "b", "c"]
    assert all(isinstance(e, ExecutionTrace) for e in update.trace)
    assert [e.success for e in update.trace] == [True, False, False]

def test_step_advances_once_per_batch_and_calls_are_cleared():
    calls = [
        _call("calculator", {"a": 1, "b": 1, "operation": "add"}, call_id="1"),
        _call("calculator", {"a": 2, "b": 2, "operation": "add"}, call_id="2"),
    ]
    state = _state(*calls, step=2)
    update = verify_and_execute(state)

    assert update.step == 3
    assert update.tool_calls == []
    assert all(entry.step == 2 for entry in update.trace)

    after = state.apply(update)
    assert after.step == 3
    assert after.tool_calls == []

def test_empty_batch_still_consumes_a_step():
    update = verify_and_execute(_state())
    assert update.messages == []
    assert update.trace == []
    assert update.step == 2
