import pytest

from tool_gate import registry
from tool_gate.registry import REGISTRY, ToolContract, ToolName, _build_registry, catalog, lookup
from tool_gate.schemas import CalculatorInput


def test_lookup_known_tool():
    contract = lookup("calculator")
    assert contract is not None
    assert contract.name is ToolName.CALCULATOR
    assert contract.input_model is CalculatorInput

def test_lookup_unknown_tool_returns_none():
    assert lookup("does_not_exist") is None
    assert lookup("") is None

def test_registry_is_exhaustive():
    assert set(REGISTRY) == set(ToolName)

def test_catalog_advertises_every_tool_in_openai_format():
    entries = catalog()
    names = [entry["function"]["name"] for entry in entries]

    assert sorted(names) == sorted(member.value for member in ToolName)
    for entry in entries:
        assert entry["type"] == "function"
        assert entry["function"]["description"]
        assert entry["function"]["parameters"]["type"] == "object"

def test_calculator_parameters_schema():
    params = lookup("calculator").to_openai()["function"]["parameters"]
    assert set(params["required"]) == {"a", "b", "operation"}

def test_incomplete_registry_is_refused():
    calculator = registry.REGISTRY[ToolName.CALCULATOR]
    with pytest.raises(RuntimeError, match="not exhaustive"):
        _build_registry([calculator])

def test_contracts_are_frozen():
    contract: ToolContract = lookup("web_fetch")
    with pytest.raises(AttributeError):
        contract.description = "changed"
