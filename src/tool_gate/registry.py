# registry.py
# Tool contract registry: the closed set of tools the model may request.
#
# Each ToolName member is bound to its input model, output schema and
# executor. _build_registry refuses a catalog that misses a member.

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, TypeAdapter

from tool_gate import tools
from tool_gate.schemas import (
    CalculatorInput,
    CalculatorObservation,
    CandidatesQuery,
    DbQueryObservation,
    OpportunitiesQuery,
    WebFetchInput,
    WebFetchObservation,
)

logger = logging.getLogger(__name__)


class ToolName(str, enum.Enum):
    """Every tool the model may request."""

    CALCULATOR = "calculator"
    WEB_FETCH = "web_fetch"
    DB_QUERY_CANDIDATES = "db_query_candidates"
    DB_QUERY_OPPORTUNITIES = "db_query_opportunities"


@dataclass(frozen=True)
class ToolContract:
    """A tool's input schema, output schema and executor."""

    name: ToolName
    description: str
    input_model: type[BaseModel]
    output_schema: TypeAdapter
    executor: Callable[[Any], BaseModel]

    def to_openai(self) -> dict:
        """Convert to OpenAI function-calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name.value,
                "description": self.description,
                "parameters": self.input_model.model_json_schema(),
            },
        }


def _build_registry(contracts: list[ToolContract]) -> dict[ToolName, ToolContract]:
    registry = {contract.name: contract for contract in contracts}
    missing = set(ToolName) - set(registry)
    if missing or len(registry) != len(contracts):
        raise RuntimeError(f"Tool registry is not exhaustive: missing={sorted(missing)}")
    return registry


REGISTRY: dict[ToolName, ToolContract] = _build_registry(
    [
        ToolContract(
            name=ToolName.CALCULATOR,
            description=(
                "Use this tool when an exact numerical calculation is required "
                "and precision matters."
            ),
            input_model=CalculatorInput,
            output_schema=TypeAdapter(CalculatorObservation),
            executor=tools._tool_calculator,
        ),
        ToolContract(
            name=ToolName.WEB_FETCH,
            description=(
                "Use this tool when we need to fetch the external page content "
                "or meta data of a website"
            ),
            input_model=WebFetchInput,
            output_schema=TypeAdapter(WebFetchObservation),
            executor=tools._tool_web_fetch,
        ),
        ToolContract(
            name=ToolName.DB_QUERY_CANDIDATES,
            description="Query the candidates table by name, email, id, or address",
            input_model=CandidatesQuery,
            output_schema=TypeAdapter(DbQueryObservation),
            executor=tools._tool_db_query_candidates,
        ),
        ToolContract(
            name=ToolName.DB_QUERY_OPPORTUNITIES,
            description="Query the opportunities table by name, position, id, or stage",
            input_model=OpportunitiesQuery,
            output_schema=TypeAdapter(DbQueryObservation),
            executor=tools._tool_db_query_opportunities,
        ),
    ]
)


def lookup(name: str) -> ToolContract | None:
    """Return the contract registered under ``name``, or None."""
    try:
        return REGISTRY[ToolName(name)]
    except ValueError:
        logger.debug("No tool registered under %r", name)
        return None


def catalog() -> list[dict]:
    """Advertise every registered tool in OpenAI function-calling format."""
    return [contract.to_openai() for contract in REGISTRY.values()]
