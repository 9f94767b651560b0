# models.py
# Data contracts for the tool-gate agent loop.
# Requests, decisions, trace entries, loop state and the terminal response.
# No business logic lives here: pure schema and validation.

import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ToolCallRequest(BaseModel):
    """A model-issued request to invoke a named tool."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque call id, echoed on the tool-result message.")
    name: str = Field(..., description="Requested tool name. Not yet checked against the registry.")
    args: dict[str, Any] = Field(default_factory=dict)


class ModelDecision(BaseModel):
    """What the model-decision capability returned for one classification."""

    model_config = ConfigDict(frozen=True)

    content: Optional[str] = None
    tool_calls: list[ToolCallRequest] = Field(default_factory=list)

    def as_message(self) -> dict[str, Any]:
        """Render as an assistant message in OpenAI chat format."""
        message: dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.args)},
                }
                for call in self.tool_calls
            ]
        return message


# ---------------------------------------------------------------------------
# Trace
# ---------------------------------------------------------------------------

_TRACE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class DecisionTrace(BaseModel):
    """One classification outcome."""

    model_config = _TRACE_CONFIG

    kind: Literal["decision"] = "decision"
    step: int
    decision: Literal["tool_use", "final_answer", "max_attempts"]
    tools_requested: Optional[list[str]] = None
    timestamp: int = Field(..., description="Epoch milliseconds.")


class ExecutionTrace(BaseModel):
    """One pass of a single tool call through the gate."""

    model_config = _TRACE_CONFIG

    kind: Literal["execution"] = "execution"
    step: int
    tool_name: str
    call_id: str
    input: dict[str, Any]
    input_valid: bool
    validation_error: Optional[str] = None
    observation: dict[str, Any]
    success: bool
    timestamp: int = Field(..., description="Epoch milliseconds.")
    duration_ms: int = Field(..., ge=0)


TraceEntry = Annotated[Union[DecisionTrace, ExecutionTrace], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Loop state
# ---------------------------------------------------------------------------


class StateUpdate(BaseModel):
    """The new facts one loop node produced. Never a full replacement."""

    model_config = ConfigDict(frozen=True)

    messages: list[dict[str, Any]] = Field(default_factory=list)
    trace: list[TraceEntry] = Field(default_factory=list)
    tool_calls: list[ToolCallRequest] = Field(default_factory=list)
    response: Optional[str] = None
    step: Optional[int] = None


class AgentState(BaseModel):
    """Everything the loop owns for the lifetime of a single query."""

    model_config = ConfigDict(frozen=True)

    user_query: str
    messages: list[dict[str, Any]]
    step: int = Field(default=1, ge=1)
    max_step: int = Field(..., ge=1)
    tool_calls: list[ToolCallRequest] = Field(default_factory=list)
    response: Optional[str] = None
    trace: list[TraceEntry] = Field(default_factory=list)

    @classmethod
    def initial(cls, user_query: str, max_step: int) -> "AgentState":
        return cls(
            user_query=user_query,
            messages=[{"role": "user", "content": user_query}],
            max_step=max_step,
        )

    def apply(self, update: StateUpdate) -> "AgentState":
        """
        Fold a node's update into a new state.

        Messages and trace are concatenated, never replaced. Pending tool
        calls always take the update's value, so the gate clears them simply
        by returning none.
        """
        changes: dict[str, Any] = {
            "messages": [*self.messages, *update.messages],
            "trace": [*self.trace, *update.trace],
            "tool_calls": list(update.tool_calls),
        }
        if update.response is not None:
            changes["response"] = update.response
        if update.step is not None:
            changes["step"] = update.step
        return self.model_copy(update=changes)


# ---------------------------------------------------------------------------
# Terminal response
# ---------------------------------------------------------------------------

_RESPONSE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ResponseMetadata(BaseModel):
    model_config = _RESPONSE_CONFIG

    user_query: str
    total_steps: int
    tools_used: list[str] = Field(default_factory=list)
    started_at: int
    completed_at: int
    duration_ms: int


class MaxAttemptsMetadata(ResponseMetadata):
    max_steps: int


class ErrorInfo(BaseModel):
    model_config = _RESPONSE_CONFIG

    type: str
    message: str


class SuccessResponse(BaseModel):
    model_config = _RESPONSE_CONFIG

    status: Literal["success"] = "success"
    content: str
    metadata: ResponseMetadata
    trace: list[TraceEntry] = Field(default_factory=list)


class MaxAttemptsResponse(BaseModel):
    model_config = _RESPONSE_CONFIG

    status: Literal["max_attempts_reached"] = "max_attempts_reached"
    content: str
    metadata: MaxAttemptsMetadata
    trace: list[TraceEntry] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    model_config = _RESPONSE_CONFIG

    status: Literal["error"] = "error"
    content: str
    error: ErrorInfo
    metadata: ResponseMetadata
    trace: list[TraceEntry] = Field(default_factory=list)


AgentResponse = Annotated[
    Union[SuccessResponse, MaxAttemptsResponse, ErrorResponse],
    Field(discriminator="status"),
]
