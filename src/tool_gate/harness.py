# harness.py
# Decision / verification / execution loop.
#
# The Agent is the kernel. The model is a passive responder: this module owns
# all control flow, routing, state and verification. No tool runs unless its
# arguments have been looked up, normalized and validated first.
#
# Control flow:
#   classify → route → (verify_and_execute → classify) | end
#   → assemble_response
#
# Every node takes the current AgentState and returns a StateUpdate holding
# only what it produced. AgentState.apply concatenates, so the conversation
# and the trace only ever grow.

import json
import logging
import time
from typing import Any, Literal, NamedTuple, Optional

from pydantic import ValidationError

from tool_gate import registry
from tool_gate.llm import Decider
from tool_gate.models import (
    AgentResponse,
    AgentState,
    DecisionTrace,
    ErrorInfo,
    ErrorResponse,
    ExecutionTrace,
    MaxAttemptsMetadata,
    MaxAttemptsResponse,
    ResponseMetadata,
    StateUpdate,
    SuccessResponse,
    ToolCallRequest,
)
from tool_gate.normalize import normalize
from tool_gate.schemas import ToolFailure

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEP = 3
MAX_ATTEMPTS_CONTENT = "Max attempts reached without final answer"
ERROR_CONTENT = "An error occurred while processing your request"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LoopError(Exception):
    """Raised when the loop fails to terminate within its step budget."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_ms() -> int:
    return int(time.time() * 1000)


def _failure(error_type: str, message: str) -> dict[str, Any]:
    """Build a gate-level failure observation. Message is clamped to 5..100 chars."""
    message = message[:100]
    if len(message) < 5:
        message = "Tool execution failed"
    return ToolFailure(error_type=error_type, error_message=message).model_dump(mode="json")


class _Verdict(NamedTuple):
    observation: dict[str, Any]
    input: dict[str, Any]
    input_valid: bool
    validation_error: Optional[str] = None


def _gate_call(call: ToolCallRequest) -> _Verdict:
    """Lookup → normalize → validate → execute for a single call. Never raises."""
    contract = registry.lookup(call.name)
    if contract is None:
        logger.warning("Rejected call %s: unknown tool %r", call.id, call.name)
        return _Verdict(
            _failure("invalid_input", f"Unknown tool call: {call.name}"),
            call.args,
            False,
            "Unknown tool",
        )

    args = normalize(call.args)

    try:
        params = contract.input_model.model_validate(args)
    except ValidationError as exc:
        logger.warning("Rejected call %s to %s: %d schema issue(s)", call.id, call.name, exc.error_count())
        return _Verdict(
            _failure("invalid_schema", "Schema Validation Failed"),
            args,
            False,
            exc.json(include_url=False),
        )

    validated = params.model_dump(mode="json")

    try:
        result = contract.executor(params)
        # Executors prove their own output; this catches one that returns anything else.
        checked = contract.output_schema.validate_python(result)
        observation = contract.output_schema.dump_python(checked, mode="json", exclude_none=True)
    except Exception as exc:
        logger.debug("Tool %s failed: %s", call.name, exc, exc_info=True)
        return _Verdict(
            _failure("runtime_error", f"{type(exc).__name__}: {exc}"),
            validated,
            True,
        )

    return _Verdict(observation, validated, True)


# ---------------------------------------------------------------------------
# Loop nodes
# ---------------------------------------------------------------------------


def classify(state: AgentState, decider: Decider, tools: list[dict]) -> StateUpdate:
    """
    Ask the model for the next action.

    Produces exactly one of: a max-attempts short-circuit (the model is not
    called), a batch of tool-call requests, or a final answer.
    """
    if state.step >= state.max_step:
        logger.info("Step budget exhausted at step %d/%d", state.step, state.max_step)
        return StateUpdate(
            response=MAX_ATTEMPTS_CONTENT,
            trace=[DecisionTrace(step=state.step, decision="max_attempts", timestamp=_now_ms())],
        )

    decision = decider.decide(state.messages, tools)

    if decision.tool_calls:
        names = [call.name for call in decision.tool_calls]
        logger.debug("Step %d: model requested %s", state.step, names)
        return StateUpdate(
            messages=[decision.as_message()],
            tool_calls=decision.tool_calls,
            trace=[
                DecisionTrace(
                    step=state.step,
                    decision="tool_use",
                    tools_requested=names,
                    timestamp=_now_ms(),
                )
            ],
        )

    logger.debug("Step %d: model answered directly", state.step)
    return StateUpdate(
        response=decision.content,
        trace=[DecisionTrace(step=state.step, decision="final_answer", timestamp=_now_ms())],
    )


def verify_and_execute(state: AgentState) -> StateUpdate:
    """
    Gate every pending tool call, strictly in request order.

    Each call yields exactly one tool-result message and one execution trace
    entry, whatever happens to it. The step counter advances once per batch.
    """
    messages: list[dict[str, Any]] = []
    entries: list[ExecutionTrace] = []

    for call in state.tool_calls:
        timestamp = _now_ms()
        started = time.perf_counter()

        verdict = _gate_call(call)

        messages.append(
            {
                "role": "tool",
                "tool_call_id": call.id,
                "content": json.dumps(verdict.observation),
            }
        )
        entries.append(
            ExecutionTrace(
                step=state.step,
                tool_name=call.name,
                call_id=call.id,
                input=verdict.input,
                input_valid=verdict.input_valid,
                validation_error=verdict.validation_error,
                observation=verdict.observation,
                success=verdict.observation.get("success") is not False,
                timestamp=timestamp,
                duration_ms=int((time.perf_counter() - started) * 1000),
            )
        )

    return StateUpdate(messages=messages, trace=entries, tool_calls=[], step=state.step + 1)


def route(state: AgentState) -> Literal["gate", "end"]:
    """Decide where the loop goes after a classification."""
    if state.response:
        return "end"
    if state.step >= state.max_step:
        return "end"
    if state.tool_calls:
        return "gate"
    # Neither an answer nor tool calls: terminate with empty content.
    return "end"


# ---------------------------------------------------------------------------
# Response assembly
# ---------------------------------------------------------------------------


def _tools_used(state: AgentState) -> list[str]:
    names = [entry.tool_name for entry in state.trace if isinstance(entry, ExecutionTrace)]
    return list(dict.fromkeys(names))


def assemble_response(state: AgentState, started_at: int) -> AgentResponse:
    """Package a terminated loop into its success or max-attempts response."""
    completed_at = _now_ms()
    hit_max_attempts = any(
        isinstance(entry, DecisionTrace) and entry.decision == "max_attempts"
        for entry in state.trace
    )
    metadata = dict(
        user_query=state.user_query,
        total_steps=state.step,
        tools_used=_tools_used(state),
        started_at=started_at,
        completed_at=completed_at,
        duration_ms=completed_at - started_at,
    )

    if hit_max_attempts:
        return MaxAttemptsResponse(
            content=state.response or MAX_ATTEMPTS_CONTENT,
            metadata=MaxAttemptsMetadata(max_steps=state.max_step, **metadata),
            trace=state.trace,
        )

    return SuccessResponse(
        content=state.response or "",
        metadata=ResponseMetadata(**metadata),
        trace=state.trace,
    )


def error_response(user_query: str, exc: BaseException, started_at: int) -> ErrorResponse:
    """Package a structural fault. Carries no steps and no trace."""
    completed_at = _now_ms()
    return ErrorResponse(
        content=ERROR_CONTENT,
        error=ErrorInfo(type=type(exc).__name__, message=str(exc)),
        metadata=ResponseMetadata(
            user_query=user_query,
            total_steps=0,
            tools_used=[],
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=completed_at - started_at,
        ),
        trace=[],
    )


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------


class Agent:
    """
    Runs one query through the classify / gate loop.

    Example:
        agent = Agent(OpenAIDecider(model="anthropic/claude-sonnet-4.5"))
        response = agent.run("What is 5 times 5?")
        response.status  # "success"
    """

    def __init__(self, decider: Decider, max_step: int = DEFAULT_MAX_STEP) -> None:
        self._decider = decider
        self._max_step = max_step

    def run(self, user_query: str, max_step: int | None = None) -> AgentResponse:
        """
        Full pipeline entry point.

        Returns an AgentResponse in all cases: the caller always gets a
        result, whether it's an answer, an exhausted budget, or a fault.
        """
        started_at = _now_ms()
        limit = self._max_step if max_step is None else max_step

        try:
            state = AgentState.initial(user_query, limit)
            tools = registry.catalog()

            # Each pass either terminates or runs the gate once, which
            # advances the step, so limit + 1 passes always suffice.
            for _ in range(limit + 1):
                state = state.apply(classify(state, self._decider, tools))
                if route(state) == "end":
                    break
                state = state.apply(verify_and_execute(state))
            else:
                raise LoopError(f"Loop did not terminate within {limit} step(s).")

            return assemble_response(state, started_at)

        except Exception as exc:
            logger.exception("Agent run failed for query %r", user_query)
            return error_response(user_query, exc, started_at)
