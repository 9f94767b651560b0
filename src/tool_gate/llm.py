# llm.py
# Model-decision capability.
#
# Given the conversation and the tool catalog, a decider returns either a
# final message or a set of requested tool calls. The loop only depends on
# the Decider protocol; OpenAIDecider speaks to any OpenAI-compatible
# endpoint (OpenRouter by default).

import json
import logging
import uuid
from typing import Any, Protocol

from openai import OpenAI

from tool_gate.models import ModelDecision, ToolCallRequest

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a helpful assistant with access to tools.

Answer directly when no tool is needed. When a tool is needed, call it with \
arguments that match its JSON schema exactly: numbers as numbers, nested \
objects as objects.

Every tool result is JSON with a "success" field. When success is false, read \
error_type and error_message, correct your arguments and try again, or \
explain to the user why the request cannot be completed.\
"""


class DecisionError(Exception):
    """Raised when a completion cannot be interpreted as a decision."""


class Decider(Protocol):
    def decide(self, messages: list[dict[str, Any]], tools: list[dict]) -> ModelDecision: ...


def _parse_arguments(name: str, raw: Any) -> dict[str, Any]:
    """Decode a tool call's argument string. Malformed JSON becomes {}."""
    if isinstance(raw, dict):
        return raw
    try:
        arguments = json.loads(raw or "{}")
    except (json.JSONDecodeError, TypeError):
        logger.warning("Malformed JSON in tool call arguments for %s", name)
        return {}
    if not isinstance(arguments, dict):
        logger.warning("Tool call arguments for %s are not an object", name)
        return {}
    return arguments


class OpenAIDecider:
    """
    Decider backed by the OpenAI chat completions API.

    Example:
        decider = OpenAIDecider(
            model="anthropic/claude-sonnet-4.5",
            api_key=os.getenv("OPENROUTER_API_KEY"),
        )
        decision = decider.decide(messages, registry.catalog())
    """

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        base_url: str = "https://openrouter.ai/api/v1",
        system_prompt: str = SYSTEM_PROMPT,
        client: OpenAI | None = None,
    ) -> None:
        self._model = model
        self._system_prompt = system_prompt
        self._client = client or OpenAI(base_url=base_url, api_key=api_key)

    def decide(self, messages: list[dict[str, Any]], tools: list[dict]) -> ModelDecision:
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "system", "content": self._system_prompt}, *messages],
            tools=tools,
        )
        if not response.choices:
            raise DecisionError(f"Model {self._model} returned no choices.")

        message = response.choices[0].message
        calls = [
            ToolCallRequest(
                id=raw.id or f"call_{uuid.uuid4().hex[:8]}",
                name=raw.function.name,
                args=_parse_arguments(raw.function.name, raw.function.arguments),
            )
            for raw in (message.tool_calls or [])
        ]
        logger.debug("Model %s decided: %d tool call(s)", self._model, len(calls))
        return ModelDecision(content=message.content, tool_calls=calls)
