# run.py
# Entry point. Config and wiring only: no logic lives here.
#
# Swap TOOL_GATE_MODEL for any model the configured endpoint serves.
# https://openrouter.ai/models

import logging

from rich.logging import RichHandler

from tool_gate import display
from tool_gate.config import Settings
from tool_gate.harness import Agent
from tool_gate.llm import OpenAIDecider

logger = logging.getLogger(__name__)

# Demo queries: direct answer, clean tool use, a malformed calculation,
# a domain failure, a lookup hit and a lookup miss.
PROMPTS = [
    "Hello, how are you?",
    "What is 5 times 5?",
    "What is 5 times a",
    "what is 5 divided by 0",
    "Find the candidate named Alice Johnson",
    "Look up Sarah Connor in candidates",
]


def main() -> None:
    settings = Settings.from_env()

    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=display.console, rich_tracebacks=True)],
    )

    decider = OpenAIDecider(
        model=settings.model,
        api_key=settings.api_key,
        base_url=settings.base_url,
    )
    agent = Agent(decider, max_step=settings.max_steps)

    display.banner(settings.model, settings.max_steps)

    for prompt in PROMPTS:
        display.prompt_received(prompt)
        response = agent.run(prompt)
        logger.debug("Trace for %r:\n%s", prompt, display.format_trace(response.trace))
        display.agent_response(response)


if __name__ == "__main__":
    main()
