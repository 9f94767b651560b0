# display.py
# All terminal output for the tool-gate demo.
#
# This module owns presentation entirely. The harness never prints; run.py
# hands each finished AgentResponse here. Swap this file to change the UI.
#
# Colour language:
#   cyan: requests and routing
#   blue: model decisions
#   magenta: tool executions
#   green: success
#   yellow: exhausted step budget
#   red: rejected calls, failures, structural errors

import json

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from tool_gate.models import (
    AgentResponse,
    DecisionTrace,
    ErrorResponse,
    MaxAttemptsResponse,
    TraceEntry,
)

console = Console()

_STATUS_COLOR = {
    "success": "green",
    "max_attempts_reached": "yellow",
    "error": "red",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        return value[:max_len] + "…"
    return value


def format_trace_line(index: int, entry: TraceEntry) -> str:
    """One plain-text line per trace entry, for debug logs."""
    if isinstance(entry, DecisionTrace):
        line = f"[{index + 1}] LLM (step {entry.step}): {entry.decision}"
        if entry.tools_requested:
            line += f" -> tools: [{', '.join(entry.tools_requested)}]"
        return line

    status = "✓" if entry.success else "✗"
    line = f"[{index + 1}] TOOL (step {entry.step}): {entry.tool_name} {status}"
    if entry.duration_ms:
        line += f" ({entry.duration_ms}ms)"
    if not entry.input_valid:
        line += f" | validation error: {_mono(entry.validation_error or '', 80)}"
    return line


def format_trace(trace: list[TraceEntry]) -> str:
    return "\n".join(format_trace_line(i, entry) for i, entry in enumerate(trace))


# ---------------------------------------------------------------------------
# Pipeline entry
# ---------------------------------------------------------------------------


def banner(model: str, max_steps: int) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Tool Gate[/bold cyan]\n"
            "[dim]Every model-requested tool call is validated before it runs[/dim]\n\n"
            f"[dim]Model     :[/dim] [white]{model}[/white]\n"
            f"[dim]Max steps :[/dim] [white]{max_steps}[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def prompt_received(prompt: str) -> None:
    console.print()
    console.print(Rule("[cyan]NEW REQUEST[/cyan]", style="cyan"))
    console.print(
        Panel(
            f"[white]{escape(prompt)}[/white]",
            title=_label("USER QUERY", "cyan"),
            border_style="cyan",
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# Trace
# ---------------------------------------------------------------------------


def trace_table(trace: list[TraceEntry]) -> None:
    if not trace:
        console.print("[dim]  (empty trace)[/dim]")
        return

    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="dim",
        show_header=True,
        header_style="bold dim",
        padding=(0, 1),
    )
    table.add_column("#", justify="right", width=3)
    table.add_column("Step", justify="center", width=5)
    table.add_column("Kind", width=10)
    table.add_column("What", style="white", width=28)
    table.add_column("Result", width=8, justify="center")
    table.add_column("Detail", style="dim white")

    for index, entry in enumerate(trace):
        if isinstance(entry, DecisionTrace):
            detail = escape(", ".join(entry.tools_requested or []))
            table.add_row(
                str(index + 1),
                str(entry.step),
                "[blue]decision[/blue]",
                entry.decision,
                "",
                detail,
            )
            continue

        result = "[bold green]✓[/bold green]" if entry.success else "[bold red]✗[/bold red]"
        if not entry.input_valid:
            detail = f"[red]{escape(_mono(entry.validation_error or '', 60))}[/red]"
        else:
            detail = escape(_mono(json.dumps(entry.observation), 60))
        table.add_row(
            str(index + 1),
            str(entry.step),
            "[magenta]tool[/magenta]",
            f"{escape(entry.tool_name)} [dim]({entry.duration_ms}ms)[/dim]",
            result,
            detail,
        )

    console.print(table)


# ---------------------------------------------------------------------------
# Final result
# ---------------------------------------------------------------------------


def agent_response(response: AgentResponse) -> None:
    color = _STATUS_COLOR[response.status]
    meta = response.metadata

    summary = (
        f"[dim]Status   :[/dim] [bold {color}]{response.status}[/bold {color}]\n"
        f"[dim]Duration :[/dim] {meta.duration_ms}ms\n"
        f"[dim]Steps    :[/dim] {meta.total_steps}"
    )
    if isinstance(response, MaxAttemptsResponse):
        summary += f" / {meta.max_steps}"
    if meta.tools_used:
        summary += f"\n[dim]Tools    :[/dim] {', '.join(meta.tools_used)}"

    console.print()
    console.print(summary)
    console.print()
    trace_table(response.trace)

    console.print(
        Panel(
            f"[white]{escape(response.content)}[/white]",
            title=_label("RESULT", color),
            border_style=color,
            padding=(1, 2),
        )
    )

    if isinstance(response, ErrorResponse):
        halt(f"{response.error.type}: {response.error.message}")

    console.print()


def halt(reason: str) -> None:
    console.print(
        Panel(
            f"[bold white]{escape(reason)}[/bold white]",
            title=_label("ERROR", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
