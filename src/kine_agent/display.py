# display.py
# Terminal output for agent runs.
#
# The core never prints. Callers hand steps and results to the functions
# here, and configure_logging() routes the agent loggers through rich.
#
# Colour language:
#   cyan    : agent / finalize steps
#   magenta : tool steps
#   red     : error steps
#   yellow  : usage and timeouts

import json
import logging

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from kine_agent.models import RunResult, Step, StepKind

console = Console()

_KIND_COLORS = {
    StepKind.AGENT: "cyan",
    StepKind.TOOL: "magenta",
    StepKind.ERROR: "red",
}


def configure_logging(level: int = logging.INFO) -> None:
    """Attach a RichHandler to the kine_agent logger tree."""
    logger = logging.getLogger("kine_agent")
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=console, show_path=False, rich_tracebacks=True))


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


def _render(value) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, default=str)


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


def step(step: Step, number: int) -> None:
    color = _KIND_COLORS[step.kind]
    body = Text()
    body.append("Thought: ", style="bold")
    body.append(f"{step.thought}\n")
    body.append("Action:  ", style="bold")
    body.append(f"{step.action or '-'}\n")
    if step.parameter is not None:
        body.append("Param:   ", style="bold")
        body.append(f"{_mono(json.dumps(step.parameter, default=str))}\n")
    body.append("Result:  ", style="bold")
    body.append(_render(step.result))

    console.print()
    console.print(
        Panel(
            body,
            title=_label(f"STEP {number}: {step.kind.value.upper()}", color),
            border_style=color,
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# Run summary
# ---------------------------------------------------------------------------


def usage_table(result: RunResult) -> Table:
    table = Table(box=box.SIMPLE, show_header=True, header_style="bold yellow", padding=(0, 1))
    table.add_column("LLM calls", justify="right")
    table.add_column("Prompt", justify="right")
    table.add_column("Completion", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Latency (ms)", justify="right")
    usage = result.usage
    table.add_row(
        str(usage.llm_calls),
        str(usage.total_prompt_tokens),
        str(usage.total_completion_tokens),
        str(usage.total_tokens),
        f"{usage.total_latency_ms:.0f}",
    )
    return table


def steps_table(result: RunResult) -> Table:
    table = Table(box=box.SIMPLE_HEAVY, show_header=True, header_style="bold cyan", padding=(0, 1))
    table.add_column("#", justify="center", width=4)
    table.add_column("Kind", width=6)
    table.add_column("Action", style="bold white", width=14)
    table.add_column("Result", style="dim white")

    for index, s in enumerate(result.steps[1:], start=1):
        color = _KIND_COLORS[s.kind]
        table.add_row(
            str(index),
            f"[{color}]{s.kind.value}[/{color}]",
            s.action or "-",
            _mono(_render(s.result).replace("\n", " "), 80),
        )
    return table


def final_result(result: RunResult) -> None:
    border = "yellow" if result.timed_out else "green"
    title = "TIMED OUT" if result.timed_out else "FINAL ANSWER"
    console.print()
    console.print(steps_table(result))
    console.print(usage_table(result))
    console.print(
        Panel(
            f"[white]{result.final_answer}[/white]",
            title=_label(title, border),
            border_style=border,
            padding=(1, 2),
        )
    )
