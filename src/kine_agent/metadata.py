# metadata.py
# Folds per-step call metrics into a run-level usage summary.

from collections.abc import Iterable

from kine_agent.models import AggregateUsage, Step


def aggregate_usage(steps: Iterable[Step]) -> AggregateUsage:
    """
    Sum token and latency metrics over *steps*.

    A step counts as an LLM call only when it carries token usage; latency
    is summed for every step that reports it.
    """
    usage = AggregateUsage()
    for step in steps:
        meta = step.meta
        if meta is None:
            continue
        if meta.tokens is not None:
            usage.total_prompt_tokens += meta.tokens.prompt_tokens
            usage.total_completion_tokens += meta.tokens.completion_tokens
            usage.total_tokens += meta.tokens.total_tokens
            usage.llm_calls += 1
        if meta.latency_ms is not None:
            usage.total_latency_ms += meta.latency_ms
    return usage
