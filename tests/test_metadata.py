from kine_agent.metadata import aggregate_usage
from kine_agent.models import Step, StepKind, StepMeta, TokenUsage


def _step(meta=None):
    return Step(kind=StepKind.TOOL, action="x", result="ok", meta=meta)


def test_aggregate_sums_tokens_and_latency():
    steps = [
        _step(),
        _step(StepMeta(tokens=TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15), latency_ms=100)),
        _step(StepMeta(tokens=TokenUsage(prompt_tokens=20, completion_tokens=7, total_tokens=27), latency_ms=50.5)),
    ]
    usage = aggregate_usage(steps)
    assert usage.total_prompt_tokens == 30
    assert usage.total_completion_tokens == 12
    assert usage.total_tokens == 42
    assert usage.total_latency_ms == 150.5
    assert usage.llm_calls == 2


def test_latency_without_tokens_is_not_a_call():
    usage = aggregate_usage([_step(StepMeta(latency_ms=40))])
    assert usage.llm_calls == 0
    assert usage.total_tokens == 0
    assert usage.total_latency_ms == 40


def test_aggregate_is_a_pure_fold():
    steps = [_step(StepMeta(tokens=TokenUsage(prompt_tokens=1, completion_tokens=1, total_tokens=2), latency_ms=3))]
    assert aggregate_usage(steps) == aggregate_usage(steps)


def test_aggregate_of_nothing():
    usage = aggregate_usage([])
    assert usage.llm_calls == 0
    assert usage.total_latency_ms == 0
