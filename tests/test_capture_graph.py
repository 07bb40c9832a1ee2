"""Tests for the capture graph wiring and step guard."""

import pytest

from app.core.schemas_captures import CaptureCreate
from app.graphs.capture_graph import MAX_STEPS, CaptureState, build_capture_graph, check_max_steps


def _state(step_count: int = 0) -> CaptureState:
    return CaptureState(
        user_id="user-1",
        request=CaptureCreate(type="note", content="hello"),
        step_count=step_count,
    )


class TestCheckMaxSteps:
    def test_increments(self):
        assert check_max_steps(_state(2)) == 3

    def test_raises_past_limit(self):
        with pytest.raises(RuntimeError, match="Exceeded max steps"):
            check_max_steps(_state(MAX_STEPS))


@pytest.mark.asyncio
async def test_nodes_run_in_order():
    order = []

    def analyze(state):
        order.append("analyze")
        return {"step_count": check_max_steps(state), "llm_status": "disabled"}

    async def persist(state):
        order.append("persist")
        return {"step_count": check_max_steps(state)}

    def dispatch(state):
        order.append("dispatch")
        return {"step_count": check_max_steps(state), "side_effects": {"stats": True}}

    graph = build_capture_graph(analyze, persist, dispatch)
    final = await graph.ainvoke(_state())

    assert order == ["analyze", "persist", "dispatch"]
    assert final["step_count"] == 3
    assert final["llm_status"] == "disabled"
    assert final["side_effects"] == {"stats": True}
