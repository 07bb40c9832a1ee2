"""Capture ingestion LangGraph: analyze -> persist -> dispatch."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from langgraph.graph import END, StateGraph

from app.core.logging import get_logger
from app.core.schemas_captures import Capture, CaptureCreate, ProcessedContent

logger = get_logger(__name__)

MAX_STEPS = 5

NodeFn = Callable[["CaptureState"], dict[str, Any] | Awaitable[dict[str, Any]]]


@dataclass
class CaptureState:
    """State for one capture moving through the pipeline."""

    # Input fields
    user_id: str
    request: CaptureCreate

    # Processing state
    step_count: int = 0
    processed: ProcessedContent | None = None
    llm_status: str = ""

    # Output
    capture: Capture | None = None
    side_effects: dict[str, bool] = field(default_factory=dict)


def check_max_steps(state: CaptureState) -> int:
    """Return the incremented step count, raising if the graph loops."""
    step_count = state.step_count + 1
    if step_count > MAX_STEPS:
        raise RuntimeError(f"Exceeded max steps ({MAX_STEPS})")
    return step_count


def build_capture_graph(analyze: NodeFn, persist: NodeFn, dispatch: NodeFn):
    """
    Wire the capture nodes into a compiled graph.

    Nodes are supplied by the caller so they can close over injected
    services. Side-effect dispatch runs last: a crash before it loses the
    side effects but never the persisted capture.
    """
    graph = StateGraph(CaptureState)

    graph.add_node("analyze", analyze)
    graph.add_node("persist", persist)
    graph.add_node("dispatch", dispatch)

    graph.set_entry_point("analyze")
    graph.add_edge("analyze", "persist")
    graph.add_edge("persist", "dispatch")
    graph.add_edge("dispatch", END)

    return graph.compile()
