"""Name-resolution pipeline: resolver, disambiguation gate, run state and run manager."""

from src.pipeline.disambiguation_gate import DisambiguationGate, GateDecision, GateResult
from src.pipeline.event_bus import RunEventBus
from src.pipeline.resolver import ArtistResolver
from src.pipeline.run_manager import RunManager
from src.pipeline.run_state import RunState, RunStatus

__all__ = [
    "ArtistResolver",
    "DisambiguationGate",
    "GateDecision",
    "GateResult",
    "RunEventBus",
    "RunManager",
    "RunState",
    "RunStatus",
]
