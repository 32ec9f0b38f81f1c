"""Recording of flow notifications."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Tuple

from dataknobs_flow.core.node import ActivityId
from dataknobs_flow.core.operation import FlowOperation


class FlowEventKind(Enum):
    """Kind of notification sent by a flow instance."""

    ENTER_FROM_START = "enter_from_start"
    TRANSITION = "transition"
    REACH_END = "reach_end"


@dataclass(frozen=True)
class FlowEvent:
    """A single notification received by an operation."""

    kind: FlowEventKind
    from_id: Any | None = None
    to_id: Any | None = None

    @classmethod
    def enter_from_start(cls, to_id: Any) -> "FlowEvent":
        return cls(FlowEventKind.ENTER_FROM_START, to_id=to_id)

    @classmethod
    def transition(cls, from_id: Any, to_id: Any) -> "FlowEvent":
        return cls(FlowEventKind.TRANSITION, from_id=from_id, to_id=to_id)

    @classmethod
    def reach_end(cls, from_id: Any) -> "FlowEvent":
        return cls(FlowEventKind.REACH_END, from_id=from_id)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "from": self.from_id, "to": self.to_id}

    def __str__(self) -> str:
        if self.kind is FlowEventKind.ENTER_FROM_START:
            return f"START -> {self.to_id}"
        if self.kind is FlowEventKind.REACH_END:
            return f"{self.from_id} -> END"
        return f"{self.from_id} -> {self.to_id}"


class RecordingOperation(FlowOperation[ActivityId]):
    """Operation that records notifications and answers tests from a table.

    Args:
        conditions: Condition values keyed by condition identifier. The
            mapping is read on every test, so later updates are seen.
        default: Answer for conditions missing from ``conditions``.
    """

    def __init__(self, conditions: Mapping[ActivityId, bool] | None = None, default: bool = False):
        self.conditions = conditions if conditions is not None else {}
        self.default = default
        self.events: List[FlowEvent] = []
        self.tested: List[Tuple[ActivityId, bool]] = []

    def on_enter_from_start(self, to_id: ActivityId) -> None:
        self.events.append(FlowEvent.enter_from_start(to_id))

    def on_transition(self, from_id: ActivityId, to_id: ActivityId) -> None:
        self.events.append(FlowEvent.transition(from_id, to_id))

    def on_reach_end(self, from_id: ActivityId) -> None:
        self.events.append(FlowEvent.reach_end(from_id))

    def test(self, condition_id: ActivityId) -> bool:
        value = bool(self.conditions.get(condition_id, self.default))
        self.tested.append((condition_id, value))
        return value

    @property
    def path(self) -> List[Any]:
        """Activities visited, in order, according to the recorded events."""
        visited: List[Any] = []
        for event in self.events:
            if event.kind is FlowEventKind.ENTER_FROM_START:
                visited.append(event.to_id)
            elif event.kind is FlowEventKind.TRANSITION:
                if not visited or visited[-1] != event.from_id:
                    visited.append(event.from_id)
                visited.append(event.to_id)
            elif not visited or visited[-1] != event.from_id:
                visited.append(event.from_id)
        return visited

    def clear(self) -> None:
        """Forget recorded events and tests."""
        self.events.clear()
        self.tested.clear()
