"""Step-wise execution of a built activity flow.

A :class:`FlowInstance` is a cursor over a built :class:`~dataknobs_flow.core.builder.Flow`.
Each ``move()`` makes exactly one transition and sends at most one kind of
notification to the operation resolved for it:

- leaving the start marker: ``on_enter_from_start(to_id)``, resolved by
  the destination.
- arriving at the end marker: ``on_reach_end(from_id)``, resolved by the
  source.
- any other move: ``on_transition(from_id, to_id)``, resolved by the
  destination. If the destination itself leads unconditionally to the end
  marker, the cursor goes straight to the end and the same operation then
  receives ``on_reach_end(to_id)`` within the same ``move()``.

Condition chains are evaluated lazily in declaration order. A condition whose
identifier resolves to no operation counts as False. When the selected branch
is a nested chain it is evaluated in turn until an activity or the end
marker is selected.

Instances share the graph read-only; each one owns only its cursor. A single
instance must not be moved from two threads at once.
"""

import logging
from enum import Enum
from typing import Generic, TYPE_CHECKING

from dataknobs_flow.core.node import ActivityId, ActivityNode
from dataknobs_flow.core.resolver import OperationResolver

if TYPE_CHECKING:
    from dataknobs_flow.core.builder import Flow

logger = logging.getLogger(__name__)


class FlowPosition(Enum):
    """Where a flow instance's cursor is."""

    AT_START = "at_start"
    AT_ACTIVITY = "at_activity"
    AT_END = "at_end"


class FlowInstance(Generic[ActivityId]):
    """Cursor over a built flow.

    Instances are obtained from ``Flow.get_flow_instance()``.

    Args:
        flow: Built flow to walk.
        resolver: Resolution of identifiers to operations.
    """

    def __init__(self, flow: "Flow[ActivityId]", resolver: OperationResolver[ActivityId]):
        self._flow = flow
        self._resolver = resolver
        self._start = flow.start_node
        self._end = flow.end_node
        self._nodes = flow.nodes
        self._current: ActivityNode[ActivityId] = self._start

    @property
    def flow_name(self) -> str:
        """Name of the underlying flow."""
        return self._flow.name

    @property
    def resolver(self) -> OperationResolver[ActivityId]:
        """Operation resolution used by this instance."""
        return self._resolver

    @property
    def position(self) -> FlowPosition:
        """Current cursor position kind."""
        if self._current is self._start:
            return FlowPosition.AT_START
        if self._current is self._end:
            return FlowPosition.AT_END
        return FlowPosition.AT_ACTIVITY

    @property
    def current_activity(self) -> ActivityId | None:
        """Identifier of the current activity; None at start or end."""
        return self._current.activity_id

    def is_finished(self) -> bool:
        """True if the cursor is at the end marker."""
        return self._current is self._end

    def move(self) -> bool:
        """Make one transition.

        Returns:
            False if the flow was already finished (nothing happens),
            True otherwise.
        """
        if self.is_finished():
            return False

        source = self._current
        if source.is_conditional:
            target = self._select_branch(source)
            while target is not self._end and target.activity_id is None:
                target = self._select_branch(target)
        else:
            target = source.next_node

        self._current = target

        if source is self._start:
            logger.debug("Flow '%s': start -> %r", self.flow_name, target.activity_id)
            operation = self._resolver.resolve(target.activity_id)
            if operation is not None:
                operation.on_enter_from_start(target.activity_id)
        elif target is self._end:
            logger.debug("Flow '%s': %r -> end", self.flow_name, source.activity_id)
            operation = self._resolver.resolve(source.activity_id)
            if operation is not None:
                operation.on_reach_end(source.activity_id)
        else:
            if target.next_node is self._end:
                # Destination leads straight to the end; finish in this step
                self._current = self._end
            logger.debug(
                "Flow '%s': %r -> %r%s", self.flow_name, source.activity_id,
                target.activity_id, " -> end" if self.is_finished() else "",
            )
            operation = self._resolver.resolve(target.activity_id)
            if operation is not None:
                operation.on_transition(source.activity_id, target.activity_id)
                if self.is_finished():
                    operation.on_reach_end(target.activity_id)
            else:
                logger.debug("Flow '%s': no operation for %r", self.flow_name, target.activity_id)

        return True

    def reset(self) -> None:
        """Put the cursor back on the start marker without notifications."""
        self._current = self._start

    def reset_to(self, activity_id: ActivityId) -> bool:
        """Jump to a declared activity without notifications.

        No check is made that the jump makes sense for the flow.

        Args:
            activity_id: Activity to jump to.

        Returns:
            True if the activity exists and the cursor moved, else False.
        """
        node = self._nodes.get(activity_id)
        if node is None:
            return False
        self._current = node
        return True

    def run(self, max_steps: int | None = None) -> int:
        """Move until the flow finishes or ``max_steps`` moves were made.

        Args:
            max_steps: Upper bound on the number of moves, or None for no
                bound. A bound guards against flows that loop forever.

        Returns:
            Number of moves made.
        """
        steps = 0
        while max_steps is None or steps < max_steps:
            if not self.move():
                break
            steps += 1
        return steps

    def _select_branch(self, node: ActivityNode[ActivityId]) -> ActivityNode[ActivityId]:
        for condition_id, branch in zip(node.condition_ids, node.branch_nodes):
            operation = self._resolver.resolve(condition_id)
            if operation is not None and operation.test(condition_id):
                return branch
        return node.next_node

    def __repr__(self) -> str:
        return (
            f"FlowInstance({self.flow_name!r}, position={self.position.name}, "
            f"activity={self.current_activity!r})"
        )
