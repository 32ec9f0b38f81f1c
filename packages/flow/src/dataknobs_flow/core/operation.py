"""Caller-implemented callbacks for flow execution.

A :class:`FlowOperation` is notified as a flow instance moves between
activities and answers the boolean tests of condition chains. One operation
can serve a whole flow, or operations can be mapped per activity and
condition identifier (see :class:`~dataknobs_flow.core.resolver.OperationResolver`).
"""

from abc import ABC, abstractmethod
from typing import Callable, Generic

from dataknobs_flow.core.node import ActivityId


class FlowOperation(ABC, Generic[ActivityId]):
    """Interface for flow callbacks."""

    @abstractmethod
    def on_enter_from_start(self, to_id: ActivityId) -> None:
        """Called when the flow leaves the start marker.

        Args:
            to_id: First activity reached.
        """
        pass

    @abstractmethod
    def on_transition(self, from_id: ActivityId, to_id: ActivityId) -> None:
        """Called on a move from one activity to another.

        Args:
            from_id: Activity the flow left.
            to_id: Activity the flow reached.
        """
        pass

    @abstractmethod
    def on_reach_end(self, from_id: ActivityId) -> None:
        """Called when the flow reaches the end marker.

        Args:
            from_id: Last activity before the end.
        """
        pass

    @abstractmethod
    def test(self, condition_id: ActivityId) -> bool:
        """Evaluate a condition of a condition chain.

        Args:
            condition_id: Condition to evaluate.

        Returns:
            True to take the branch guarded by this condition.
        """
        pass


class CallbackOperation(FlowOperation[ActivityId]):
    """Operation built from plain callables.

    Any callable left out is a no-op; a missing ``test`` answers False.

    Example:
        ```python
        visited = []
        operation = CallbackOperation(
            on_transition=lambda src, dst: visited.append(dst),
            test=lambda condition: condition in enabled,
        )
        ```
    """

    def __init__(
        self,
        on_enter_from_start: Callable[[ActivityId], None] | None = None,
        on_transition: Callable[[ActivityId, ActivityId], None] | None = None,
        on_reach_end: Callable[[ActivityId], None] | None = None,
        test: Callable[[ActivityId], bool] | None = None,
    ):
        self._on_enter_from_start = on_enter_from_start
        self._on_transition = on_transition
        self._on_reach_end = on_reach_end
        self._test = test

    def on_enter_from_start(self, to_id: ActivityId) -> None:
        if self._on_enter_from_start is not None:
            self._on_enter_from_start(to_id)

    def on_transition(self, from_id: ActivityId, to_id: ActivityId) -> None:
        if self._on_transition is not None:
            self._on_transition(from_id, to_id)

    def on_reach_end(self, from_id: ActivityId) -> None:
        if self._on_reach_end is not None:
            self._on_reach_end(from_id)

    def test(self, condition_id: ActivityId) -> bool:
        if self._test is None:
            return False
        return bool(self._test(condition_id))
