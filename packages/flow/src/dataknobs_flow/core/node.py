"""Activity node record shared by the builder, the renderers and the executor."""

from dataclasses import dataclass
from typing import Generic, Hashable, List, TypeVar

ActivityId = TypeVar("ActivityId", bound=Hashable)


@dataclass(eq=False, repr=False)
class ActivityNode(Generic[ActivityId]):
    """One vertex of an activity graph.

    The kind of a node follows from its content rather than from a tag:

    - start and end markers have no identifier; the builder holds them as
      ``Flow.start_node`` and ``Flow.end_node``.
    - activities have an identifier and may carry a condition chain.
    - anonymous condition nodes have no identifier but do carry a chain;
      they are only ever the branch target of an enclosing chain.

    Attributes:
        activity_id: Caller identifier, ``None`` for markers and anonymous
            condition nodes.
        next_node: Unconditional destination. For a conditional node this
            is the ``otherwise`` destination.
        condition_ids: Condition identifiers in declaration order, or
            ``None`` when the node has no chain.
        branch_nodes: Destination per condition, aligned with
            ``condition_ids``. While a chain is being declared it can be one
            shorter than ``condition_ids``.
    """

    activity_id: ActivityId | None = None
    next_node: "ActivityNode[ActivityId] | None" = None
    condition_ids: List[ActivityId] | None = None
    branch_nodes: "List[ActivityNode[ActivityId]] | None" = None

    @property
    def is_conditional(self) -> bool:
        """True if the node carries a condition chain."""
        return self.condition_ids is not None

    @property
    def is_anonymous(self) -> bool:
        """True for start/end markers and nested condition nodes."""
        return self.activity_id is None

    def open_chain(self, condition_id: ActivityId) -> None:
        """Start a condition chain on this node with its first condition."""
        self.condition_ids = [condition_id]
        self.branch_nodes = []

    def __repr__(self) -> str:
        if self.activity_id is not None:
            return f"ActivityNode({self.activity_id!r})"
        if self.is_conditional:
            return f"ActivityNode(<condition {self.condition_ids!r}>)"
        return "ActivityNode(<marker>)"
