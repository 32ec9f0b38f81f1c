"""Fluent builder for activity flows.

A flow is a directed graph of named activities bounded by a start marker and
an end marker. Activities are linked either unconditionally or through
ordered condition chains (``only_if`` / ``else_if`` / ``otherwise``), which can
nest arbitrarily. Once built, the graph can hand out any number of
independent :class:`~dataknobs_flow.execution.instance.FlowInstance` cursors.

Build Protocol:
    The builder is itself a small state machine. Every method checks the
    current :class:`BuildPhase` and fails fast with
    :class:`~dataknobs_flow.exceptions.BuildError` when called out of order.
    Legal successions:

    =============== ===========================================================
    Phase           Allowed next calls
    =============== ===========================================================
    CREATE          ``from_start``
    FROM            ``to``, ``only_if``, ``to_end``
    TO              ``build``, ``from_activity``, ``to``, ``only_if``,
                    ``else_if``, ``otherwise``, ``to_end``
    ONLY_IF         ``to``, ``only_if`` (nested chain), ``to_end``
    ELSE_IF         ``to``, ``only_if`` (nested chain), ``to_end``
    OTHERWISE       same as TO
    OTHERWISE_END   ``to_end``
    END             ``build``, ``from_activity``, ``else_if``, ``otherwise``
    BUILT           ``get_flow_instance`` only
    =============== ===========================================================

    ``else_if`` and ``otherwise`` additionally require an open chain.

Whole-graph Checks:
    ``build()`` verifies what no single call can see: every condition chain
    was closed, the start marker leads somewhere, the end marker is
    referenced at least once and every declared activity has an outgoing
    edge. Cycles are not detected; a loop that never reaches the end is the
    caller's responsibility.

Example:
    ```python
    flow = Flow.create("MyFlow")

    flow.from_start().to(1)
    (flow.from_activity(1)
        .only_if(100)
            .only_if(200)
                .to(2)
            .else_if(300)
                .only_if(3000)
                    .to(3)
                .otherwise().to_end()
            .otherwise(4)
        .else_if(400)
            .to(5)
        .otherwise().to_end())
    flow.from_activity(2).to(3).to(4).to(5).to_end().build()

    instance = flow.get_flow_instance(operations, default_operation)
    while instance.move():
        pass
    ```
"""

import logging
from collections import deque
from enum import Enum
from types import MappingProxyType
from typing import Generic, List, Mapping, TYPE_CHECKING

from dataknobs_flow.core.node import ActivityId, ActivityNode
from dataknobs_flow.core.operation import FlowOperation
from dataknobs_flow.core.resolver import OperationResolver
from dataknobs_flow.exceptions import BuildError

if TYPE_CHECKING:
    from dataknobs_flow.execution.instance import FlowInstance

logger = logging.getLogger(__name__)


class BuildPhase(Enum):
    """Phase of flow construction, named after the last accepted call.

    Attributes:
        CREATE: Builder created; only ``from_start()`` may follow.
        FROM: ``from_start()`` or ``from_activity()`` was called.
        TO: ``to()`` was called.
        END: ``to_end()`` was called.
        ONLY_IF: ``only_if()`` opened a chain; a branch target is expected.
        ELSE_IF: ``else_if()`` added a condition; a branch target is expected.
        OTHERWISE: ``otherwise(id)`` closed a chain.
        OTHERWISE_END: ``otherwise()`` closed a chain; ``to_end()`` must follow.
        BUILT: ``build()`` succeeded; the graph is frozen.
    """

    CREATE = "create"
    FROM = "from"
    TO = "to"
    END = "end"
    ONLY_IF = "only_if"
    ELSE_IF = "else_if"
    OTHERWISE = "otherwise"
    OTHERWISE_END = "otherwise_end"
    BUILT = "built"


_LINK_PHASES = frozenset({BuildPhase.FROM, BuildPhase.TO, BuildPhase.OTHERWISE})
_BRANCH_PHASES = frozenset({BuildPhase.ONLY_IF, BuildPhase.ELSE_IF})
_CLOSED_PHASES = frozenset({BuildPhase.TO, BuildPhase.END, BuildPhase.OTHERWISE})


class Flow(Generic[ActivityId]):
    """Activity flow builder and, once built, the immutable flow graph.

    Args:
        name: Flow name, used in diagnostics. Must not be blank.

    Raises:
        BuildError: If ``name`` is None or blank.
    """

    def __init__(self, name: str):
        if name is None or not str(name).strip():
            raise BuildError("Flow name cannot be None or empty")

        self._name = str(name).strip()
        self._start: ActivityNode[ActivityId] | None = None
        self._end: ActivityNode[ActivityId] | None = None
        self._nodes: dict[ActivityId, ActivityNode[ActivityId]] = {}

        # Build-only state
        self._phase = BuildPhase.CREATE
        self._open_chains: List[ActivityNode[ActivityId]] = []
        self._end_referenced = False
        self._from_node: ActivityNode[ActivityId] | None = None

    @classmethod
    def create(cls, name: str) -> "Flow[ActivityId]":
        """Create an empty flow builder in phase ``CREATE``.

        Args:
            name: Flow name.

        Returns:
            New flow builder; ``from_start()`` must be called next.
        """
        return cls(name)

    # -- graph accessors ---------------------------------------------------

    @property
    def name(self) -> str:
        """The flow name."""
        return self._name

    @property
    def phase(self) -> BuildPhase:
        """Current build phase."""
        return self._phase

    @property
    def is_built(self) -> bool:
        """True once ``build()`` succeeded."""
        return self._phase is BuildPhase.BUILT

    @property
    def start_node(self) -> ActivityNode[ActivityId] | None:
        """Start marker, or None before ``from_start()``."""
        return self._start

    @property
    def end_node(self) -> ActivityNode[ActivityId] | None:
        """End marker, or None before ``from_start()``."""
        return self._end

    @property
    def nodes(self) -> Mapping[ActivityId, ActivityNode[ActivityId]]:
        """Read-only view of the activity table keyed by identifier."""
        return MappingProxyType(self._nodes)

    @property
    def activity_ids(self) -> List[ActivityId]:
        """Declared activity identifiers in declaration order."""
        return list(self._nodes)

    @property
    def condition_ids(self) -> List[ActivityId]:
        """Condition identifiers used anywhere in the flow, in discovery order."""
        found: dict[ActivityId, None] = {}
        pending = deque(node for node in (self._start, *self._nodes.values()) if node is not None)
        seen = set()
        while pending:
            node = pending.popleft()
            if node in seen or not node.is_conditional:
                continue
            seen.add(node)
            for condition_id in node.condition_ids:
                found.setdefault(condition_id, None)
            pending.extend(
                branch for branch in node.branch_nodes
                if branch is not self._end and branch.activity_id is None
            )
        return list(found)

    # -- build protocol ----------------------------------------------------

    def from_start(self) -> "Flow[ActivityId]":
        """Create the start and end markers and open the start marker.

        Returns:
            This builder.

        Raises:
            BuildError: If called in any phase other than ``CREATE``.
        """
        if self._phase is not BuildPhase.CREATE:
            raise self._phase_error("from_start() can be called only right after create()")

        self._start = ActivityNode()
        self._end = ActivityNode()
        self._from_node = self._start
        self._phase = BuildPhase.FROM
        return self

    def from_activity(self, activity_id: ActivityId) -> "Flow[ActivityId]":
        """Open an activity so its outgoing edge can be declared.

        The activity may already exist as an unresolved ``to()`` target, but
        an activity that already has an outgoing edge cannot be redeclared.

        Args:
            activity_id: Activity identifier.

        Returns:
            This builder.

        Raises:
            BuildError: If ``activity_id`` is None, the phase is not one of
                ``TO``, ``END``, ``OTHERWISE``, or the activity already has
                an outgoing edge.
        """
        if activity_id is None:
            raise BuildError("Activity id cannot be None in from_activity()", phase=self._phase)
        if self._phase not in _CLOSED_PHASES:
            raise self._phase_error(
                "from_activity() can be called only after to(), to_end() or otherwise(id)",
                activity_id,
            )

        node = self._nodes.get(activity_id)
        if node is not None and node.next_node is not None:
            raise BuildError(
                f"Activity {activity_id!r} passed to from_activity() already exists "
                f"and is connected to {_describe(node.next_node, self._end)}",
                phase=self._phase,
                activity_id=activity_id,
            )
        if node is None:
            node = self._add_node(activity_id)

        self._from_node = node
        self._phase = BuildPhase.FROM
        return self

    def to(self, activity_id: ActivityId) -> "Flow[ActivityId]":
        """Link the open node, or the open chain's next branch, to an activity.

        In phases ``FROM``, ``TO`` and ``OTHERWISE`` the open node's
        unconditional next becomes the target. In phases ``ONLY_IF`` and
        ``ELSE_IF`` the target becomes the destination of the condition just
        declared. Either way the target becomes the open node, so ``to()``
        calls chain.

        Args:
            activity_id: Target activity identifier.

        Returns:
            This builder.

        Raises:
            BuildError: If ``activity_id`` is None or the phase is invalid.
        """
        if activity_id is None:
            raise BuildError("Activity id cannot be None in to()", phase=self._phase)

        if self._phase in _LINK_PHASES:
            target = self._get_or_add_node(activity_id)
            self._from_node.next_node = target
        elif self._phase in _BRANCH_PHASES:
            target = self._get_or_add_node(activity_id)
            self._open_chains[-1].branch_nodes.append(target)
        else:
            raise self._phase_error(
                "to() can be called only after from_activity(), to(), only_if(), "
                "else_if() or otherwise(id)",
                activity_id,
            )

        self._from_node = target
        self._phase = BuildPhase.TO
        return self

    def only_if(self, condition_id: ActivityId) -> "Flow[ActivityId]":
        """Open a condition chain.

        After ``from_activity()``, ``to()`` or ``otherwise(id)`` the chain is
        attached to the open node. Directly after ``only_if()`` or
        ``else_if()`` the chain is nested: it becomes the branch target of
        the enclosing chain, so that branch is itself conditional.

        Args:
            condition_id: First condition of the chain.

        Returns:
            This builder.

        Raises:
            BuildError: If ``condition_id`` is None or the phase is invalid.
        """
        if condition_id is None:
            raise BuildError("Condition id cannot be None in only_if()", phase=self._phase)

        if self._phase in _LINK_PHASES:
            chain_node = self._from_node
        elif self._phase in _BRANCH_PHASES:
            chain_node = ActivityNode()
            self._open_chains[-1].branch_nodes.append(chain_node)
        else:
            raise self._phase_error(
                "only_if() can be called only after from_activity(), to(), only_if(), "
                "else_if() or otherwise(id)",
                condition_id,
            )

        chain_node.open_chain(condition_id)
        self._open_chains.append(chain_node)
        self._phase = BuildPhase.ONLY_IF
        return self

    def else_if(self, condition_id: ActivityId) -> "Flow[ActivityId]":
        """Add another condition to the innermost open chain.

        Args:
            condition_id: Condition evaluated when all previous ones failed.

        Returns:
            This builder.

        Raises:
            BuildError: If ``condition_id`` is None, no chain is open, or the
                previous branch has no target yet.
        """
        if condition_id is None:
            raise BuildError("Condition id cannot be None in else_if()", phase=self._phase)
        if not self._open_chains or self._phase not in _CLOSED_PHASES:
            raise self._phase_error(
                "else_if() can be called only after to(), to_end() or otherwise() "
                "inside an open only_if() chain",
                condition_id,
            )

        self._open_chains[-1].condition_ids.append(condition_id)
        self._phase = BuildPhase.ELSE_IF
        return self

    def otherwise(self, activity_id: ActivityId | None = None) -> "Flow[ActivityId]":
        """Close the innermost open chain with its fallback destination.

        Without an argument the chain falls back to the end marker and
        ``to_end()`` must follow. With an activity the chain falls back to
        that activity, which becomes the open node.

        Args:
            activity_id: Fallback activity, or None for the end marker.

        Returns:
            This builder.

        Raises:
            BuildError: If no chain is open or the phase is invalid.
        """
        if not self._open_chains or self._phase not in _CLOSED_PHASES:
            raise self._phase_error(
                "otherwise() can be called only after to(), to_end() or otherwise() "
                "inside an open only_if() chain",
                activity_id,
            )

        chain_node = self._open_chains.pop()
        if activity_id is None:
            chain_node.next_node = self._end
            self._phase = BuildPhase.OTHERWISE_END
        else:
            target = self._get_or_add_node(activity_id)
            chain_node.next_node = target
            self._from_node = target
            self._phase = BuildPhase.OTHERWISE
        return self

    def to_end(self) -> "Flow[ActivityId]":
        """Link the open node, or the open chain's next branch, to the end marker.

        Directly after ``otherwise()`` this only confirms the fallback that
        was already pointed at the end marker.

        Returns:
            This builder.

        Raises:
            BuildError: If the phase is invalid.
        """
        if self._phase is BuildPhase.OTHERWISE_END:
            pass
        elif self._phase in _LINK_PHASES:
            self._from_node.next_node = self._end
        elif self._phase in _BRANCH_PHASES:
            self._open_chains[-1].branch_nodes.append(self._end)
        else:
            raise self._phase_error(
                "to_end() can be called only after from_activity(), to(), only_if(), "
                "else_if() or otherwise()"
            )

        self._from_node = self._end
        self._end_referenced = True
        self._phase = BuildPhase.END
        return self

    def build(self) -> "Flow[ActivityId]":
        """Validate the whole graph and freeze the builder.

        Returns:
            This flow, now ready for ``get_flow_instance()``.

        Raises:
            BuildError: If called in the wrong phase or the graph has an open
                condition chain, no start edge, no reference to the end
                marker, or an activity without an outgoing edge.
        """
        if self._phase not in _CLOSED_PHASES:
            raise self._phase_error(
                "build() can be called only after to(), to_end() or otherwise(id)"
            )

        if self._open_chains:
            innermost = self._open_chains[-1]
            raise BuildError(
                f"Not all conditions were closed; {len(self._open_chains)} chain(s) "
                f"still open, innermost has conditions {innermost.condition_ids!r}",
                phase=self._phase,
                activity_id=innermost.activity_id,
                details={"open_chains": len(self._open_chains)},
            )
        if self._start.next_node is None:
            raise BuildError("Start does not point to any activity", phase=self._phase)
        if not self._end_referenced:
            raise BuildError("No activity in the flow goes to the end", phase=self._phase)
        for activity_id, node in self._nodes.items():
            if node.next_node is None:
                raise BuildError(
                    f"Activity {activity_id!r} has no next activity to go to",
                    phase=self._phase,
                    activity_id=activity_id,
                )

        self._from_node = None
        self._phase = BuildPhase.BUILT
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Built flow '%s' with %d activities:\n%s",
                         self._name, len(self._nodes), self)
        return self

    # -- instances -----------------------------------------------------------

    def get_flow_instance(
        self,
        operations: "FlowOperation[ActivityId] | Mapping[ActivityId, FlowOperation[ActivityId]]",
        default_operation: FlowOperation[ActivityId] | None = None,
    ) -> "FlowInstance[ActivityId]":
        """Create a new executor over this flow.

        Three binding modes are supported:

        - ``get_flow_instance(operation)``: one operation for every activity
          and condition.
        - ``get_flow_instance(operation_map)``: exact-match lookup only;
          unmapped activities produce no notification and unmapped
          conditions evaluate to False.
        - ``get_flow_instance(operation_map, default_operation)``: lookup
          with fallback to the default operation.

        Args:
            operations: Single operation, or a mapping from activity and
                condition identifiers to operations.
            default_operation: Fallback operation when a mapping is given.

        Returns:
            New flow instance positioned at the start marker.

        Raises:
            BuildError: If ``operations`` is None, a mapping is passed as the
                default operation, or the flow is not built yet.
        """
        if operations is None:
            raise BuildError("Operation map or default operation cannot be None", phase=self._phase)

        if isinstance(operations, FlowOperation):
            if default_operation is not None:
                raise BuildError(
                    "A default operation cannot be combined with another default operation; "
                    "pass an operation map first",
                    phase=self._phase,
                )
            resolver = OperationResolver.for_default(operations)
        elif isinstance(operations, Mapping):
            if default_operation is None:
                resolver = OperationResolver.for_map(operations)
            elif isinstance(default_operation, FlowOperation):
                resolver = OperationResolver.for_map_with_default(operations, default_operation)
            else:
                raise BuildError(
                    f"Default operation must be a FlowOperation, got {type(default_operation).__name__}",
                    phase=self._phase,
                )
        else:
            raise BuildError(
                f"Expected a FlowOperation or a mapping of operations, got {type(operations).__name__}",
                phase=self._phase,
            )

        if self._phase is not BuildPhase.BUILT:
            raise self._phase_error("Flow must be built before requesting a flow instance")

        from dataknobs_flow.execution.instance import FlowInstance
        return FlowInstance(self, resolver)

    # -- helpers -------------------------------------------------------------

    def _add_node(self, activity_id: ActivityId) -> ActivityNode[ActivityId]:
        node = ActivityNode(activity_id)
        self._nodes[activity_id] = node
        return node

    def _get_or_add_node(self, activity_id: ActivityId) -> ActivityNode[ActivityId]:
        node = self._nodes.get(activity_id)
        if node is None:
            node = self._add_node(activity_id)
        return node

    def _phase_error(self, message: str, activity_id: ActivityId | None = None) -> BuildError:
        return BuildError(
            f"Wrong method invocation in flow '{self._name}': {message}. "
            f"Found phase: {self._phase.name}",
            phase=self._phase,
            activity_id=activity_id,
        )

    def __str__(self) -> str:
        from dataknobs_flow.core.render import render_text
        return render_text(self)

    def __repr__(self) -> str:
        return f"Flow({self._name!r}, phase={self._phase.name}, activities={len(self._nodes)})"


def create_flow(name: str) -> Flow:
    """Create an empty flow builder.

    Args:
        name: Flow name.

    Returns:
        New :class:`Flow` in phase ``CREATE``.
    """
    return Flow.create(name)


def _describe(node: ActivityNode, end: ActivityNode | None) -> str:
    if node is end:
        return "END"
    if node.activity_id is None:
        return "a nested condition"
    return repr(node.activity_id)
