"""Human-readable renderings of a flow graph.

Both renderers walk the graph with an explicit work queue and a visited set,
so cyclic flows and deeply nested condition chains render without recursion.
The layouts are meant for people; they are not a stable exchange format.
"""

from collections import deque
from typing import Deque, Dict, List, Set, Tuple, TYPE_CHECKING

from dataknobs_flow.core.node import ActivityNode

if TYPE_CHECKING:
    from dataknobs_flow.core.builder import Flow

INDENT = "  "


def render_text(flow: "Flow") -> str:
    """Render a flow as indented text.

    Example output::

        START->1
        1->
          if[100]->
            if[200]->2
            otherwise->4
          otherwise->END
        2->4
        4->END

    Args:
        flow: Flow to render, built or not. Links not declared yet show
            as ``?``.

    Returns:
        Multi-line text, one block per activity.
    """
    start, end = flow.start_node, flow.end_node
    if start is None:
        return ""

    lines: List[str] = []
    visited: Set[ActivityNode] = {start}
    pending: Deque[ActivityNode] = deque([start])

    def label(node: ActivityNode | None) -> str:
        if node is None:
            return "?"
        if node is start:
            return "START"
        if node is end:
            return "END"
        if node.activity_id is None:
            return "<condition>"
        return str(node.activity_id)

    def enqueue(node: ActivityNode | None) -> None:
        if node is None or node is end or node.activity_id is None:
            return
        if node not in visited:
            visited.add(node)
            pending.append(node)

    def drain() -> None:
        while pending:
            node = pending.popleft()
            if not node.is_conditional:
                lines.append(f"{label(node)}->{label(node.next_node)}")
                enqueue(node.next_node)
                continue

            lines.append(f"{label(node)}->")
            tasks: List[Tuple] = [("chain", node, 1)]
            while tasks:
                task = tasks.pop()
                if task[0] == "line":
                    lines.append(task[1])
                    continue
                _, chain, depth = task
                indent = INDENT * depth
                expanded: List[Tuple] = []
                for condition_id, branch in zip(chain.condition_ids, chain.branch_nodes):
                    if branch is not end and branch.activity_id is None:
                        expanded.append(("line", f"{indent}if[{condition_id}]->"))
                        expanded.append(("chain", branch, depth + 1))
                    else:
                        expanded.append(("line", f"{indent}if[{condition_id}]->{label(branch)}"))
                        enqueue(branch)
                for condition_id in chain.condition_ids[len(chain.branch_nodes):]:
                    expanded.append(("line", f"{indent}if[{condition_id}]->?"))
                expanded.append(("line", f"{indent}otherwise->{label(chain.next_node)}"))
                enqueue(chain.next_node)
                tasks.extend(reversed(expanded))

    drain()
    # Activities not reachable from the start marker still get a block
    for node in flow.nodes.values():
        enqueue(node)
        drain()

    return "\n".join(lines) + "\n"


def render_mermaid(flow: "Flow", direction: str = "TD") -> str:
    """Render a flow as a Mermaid flowchart.

    Unconditional links are solid arrows, condition branches are labeled
    with their condition id, and ``otherwise`` fallbacks are dotted.
    Nested condition chains show as ``?`` decision nodes.

    Args:
        flow: Flow to render.
        direction: Mermaid direction (``TD``, ``LR``, ...).

    Returns:
        Mermaid source text.
    """
    lines = [f"flowchart {direction}"]
    start, end = flow.start_node, flow.end_node
    if start is None:
        return lines[0] + "\n"

    ids: Dict[ActivityNode, str] = {}
    pending: Deque[ActivityNode] = deque()
    counters = {"activity": 0, "condition": 0}

    def node_ref(node: ActivityNode) -> str:
        if node in ids:
            return ids[node]
        if node is start:
            ref, decl = "flow_start", "flow_start([START])"
        elif node is end:
            ref, decl = "flow_end", "flow_end((END))"
        elif node.activity_id is None:
            counters["condition"] += 1
            ref = f"c{counters['condition']}"
            decl = f'{ref}{{"?"}}'
        else:
            counters["activity"] += 1
            ref = f"a{counters['activity']}"
            decl = f'{ref}["{_escape(node.activity_id)}"]'
        ids[node] = ref
        lines.append(f"    {decl}")
        if node is not end:
            pending.append(node)
        return ref

    def drain() -> None:
        while pending:
            node = pending.popleft()
            source = ids[node]
            if node.is_conditional:
                for condition_id, branch in zip(node.condition_ids, node.branch_nodes):
                    lines.append(f"    {source} -->|{_escape(condition_id)}| {node_ref(branch)}")
                if node.next_node is not None:
                    lines.append(f"    {source} -.->|otherwise| {node_ref(node.next_node)}")
            elif node.next_node is not None:
                lines.append(f"    {source} --> {node_ref(node.next_node)}")

    node_ref(start)
    drain()
    for node in flow.nodes.values():
        node_ref(node)
        drain()

    return "\n".join(lines) + "\n"


def _escape(value) -> str:
    return str(value).replace('"', "#quot;").replace("|", "#124;")
