"""Flow graph construction, operations and rendering."""

from dataknobs_flow.core.builder import BuildPhase, Flow, create_flow
from dataknobs_flow.core.node import ActivityNode
from dataknobs_flow.core.operation import CallbackOperation, FlowOperation
from dataknobs_flow.core.render import render_mermaid, render_text
from dataknobs_flow.core.resolver import OperationResolver

__all__ = [
    "ActivityNode",
    "BuildPhase",
    "CallbackOperation",
    "Flow",
    "FlowOperation",
    "OperationResolver",
    "create_flow",
    "render_mermaid",
    "render_text",
]
