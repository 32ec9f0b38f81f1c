"""DataKnobs activity flow framework.

Declare a directed graph of activities with unconditional links and ordered,
nestable condition chains through a fluent builder, then walk it one
transition at a time while callbacks are notified of every move.

Example:
    ```python
    from dataknobs_flow import Flow, RecordingOperation

    flow = Flow.create("review")
    flow.from_start().to("draft")
    flow.from_activity("draft").only_if("approved").to("publish").otherwise("draft")
    flow.from_activity("publish").to_end().build()

    operation = RecordingOperation({"approved": True})
    instance = flow.get_flow_instance(operation)
    instance.run()
    ```
"""

__version__ = "0.1.0"

from .core.builder import BuildPhase, Flow, create_flow
from .core.node import ActivityNode
from .core.operation import CallbackOperation, FlowOperation
from .core.render import render_mermaid, render_text
from .core.resolver import OperationResolver
from .execution.history import FlowEvent, FlowEventKind, RecordingOperation
from .execution.instance import FlowInstance, FlowPosition
from .exceptions import BuildError, FlowConfigurationError, FlowError

# Configuration
from .config.loader import FlowConfigLoader
from .config.builder import build_flow, load_flow

__all__ = [
    "__version__",
    # Core
    "ActivityNode",
    "BuildPhase",
    "Flow",
    "create_flow",
    "FlowOperation",
    "CallbackOperation",
    "OperationResolver",
    "render_text",
    "render_mermaid",
    # Execution
    "FlowInstance",
    "FlowPosition",
    "FlowEvent",
    "FlowEventKind",
    "RecordingOperation",
    # Errors
    "FlowError",
    "BuildError",
    "FlowConfigurationError",
    # Config
    "FlowConfigLoader",
    "build_flow",
    "load_flow",
]
