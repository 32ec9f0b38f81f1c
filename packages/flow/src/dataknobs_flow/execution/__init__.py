"""Execution of built flows."""

from dataknobs_flow.execution.history import FlowEvent, FlowEventKind, RecordingOperation
from dataknobs_flow.execution.instance import FlowInstance, FlowPosition

__all__ = [
    "FlowEvent",
    "FlowEventKind",
    "FlowInstance",
    "FlowPosition",
    "RecordingOperation",
]
