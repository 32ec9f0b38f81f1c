"""Exception hierarchy for dataknobs_flow.

Every error raised by the flow builder, the declarative configuration layer
and the CLI derives from :class:`FlowError`. Errors carry an optional context
dictionary with structured data about the failure, so callers can inspect
*what* went wrong without parsing the message.

Example:
    ```python
    from dataknobs_flow import Flow
    from dataknobs_flow.exceptions import BuildError

    flow = Flow.create("orders")
    try:
        flow.to("validate")     # to() before from_start()
    except BuildError as e:
        print(e.phase)          # BuildPhase.CREATE
        print(e.context)        # {'phase': 'create', 'activity_id': 'validate'}
    ```
"""

from typing import Any, Dict, Hashable, TYPE_CHECKING

if TYPE_CHECKING:
    from dataknobs_flow.core.builder import BuildPhase


class FlowError(Exception):
    """Base exception for the flow package.

    Attributes:
        context: Dictionary containing contextual information about the error
        details: Alias for context

    Args:
        message: Human-readable error message
        context: Optional dictionary with error context
        details: Alternative to context (takes precedence when both are given)
    """

    def __init__(
        self,
        message: str,
        context: Dict[str, Any] | None = None,
        details: Dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.context = details or context or {}
        self.details = self.context


class BuildError(FlowError):
    """Raised when the flow builder protocol is violated.

    Covers a missing or blank argument, a method called in the wrong build
    phase, redeclaration of a finished activity, and the whole-graph checks
    run by ``build()`` (unclosed conditions, missing start edge, missing end
    reference, dangling activity).

    Attributes:
        phase: Build phase the builder was in when the call was rejected.
        activity_id: Offending activity or condition identifier, if any.
    """

    def __init__(
        self,
        message: str,
        phase: "BuildPhase | None" = None,
        activity_id: Hashable | None = None,
        details: Dict[str, Any] | None = None,
    ):
        context: Dict[str, Any] = {}
        if phase is not None:
            context["phase"] = phase.value
        if activity_id is not None:
            context["activity_id"] = activity_id
        if details:
            context.update(details)
        super().__init__(message, context=context)
        self.phase = phase
        self.activity_id = activity_id


class FlowConfigurationError(FlowError):
    """Raised when a declarative flow configuration cannot be loaded."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        details: Dict[str, Any] | None = None,
    ):
        if source:
            message = f"{source}: {message}"
        context = dict(details or {})
        if source:
            context["source"] = source
        super().__init__(message, context=context)
        self.source = source


__all__ = [
    "FlowError",
    "BuildError",
    "FlowConfigurationError",
]
