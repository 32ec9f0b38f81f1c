"""Resolution of identifiers to flow operations."""

from types import MappingProxyType
from typing import Generic, Mapping

from dataknobs_flow.core.node import ActivityId
from dataknobs_flow.core.operation import FlowOperation


class OperationResolver(Generic[ActivityId]):
    """Maps activity and condition identifiers to operations.

    Lookup goes to the operation map first, then to the default operation.
    A None identifier (start and end markers) never resolves.

    Args:
        operation_map: Exact-match table of operations, or None.
        default_operation: Fallback operation, or None.
    """

    def __init__(
        self,
        operation_map: Mapping[ActivityId, FlowOperation[ActivityId]] | None = None,
        default_operation: FlowOperation[ActivityId] | None = None,
    ):
        self._operation_map = (
            MappingProxyType(dict(operation_map)) if operation_map is not None else None
        )
        self._default_operation = default_operation

    @classmethod
    def for_default(cls, default_operation: FlowOperation[ActivityId]) -> "OperationResolver[ActivityId]":
        """Resolve every identifier to a single operation."""
        return cls(default_operation=default_operation)

    @classmethod
    def for_map(
        cls, operation_map: Mapping[ActivityId, FlowOperation[ActivityId]]
    ) -> "OperationResolver[ActivityId]":
        """Resolve through the map only; unmapped identifiers resolve to None."""
        return cls(operation_map=operation_map)

    @classmethod
    def for_map_with_default(
        cls,
        operation_map: Mapping[ActivityId, FlowOperation[ActivityId]],
        default_operation: FlowOperation[ActivityId],
    ) -> "OperationResolver[ActivityId]":
        """Resolve through the map, falling back to the default operation."""
        return cls(operation_map=operation_map, default_operation=default_operation)

    @property
    def operation_map(self) -> Mapping[ActivityId, FlowOperation[ActivityId]] | None:
        return self._operation_map

    @property
    def default_operation(self) -> FlowOperation[ActivityId] | None:
        return self._default_operation

    def resolve(self, identifier: ActivityId | None) -> FlowOperation[ActivityId] | None:
        """Find the operation for an identifier.

        Args:
            identifier: Activity or condition identifier.

        Returns:
            Mapped operation, else the default operation, else None.
        """
        if identifier is None:
            return None
        operation = None
        if self._operation_map is not None:
            operation = self._operation_map.get(identifier)
        if operation is None:
            operation = self._default_operation
        return operation

    def __repr__(self) -> str:
        mapped = len(self._operation_map) if self._operation_map is not None else None
        return f"OperationResolver(mapped={mapped}, default={self._default_operation is not None})"
