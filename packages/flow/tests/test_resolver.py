"""Tests for operation resolution (core/resolver.py)."""

from dataknobs_flow import OperationResolver, RecordingOperation


class TestOperationResolver:
    """Tests for the three resolution modes."""

    def test_default_only(self):
        default = RecordingOperation()
        resolver = OperationResolver.for_default(default)
        assert resolver.resolve("anything") is default
        assert resolver.resolve(0) is default

    def test_map_only(self):
        mapped = RecordingOperation()
        resolver = OperationResolver.for_map({"a": mapped})
        assert resolver.resolve("a") is mapped
        assert resolver.resolve("b") is None

    def test_map_with_default(self):
        mapped = RecordingOperation()
        default = RecordingOperation()
        resolver = OperationResolver.for_map_with_default({"a": mapped}, default)
        assert resolver.resolve("a") is mapped
        assert resolver.resolve("b") is default

    def test_none_identifier_never_resolves(self):
        resolver = OperationResolver.for_default(RecordingOperation())
        assert resolver.resolve(None) is None

    def test_map_is_copied(self):
        mapped = RecordingOperation()
        table = {"a": mapped}
        resolver = OperationResolver.for_map(table)
        table["b"] = mapped
        assert resolver.resolve("b") is None
        assert dict(resolver.operation_map) == {"a": mapped}
