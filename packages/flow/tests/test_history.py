"""Tests for notification recording (execution/history.py)."""

from dataknobs_flow import CallbackOperation, FlowEvent, FlowEventKind, RecordingOperation


class TestFlowEvent:
    """Tests for FlowEvent."""

    def test_factories(self):
        assert FlowEvent.enter_from_start(1) == FlowEvent(FlowEventKind.ENTER_FROM_START, None, 1)
        assert FlowEvent.transition(1, 2) == FlowEvent(FlowEventKind.TRANSITION, 1, 2)
        assert FlowEvent.reach_end(2) == FlowEvent(FlowEventKind.REACH_END, 2, None)

    def test_str_and_dict(self):
        assert str(FlowEvent.enter_from_start("a")) == "START -> a"
        assert str(FlowEvent.transition("a", "b")) == "a -> b"
        assert str(FlowEvent.reach_end("b")) == "b -> END"
        assert FlowEvent.transition("a", "b").to_dict() == {"kind": "transition", "from": "a", "to": "b"}


class TestRecordingOperation:
    """Tests for RecordingOperation."""

    def test_conditions_and_default(self):
        operation = RecordingOperation({"yes": True, "no": False}, default=True)
        assert operation.test("yes") is True
        assert operation.test("no") is False
        assert operation.test("unknown") is True
        assert operation.tested == [("yes", True), ("no", False), ("unknown", True)]

    def test_path_from_events(self):
        operation = RecordingOperation()
        operation.on_enter_from_start(1)
        operation.on_transition(1, 4)
        operation.on_transition(4, 5)
        operation.on_reach_end(5)
        assert operation.path == [1, 4, 5]

    def test_path_after_jump(self):
        operation = RecordingOperation()
        operation.on_transition(3, 4)
        operation.on_reach_end(4)
        assert operation.path == [3, 4]

    def test_clear(self):
        operation = RecordingOperation()
        operation.on_enter_from_start(1)
        operation.test("c")
        operation.clear()
        assert operation.events == []
        assert operation.tested == []


class TestCallbackOperation:
    """Tests for CallbackOperation."""

    def test_missing_callables_are_no_ops(self):
        operation = CallbackOperation()
        operation.on_enter_from_start(1)
        operation.on_transition(1, 2)
        operation.on_reach_end(2)
        assert operation.test("c") is False

    def test_test_result_is_coerced_to_bool(self):
        operation = CallbackOperation(test=lambda condition: condition)
        assert operation.test(0) is False
        assert operation.test("x") is True
