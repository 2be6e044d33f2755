"""
TraversalTracer Unit Tests
"""

from articy_flow.core.errors import NoOutputConnected
from articy_flow.core.tracing import Diagnostic, TracingMixin, TraversalTracer


class TestTraversalTracer:
    """Tests for trace recording"""

    def test_step_lifecycle(self):
        """Test start and completion of a step"""
        tracer = TraversalTracer()
        trace = tracer.start_step("advance", "F1")
        tracer.complete_step(trace, "completed", "advanced", "F2")

        data = trace.to_dict()
        assert data["step_id"] == 1
        assert data["operation"] == "advance"
        assert data["node_id"] == "F1"
        assert data["target_id"] == "F2"
        assert data["outcome"] == "advanced"
        assert data["duration_ms"] >= 0

    def test_failed_step_records_error(self):
        """Test errors are stored with their details"""
        tracer = TraversalTracer()
        trace = tracer.start_step("advance", "F1")
        tracer.complete_step(trace, "failed", error=NoOutputConnected("stuck", {"id": "F1"}))

        assert trace.error["type"] == "NoOutputConnected"
        assert trace.error["details"] == {"id": "F1"}
        assert tracer.get_trace_summary()["failed_steps"] == 1

    def test_limit_drops_oldest(self):
        """Test entries beyond the limit are discarded oldest first"""
        tracer = TraversalTracer(limit=3)
        for index in range(5):
            tracer.start_step("advance", f"N{index}")

        recent = tracer.get_recent_traces()
        assert [trace.node_id for trace in recent] == ["N2", "N3", "N4"]
        assert tracer.get_trace_summary()["total_steps"] == 5
        assert tracer.get_trace_summary()["recorded_steps"] == 3

    def test_zero_limit_keeps_nothing(self):
        """Test a limit of 0 records no entries but still counts steps"""
        tracer = TraversalTracer(limit=0)
        for index in range(3):
            trace = tracer.start_step("advance", f"N{index}")
            tracer.complete_step(trace, "completed", "advanced")

        assert tracer.get_recent_traces() == []
        assert tracer.get_trace_summary()["total_steps"] == 3
        assert tracer.get_trace_summary()["recorded_steps"] == 0

    def test_no_limit(self):
        """Test None keeps every entry"""
        tracer = TraversalTracer(limit=None)
        for index in range(5):
            tracer.start_step("advance", f"N{index}")

        assert len(tracer.get_recent_traces()) == 5

    def test_summary(self):
        """Test outcome distribution"""
        tracer = TraversalTracer()
        for outcome in ("advanced", "advanced", "waiting_for_choice"):
            tracer.complete_step(tracer.start_step("advance", "x"), "completed", outcome)

        summary = tracer.get_trace_summary()
        assert summary["outcome_distribution"] == {"advanced": 2, "waiting_for_choice": 1}
        assert summary["diagnostics"] == 0

    def test_diagnostics(self):
        """Test diagnostics are kept globally and on the step"""
        tracer = TraversalTracer()
        trace = tracer.start_step("advance", "L0")
        diagnostic = Diagnostic(node_id="INS3", expression="x += 1", message="Unknown variable: x")
        tracer.record_diagnostic(diagnostic, trace)

        assert tracer.get_diagnostics() == [diagnostic]
        assert trace.to_dict()["diagnostics"] == ["Unknown variable: x"]

    def test_clear(self):
        """Test clearing traces"""
        tracer = TraversalTracer()
        tracer.start_step("advance", "x")
        tracer.clear_traces()

        assert tracer.get_trace_summary() == {}
        assert tracer.get_recent_traces() == []


class TestTracingMixin:
    """Tests for the mixin helpers"""

    def test_noop_without_tracer(self):
        """Test helpers do nothing until a tracer is set"""
        component = TracingMixin()
        trace = component.trace_step_start("advance", "x")

        assert trace is None
        component.trace_step_complete(trace, "completed")
        component.trace_diagnostic(Diagnostic(node_id="x", expression="", message="m"))

    def test_with_tracer(self):
        """Test helpers forward to the tracer"""
        component = TracingMixin()
        tracer = TraversalTracer()
        component.set_tracer(tracer)

        trace = component.trace_step_start("choose", "H0")
        component.trace_step_complete(trace, "completed", "advanced", "O1")

        assert tracer.get_recent_traces()[0].target_id == "O1"
