"""
Traversal Tracing

Records what each advance/choose call did:
- one trace entry per call
- diagnostics for instruction failures
- a summary of outcomes
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Diagnostic:
    """Non-fatal problem met while traversing"""

    node_id: str
    expression: str
    message: str
    error_type: str = "ExpressionError"
    timestamp_ms: int = field(default_factory=lambda: int(time.time() * 1000))


class TraceEntry:
    """Trace entry for one engine call"""

    def __init__(
        self,
        step_id: int,
        operation: str,
        node_id: Optional[str],
        ts_start_ms: Optional[int] = None,
    ):
        self.step_id = step_id
        self.operation = operation
        self.node_id = node_id
        self.target_id: Optional[str] = None
        self.outcome: Optional[str] = None
        self.status = "started"
        self.ts_start_ms = ts_start_ms or int(time.time() * 1000)
        self.ts_end_ms: Optional[int] = None
        self.error: Optional[Dict[str, Any]] = None
        self.diagnostics: List[Diagnostic] = []

    def complete(
        self,
        status: str,
        outcome: Optional[str] = None,
        target_id: Optional[str] = None,
        error: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Complete trace entry"""
        self.status = status
        self.outcome = outcome
        self.target_id = target_id
        self.ts_end_ms = int(time.time() * 1000)
        if error:
            self.error = error

    def duration_ms(self) -> Optional[int]:
        if self.ts_end_ms is not None:
            return self.ts_end_ms - self.ts_start_ms
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_id": self.step_id,
            "operation": self.operation,
            "node_id": self.node_id,
            "target_id": self.target_id,
            "outcome": self.outcome,
            "status": self.status,
            "ts_start_ms": self.ts_start_ms,
            "ts_end_ms": self.ts_end_ms,
            "duration_ms": self.duration_ms(),
            "error": self.error,
            "diagnostics": [d.message for d in self.diagnostics],
        }


class TraversalTracer:
    """
    Traversal tracer

    Keeps at most `limit` entries; the oldest are dropped first. A limit
    of 0 keeps no entries, None keeps all of them.
    """

    def __init__(self, limit: Optional[int] = 1000, enable_detailed_logging: bool = False):
        self.limit = limit
        self.enable_detailed_logging = enable_detailed_logging
        self._traces: List[TraceEntry] = []
        self._diagnostics: List[Diagnostic] = []
        self._current_step_id = 0
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def start_step(self, operation: str, node_id: Optional[str]) -> TraceEntry:
        self._current_step_id += 1

        trace = TraceEntry(
            step_id=self._current_step_id,
            operation=operation,
            node_id=node_id,
        )
        self._traces.append(trace)
        if self.limit is not None and len(self._traces) > self.limit:
            del self._traces[: len(self._traces) - self.limit]

        if self.enable_detailed_logging:
            self.logger.debug(f"Started step {trace.step_id}: {operation} at {node_id}")

        return trace

    def complete_step(
        self,
        trace: TraceEntry,
        status: str,
        outcome: Optional[str] = None,
        target_id: Optional[str] = None,
        error: Optional[Exception] = None,
    ) -> None:
        error_dict = None
        if error:
            error_dict = {
                "type": type(error).__name__,
                "message": str(error),
                "details": getattr(error, "details", None),
            }

        trace.complete(status, outcome, target_id, error_dict)

        if self.enable_detailed_logging:
            self.logger.debug(
                f"Completed step {trace.step_id}: {status} -> {outcome} ({trace.duration_ms()}ms)"
            )
            if error:
                self.logger.error(f"Step {trace.step_id} failed: {error}")

    def record_diagnostic(
        self, diagnostic: Diagnostic, trace: Optional[TraceEntry] = None
    ) -> None:
        self._diagnostics.append(diagnostic)
        if trace is not None:
            trace.diagnostics.append(diagnostic)

    def get_trace_summary(self) -> Dict[str, Any]:
        """Get trace summary"""
        if not self._current_step_id:
            return {}

        outcome_counts: Dict[str, int] = {}
        for trace in self._traces:
            key = trace.outcome or trace.status
            outcome_counts[key] = outcome_counts.get(key, 0) + 1

        failed_steps = sum(1 for trace in self._traces if trace.status == "failed")

        return {
            "total_steps": self._current_step_id,
            "recorded_steps": len(self._traces),
            "failed_steps": failed_steps,
            "outcome_distribution": outcome_counts,
            "diagnostics": len(self._diagnostics),
        }

    def get_recent_traces(self, limit: int = 50) -> List[TraceEntry]:
        return self._traces[-limit:]

    def get_diagnostics(self) -> List[Diagnostic]:
        return self._diagnostics.copy()

    def clear_traces(self) -> None:
        self._traces.clear()
        self._diagnostics.clear()
        self._current_step_id = 0


class TracingMixin:
    """
    Tracing mixin

    Gives a component optional tracing: every helper is a no-op until a tracer
    is set
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tracer: Optional[TraversalTracer] = None

    def set_tracer(self, tracer: Optional[TraversalTracer]) -> None:
        self.tracer = tracer

    def trace_step_start(
        self, operation: str, node_id: Optional[str]
    ) -> Optional[TraceEntry]:
        if self.tracer:
            return self.tracer.start_step(operation, node_id)
        return None

    def trace_step_complete(
        self,
        trace: Optional[TraceEntry],
        status: str,
        outcome: Optional[str] = None,
        target_id: Optional[str] = None,
        error: Optional[Exception] = None,
    ) -> None:
        if self.tracer and trace:
            self.tracer.complete_step(trace, status, outcome, target_id, error)

    def trace_diagnostic(
        self, diagnostic: Diagnostic, trace: Optional[TraceEntry] = None
    ) -> None:
        if self.tracer:
            self.tracer.record_diagnostic(diagnostic, trace)
