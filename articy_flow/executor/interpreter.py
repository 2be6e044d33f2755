"""
articy-flow Interpreter

Cursor state machine over a FlowGraph. The graph is shared and read-only;
each Interpreter owns its cursor and variable store.

Transparent nodes (Condition, Instruction) never surface as outcomes: after
every cursor move the interpreter keeps dispatching until it rests on
content, a choice, or the end of the dialogue.
"""

from typing import Callable, List, Mapping, Optional, Union

from ..config import ArticyFlowConfig, ensure_valid, get_default_config
from ..core.document import ArticyProject
from ..core.errors import (
    ChoiceNotAvailable,
    ExpressionError,
    NoCursor,
    NoModel,
    NoOutputConnected,
    UnsupportedNodeKind,
)
from ..core.graph import FlowGraph
from ..core.hierarchy import HierarchyResolver
from ..core.nodes import (
    ConditionNode,
    FlowNode,
    Id,
    InstructionNode,
    Node,
    NodeKind,
)
from ..core.state import StateValue, VariableStore
from ..core.tracing import Diagnostic, TraceEntry, TracingMixin, TraversalTracer
from ..utils.logging import get_logger
from .connections import ConnectionResolver
from .evaluator import ScriptEvaluator
from .outcome import Advanced, EndOfDialogue, Outcome, Stopped, WaitingForChoice

logger = get_logger(__name__)


class Interpreter(TracingMixin):
    """
    articy-flow Interpreter

    Positions a cursor with start(), then moves it with advance() and
    choose(), reporting an Outcome for every call
    """

    def __init__(
        self,
        source: Union[ArticyProject, FlowGraph],
        initial_state: Optional[Mapping[str, StateValue]] = None,
        config: Optional[ArticyFlowConfig] = None,
        evaluator: Optional[ScriptEvaluator] = None,
    ):
        TracingMixin.__init__(self)
        self.config = ensure_valid(config or get_default_config())
        self.graph = source if isinstance(source, FlowGraph) else source.build_flow_graph()
        self.evaluator = evaluator or ScriptEvaluator()

        self.state = VariableStore()
        if self.config.seed_global_variables:
            self.state.update(self.graph.project.global_variable_values())
        if initial_state:
            self.state.update(initial_state)

        self.hierarchy = HierarchyResolver(self.graph)
        self.connections = ConnectionResolver(self.graph, self.evaluator, self.state)

        self.cursor: Optional[Id] = None
        self.diagnostics: List[Diagnostic] = []
        self._stopped = False
        self._current_trace: Optional[TraceEntry] = None

        if self.config.enable_tracing:
            self.set_tracer(TraversalTracer(limit=self.config.trace_limit))

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    def start(self, node_id: Id) -> None:
        """
        Position the cursor

        Dialogue and FlowFragment entries are replaced by their first
        playable child.

        Raises:
            NoModel: node_id is not in the default package
            NoHierarchy, NoMainFlow: container could not be resolved
        """
        node = self.graph.find(node_id)
        if node is None:
            raise NoModel(f"No model with id {node_id}", {"id": node_id})

        target_id = node.id
        if node.is_kind(NodeKind.DIALOGUE, NodeKind.FLOW_FRAGMENT):
            target_id = self.hierarchy.first_playable_child(node)

        self._stopped = False
        self.cursor = target_id
        logger.info("cursor_started", entry=node_id, cursor=self.cursor)

    def stop(self) -> None:
        """Force a stop; advance and choose report Stopped until start()"""
        self._stopped = True
        logger.info("cursor_stopped", cursor=self.cursor)

    def get_current_node(self) -> Node:
        if self.cursor is None:
            raise NoCursor("Interpreter has not been started")
        return self.graph.get(self.cursor)

    def get_available_connections(self) -> List[Node]:
        """Currently enabled targets of the node under the cursor"""
        return self.connections.resolve_targets(self.get_current_node())

    def set_state(self, name: str, value: StateValue) -> None:
        self.state.set(name, value)

    def get_state(self, name: str) -> StateValue:
        return self.state.get(name)

    def advance(self) -> Outcome:
        """
        Move forward from the current node

        Raises:
            NoCursor, NoModel: cursor is not on a node
            NoOutputConnected: a node that must move has nowhere to go
            UnsupportedNodeKind: cursor rests on metadata or a custom node
        """
        return self._run_step("advance", self._advance)

    def choose(self, target_id: Id) -> Outcome:
        """
        Move to one of the currently available targets

        Targets are resolved again at call time, so state changes made since
        the choice was offered are honoured.

        Raises:
            ChoiceNotAvailable: target_id is not available and the
                unmatched_choice policy is "error"
        """
        return self._run_step("choose", lambda: self._choose(target_id))

    def get_trace_summary(self):
        if self.tracer:
            return self.tracer.get_trace_summary()
        return {}

    def _run_step(self, operation: str, step: Callable[[], Outcome]) -> Outcome:
        trace = self.trace_step_start(operation, self.cursor)
        self._current_trace = trace
        try:
            outcome = step()
        except Exception as e:
            self.trace_step_complete(trace, "failed", error=e)
            raise
        finally:
            self._current_trace = None

        self.trace_step_complete(trace, "completed", outcome.kind.value, self.cursor)
        return outcome

    def _advance(self) -> Outcome:
        if self._stopped:
            return Stopped()

        node = self.get_current_node()

        if node.is_kind(NodeKind.DIALOGUE):
            return EndOfDialogue()

        if node.is_kind(NodeKind.HUB):
            return WaitingForChoice(self.connections.resolve_targets(node))

        if node.is_kind(NodeKind.DIALOGUE_FRAGMENT):
            targets = self.connections.resolve_targets(node)
            if len(targets) > 1:
                return WaitingForChoice(targets)
            if not targets:
                raise NoOutputConnected(
                    f"No enabled connection leaves {node.id}", {"id": node.id}
                )
            self._move_to(targets[0].id)
            return self._settle()

        if node.is_kind(NodeKind.CONDITION, NodeKind.INSTRUCTION):
            return self._settle()

        if node.is_kind(NodeKind.FLOW_FRAGMENT):
            self._move_to(self.hierarchy.first_playable_child(node))
            return self._settle()

        raise UnsupportedNodeKind(
            f"Cannot advance from {node.kind} {node.id}", {"id": node.id, "kind": node.kind}
        )

    def _choose(self, target_id: Id) -> Outcome:
        if self._stopped:
            return Stopped()

        targets = self.get_available_connections()
        for target in targets:
            if target.id == target_id:
                self._move_to(target.id)
                return Advanced(target)

        if self.config.unmatched_choice == "advance":
            logger.info("choice_unavailable_advancing", cursor=self.cursor, requested=target_id)
            return self._advance()

        raise ChoiceNotAvailable(
            f"{target_id} is not an available choice from {self.cursor}",
            {"requested": target_id, "available": [target.id for target in targets]},
        )

    def _settle(self) -> Outcome:
        """Post-advance dispatch: run through transparent nodes"""
        while True:
            node = self.get_current_node()

            if node.is_kind(NodeKind.DIALOGUE):
                return EndOfDialogue()

            if node.is_kind(NodeKind.HUB):
                return WaitingForChoice(self.connections.resolve_targets(node))

            if isinstance(node, ConditionNode):
                self._move_to(self._branch(node))
                continue

            if isinstance(node, InstructionNode):
                self._execute(node)
                self._move_to(self._first_target(node))
                continue

            return Advanced(node)

    def _branch(self, node: ConditionNode) -> Id:
        result = self.evaluator.evaluate_gate(node.expression, self.state)
        logger.info(
            "condition_evaluated", node=node.id, expression=node.expression, result=result
        )

        if not node.output_pins:
            raise NoOutputConnected(f"Condition {node.id} has no output pins", {"id": node.id})

        pin = node.output_pins[0] if result else node.output_pins[-1]
        if not pin.connections:
            raise NoOutputConnected(
                f"Condition {node.id} has no connection on its {'true' if result else 'false'} branch",
                {"id": node.id, "pin": pin.id},
            )

        target, _ = self.graph.resolve_connection(pin.connections[0])
        return target.id

    def _execute(self, node: InstructionNode) -> None:
        if not node.expression.strip():
            return

        try:
            result = self.evaluator.evaluate_and_mutate(node.expression, self.state)
        except ExpressionError as e:
            diagnostic = Diagnostic(
                node_id=node.id, expression=node.expression, message=e.message
            )
            self.diagnostics.append(diagnostic)
            self.trace_diagnostic(diagnostic, self._current_trace)
            logger.warning(
                "instruction_failed", node=node.id, expression=node.expression, error=e.message
            )
            return

        logger.info(
            "instruction_executed", node=node.id, expression=node.expression, result=result
        )

    def _first_target(self, node: FlowNode) -> Id:
        if not node.output_pins or not node.output_pins[0].connections:
            raise NoOutputConnected(f"{node.kind} {node.id} has no output connection", {"id": node.id})

        target, _ = self.graph.resolve_connection(node.output_pins[0].connections[0])
        return target.id

    def _move_to(self, node_id: Id) -> None:
        logger.debug("cursor_moved", source=self.cursor, target=node_id)
        self.cursor = node_id
