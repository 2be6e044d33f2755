"""
Connection Resolver

Computes the outgoing targets of a node that are enabled under the current
variable store. A connection is enabled when the input pin it ends on has an
empty gating expression, or one that evaluates to true. Evaluation errors
disable the connection.
"""

from typing import List

from ..core.errors import NoOutputPins
from ..core.graph import FlowGraph
from ..core.nodes import Node
from ..core.state import VariableStore
from ..utils.logging import get_logger
from .evaluator import ScriptEvaluator

logger = get_logger(__name__)


class ConnectionResolver:
    """Resolves gated outgoing connections"""

    def __init__(
        self, graph: FlowGraph, evaluator: ScriptEvaluator, store: VariableStore
    ):
        self.graph = graph
        self.evaluator = evaluator
        self.store = store

    def resolve_targets(self, node: Node) -> List[Node]:
        """
        Enabled targets in pin order, then connection order

        Duplicates are kept. An empty list is a valid result.

        Raises:
            NoOutputPins: node has no output pins
            IdNotFound: a connection points at a missing node or pin
        """
        output_pins = node.get_output_pins()
        if not output_pins:
            raise NoOutputPins(f"{node.kind} {node.id} has no output pins", {"id": node.id})

        targets: List[Node] = []
        for pin in output_pins:
            for connection in pin.connections:
                target, target_pin = self.graph.resolve_connection(connection)

                gate = target_pin.gate
                if not gate:
                    targets.append(target)
                    continue

                enabled = self.evaluator.evaluate_gate(gate, self.store)
                logger.debug(
                    "gate_evaluated",
                    source=node.id,
                    target=target.id,
                    expression=gate,
                    enabled=enabled,
                )
                if enabled:
                    targets.append(target)

        return targets
