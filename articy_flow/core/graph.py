"""
Flow Graph

Read-only traversal index over the default package of a loaded export. One
FlowGraph can back any number of interpreter sessions.
"""

import logging
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Tuple

from .errors import IdNotFound, NoMainFlow, NoModel
from .nodes import Connection, FlowNode, Id, Node, Pin

if TYPE_CHECKING:
    from .document import ArticyProject, HierarchyEntry

logger = logging.getLogger(__name__)


class FlowGraph:
    """
    Flow Graph

    Indexes nodes by id and gives access to the hierarchy of the project it
    was built from
    """

    def __init__(self, project: "ArticyProject"):
        self.project = project
        self.package = project.get_default_package()
        self._build_index()

    def _build_index(self):
        """Build index to accelerate lookups"""
        self._nodes: Dict[Id, Node] = {}

        for node in self.package.models:
            if not node.id:
                continue
            if node.id in self._nodes:
                logger.warning("Duplicate node id %s in package %s", node.id, self.package.name)
                continue
            self._nodes[node.id] = node

    def __contains__(self, node_id: Id) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def hierarchy(self) -> "HierarchyEntry":
        return self.project.hierarchy

    @property
    def main_flow_id(self) -> Id:
        main_flow = self.project.get_main_flow()
        if main_flow is None:
            raise NoMainFlow("Hierarchy has no Flow entry")
        return main_flow.id

    def find(self, node_id: Id) -> Optional[Node]:
        return self._nodes.get(node_id)

    def get(self, node_id: Id) -> Node:
        """Get node by id, raising NoModel when absent"""
        node = self._nodes.get(node_id)
        if node is None:
            raise NoModel(f"No model with id {node_id}", {"id": node_id})
        return node

    def get_children(self, parent_id: Id) -> List[Node]:
        """Nodes whose parent pointer is parent_id, in package order"""
        return [node for node in self._nodes.values() if node.parent == parent_id]

    def resolve_connection(self, connection: Connection) -> Tuple[FlowNode, Pin]:
        """
        Look up the node and input pin a connection ends on

        Raises:
            IdNotFound: dangling target node or pin
        """
        target = self._nodes.get(connection.target)
        if not isinstance(target, FlowNode):
            raise IdNotFound(
                f"Connection targets unknown node {connection.target}",
                {"target": connection.target},
            )

        pin = target.find_input_pin(connection.target_pin)
        if pin is None:
            raise IdNotFound(
                f"Connection targets unknown pin {connection.target_pin} on {connection.target}",
                {"target": connection.target, "target_pin": connection.target_pin},
            )

        return target, pin
