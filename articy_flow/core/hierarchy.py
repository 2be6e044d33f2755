"""
Hierarchy Resolver

Dialogue and FlowFragment nodes are containers in the authoring hierarchy but
carry no playable content. Entering one must land on its first meaningful
descendant, which is found by mapping the node onto the hierarchy tree:

1. follow parent pointers from the node up to the main Flow and reverse them
   into a root-to-node path
2. descend the hierarchy tree along that path
3. pick the first child of the resolved entry whose kind is playable
"""

import logging
from typing import List

from .errors import NoHierarchy, NoModel
from .graph import FlowGraph
from .nodes import PLAYABLE_KINDS, Id, Node

logger = logging.getLogger(__name__)


class HierarchyResolver:
    """Resolves containers to their first playable child"""

    def __init__(self, graph: FlowGraph):
        self.graph = graph

    def path_to(self, node: Node) -> List[Id]:
        """
        Root-to-node path of identifiers, starting with the main flow id

        Raises:
            NoMainFlow: hierarchy has no Flow entry
            NoModel: a parent on the way up is not a node of the package
            NoHierarchy: parent pointers form a cycle
        """
        main_flow_id = self.graph.main_flow_id
        path = [node.id]
        visited = {node.id}
        cursor = node

        while cursor.id != main_flow_id:
            parent_id = cursor.parent
            if parent_id in visited:
                raise NoHierarchy(
                    f"Parent cycle detected at {parent_id}", {"path": list(reversed(path))}
                )

            path.append(parent_id)
            visited.add(parent_id)
            if parent_id == main_flow_id:
                break

            if parent_id not in self.graph:
                raise NoModel(
                    f"Parent {parent_id} of {cursor.id} is not a model of the default package",
                    {"id": parent_id},
                )
            cursor = self.graph.get(parent_id)

        path.reverse()
        return path

    def first_playable_child(self, node: Node) -> Id:
        """
        Identifier of the first playable child of a container

        Raises:
            NoHierarchy: the path cannot be followed or no child is playable
        """
        path = self.path_to(node)

        entry = self.graph.hierarchy
        for node_id in path:
            child = entry.find_child(node_id)
            if child is None:
                raise NoHierarchy(
                    f"Hierarchy entry {entry.id} has no child {node_id}",
                    {"path": path, "missing": node_id},
                )
            entry = child

        for child in entry.children:
            if child.kind in PLAYABLE_KINDS:
                logger.debug("Resolved %s to first playable child %s", node.id, child.id)
                return child.id

        raise NoHierarchy(
            f"{node.kind} {node.id} has no playable child", {"path": path}
        )
