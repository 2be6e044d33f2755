"""articy-flow core data model"""

from .errors import (
    ArticyFlowError,
    IdNotFound,
    NoModel,
    NoMainFlow,
    NoHierarchy,
    NoCursor,
    NoDefaultPackage,
    NoOutputConnected,
    NoOutputPins,
    FailedToSetState,
    FailedToGetState,
    ChoiceNotAvailable,
    UnsupportedNodeKind,
    ExpressionError,
    LoadError,
    ConfigError,
)
from .nodes import (
    Id,
    NodeKind,
    PLAYABLE_KINDS,
    Connection,
    Pin,
    Node,
    FlowNode,
    DialogueNode,
    DialogueFragmentNode,
    FlowFragmentNode,
    HubNode,
    ConditionNode,
    InstructionNode,
    UserFolderNode,
    CommentNode,
    EntityNode,
    CustomNode,
    parse_node,
)
from .document import (
    ArticyProject,
    Settings,
    ProjectInfo,
    Variable,
    GlobalVariable,
    Package,
    HierarchyEntry,
    load_project,
)
from .graph import FlowGraph
from .hierarchy import HierarchyResolver
from .state import StateValue, VariableStore
from .tracing import Diagnostic, TraceEntry, TraversalTracer, TracingMixin

__all__ = [
    # Errors
    "ArticyFlowError",
    "IdNotFound",
    "NoModel",
    "NoMainFlow",
    "NoHierarchy",
    "NoCursor",
    "NoDefaultPackage",
    "NoOutputConnected",
    "NoOutputPins",
    "FailedToSetState",
    "FailedToGetState",
    "ChoiceNotAvailable",
    "UnsupportedNodeKind",
    "ExpressionError",
    "LoadError",
    "ConfigError",
    # Nodes
    "Id",
    "NodeKind",
    "PLAYABLE_KINDS",
    "Connection",
    "Pin",
    "Node",
    "FlowNode",
    "DialogueNode",
    "DialogueFragmentNode",
    "FlowFragmentNode",
    "HubNode",
    "ConditionNode",
    "InstructionNode",
    "UserFolderNode",
    "CommentNode",
    "EntityNode",
    "CustomNode",
    "parse_node",
    # Document
    "ArticyProject",
    "Settings",
    "ProjectInfo",
    "Variable",
    "GlobalVariable",
    "Package",
    "HierarchyEntry",
    "load_project",
    # Graph
    "FlowGraph",
    "HierarchyResolver",
    # State
    "StateValue",
    "VariableStore",
    # Tracing
    "Diagnostic",
    "TraceEntry",
    "TraversalTracer",
    "TracingMixin",
]
