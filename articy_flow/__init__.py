"""
articy-flow - articy:draft flow interpreter

Supports:
- loading articy:draft JSON exports into a typed document model
- stepping through dialogues with start/advance/choose
- gating, Condition and Instruction scripts against a variable store
"""

__version__ = "0.1.0"

from .core import (
    # Errors
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
    # Core classes
    ArticyProject,
    FlowGraph,
    HierarchyResolver,
    Node,
    NodeKind,
    VariableStore,
    load_project,
)
from .config import ArticyFlowConfig
from .executor import (
    Advanced,
    ConnectionResolver,
    EndOfDialogue,
    Interpreter,
    Outcome,
    OutcomeKind,
    ScriptEvaluator,
    Stopped,
    WaitingForChoice,
    evaluate_condition,
    execute_instruction,
)

__all__ = [
    "__version__",
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
    # Core
    "ArticyProject",
    "FlowGraph",
    "HierarchyResolver",
    "Node",
    "NodeKind",
    "VariableStore",
    "load_project",
    "ArticyFlowConfig",
    # Executor
    "Interpreter",
    "ConnectionResolver",
    "ScriptEvaluator",
    "Outcome",
    "OutcomeKind",
    "Advanced",
    "WaitingForChoice",
    "EndOfDialogue",
    "Stopped",
    "evaluate_condition",
    "execute_instruction",
]
