"""articy-flow traversal engine"""

from .evaluator import (
    ScriptEvaluator,
    get_evaluator,
    evaluate_condition,
    execute_instruction,
)
from .connections import ConnectionResolver
from .outcome import (
    Outcome,
    OutcomeKind,
    Advanced,
    WaitingForChoice,
    EndOfDialogue,
    Stopped,
)
from .interpreter import Interpreter

__all__ = [
    "ScriptEvaluator",
    "get_evaluator",
    "evaluate_condition",
    "execute_instruction",
    "ConnectionResolver",
    "Outcome",
    "OutcomeKind",
    "Advanced",
    "WaitingForChoice",
    "EndOfDialogue",
    "Stopped",
    "Interpreter",
]
