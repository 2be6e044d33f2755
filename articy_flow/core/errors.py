"""
articy-flow Exception Definitions

Every failure the loader, the expression engine and the traversal engine can
report derives from ArticyFlowError. None of them are retried internally.
"""

from typing import Any, Dict, Optional


class ArticyFlowError(Exception):
    """articy-flow base exception"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class IdNotFound(ArticyFlowError):
    """
    Identifier not found

    A connection points at a node or input pin that does not exist in the
    default package
    """

    pass


class NoModel(ArticyFlowError):
    """No node with the requested id exists in the default package"""

    pass


class NoMainFlow(ArticyFlowError):
    """The hierarchy has no child of kind Flow"""

    pass


class NoHierarchy(ArticyFlowError):
    """
    Hierarchy resolution failed

    The path of a node could not be followed through the hierarchy tree, or
    the resolved entry has no playable child
    """

    pass


class NoCursor(ArticyFlowError):
    """The interpreter has not been started"""

    pass


class NoDefaultPackage(ArticyFlowError):
    """No package of the export is marked as the default package"""

    pass


class NoOutputConnected(ArticyFlowError):
    """A node that must move forward has no usable outgoing connection"""

    pass


class NoOutputPins(ArticyFlowError):
    """The node has no output pins at all"""

    pass


class FailedToSetState(ArticyFlowError):
    """
    Variable write rejected

    Unsupported value type, invalid name, or a value whose type differs from
    the one the variable already holds
    """

    pass


class FailedToGetState(ArticyFlowError):
    """The variable is not present in the store"""

    pass


class ChoiceNotAvailable(ArticyFlowError):
    """The requested target is not among the currently available connections"""

    pass


class UnsupportedNodeKind(ArticyFlowError):
    """The cursor rests on a node kind the traversal engine cannot advance"""

    pass


class ExpressionError(ArticyFlowError):
    """
    Script expression error

    Occurs during parsing or evaluation, such as syntax errors, unknown
    variables, type mismatches or division by zero
    """

    pass


class LoadError(ArticyFlowError):
    """
    Export load error

    The export file could not be read, does not validate, or holds dangling
    references
    """

    pass


class ConfigError(ArticyFlowError):
    """Invalid configuration value"""

    pass
