"""
Variable Store

Session state: dotted, namespaced variable names ("quest.accepted") mapped
to bool, int or str values. Read by gating and Condition evaluation, written
by Instruction nodes and explicit set_state calls.
"""

import copy
import re
from typing import Dict, Iterator, List, Mapping, Optional, Union

from .errors import FailedToGetState, FailedToSetState

StateValue = Union[bool, int, str]

NAME_PATTERN = re.compile(r"^[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*$")


def value_type_name(value: StateValue) -> str:
    # bool first: bool is a subclass of int
    if isinstance(value, bool):
        return "Boolean"
    if isinstance(value, int):
        return "Integer"
    if isinstance(value, str):
        return "String"
    return type(value).__name__


class VariableStore:
    """
    Variable store

    Once a variable holds a value its type is fixed: writing a value of a
    different type is rejected.
    """

    def __init__(self, initial_state: Optional[Mapping[str, StateValue]] = None):
        self._values: Dict[str, StateValue] = {}
        self._revision = 0
        if initial_state:
            for name, value in initial_state.items():
                self.set(name, value)

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self):
        return f"VariableStore({self._values!r})"

    def get(self, name: str) -> StateValue:
        """
        Read variable

        Raises:
            FailedToGetState: unknown variable
        """
        try:
            return self._values[name]
        except KeyError:
            raise FailedToGetState(f"Unknown variable: {name}", {"name": name})

    def set(self, name: str, value: StateValue) -> None:
        """
        Write variable

        Raises:
            FailedToSetState: invalid name, unsupported value type or a type
                change of an existing variable
        """
        if not isinstance(name, str) or not NAME_PATTERN.match(name):
            raise FailedToSetState(f"Invalid variable name: {name!r}", {"name": name})

        new_type = value_type_name(value)
        if new_type not in ("Boolean", "Integer", "String"):
            raise FailedToSetState(
                f"Unsupported value type for {name}: {new_type}",
                {"name": name, "type": new_type},
            )

        if name in self._values:
            current_type = value_type_name(self._values[name])
            if current_type != new_type:
                raise FailedToSetState(
                    f"Variable {name} holds {current_type}, cannot assign {new_type}",
                    {"name": name, "expected": current_type, "actual": new_type},
                )

        self._values[name] = value
        self._revision += 1

    def update(self, values: Mapping[str, StateValue]) -> None:
        for name, value in values.items():
            self.set(name, value)

    def names(self, namespace: Optional[str] = None) -> List[str]:
        """Variable names, optionally limited to one namespace"""
        if namespace is None:
            return sorted(self._values)
        prefix = f"{namespace}."
        return sorted(name for name in self._values if name.startswith(prefix))

    def get_revision(self) -> int:
        """Number of accepted writes"""
        return self._revision

    def to_dict(self) -> Dict[str, StateValue]:
        """Copy of all variables"""
        return copy.deepcopy(self._values)
