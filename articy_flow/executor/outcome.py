"""
Traversal Outcomes

What an advance or choose call reports back to the embedding application.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from ..core.nodes import Node


class OutcomeKind(str, Enum):
    ADVANCED = "advanced"
    WAITING_FOR_CHOICE = "waiting_for_choice"
    END_OF_DIALOGUE = "end_of_dialogue"
    STOPPED = "stopped"


class Outcome:
    """Outcome base class"""

    kind: OutcomeKind

    @property
    def is_terminal(self) -> bool:
        return self.kind in (OutcomeKind.END_OF_DIALOGUE, OutcomeKind.STOPPED)


@dataclass(frozen=True)
class Advanced(Outcome):
    """The cursor moved onto node"""

    node: Node
    kind: OutcomeKind = field(default=OutcomeKind.ADVANCED, init=False)


@dataclass(frozen=True)
class WaitingForChoice(Outcome):
    """The cursor stays; one of targets must be chosen"""

    targets: List[Node]
    kind: OutcomeKind = field(default=OutcomeKind.WAITING_FOR_CHOICE, init=False)

    @property
    def target_ids(self) -> List[str]:
        return [target.id for target in self.targets]


@dataclass(frozen=True)
class EndOfDialogue(Outcome):
    kind: OutcomeKind = field(default=OutcomeKind.END_OF_DIALOGUE, init=False)


@dataclass(frozen=True)
class Stopped(Outcome):
    """Traversal was stopped from outside"""

    kind: OutcomeKind = field(default=OutcomeKind.STOPPED, init=False)
