"""
articy Node Definitions

Flow graph vertices as they appear in the "Models" array of an export package.
Every entry has the shape {"Type": <kind>, "Properties": {...}} with PascalCase
property names; unknown kinds are kept as CustomNode.
"""

import logging
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_pascal

logger = logging.getLogger(__name__)

# Opaque identifier ("0x0100000100000529" in real exports)
Id = str


class NodeKind(str, Enum):
    """Node kinds known to the traversal engine"""

    DIALOGUE = "Dialogue"
    DIALOGUE_FRAGMENT = "DialogueFragment"
    FLOW_FRAGMENT = "FlowFragment"
    HUB = "Hub"
    CONDITION = "Condition"
    INSTRUCTION = "Instruction"
    USER_FOLDER = "UserFolder"
    COMMENT = "Comment"
    ENTITY = "Entity"

    # Hierarchy only
    FLOW = "Flow"


# First child of a container the cursor may land on
PLAYABLE_KINDS = frozenset(
    {
        NodeKind.DIALOGUE_FRAGMENT.value,
        NodeKind.CONDITION.value,
        NodeKind.HUB.value,
        NodeKind.FLOW_FRAGMENT.value,
    }
)


class ExportModel(BaseModel):
    """Base for everything read from an export: PascalCase keys, read-only"""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Connection(ExportModel):
    """Directed edge from an output pin to an input pin of another node"""

    target: Id
    target_pin: Id
    label: str = ""


class Pin(ExportModel):
    """
    Node port

    On input pins, text is the gating expression of every connection that
    ends there. An empty text means always enabled.
    """

    id: Id
    owner: Id
    text: str = ""
    connections: List[Connection] = Field(default_factory=list)

    @field_validator("connections", mode="before")
    @classmethod
    def default_connections(cls, v):
        # Pins without connections are exported without the key or as null
        return [] if v is None else v

    @property
    def gate(self) -> str:
        return self.text.strip()


class Node(ExportModel):
    """
    Node base class

    All nodes carry:
    - id: unique identifier within the package
    - parent: identifier of the containing node (or folder)
    """

    node_kind: ClassVar[str] = ""

    id: Id
    parent: Id = ""
    technical_name: str = ""

    @property
    def kind(self) -> str:
        return self.node_kind

    def is_kind(self, *kinds: NodeKind) -> bool:
        return self.kind in {k.value for k in kinds}

    def get_text(self) -> Optional[str]:
        return None

    def get_display_name(self) -> Optional[str]:
        return None

    def get_input_pins(self) -> List[Pin]:
        return []

    def get_output_pins(self) -> List[Pin]:
        return []

    def get_label(self) -> str:
        """Short human readable label, used when listing choices"""
        return self.get_display_name() or self.technical_name or self.id


class FlowNode(Node):
    """Node that takes part in the flow graph through pins"""

    input_pins: List[Pin] = Field(default_factory=list)
    output_pins: List[Pin] = Field(default_factory=list)

    @field_validator("input_pins", "output_pins", mode="before")
    @classmethod
    def default_pins(cls, v):
        return [] if v is None else v

    def get_input_pins(self) -> List[Pin]:
        return self.input_pins

    def get_output_pins(self) -> List[Pin]:
        return self.output_pins

    def find_input_pin(self, pin_id: Id) -> Optional[Pin]:
        for pin in self.input_pins:
            if pin.id == pin_id:
                return pin
        return None


class DialogueNode(FlowNode):
    """Conversation root. A container, not playable content."""

    node_kind: ClassVar[str] = NodeKind.DIALOGUE.value

    display_name: str = ""
    text: str = ""

    def get_text(self) -> Optional[str]:
        return self.text

    def get_display_name(self) -> Optional[str]:
        return self.display_name


class FlowFragmentNode(FlowNode):
    """Structural grouping container"""

    node_kind: ClassVar[str] = NodeKind.FLOW_FRAGMENT.value

    display_name: str = ""
    text: str = ""

    def get_text(self) -> Optional[str]:
        return self.text

    def get_display_name(self) -> Optional[str]:
        return self.display_name


class DialogueFragmentNode(FlowNode):
    """A playable line of dialogue"""

    node_kind: ClassVar[str] = NodeKind.DIALOGUE_FRAGMENT.value

    text: str = ""
    menu_text: str = ""
    stage_directions: str = ""
    speaker: Id = ""
    external_id: str = ""

    def get_text(self) -> Optional[str]:
        return self.text

    def get_label(self) -> str:
        return self.menu_text or self.text or self.technical_name or self.id


class HubNode(FlowNode):
    """Branch point without content"""

    node_kind: ClassVar[str] = NodeKind.HUB.value

    display_name: str = ""
    text: str = ""

    def get_text(self) -> Optional[str]:
        return self.text

    def get_display_name(self) -> Optional[str]:
        return self.display_name


class ConditionNode(FlowNode):
    """
    Boolean branch

    The first output pin is the true branch, the last one the false branch.
    """

    node_kind: ClassVar[str] = NodeKind.CONDITION.value

    display_name: str = ""
    text: str = ""
    expression: str = ""

    def get_text(self) -> Optional[str]:
        return self.text

    def get_display_name(self) -> Optional[str]:
        return self.display_name


class InstructionNode(FlowNode):
    """Runs a mutating script statement, then continues on its only output"""

    node_kind: ClassVar[str] = NodeKind.INSTRUCTION.value

    display_name: str = ""
    text: str = ""
    expression: str = ""

    def get_text(self) -> Optional[str]:
        return self.text

    def get_display_name(self) -> Optional[str]:
        return self.display_name


class UserFolderNode(Node):
    node_kind: ClassVar[str] = NodeKind.USER_FOLDER.value


class CommentNode(Node):
    node_kind: ClassVar[str] = NodeKind.COMMENT.value

    text: str = ""
    created_by: str = ""
    created_on: str = ""

    def get_text(self) -> Optional[str]:
        return self.text


class EntityNode(Node):
    node_kind: ClassVar[str] = NodeKind.ENTITY.value

    display_name: str = ""
    text: str = ""

    def get_text(self) -> Optional[str]:
        return self.text

    def get_display_name(self) -> Optional[str]:
        return self.display_name


class CustomNode(Node):
    """
    Fallback for kinds this package does not model

    The raw "Properties" mapping is kept untouched in payload.
    """

    type_name: str
    payload: Dict[str, Any] = Field(default_factory=dict)

    @property
    def kind(self) -> str:
        return self.type_name

    def get_display_name(self) -> Optional[str]:
        value = self.payload.get("DisplayName")
        return value if isinstance(value, str) else None


NODE_TYPES: Dict[str, Type[Node]] = {
    node_class.node_kind: node_class
    for node_class in (
        DialogueNode,
        FlowFragmentNode,
        DialogueFragmentNode,
        HubNode,
        ConditionNode,
        InstructionNode,
        UserFolderNode,
        CommentNode,
        EntityNode,
    )
}


def parse_node(data: Dict[str, Any]) -> Node:
    """
    Parse node from a "Models" entry

    A known kind whose properties do not validate falls back to CustomNode,
    so exports from newer articy versions still load.
    """
    if isinstance(data, Node):
        return data

    kind = data.get("Type")
    if not isinstance(kind, str):
        raise ValueError(f"Model entry has no Type: {data!r:.120}")

    properties = data.get("Properties") or {}
    if not isinstance(properties, dict):
        raise ValueError(f"Properties of {kind} model must be an object")

    node_class = NODE_TYPES.get(kind)
    if node_class is not None:
        try:
            return node_class.model_validate(properties)
        except ValidationError as e:
            logger.warning(
                "Model %s of type %s did not validate (%d errors), keeping it as custom",
                properties.get("Id"),
                kind,
                e.error_count(),
            )

    return CustomNode(
        type_name=kind,
        id=str(properties.get("Id", "")),
        parent=str(properties.get("Parent", "")),
        technical_name=str(properties.get("TechnicalName", "")),
        payload=dict(properties),
    )
