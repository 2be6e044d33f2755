"""
articy Export Document Model

The top level of an articy:draft JSON export: settings, project info, global
variables, packages of models and the hierarchy tree.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import (
    Field,
    SerializeAsAny,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import LoadError, NoDefaultPackage
from .nodes import (
    DialogueNode,
    ExportModel,
    FlowNode,
    Id,
    Node,
    NodeKind,
    parse_node,
)

logger = logging.getLogger(__name__)


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value in ("True", "true"):
        return True
    if value in ("False", "false"):
        return False
    raise ValueError(f"Invalid value for boolean: {value!r}")


class Settings(ExportModel):
    """Export settings ("Settings")"""

    localization: bool = Field(False, alias="set_Localization")
    included_nodes: List[str] = Field(default_factory=list, alias="set_IncludedNodes")
    use_script_support: bool = Field(False, alias="set_UseScriptSupport")
    export_version: str = ""

    @field_validator("localization", "use_script_support", mode="before")
    @classmethod
    def parse_bool(cls, v):
        return _to_bool(v)

    @field_validator("included_nodes", mode="before")
    @classmethod
    def parse_node_list(cls, v):
        # Exported as one comma separated string
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


class ProjectInfo(ExportModel):
    """Project description ("Project")"""

    name: str = ""
    detail_name: str = ""
    guid: str = ""
    technical_name: str = ""


class Variable(ExportModel):
    """
    Global variable declaration

    The export stores every value as text; it is converted according to the
    declared type.
    """

    name: str = Field(alias="Variable")
    type: str
    value: Union[bool, int, str]
    description: str = ""

    @model_validator(mode="before")
    @classmethod
    def convert_value(cls, data):
        if not isinstance(data, dict):
            return data

        data = dict(data)
        var_type = data.get("Type", data.get("type"))
        value_key = "Value" if "Value" in data else "value"
        raw = data.get(value_key)

        if var_type == "Boolean":
            data[value_key] = _to_bool(raw)
        elif var_type == "Integer":
            if isinstance(raw, bool):
                raise ValueError(f"Invalid value for integer: {raw!r}")
            try:
                data[value_key] = int(raw)
            except (TypeError, ValueError):
                raise ValueError(f"Invalid value for integer: {raw!r}")
        elif var_type == "String":
            data[value_key] = "" if raw is None else str(raw)
        else:
            raise ValueError(f"Unsupported variable type: {var_type!r}")

        return data


class GlobalVariable(ExportModel):
    """Variable set ("GlobalVariables" entry)"""

    namespace: str
    description: str = ""
    variables: List[Variable] = Field(default_factory=list)

    def qualified(self) -> Dict[str, Union[bool, int, str]]:
        """Variables keyed by their dotted name"""
        return {f"{self.namespace}.{var.name}": var.value for var in self.variables}


class Package(ExportModel):
    """Model container; only the default package is traversed"""

    name: str = ""
    description: str = ""
    is_default_package: bool = False
    models: List[SerializeAsAny[Node]] = Field(default_factory=list)

    @field_validator("models", mode="before")
    @classmethod
    def parse_models(cls, v):
        """Parse model list"""
        if v is None:
            return []
        return [parse_node(model) for model in v]


class HierarchyEntry(ExportModel):
    """
    Containment tree entry

    Mirrors the folder structure of the authoring tool, independent of flow
    graph connections.
    """

    id: Id
    technical_name: str = ""
    kind: str = Field(alias="Type")
    children: List["HierarchyEntry"] = Field(default_factory=list)

    @field_validator("children", mode="before")
    @classmethod
    def default_children(cls, v):
        return [] if v is None else v

    def find_child(self, child_id: Id) -> Optional["HierarchyEntry"]:
        for child in self.children:
            if child.id == child_id:
                return child
        return None


class ArticyProject(ExportModel):
    """
    articy Export (top level)

    Must contain:
    - packages: at least one package marked as default
    - hierarchy: tree whose root has a child of kind Flow
    """

    settings: Optional[Settings] = None
    project: Optional[ProjectInfo] = None
    global_variables: List[GlobalVariable] = Field(default_factory=list)
    object_definitions: List[Dict[str, Any]] = Field(default_factory=list)
    packages: List[Package] = Field(default_factory=list)
    script_methods: List[Any] = Field(default_factory=list)
    hierarchy: HierarchyEntry

    def get_default_package(self) -> Package:
        for package in self.packages:
            if package.is_default_package:
                return package
        raise NoDefaultPackage("Export has no package marked as default")

    def get_main_flow(self) -> Optional[HierarchyEntry]:
        for entry in self.hierarchy.children:
            if entry.kind == NodeKind.FLOW.value:
                return entry
        return None

    def get_models_of_type(self, kind: str) -> List[Node]:
        """All default package nodes of the given kind (custom kinds included)"""
        return [
            model for model in self.get_default_package().models if model.kind == kind
        ]

    def get_dialogues_in_flow(self, flow_id: Id) -> List[Node]:
        """Dialogues whose direct parent is flow_id"""
        return [
            model
            for model in self.get_default_package().models
            if isinstance(model, DialogueNode) and model.parent == flow_id
        ]

    def get_hierarchy(self, path: List[Id]) -> Optional[HierarchyEntry]:
        """Follow path (root-to-node ids) from the hierarchy root"""
        current = self.hierarchy
        for node_id in path:
            current = current.find_child(node_id)
            if current is None:
                return None
        return current

    def global_variable_values(self) -> Dict[str, Union[bool, int, str]]:
        values: Dict[str, Union[bool, int, str]] = {}
        for variable_set in self.global_variables:
            values.update(variable_set.qualified())
        return values

    def validate_references(self) -> List[str]:
        """
        Validate reference validity

        Check that every connection of the default package ends on an existing
        node and input pin, and that every node's parent exists (in the package
        or in the hierarchy)
        """
        errors: List[str] = []
        try:
            package = self.get_default_package()
        except NoDefaultPackage as e:
            return [e.message]

        by_id = {model.id: model for model in package.models if model.id}
        hierarchy_ids = set(_walk_hierarchy_ids(self.hierarchy))

        for model in package.models:
            if model.parent and model.parent not in by_id and model.parent not in hierarchy_ids:
                errors.append(f"Model {model.id} references unknown parent: {model.parent}")

            for pin in model.get_output_pins():
                for connection in pin.connections:
                    target = by_id.get(connection.target)
                    if target is None:
                        errors.append(
                            f"Pin {pin.id} of {model.id} references unknown target: {connection.target}"
                        )
                        continue
                    if not isinstance(target, FlowNode) or target.find_input_pin(connection.target_pin) is None:
                        errors.append(
                            f"Pin {pin.id} of {model.id} references unknown input pin "
                            f"{connection.target_pin} on {connection.target}"
                        )

        return errors

    def build_flow_graph(self) -> "FlowGraph":
        """Build the read-only traversal index"""
        from .graph import FlowGraph

        return FlowGraph(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArticyProject":
        """Create project from dictionary"""
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return self.model_dump(by_alias=True, exclude_none=True)


def _walk_hierarchy_ids(entry: HierarchyEntry):
    yield entry.id
    for child in entry.children:
        yield from _walk_hierarchy_ids(child)


def load_project(
    path: Union[str, Path], check_references: bool = True
) -> ArticyProject:
    """
    Load an export from file

    .json files are read with json, .yaml/.yml with yaml.safe_load.

    Raises:
        LoadError: unreadable file, invalid content, or dangling references
            when check_references is set
    """
    path = Path(path)
    if not path.exists():
        raise LoadError(f"Export file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise LoadError(f"Could not read export {path}: {e}") from e

    if not isinstance(data, dict):
        raise LoadError(f"Export {path} must contain an object at top level")

    try:
        project = ArticyProject.from_dict(data)
    except ValidationError as e:
        raise LoadError(
            f"Export {path} does not match the articy export format",
            {"errors": e.errors(include_url=False)},
        ) from e

    if check_references:
        errors = project.validate_references()
        if errors:
            raise LoadError(
                f"Reference validation failed for {path}: {len(errors)} problem(s)",
                {"errors": errors},
            )

    logger.info(
        "Loaded export %s: %d package(s), %d variable set(s)",
        path,
        len(project.packages),
        len(project.global_variables),
    )
    return project
