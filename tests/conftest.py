"""
Shared test fixtures

Exports are built as plain dictionaries in the PascalCase shape articy:draft
writes, so the loader is exercised on every test.

Sample flow (main flow "flow"):

    D   F1 -> C1(game.flag == true) -> F2 | F3 -> D
    DC  G1 -> C2(game.gold > 5) -> C3(game.name == "Hero") -> G2 | G3 -> DC
    DH  H0 -> O1 | O2 [game.gold >= 20] | O3 [game.flag || game.gold > 5]
        O1, O2, O3 -> HUB1 -> P1 | P2 -> DH
    DI  INS1 (listed first) ... I0 -> INS2(gold += 15; flag = true) -> J1
        J1 -> K1 [game.gold >= 20] | K2 [game.gold >= 100] -> DI
    DE  L0 -> INS3(game.missing += 1) -> L1 -> DE
    DM  M0 -> FF
    FF  FF1 -> FF2 -> FF
"""

import json
from typing import Any, Dict, List, Optional, Sequence

import pytest

from articy_flow.core.document import ArticyProject


def make_pin(
    pin_id: str, owner: str, text: str = "", targets: Sequence[str] = ()
) -> Dict[str, Any]:
    return {
        "Id": pin_id,
        "Owner": owner,
        "Text": text,
        "Connections": [
            {"Label": "", "TargetPin": f"{target}.in", "Target": target}
            for target in targets
        ],
    }


def make_model(
    kind: str,
    node_id: str,
    parent: str,
    targets: Sequence[str] = (),
    gate: str = "",
    **properties: Any,
) -> Dict[str, Any]:
    """Flow node with one input pin (gated by gate) and one output pin"""
    props = {
        "Id": node_id,
        "Parent": parent,
        "TechnicalName": node_id,
        "InputPins": [make_pin(f"{node_id}.in", node_id, gate)],
        "OutputPins": [make_pin(f"{node_id}.out", node_id, targets=targets)],
    }
    props.update(properties)
    return {"Type": kind, "Properties": props}


def make_condition(
    node_id: str,
    parent: str,
    expression: str,
    true_target: Optional[str],
    false_target: Optional[str],
) -> Dict[str, Any]:
    return {
        "Type": "Condition",
        "Properties": {
            "Id": node_id,
            "Parent": parent,
            "TechnicalName": node_id,
            "Expression": expression,
            "InputPins": [make_pin(f"{node_id}.in", node_id)],
            "OutputPins": [
                make_pin(f"{node_id}.true", node_id, targets=[true_target] if true_target else []),
                make_pin(f"{node_id}.false", node_id, targets=[false_target] if false_target else []),
            ],
        },
    }


def make_entry(node_id: str, kind: str, children: Sequence[Dict[str, Any]] = ()) -> Dict[str, Any]:
    return {"Id": node_id, "TechnicalName": node_id, "Type": kind, "Children": list(children)}


def make_export(
    models: List[Dict[str, Any]],
    flow_children: Sequence[Dict[str, Any]] = (),
    variables: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    return {
        "Settings": {
            "set_Localization": "False",
            "set_IncludedNodes": "Settings, Project, GlobalVariables, Packages, Hierarchy",
            "set_UseScriptSupport": "True",
            "ExportVersion": "1.0",
        },
        "Project": {
            "Name": "Sample",
            "DetailName": "Sample project",
            "Guid": "00000000-0000-0000-0000-000000000000",
            "TechnicalName": "Sample",
        },
        "GlobalVariables": variables or [],
        "ObjectDefinitions": [],
        "Packages": [
            {
                "Name": "Default",
                "Description": "",
                "IsDefaultPackage": True,
                "Models": models,
            }
        ],
        "ScriptMethods": [],
        "Hierarchy": make_entry(
            "project", "Project", [make_entry("flow", "Flow", flow_children)]
        ),
    }


def _sample_variables() -> List[Dict[str, Any]]:
    return [
        {
            "Namespace": "game",
            "Description": "Game state",
            "Variables": [
                {"Variable": "flag", "Type": "Boolean", "Value": "False", "Description": ""},
                {"Variable": "gold", "Type": "Integer", "Value": "10", "Description": ""},
                {"Variable": "name", "Type": "String", "Value": "Hero", "Description": ""},
            ],
        }
    ]


def _dialogue(node_id: str) -> Dict[str, Any]:
    return make_model("Dialogue", node_id, "flow", DisplayName=f"Dialogue {node_id}")


def _fragment(node_id: str, parent: str, targets: Sequence[str] = (), gate: str = "", text: str = "") -> Dict[str, Any]:
    return make_model(
        "DialogueFragment",
        node_id,
        parent,
        targets=targets,
        gate=gate,
        Text=text or f"Line {node_id}",
        MenuText=f"Menu {node_id}",
        Speaker="npc",
    )


@pytest.fixture
def sample_export() -> Dict[str, Any]:
    """Export dictionary covering every traversal path"""
    models = [
        # D: single condition
        _dialogue("D"),
        _fragment("F1", "D", ["C1"], text="Hello"),
        make_condition("C1", "D", "game.flag == true", "F2", "F3"),
        _fragment("F2", "D", ["D"], text="Flag is set"),
        _fragment("F3", "D", ["D"], text="Flag is not set"),
        # DC: chained conditions
        _dialogue("DC"),
        _fragment("G1", "DC", ["C2"]),
        make_condition("C2", "DC", "game.gold > 5", "C3", "G3"),
        make_condition("C3", "DC", 'game.name == "Hero"', "G2", "G3"),
        _fragment("G2", "DC", ["DC"]),
        _fragment("G3", "DC", ["DC"]),
        # DH: gated choices and a hub
        _dialogue("DH"),
        _fragment("H0", "DH", ["O1", "O2", "O3"], text="Pick one"),
        _fragment("O1", "DH", ["HUB1"]),
        _fragment("O2", "DH", ["HUB1"], gate="game.gold >= 20"),
        _fragment("O3", "DH", ["HUB1"], gate="game.flag || game.gold > 5"),
        make_model("Hub", "HUB1", "DH", targets=["P1", "P2"], DisplayName="Hub"),
        _fragment("P1", "DH", ["DH"]),
        _fragment("P2", "DH", ["DH"]),
        # DI: instruction feeding gating
        _dialogue("DI"),
        make_model(
            "Instruction", "INS1", "DI", targets=["I0"], Expression="game.gold = 0"
        ),
        _fragment("I0", "DI", ["INS2"]),
        make_model(
            "Instruction",
            "INS2",
            "DI",
            targets=["J1"],
            Expression="game.gold += 15; game.flag = true",
        ),
        _fragment("J1", "DI", ["K1", "K2"]),
        _fragment("K1", "DI", ["DI"], gate="game.gold >= 20"),
        _fragment("K2", "DI", ["DI"], gate="game.gold >= 100"),
        # DE: failing instruction
        _dialogue("DE"),
        _fragment("L0", "DE", ["INS3"]),
        make_model(
            "Instruction", "INS3", "DE", targets=["L1"], Expression="game.missing += 1"
        ),
        _fragment("L1", "DE", ["DE"]),
        # DM / FF: flow fragment
        _dialogue("DM"),
        _fragment("M0", "DM", ["FF"]),
        make_model("FlowFragment", "FF", "flow", DisplayName="Fragment"),
        _fragment("FF1", "FF", ["FF2"]),
        _fragment("FF2", "FF", ["FF"]),
        # Metadata and unknown kinds
        {"Type": "Comment", "Properties": {"Id": "NOTE", "Parent": "D", "Text": "todo", "CreatedBy": "writer"}},
        {"Type": "Entity", "Properties": {"Id": "npc", "Parent": "flow", "DisplayName": "Guard"}},
        {"Type": "Jump", "Properties": {"Id": "X1", "Parent": "flow", "TechnicalName": "Jump_01", "Target": "D"}},
    ]

    flow_children = [
        make_entry("D", "Dialogue", [
            make_entry("NOTE", "Comment"),
            make_entry("F1", "DialogueFragment"),
            make_entry("C1", "Condition"),
            make_entry("F2", "DialogueFragment"),
            make_entry("F3", "DialogueFragment"),
        ]),
        make_entry("DC", "Dialogue", [
            make_entry("G1", "DialogueFragment"),
            make_entry("C2", "Condition"),
            make_entry("C3", "Condition"),
            make_entry("G2", "DialogueFragment"),
            make_entry("G3", "DialogueFragment"),
        ]),
        make_entry("DH", "Dialogue", [
            make_entry("H0", "DialogueFragment"),
            make_entry("O1", "DialogueFragment"),
            make_entry("O2", "DialogueFragment"),
            make_entry("O3", "DialogueFragment"),
            make_entry("HUB1", "Hub"),
            make_entry("P1", "DialogueFragment"),
            make_entry("P2", "DialogueFragment"),
        ]),
        make_entry("DI", "Dialogue", [
            make_entry("INS1", "Instruction"),
            make_entry("I0", "DialogueFragment"),
            make_entry("INS2", "Instruction"),
            make_entry("J1", "DialogueFragment"),
            make_entry("K1", "DialogueFragment"),
            make_entry("K2", "DialogueFragment"),
        ]),
        make_entry("DE", "Dialogue", [
            make_entry("L0", "DialogueFragment"),
            make_entry("INS3", "Instruction"),
            make_entry("L1", "DialogueFragment"),
        ]),
        make_entry("DM", "Dialogue", [make_entry("M0", "DialogueFragment")]),
        make_entry("FF", "FlowFragment", [
            make_entry("FF1", "DialogueFragment"),
            make_entry("FF2", "DialogueFragment"),
        ]),
        make_entry("npc", "Entity"),
        make_entry("X1", "Jump"),
    ]

    return make_export(models, flow_children, _sample_variables())


@pytest.fixture
def sample_project(sample_export) -> ArticyProject:
    return ArticyProject.from_dict(sample_export)


@pytest.fixture
def sample_graph(sample_project):
    return sample_project.build_flow_graph()


@pytest.fixture
def export_file(tmp_path, sample_export):
    """Sample export written as JSON"""
    path = tmp_path / "export.json"
    path.write_text(json.dumps(sample_export), encoding="utf-8")
    return path
