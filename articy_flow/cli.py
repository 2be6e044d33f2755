"""
articy-flow CLI

Command line tool for stepping through and inspecting articy:draft exports
"""

import json
import sys
from collections import Counter
from typing import Dict, List, Optional, Tuple

import click

from . import __version__
from .config import (
    ArticyFlowConfig,
    ensure_valid,
    load_config_from_env,
    load_config_from_file,
)
from .core.document import ArticyProject, load_project
from .core.errors import ArticyFlowError, ChoiceNotAvailable
from .core.nodes import Node
from .core.state import StateValue, VariableStore
from .executor.interpreter import Interpreter
from .executor.outcome import Advanced, Outcome, WaitingForChoice
from .utils.logging import configure_logging

PLAY_HELP = "Enter: advance | c N: choose N | a: choices | v: node | s: state | q: quit"


def _load_config(config_path: Optional[str]) -> ArticyFlowConfig:
    try:
        config = load_config_from_file(config_path) if config_path else load_config_from_env()
        return ensure_valid(config)
    except ArticyFlowError as e:
        _fail(e)


def _load(export: str, config: ArticyFlowConfig) -> ArticyProject:
    try:
        return load_project(export, check_references=config.check_references)
    except ArticyFlowError as e:
        _fail(e)


def _fail(error: ArticyFlowError) -> None:
    click.echo(f"Error: {error.message}", err=True)
    for problem in error.details.get("errors", []):
        click.echo(f"  - {problem}", err=True)
    sys.exit(1)


def _parse_value(raw: str) -> StateValue:
    if raw in ("true", "false"):
        return raw == "true"
    try:
        return int(raw)
    except ValueError:
        pass
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "\"'":
        return raw[1:-1]
    return raw


def _parse_assignments(assignments: Tuple[str, ...]) -> Dict[str, StateValue]:
    values: Dict[str, StateValue] = {}
    for assignment in assignments:
        name, sep, raw = assignment.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(
                f"expected name=value, got {assignment!r}", param_hint="--set"
            )
        values[name.strip()] = _parse_value(raw.strip())
    return values


def _echo_node(node: Node) -> None:
    speaker = getattr(node, "speaker", "")
    prefix = f"{speaker}: " if speaker else ""
    click.echo(f"[{node.kind}] {node.id}")
    text = node.get_text()
    if text:
        click.echo(f"  {prefix}{text}")


def _echo_choices(targets: List[Node]) -> None:
    if not targets:
        click.echo("No choices available")
        return
    click.echo("Choices:")
    for index, target in enumerate(targets):
        click.echo(f"  [{index}] {target.get_label()} ({target.id})")


def _echo_outcome(outcome: Outcome) -> None:
    if isinstance(outcome, Advanced):
        _echo_node(outcome.node)
    elif isinstance(outcome, WaitingForChoice):
        _echo_choices(outcome.targets)
    else:
        click.echo(outcome.kind.value.replace("_", " ").capitalize())


@click.group()
@click.version_option(version=__version__)
def cli():
    """articy-flow - step through articy:draft dialogues"""
    pass


@cli.command()
@click.argument("export", type=click.Path(exists=True))
@click.option("--entry", "-e", required=True, help="Id of the Dialogue or node to start at")
@click.option(
    "--set", "assignments",
    multiple=True,
    help="Initial variable, as namespace.name=value (repeatable)"
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True),
    help="Configuration file (JSON or YAML)"
)
def play(export, entry, assignments, config_path):
    """Play a dialogue interactively"""
    config = _load_config(config_path)
    configure_logging(config.log_level, config.log_format, config.log_renderer)

    project = _load(export, config)
    initial_state = _parse_assignments(assignments)

    try:
        interpreter = Interpreter(project, initial_state=initial_state, config=config)
        interpreter.start(entry)
        _echo_node(interpreter.get_current_node())
    except ArticyFlowError as e:
        _fail(e)

    click.echo(PLAY_HELP)

    while not interpreter.is_stopped:
        try:
            command = click.prompt(">", default="", show_default=False).strip()
        except click.Abort:
            break

        try:
            if command == "":
                outcome = interpreter.advance()
                _echo_outcome(outcome)
                if outcome.is_terminal:
                    break
            elif command == "a":
                _echo_choices(interpreter.get_available_connections())
            elif command.startswith("c"):
                targets = interpreter.get_available_connections()
                try:
                    target = targets[int(command[1:].strip())]
                except (ValueError, IndexError):
                    click.echo(f"Invalid choice: {command[1:].strip()!r}", err=True)
                    continue
                _echo_outcome(interpreter.choose(target.id))
            elif command == "v":
                click.echo(interpreter.get_current_node().model_dump_json(by_alias=True, indent=2))
            elif command == "s":
                click.echo(json.dumps(interpreter.state.to_dict(), indent=2, ensure_ascii=False))
            elif command == "q":
                interpreter.stop()
            else:
                click.echo(PLAY_HELP)
        except ChoiceNotAvailable as e:
            click.echo(f"Error: {e.message}", err=True)
        except ArticyFlowError as e:
            _fail(e)

    for diagnostic in interpreter.diagnostics:
        click.echo(f"Warning: {diagnostic.node_id}: {diagnostic.message}", err=True)


@cli.command()
@click.argument("export", type=click.Path(exists=True))
def validate(export):
    """Validate an export"""
    try:
        project = load_project(export, check_references=False)
    except ArticyFlowError as e:
        _fail(e)

    errors = project.validate_references()
    if errors:
        click.echo("Validation failed:", err=True)
        for error in errors:
            click.echo(f"  - {error}", err=True)
        sys.exit(1)

    try:
        graph = project.build_flow_graph()
        main_flow_id = graph.main_flow_id
    except ArticyFlowError as e:
        _fail(e)

    click.echo(f"Export is valid: {export}")
    click.echo(f"Nodes: {len(graph)}")
    click.echo(f"Main flow: {main_flow_id}")


@cli.command()
@click.argument("export", type=click.Path(exists=True))
def show(export):
    """Show export structure"""
    try:
        project = load_project(export, check_references=False)
        graph = project.build_flow_graph()
    except ArticyFlowError as e:
        _fail(e)

    name = project.project.name if project.project else ""
    click.echo(f"Project: {name or export}")
    click.echo(f"Default package: {graph.package.name}")
    click.echo()

    click.echo("Nodes:")
    for kind, count in sorted(Counter(node.kind for node in graph).items()):
        click.echo(f"  - {kind}: {count}")

    main_flow = project.get_main_flow()
    if main_flow is None:
        return

    click.echo()
    click.echo("Dialogues:")
    for dialogue in project.get_dialogues_in_flow(main_flow.id):
        children = graph.get_children(dialogue.id)
        click.echo(f"  - {dialogue.id} {dialogue.get_label()} ({len(children)} nodes)")


@cli.command()
@click.argument("export", type=click.Path(exists=True))
@click.option("--namespace", "-n", help="Only list variables of this namespace")
def variables(export, namespace):
    """List global variables and their initial values"""
    try:
        project = load_project(export, check_references=False)
        store = VariableStore(project.global_variable_values())
    except ArticyFlowError as e:
        _fail(e)

    for name in store.names(namespace):
        click.echo(f"{name} = {json.dumps(store.get(name))}")


def main():
    """CLI entry point"""
    cli()


if __name__ == "__main__":
    main()
