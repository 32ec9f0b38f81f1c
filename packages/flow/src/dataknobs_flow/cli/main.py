"""Flow CLI tool for inspecting and simulating flow definitions.

This module provides a command-line interface for:
- Validating flow definition files
- Displaying flow structure (text, tree, Mermaid)
- Simulating flow runs with fixed condition values
- Printing the configuration JSON schema
"""

import json
import logging
import sys
from typing import Any, Dict, Iterable, List, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from .. import __version__
from ..config.builder import build_flow
from ..config.loader import FlowConfigLoader
from ..config.schema import FlowConfig, generate_json_schema
from ..core.builder import Flow
from ..core.render import render_mermaid, render_text
from ..exceptions import FlowError
from ..execution.history import RecordingOperation

console = Console()

_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose: bool):
    """Flow CLI - Activity Flow Inspection Tool"""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s: %(message)s")


@cli.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--details', '-d', is_flag=True, help='Show flow details')
def validate(config_file: str, details: bool):
    """Validate a flow definition file"""
    flow, config = _load_with_config(config_file)

    console.print("[green]✓[/green] Flow definition is valid!")
    if details:
        console.print(f"  Name: {escape(flow.name)}")
        console.print(f"  Version: {escape(config.version)}")
        if config.description:
            console.print(f"  Description: {escape(config.description)}")
        console.print(f"  Activities: {len(flow.activity_ids)}")
        console.print(f"  Conditions: {len(flow.condition_ids)}")
        if config.metadata:
            console.print(f"  Metadata: {escape(json.dumps(config.metadata, default=str))}")


@cli.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--format', '-f', 'output_format',
              type=click.Choice(['text', 'tree', 'mermaid']), default='text')
def show(config_file: str, output_format: str):
    """Display flow structure"""
    flow, config = _load_with_config(config_file)

    if output_format == 'text':
        click.echo(render_text(flow), nl=False)
    elif output_format == 'mermaid':
        click.echo(render_mermaid(flow), nl=False)
    else:
        console.print(_build_tree(flow, config))


@cli.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--condition', '-c', 'conditions', multiple=True,
              help='Condition value as ID=true|false (repeatable)')
@click.option('--default', 'default_value', type=click.Choice(['true', 'false']), default='false',
              help='Value for conditions not given with --condition')
@click.option('--start-at', '-s', help='Activity to jump to before running')
@click.option('--max-steps', '-m', type=int, default=1000, show_default=True,
              help='Stop after this many moves')
@click.option('--format', '-f', 'output_format', type=click.Choice(['table', 'json']), default='table')
def simulate(config_file: str, conditions: tuple, default_value: str,
             start_at: str | None, max_steps: int, output_format: str):
    """Run a flow with fixed condition values and print the notifications"""
    flow = _load(config_file)

    values = _parse_conditions(conditions, flow.condition_ids)
    operation = RecordingOperation(values, default=default_value == 'true')
    instance = flow.get_flow_instance(operation)

    if start_at is not None:
        activity_id = _coerce_id(start_at, flow.activity_ids)
        if not instance.reset_to(activity_id):
            console.print(f"[red]Unknown activity: {escape(start_at)}[/red]")
            sys.exit(1)

    steps = instance.run(max_steps=max_steps)
    finished = instance.is_finished()

    if output_format == 'json':
        click.echo(json.dumps({
            "flow": flow.name,
            "steps": steps,
            "finished": finished,
            "events": [event.to_dict() for event in operation.events],
        }, indent=2, default=str))
        return

    table = Table(title=f"{flow.name} - Simulation")
    table.add_column("#", style="dim")
    table.add_column("Event", style="cyan")
    table.add_column("From", style="green")
    table.add_column("To", style="green")
    for index, event in enumerate(operation.events, 1):
        table.add_row(
            str(index),
            event.kind.value,
            "-" if event.from_id is None else escape(str(event.from_id)),
            "-" if event.to_id is None else escape(str(event.to_id)),
        )
    console.print(table)

    console.print(f"Moves: {steps}")
    if finished:
        console.print("[green]Flow finished[/green]")
    else:
        console.print(f"[yellow]Flow not finished after {max_steps} moves[/yellow]")


@cli.command()
def schema():
    """Print the JSON schema of flow definition files"""
    click.echo(json.dumps(generate_json_schema(), indent=2))


def _load(config_file: str) -> Flow:
    return _load_with_config(config_file)[0]


def _load_with_config(config_file: str) -> Tuple[Flow, FlowConfig]:
    try:
        config = FlowConfigLoader().load_from_file(config_file)
        return build_flow(config), config
    except FlowError as e:
        console.print(f"[red]Error loading flow: {escape(str(e))}[/red]")
        sys.exit(1)


def _parse_conditions(entries: Iterable[str], known_ids: List[Any]) -> Dict[Any, bool]:
    values: Dict[Any, bool] = {}
    for entry in entries:
        name, sep, raw = entry.partition('=')
        if not sep or not name:
            raise click.BadParameter(f"expected ID=true|false, got '{entry}'", param_hint='--condition')
        raw = raw.strip().lower()
        if raw in _TRUE_VALUES:
            value = True
        elif raw in _FALSE_VALUES:
            value = False
        else:
            raise click.BadParameter(f"'{raw}' is not a boolean", param_hint='--condition')
        values[_coerce_id(name.strip(), known_ids)] = value
    return values


def _coerce_id(text: str, known_ids: List[Any]) -> Any:
    """Match command line text to an identifier of the flow's own type."""
    for known in known_ids:
        if str(known) == text:
            return known
    return text


def _build_tree(flow: Flow, config: FlowConfig | None = None) -> Tree:
    title = f"[bold]{escape(flow.name)}[/bold]"
    if config is not None:
        title += f" v{escape(config.version)}"
        if config.description:
            title += f" [dim]- {escape(config.description)}[/dim]"
    tree = Tree(title)
    end = flow.end_node
    activities = {activity.id: activity for activity in config.activities} if config else {}

    def label(node) -> str:
        if node is end:
            return "[red]END[/red]"
        return escape(str(node.activity_id))

    start_branch = tree.add("[green]START[/green]")
    start_branch.add(f"→ {label(flow.start_node.next_node)}")

    for activity_id, node in flow.nodes.items():
        declared = activities.get(activity_id)
        heading = escape(str(activity_id))
        if declared is not None and declared.description:
            heading += f" [dim]- {escape(declared.description)}[/dim]"
        branch = tree.add(heading)
        if declared is not None and declared.metadata:
            branch.add(f"[dim]metadata: {escape(json.dumps(declared.metadata, default=str))}[/dim]")
        if not node.is_conditional:
            branch.add(f"→ {label(node.next_node)}")
            continue
        pending = [(branch, node)]
        while pending:
            parent, chain = pending.pop()
            for condition_id, target in zip(chain.condition_ids, chain.branch_nodes):
                guard = f"if {escape(str(condition_id))}"
                if target is not end and target.activity_id is None:
                    pending.append((parent.add(guard), target))
                else:
                    parent.add(f"{guard} → {label(target)}")
            parent.add(f"otherwise → {label(chain.next_node)}")

    return tree


def main():
    """Main entry point for CLI"""
    cli()


if __name__ == '__main__':
    main()
