"""Command-line interface for protolite code generation."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from protolite.generator import logs
from protolite.generator.errors import GeneratorError
from protolite.generator.options import options_from_parameter
from protolite.generator.python import generate_files
from protolite.generator.registry import TypeRegistry
from protolite.generator.request import files_from_descriptor_set

_LOG = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Protolite protobuf code generator."""
    logs.install(logging.DEBUG if verbose else logging.INFO)


@cli.command()
@click.option(
    "--input",
    "-i",
    "input_file",
    required=True,
    help="FileDescriptorSet written by protoc --descriptor_set_out",
)
@click.option("--output", "-o", "output_dir", required=True, help="Output directory")
@click.option(
    "--parameter",
    "-p",
    default="",
    help="Generator parameters, e.g. context=true,forceLong=long",
)
def gen(input_file: str, output_dir: str, parameter: str) -> None:
    """Generate Python code from a descriptor set."""
    with open(input_file, "rb") as f:
        data = f.read()

    try:
        options = options_from_parameter(parameter)
        generated = generate_files(files_from_descriptor_set(data), options)
    except GeneratorError as e:
        print(f"Error: {e}")
        sys.exit(1)

    for output_file in generated:
        path = Path(output_dir) / output_file.name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(output_file.content, encoding="utf-8")
        _LOG.info("Wrote %s", path)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="FileDescriptorSet file")
@click.option("--parameter", "-p", default="", help="Generator parameters")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, parameter: str, output_json: bool) -> None:
    """Display the types a descriptor set defines."""
    with open(input_file, "rb") as f:
        data = f.read()

    try:
        options = options_from_parameter(parameter)
        registry = TypeRegistry.build(files_from_descriptor_set(data), options)
    except GeneratorError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if output_json:
        _output_json(registry)
    else:
        _output_plain(registry)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="FileDescriptorSet file")
def dump(input_file: str) -> None:
    """Print the descriptor model the generator works from as JSON."""
    with open(input_file, "rb") as f:
        data = f.read()

    files = files_from_descriptor_set(data)
    print(json.dumps([file.to_dict() for file in files], indent=2))


def _kind(entry_is_enum: bool) -> str:
    return "enum" if entry_is_enum else "message"


def _output_json(registry: TypeRegistry) -> None:
    """Output registry entries as JSON."""
    data = {
        entry.schema_name: {
            "module": entry.import_path,
            "name": entry.name,
            "kind": _kind(entry.is_enum),
        }
        for entry in registry
    }
    print(json.dumps(data, indent=2))


def _output_plain(registry: TypeRegistry) -> None:
    """Output registry entries using rich text formatting."""
    console = Console()

    console.print("[bold cyan]Types[/bold cyan]")
    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Schema Name", style="white")
    table.add_column("Module", style="yellow")
    table.add_column("Name", style="green")
    table.add_column("Kind", style="dim")

    for entry in registry:
        table.add_row(entry.schema_name, entry.import_path, entry.name, _kind(entry.is_enum))

    console.print(table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
