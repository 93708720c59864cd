"""
Command-line interface for the mapper generator.

Usage:
    ngormgen [flags] [directory]
    ngormgen [flags] files... # Must be a single package
"""

import argparse
import sys
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.syntax import Syntax
from rich.table import Table

from .codegen import generate_from_paths
from .codegen.core.config import GeneratorConfig, load_config
from .codegen.core.errors import ConfigError
from .codegen.core.generator import GenerationResult, default_output_path, write_output
from .logging_config import get_logger, setup_logging

logger = get_logger(__name__)

# Initialize rich console
console = Console()


def create_parser() -> argparse.ArgumentParser:
    """Build the ngormgen argument parser."""
    parser = argparse.ArgumentParser(
        prog="ngormgen",
        description="Generate Nebula graph mappers for Tag and Edge declarations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ngormgen models/
  ngormgen --type Person,Follow --trim-prefix Graph models/
  ngormgen --stdout models/person.py models/follow.py
        """.strip(),
    )

    parser.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help="Directory, or .py files from a single directory (default: .)",
    )

    parser.add_argument(
        "--type",
        dest="type_names",
        metavar="NAMES",
        help="Comma-separated list of class names; default all classes",
    )

    parser.add_argument(
        "--output",
        "-o",
        metavar="FILE",
        help="Output file name; default <srcdir>/ngorm_generate.py",
    )

    parser.add_argument(
        "--trim-prefix",
        metavar="PREFIX",
        help="Trim the prefix from the generated names",
    )

    parser.add_argument(
        "--line-comment",
        action="store_true",
        help="Use the class docstring as the tag or edge comment",
    )

    parser.add_argument("--config", metavar="FILE", help="JSON configuration file")

    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the generated code instead of writing it",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show generation metadata and debug logging",
    )

    return parser


def _build_config(args: argparse.Namespace) -> GeneratorConfig:
    """Merge the config file with command-line overrides."""
    overrides = {}
    if args.type_names:
        overrides["type_names"] = args.type_names
    if args.output:
        overrides["output_file"] = args.output
    if args.trim_prefix is not None:
        overrides["trim_prefix"] = args.trim_prefix
    if args.line_comment:
        overrides["line_comment"] = True
    return load_config(custom_config=overrides, config_file=args.config)


def _show_metadata(result: GenerationResult):
    metadata_table = Table(
        title="📊 Generation Metadata",
        box=box.SIMPLE,
        show_header=True,
        header_style="bold cyan",
    )

    metadata_table.add_column("Property", style="bold")
    metadata_table.add_column("Value", style="green")

    for key, value in result.metadata.items():
        metadata_table.add_row(key.replace("_", " ").title(), str(value))

    console.print()
    console.print(metadata_table)


def _show_warnings(result: GenerationResult):
    if result.warnings:
        console.print("\n[yellow]⚠️  Warnings:[/yellow]")
        for warning in result.warnings:
            console.print(f"  [yellow]•[/yellow] {warning}")
        console.print()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the generator.

    Returns:
        Exit code (0 for success, 1 for any fatal error)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "WARNING")

    invocation = " ".join(["ngormgen", *argv])

    try:
        config = _build_config(args)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            gen_task = progress.add_task("[green]Generating mappers...", total=None)
            package, result = generate_from_paths(args.paths, config, invocation)
            progress.remove_task(gen_task)

    except ConfigError as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        return 1

    if not result.success:
        console.print(f"[red]✗[/red] {result.error_message}")
        return 1

    if args.stdout:
        console.print(Syntax(result.code, "python", theme="monokai"))
    else:
        output_path = default_output_path(package, config)
        try:
            write_output(result, output_path)
        except OSError as e:
            console.print(f"[red]✗ Failed to write to {output_path}:[/red] {e}")
            return 1
        console.print(f"[green]✓[/green] Generated mappers saved to [cyan]{output_path}[/cyan]")

    logger.info(
        "Generated %d vertex and %d edge mapper(s) from %s",
        result.metadata.get("vertices", 0),
        result.metadata.get("edges", 0),
        package.directory,
    )

    if args.verbose and result.metadata:
        _show_metadata(result)

    _show_warnings(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
