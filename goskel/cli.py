"""
goskel CLI - Command-line interface for project generation

Usage:
    goskel generate <directory> <module> [-f feature ...]
    goskel init <directory> <module>
    goskel version
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
import yaml
from pydantic import ValidationError
from rich import print as rprint
from rich.markup import escape
from rich.panel import Panel
from rich.tree import Tree

from goskel.errors import GeneratorError
from goskel.generator import ProjectGenerator
from goskel.models import ProjectConfig

app = typer.Typer(
    name="goskel",
    help="Generate Go backend service skeletons",
    add_completion=False,
)
logger = logging.getLogger("goskel")


def _setup_logging(verbosity: int) -> None:
    """
    Configure the goskel logger.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s", datefmt="%H:%M:%S"))

    logger.setLevel(level)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False


def _fail(message: str) -> NoReturn:
    rprint(f"[red]✗[/red] {escape(message)}")
    raise typer.Exit(1)


def _build_config(
    directory: str,
    module: str,
    features: Optional[list[str]],
    config_file: Optional[Path],
    tidy: Optional[bool],
    atomic: Optional[bool],
) -> ProjectConfig:
    """Merge the optional config file with command-line values."""
    data: dict[str, Any] = {}
    if config_file is not None:
        data = ProjectConfig.from_file(str(config_file)).model_dump(exclude={"layout"})

    data["directory"] = directory
    data["module"] = module
    if features:
        data["features"] = features
    if tidy is not None:
        data["tidy"] = tidy
    if atomic is not None:
        data["atomic"] = atomic

    return ProjectConfig.model_validate(data)


@app.command()
def generate(
    directory: str = typer.Argument(..., help="Directory to create the project in"),
    module: str = typer.Argument(..., help="Go module path, e.g. example.com/demo"),
    features: Optional[list[str]] = typer.Option(
        None,
        "--feature", "-f",
        help="Feature module to generate (repeatable, defaults to 'sample')",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="goskel.yaml with defaults for the options below",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    tidy: Optional[bool] = typer.Option(
        None,
        "--tidy/--no-tidy",
        help="Run 'go mod tidy' in the generated project",
    ),
    atomic: Optional[bool] = typer.Option(
        None,
        "--atomic/--no-atomic",
        help="Build in a staging directory and move into place only on success",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be generated without writing files",
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="-v for INFO, -vv for DEBUG"),
) -> None:
    """Generate a Go service skeleton in DIRECTORY for MODULE."""
    _setup_logging(verbose)

    if not directory:
        _fail("project name should be non-empty string")
    if not module:
        _fail("project module name should be non-empty string")

    try:
        config = _build_config(directory, module, features, config_file, tidy, atomic)
        generator = ProjectGenerator()

        if dry_run:
            rprint(f"\n[yellow]Dry run - would generate to: {config.directory}[/yellow]\n")
            _show_preview(config, generator.plan(config))
            return

        result = generator.generate(config)
    except (GeneratorError, ValidationError, yaml.YAMLError) as e:
        _fail(str(e))

    rprint(f"[green]✓[/green] Generated {len(result.files)} files to {result.directory}")
    _show_next_steps(result.directory, tidied=config.tidy)


@app.command()
def init(
    directory: str = typer.Argument(..., help="Project directory"),
    module: str = typer.Argument(..., help="Go module path"),
    output_dir: Optional[Path] = typer.Option(None, "--output", "-o", resolve_path=True),
    features: Optional[list[str]] = typer.Option(None, "--feature", "-f"),
) -> None:
    """Create a goskel.yaml config file."""
    if output_dir is None:
        output_dir = Path.cwd()

    output_file = output_dir / "goskel.yaml"

    if output_file.exists():
        if not typer.confirm(f"{output_file} exists. Overwrite?"):
            raise typer.Exit(0)

    try:
        config = _build_config(directory, module, features, None, None, None)
    except (GeneratorError, ValidationError) as e:
        _fail(str(e))

    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(config.to_yaml())

    rprint(f"[green]✓[/green] Created {output_file}")
    rprint(f"\nNext: [cyan]goskel generate {directory} {module} --config {output_file}[/cyan]")


@app.command()
def version() -> None:
    """Show version."""
    from goskel import __version__
    rprint(f"goskel {__version__}")


def _show_preview(config: ProjectConfig, paths: list[str]) -> None:
    """Show what would be generated."""
    tree = Tree(f"[bold]{config.directory}[/bold] ({config.module})")

    nodes: dict[str, Tree] = {}
    for path in paths:
        parts = path.split("/")
        parent = tree
        for i, part in enumerate(parts[:-1]):
            key = "/".join(parts[: i + 1])
            if key not in nodes:
                nodes[key] = parent.add(f"[blue]{part}/[/blue]")
            parent = nodes[key]
        parent.add(parts[-1])

    rprint(tree)


def _show_next_steps(output_dir: Path, tidied: bool) -> None:
    """Show next steps."""
    tidy = "" if tidied else "  go mod tidy\n"
    steps = f"""
[bold]Next:[/bold]
  cd {output_dir}
{tidy}  docker compose up --build
"""
    rprint(Panel(steps, title="Done"))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
