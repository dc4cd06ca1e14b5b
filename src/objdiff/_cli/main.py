import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from objdiff._engine import Comparer, MismatchPolicy
from objdiff._errors import DiffError
from objdiff._io import DocumentError, export_differences, load_document, load_model_document
from objdiff._models import LeafDifference

from .config import ConfigError, ObjdiffConfig, get_config
from .discover import load_model_class

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()

_MAX_VALUE_WIDTH = 60


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Objdiff CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _load_config() -> ObjdiffConfig:
    try:
        return get_config()
    except ConfigError as e:
        err_console.print(f"[red]✗ Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(code=2) from e


def _load_inputs(old: Path, new: Path, model_path: str | None) -> tuple[Any, Any]:
    try:
        if model_path is None:
            return load_document(old), load_document(new)

        err_console.print(f"[cyan]Validating with model:[/cyan] {escape(model_path)}")
        model = load_model_class(model_path)
        return load_model_document(old, model), load_model_document(new, model)
    except ValidationError as e:
        err_console.print(f"[red]✗ Validation failed:[/red] {escape(str(e))}")
        raise typer.Exit(code=2) from e
    except (DocumentError, ImportError, ValueError, TypeError) as e:
        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=2) from e


def _format_value(value: Any) -> str:
    text = repr(value)
    if len(text) > _MAX_VALUE_WIDTH:
        text = text[: _MAX_VALUE_WIDTH - 1] + "…"
    return escape(text)


def _render_differences(differences: list[LeafDifference]) -> None:
    if not differences:
        out_console.print("[green]✓ No differences[/green]")
        return

    table = Table(title=f"{len(differences)} difference(s)", show_lines=False)
    table.add_column("Path", style="cyan", no_wrap=True)
    table.add_column("Old", style="red")
    table.add_column("New", style="green")

    for diff in differences:
        table.add_row(
            escape(diff.path) if diff.path else "[dim]<root>[/dim]",
            _format_value(diff.old_value),
            _format_value(diff.new_value),
        )

    out_console.print(table)


@app.command()
def diff(
    old: Annotated[
        Path,
        typer.Argument(help="Path to the old document (.toml or .json)"),
    ],
    new: Annotated[
        Path,
        typer.Argument(help="Path to the new document (.toml or .json)"),
    ],
    *,
    model: Annotated[
        str | None,
        typer.Option(
            "-m",
            "--model",
            help="Pydantic model to validate both documents with (e.g., my_pkg.models:Config)",
        ),
    ] = None,
    policy: Annotated[
        MismatchPolicy | None,
        typer.Option("--policy", help="Handling of values whose shapes differ"),
    ] = None,
    ignore: Annotated[
        list[str] | None,
        typer.Option("--ignore", help="Path to leave out of the comparison (repeatable)"),
    ] = None,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", min=0, help="Abort when nesting goes deeper than this"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Write differences to a .toml or .json file"),
    ] = None,
    check: Annotated[
        bool,
        typer.Option("--check", help="Exit with code 1 if any difference is found"),
    ] = False,
) -> None:
    """Compare two documents and list their differences."""
    config = _load_config()

    model_path = model if model is not None else config.model
    old_value, new_value = _load_inputs(old, new, model_path)

    comparer = Comparer(
        policy=policy if policy is not None else (config.policy or MismatchPolicy.REPORT),
        ignore=[*config.ignore, *(ignore or [])],
        max_depth=max_depth if max_depth is not None else config.max_depth,
    )
    logger.debug(
        f"Comparing {old} with {new} (policy={comparer.policy}, ignore={sorted(comparer.ignore)}, "
        f"max_depth={comparer.max_depth})",
    )

    try:
        differences = comparer.compare(old_value, new_value)
    except DiffError as e:
        err_console.print(f"[red]✗ Comparison failed:[/red] {escape(str(e))}")
        raise typer.Exit(code=2) from e

    _render_differences(differences)

    if output is not None:
        try:
            export_differences(differences, output)
        except (OSError, TypeError, ValueError) as e:
            err_console.print(f"[red]✗ Cannot write {escape(str(output))}:[/red] {escape(str(e))}")
            raise typer.Exit(code=2) from e
        err_console.print(f"[green]Differences written to:[/green] {escape(str(output))}")

    if check and differences:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
