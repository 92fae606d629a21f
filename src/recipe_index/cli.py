"""
CLI entry point for recipe-index.

Reads a recipe tree listing on stdin (usually `git ls-tree HEAD */*/*`) and
writes the endpoint files a package installer downloads recipes from.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import __version__
from .aliases import CatalogError
from .builder import ManifestError, RecordError, generate_endpoint
from .config_loader import ConfigError, load_config, merge_cli_with_config
from .links import build_links

# Initialize CLI app
app = typer.Typer(
    name="recipe-index",
    help="Generate the JSON endpoint a package installer reads recipes from.",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"recipe-index version {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    """Route library logging through rich on stderr."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def generate(
    repository: str = typer.Argument(
        ...,
        help="GitHub repository (owner/name) or full URL of a self-hosted git repository.",
    ),
    source_branch: str = typer.Argument(
        ...,
        help="The source branch of recipes.",
    ),
    flex_branch: str = typer.Argument(
        ...,
        help="The branch the generated endpoint is published on.",
    ),
    output_dir: Path = typer.Argument(
        ...,
        help="Directory where generated files are stored.",
        file_okay=False,
        dir_okay=True,
    ),
    versions_json: Optional[Path] = typer.Argument(
        None,
        help="JSON file describing package versions (a 'splits' object), used to seed aliases.",
    ),
    contrib: bool = typer.Option(
        False,
        "--contrib",
        help="Mark the endpoint as community-contributed.",
    ),
    recipes_dir: Path = typer.Option(
        Path("."),
        "--recipes-dir", "-d",
        help="Directory the recipe paths on stdin are relative to.",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Config file (default: recipe-index.toml/.yml in the recipes directory).",
    ),
    core_namespace: Optional[str] = typer.Option(
        None,
        "--core-namespace",
        help="Package prefix that earns an automatic short alias (default: 'symfony/').",
    ),
    meta_package_suffix: Optional[str] = typer.Option(
        None,
        "--meta-package-suffix",
        help="Suffix of packages excluded from automatic aliases (default: '-pack').",
    ),
    post_install_file: Optional[str] = typer.Option(
        None,
        "--post-install-file",
        help="Recipe-relative path of the post-install transcript (default: 'post-install.txt').",
    ),
    makefile_file: Optional[str] = typer.Option(
        None,
        "--makefile-file",
        help="Recipe-relative path of the Makefile (default: 'Makefile').",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Log every record and show tracebacks on errors.",
    ),
    version: bool = typer.Option(
        False,
        "--version", "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """
    Generate the recipe endpoint from a tree listing on stdin.

    Examples:

        # Publish recipes for a GitHub repository
        git ls-tree HEAD */*/* | recipe-index generate acme/recipes main flex/main ./out

        # Self-hosted GitLab, with a version catalog
        git ls-tree HEAD */*/* | recipe-index generate \\
            https://git.example.com/group/recipes.git main flex/main ./out versions.json
    """
    _setup_logging(verbose)

    try:
        project_config = load_config(recipes_dir, config_file)
        settings = merge_cli_with_config(
            project_config,
            core_namespace=core_namespace,
            meta_package_suffix=meta_package_suffix,
            post_install_file=post_install_file,
            makefile_file=makefile_file,
            contrib=contrib,
        )
        is_contrib = settings.pop("contrib")

        index_path, stats = generate_endpoint(
            sys.stdin,
            repository=repository,
            source_branch=source_branch,
            flex_branch=flex_branch,
            output_dir=output_dir,
            recipes_root=recipes_dir,
            versions_json=versions_json,
            contrib=is_contrib,
            **settings,
        )

    except (RecordError, ManifestError, CatalogError, ConfigError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]Filesystem error: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)

    console.print("[bold green]✓ Endpoint generated![/bold green]")
    console.print()
    console.print("[cyan]Statistics:[/cyan]")
    console.print(f"  Records read: {stats.records_read}")
    console.print(f"  Recipes packaged: {stats.recipes_packaged}")
    console.print(f"  Skipped (no manifest): {stats.skipped_missing_manifest}")
    console.print(f"  Skipped (empty manifest): {stats.skipped_empty_manifest}")
    console.print(f"  Files packaged: {stats.files_packaged} ({stats.binary_files} binary)")
    console.print(f"  Packages: {stats.packages}")
    console.print(f"  Aliases: {stats.aliases}")
    console.print(f"  Processing time: {stats.processing_time_seconds:.2f}s")
    console.print()
    console.print(f"[cyan]Index:[/cyan] {index_path}")


@app.command()
def links(
    repository: str = typer.Argument(
        ...,
        help="GitHub repository (owner/name) or full URL of a self-hosted git repository.",
    ),
    source_branch: str = typer.Argument(..., help="The source branch of recipes."),
    flex_branch: str = typer.Argument(..., help="The branch the endpoint is published on."),
) -> None:
    """
    Print the `_links` block the index would carry for a repository.
    """
    repository_links = build_links(repository, source_branch, flex_branch)
    typer.echo(json.dumps(repository_links.to_dict(), indent=4))


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
