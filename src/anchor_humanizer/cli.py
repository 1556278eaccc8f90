"""
Command-line interface for Anchor Humanizer.

Provides commands to humanize an article HTML file, check the AIHumanize
word balance, and run the cleanup normalizer on its own.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import HUMANIZE_MODEL_NAMES, HumanizeConfig
from .humanize_client import (
    AIHumanizeClient,
    HumanizeConfigError,
    HumanizeServiceError,
    HumanizeTransformError,
    LLMHumanizer,
)
from .models import HumanizeResult, ReconstructionStatus
from .pipeline import HumanizationPipeline
from .text_repair import clean_html

# Status output goes to stderr so stdout carries only HTML
console = Console(stderr=True)

STATUS_STYLES = {
    ReconstructionStatus.SUCCESS: "green",
    ReconstructionStatus.DEGRADED: "yellow",
    ReconstructionStatus.FAILED: "red",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _write_output(html: str, output: Optional[Path]) -> None:
    if output:
        output.write_text(html, encoding="utf-8")
    else:
        click.echo(html)


@click.group()
def main() -> None:
    """Anchor Humanizer - humanize article HTML without losing links."""


@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--phrase",
    "-p",
    "phrases",
    multiple=True,
    help="Frozen phrase to protect from rewriting (repeatable).",
)
@click.option(
    "--model",
    type=click.IntRange(0, 2),
    default=1,
    show_default=True,
    help="AIHumanize model: 0 quality, 1 balance, 2 enhanced.",
)
@click.option(
    "--email",
    type=str,
    envvar="AIHUMANIZE_EMAIL",
    help="Registered AIHumanize email. Can also be set via AIHUMANIZE_EMAIL env var.",
)
@click.option(
    "--api-key",
    type=str,
    envvar="AIHUMANIZE_API_KEY",
    help="AIHumanize API key. Can also be set via AIHUMANIZE_API_KEY env var.",
)
@click.option(
    "--provider",
    type=click.Choice(["aihumanize", "anthropic"]),
    default="aihumanize",
    show_default=True,
    help="Rewrite service to use.",
)
@click.option(
    "--no-cleanup",
    is_flag=True,
    default=False,
    help="Skip typography and Markdown cleanup of humanized text.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output path for humanized HTML (default: stdout).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
def humanize(
    input_file: Path,
    phrases: tuple[str, ...],
    model: int,
    email: Optional[str],
    api_key: Optional[str],
    provider: str,
    no_cleanup: bool,
    output: Optional[Path],
    verbose: bool,
) -> None:
    """
    Humanize an article HTML file.

    Anchors and frozen phrases are protected during the rewrite. If the
    rewrite fails or would break an anchor, the original HTML is written.

    Examples:

        anchor-humanize humanize article.html -p "Acme Tools" -o out.html

        anchor-humanize humanize article.html --provider anthropic
    """
    _configure_logging(verbose)

    html = input_file.read_text(encoding="utf-8")

    console.print(Panel.fit(
        "[bold blue]Anchor Humanizer[/bold blue]\n"
        f"Provider: {provider}, model: {HUMANIZE_MODEL_NAMES[model]}",
        border_style="blue",
    ))

    try:
        config = HumanizeConfig(
            model=model,
            registered_email=email,
            api_key=api_key,
            apply_cleanup=not no_cleanup,
        )
        if provider == "anthropic":
            rewrite = LLMHumanizer(model=config.anthropic_model)
        else:
            rewrite = AIHumanizeClient(config)

        with console.status("[bold green]Humanizing..."):
            result = HumanizationPipeline(rewrite, config).run(html, phrases)

    except HumanizeConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Invalid option:[/red] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        if verbose:
            import traceback
            console.print(traceback.format_exc())
        sys.exit(1)

    _write_output(result.html, output)
    _display_summary(result, verbose)

    if output:
        console.print(f"\n[bold green]Done![/bold green] Output saved to: {output}")


def _display_summary(result: HumanizeResult, verbose: bool) -> None:
    """Display humanization summary."""
    style = STATUS_STYLES[result.status]

    table = Table(title="Humanization Summary", show_header=True)
    table.add_column("Item", style="cyan")
    table.add_column("Value")

    table.add_row("Status", f"[{style}]{result.status.value}[/{style}]")
    table.add_row("Strategy", result.strategy or "-")
    table.add_row("Anchors protected", str(result.anchor_count))
    table.add_row("Phrases protected", str(result.phrase_count))
    if result.words_used or result.remaining_words:
        table.add_row("Words used", str(result.words_used))
        table.add_row("Words remaining", str(result.remaining_words))

    console.print(table)

    if result.error:
        console.print(f"[yellow]Original HTML kept:[/yellow] {result.user_message or result.error}")
    if verbose and result.chunks:
        for chunk in result.chunks:
            console.print(f"[dim]{chunk.token} -> {chunk.original_markup}[/dim]")


@main.command()
@click.option(
    "--email",
    type=str,
    envvar="AIHUMANIZE_EMAIL",
    help="Registered AIHumanize email. Can also be set via AIHUMANIZE_EMAIL env var.",
)
@click.option(
    "--api-key",
    type=str,
    envvar="AIHUMANIZE_API_KEY",
    help="AIHumanize API key. Can also be set via AIHUMANIZE_API_KEY env var.",
)
def balance(email: Optional[str], api_key: Optional[str]) -> None:
    """Show the remaining AIHumanize word balance."""
    try:
        client = AIHumanizeClient(HumanizeConfig(registered_email=email, api_key=api_key))
        remaining = client.get_balance()
    except HumanizeConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)
    except HumanizeServiceError as e:
        console.print(f"[red]Humanize error:[/red] {e.user_message}")
        sys.exit(1)
    except HumanizeTransformError as e:
        console.print(f"[red]Humanize error:[/red] {e}")
        sys.exit(1)

    console.print(f"[bold]Remaining words:[/bold] {remaining}")


@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output path for cleaned text (default: stdout).",
)
def clean(input_file: Path, output: Optional[Path]) -> None:
    """Remove invisible characters, Markdown and AI typography from a file."""
    _write_output(clean_html(input_file.read_text(encoding="utf-8")), output)


def run_cli() -> None:
    """Entry point for the CLI."""
    main()


if __name__ == "__main__":
    run_cli()
