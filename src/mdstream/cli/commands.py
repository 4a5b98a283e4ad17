"""CLI command implementations"""

import sys
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdstream.config import Settings, load_config
from mdstream.core.pipeline import run_render, run_stream
from mdstream.core.repair import repair
from mdstream.util.logging import set_level


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    set_level(settings.log_level)
    return settings


def render_cmd(
    path: Annotated[str, typer.Argument(help="File or directory to render")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    preset: Annotated[Optional[str], typer.Option("--parser-preset", help="MarkdownIt preset name")] = None,
    no_repair: Annotated[bool, typer.Option("--no-repair", help="Tokenize without closing open markers")] = False,
    ):
    """Parse markdown files into block JSON."""
    settings = _settings(overrides={
        "output_dir": out, "parser_preset": preset,
        "repair_markers": False if no_repair else None,
    })
    output_dir = Path(settings.output_dir)
    try:
        results = run_render(path, settings, output_dir)
    except RuntimeError as e:
        _fail(str(e))
    for src, out_file in results:
        typer.echo(f"  {src} -> {out_file}")
    typer.echo(f"Rendered {len(results)} document(s) to {output_dir}/")


def stream_cmd(
    path: Annotated[str, typer.Argument(help="File or directory to replay as a stream")],
    chunk_size: Annotated[Optional[int], typer.Option("--chunk-size", help="Characters per chunk")] = None,
    preset: Annotated[Optional[str], typer.Option("--parser-preset", help="MarkdownIt preset name")] = None,
    ):
    """Replay files chunk by chunk through the incremental parser."""
    settings = _settings(overrides={"chunk_size": chunk_size, "parser_preset": preset})
    try:
        reports = run_stream(path, settings)
    except RuntimeError as e:
        _fail(str(e))
    mismatches = 0
    for r in reports:
        status = "ok" if r.matches_full_parse else "MISMATCH"
        mismatches += not r.matches_full_parse
        typer.echo(
            f"  {r.path}: {r.updates} updates, {len(r.final.blocks)} blocks, "
            f"cache hit rate {r.hit_rate:.0%}, {status}"
        )
        typer.echo(f"    blocks per update: {' '.join(str(n) for n in r.block_counts)}")
    typer.echo(f"Streamed {len(reports)} document(s), {mismatches} mismatch(es)")
    if mismatches:
        raise typer.Exit(1)


def repair_cmd(
    text: Annotated[Optional[str], typer.Argument(help="Partial markdown; read from stdin when omitted")] = None,
    ):
    """Print text with unterminated markers closed."""
    _settings()
    if text is None:
        text = sys.stdin.read()
    typer.echo(repair(text))
