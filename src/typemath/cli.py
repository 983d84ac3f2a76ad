"""Command-line interface for typemath."""

from __future__ import annotations

import json
from pathlib import Path

import click

from typemath import __version__
from typemath.errors import MarkupError, TypeMathError


@click.group()
@click.version_option(version=__version__, prog_name="typemath")
@click.option(
    "--project-dir",
    default=".",
    type=click.Path(file_okay=False),
    help="Directory holding typemath.yaml and the event log.",
)
@click.pass_context
def main(ctx: click.Context, project_dir: str) -> None:
    """typemath -- formula markup transcoding and exact arithmetic."""
    from typemath.config import load_config
    from typemath.logging.events import set_log_dir

    project = Path(project_dir)
    try:
        config = load_config(project)
    except TypeMathError as exc:
        raise click.ClickException(str(exc)) from exc

    ctx.obj = {"project_dir": project, "config": config}
    if config["logging_enabled"] and ctx.invoked_subcommand not in ("events", "init"):
        set_log_dir(
            project / config["log_dir"],
            fsync=bool(config["logging_fsync"]),
            tail_bytes=int(config["logging_tail_bytes"]),
        )


# ---------------------------------------------------------------------------
# Init
# ---------------------------------------------------------------------------


@main.command()
@click.pass_obj
def init(obj: dict) -> None:
    """Write a default typemath.yaml into the project directory."""
    from typemath.config import write_default_config

    try:
        path = write_default_config(obj["project_dir"])
    except FileExistsError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Created {path}")


# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------


@main.command()
@click.argument("text", required=False)
@click.option("--file", "file_path", default=None, type=click.Path(exists=True, dir_okay=False), help="Read markup from a file.")
@click.pass_obj
def parse(obj: dict, text: str | None, file_path: str | None) -> None:
    """Print the syntax tree of markup TEXT as JSON."""
    from typemath.markup import parse_markup

    if file_path is not None:
        text = Path(file_path).read_text(encoding="utf-8")
    if text is None:
        raise click.ClickException("Give markup TEXT or --file.")

    try:
        node = parse_markup(text, max_depth=obj["config"]["max_depth"])
    except MarkupError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(json.dumps(node.model_dump(mode="json"), indent=2, ensure_ascii=False))


@main.command()
@click.argument("expr")
@click.option("--proof/--no-proof", default=None, help="Render & and logical connectives for proof trees.")
@click.option("--indent", default=None, help="Indentation prefix for inference rules.")
@click.pass_obj
def transcribe(obj: dict, expr: str, proof: bool | None, indent: str | None) -> None:
    """Read linear EXPR and print its markup."""
    from typemath.linear import read_linear
    from typemath.markup import transcribe as to_markup

    config = obj["config"]
    try:
        formula = read_linear(expr)
        text = to_markup(
            formula,
            config["indent"] if indent is None else indent,
            config["proof_mode"] if proof is None else proof,
            max_depth=config["max_depth"],
        )
    except TypeMathError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(text)


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------


@main.command("eval")
@click.argument("expr")
@click.pass_obj
def eval_cmd(obj: dict, expr: str) -> None:
    """Evaluate linear EXPR and print the result as markup."""
    from typemath.calc import EvaluationFailure, evaluate
    from typemath.linear import read_linear
    from typemath.markup import transcribe as to_markup

    max_depth = obj["config"]["max_depth"]
    try:
        formula = read_linear(expr)
    except TypeMathError as exc:
        raise click.ClickException(str(exc)) from exc

    result = evaluate(formula.tokens, max_depth=max_depth)
    if isinstance(result, EvaluationFailure):
        raise click.ClickException(f"No value: {result.reason}")
    click.echo(to_markup(result, max_depth=max_depth))


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@main.command("events")
@click.option("--level", default=None, type=click.Choice(["info", "warning", "error"]), help="Filter by level.")
@click.option("--type", "event_type", default=None, help="Filter by event type.")
@click.option("--limit", default=100, type=int, help="Maximum events to show.")
@click.pass_obj
def events_cmd(obj: dict, level: str | None, event_type: str | None, limit: int) -> None:
    """Show the structured event log."""
    from typemath.logging.sink import EventSink

    config = obj["config"]
    sink = EventSink(obj["project_dir"] / config["log_dir"], tail_bytes=int(config["logging_tail_bytes"]))
    events = sink.read_global(level=level, event_type=event_type, limit=limit)

    if not events:
        click.echo("No events found.")
        return

    for evt in events:
        ts = evt.get("ts", "")
        lvl = evt.get("level", "").upper()
        etype = evt.get("event_type", "")
        msg = evt.get("message", "")
        err = evt.get("error_code")
        line = f"[{ts}] {lvl:7s} {etype}: {msg}"
        if err:
            line += f"  ({err})"
        click.echo(line)
