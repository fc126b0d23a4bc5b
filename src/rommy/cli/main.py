"""CLI commands."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from rommy.config import color_is_enabled, configure_logging, load_config, load_environment
from rommy.errors import RommyError
from rommy.models.record import END_MARKER, Block, ParsedRecord, reject_line_breaks
from rommy.record.parser import parse_file
from rommy.runner.run import RunOptions, execute


@click.group()
@click.option("--config", "-c", type=Path, help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging to stderr")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """Rommy - run commands and keep a replayable record of their output."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config)
    ctx.obj["env"] = load_environment()
    configure_logging(ctx.obj["config"].logging, verbose=verbose)


def _single_line(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:
    if value is None:
        return None
    try:
        return reject_line_breaks(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


# Options end at the first command word
@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option("--out", type=Path, help="Output file (default: time-based path)")
@click.option("--cwd", type=click.Path(file_okay=False, path_type=Path), help="Working directory")
@click.option("--env", "envs", multiple=True, metavar="KEY=VALUE", help="Extra environment (repeatable)")
@click.option("--append", is_flag=True, help="Append instead of overwrite")
@click.option("--label", callback=_single_line, help="Label to include in META")
@click.option("--script", type=Path, help="Run a bash script instead of a command")
@click.option("--no-stream", is_flag=True, help="Disable live output to the terminal")
@click.option(
    "--color",
    type=click.Choice(["auto", "always", "never"]),
    default=None,
    help="Color output",
)
@click.argument("cmd", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(
    ctx: click.Context,
    out: Path | None,
    cwd: Path | None,
    envs: tuple[str, ...],
    append: bool,
    label: str | None,
    script: Path | None,
    no_stream: bool,
    color: str | None,
    cmd: tuple[str, ...],
) -> None:
    """Run a command or script and record its output.

    Everything after the first non-option word (or after --) is the command.
    """
    config = ctx.obj["config"]
    env = ctx.obj["env"]

    if script is not None and cmd:
        raise click.UsageError("--script cannot be combined with a command")

    is_tty = sys.stdout.isatty() or sys.stderr.isatty()
    colors = color_is_enabled(color or config.run.color, env, is_tty)

    options = RunOptions(
        cmd=list(cmd),
        script=script,
        out=out,
        cwd=cwd,
        envs=list(envs),
        append=append or config.run.append,
        label=label,
        stream=config.run.stream and not no_stream,
        colors=colors,
        root_dir=config.output.root_dir,
    )

    try:
        out_path = execute(options, env)
    except RommyError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.secho(f"Wrote {out_path}", fg="cyan", err=True, color=colors)


def collect_record_files(path: Path) -> list[Path]:
    """A file as-is, or every *.rommy file below a directory."""
    if path.is_file():
        return [path]
    if path.is_dir():
        return [
            p for p in path.rglob("*") if p.is_file() and p.suffix.lower() == ".rommy"
        ]
    raise click.BadParameter(f"Unsupported path type: {path}")


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--quiet", "-q", is_flag=True, help="Only print failures and the summary")
@click.option(
    "--format", "fmt", default="text", type=click.Choice(["text", "json"]), help="Output format"
)
def validate(paths: tuple[Path, ...], quiet: bool, fmt: str) -> None:
    """Check that record files parse."""
    files: set[Path] = set()
    for path in paths:
        files.update(collect_record_files(path))

    if not files:
        click.echo("No files found to validate", err=True)
        sys.exit(1)

    results = []
    for file in sorted(files):
        try:
            records = parse_file(file)
            results.append({"path": str(file), "ok": True, "records": len(records), "error": None})
        except (RommyError, OSError) as e:
            results.append({"path": str(file), "ok": False, "records": 0, "error": str(e)})

    ok_count = sum(1 for r in results if r["ok"])
    err_count = len(results) - ok_count

    if fmt == "json":
        click.echo(
            json.dumps(
                {
                    "total_files": len(results),
                    "ok_files": ok_count,
                    "error_files": err_count,
                    "files": results,
                },
                indent=2,
            )
        )
        if err_count:
            sys.exit(1)
        return

    for r in results:
        if r["ok"]:
            if not quiet:
                click.echo(f"OK {r['path']} ({r['records']} record(s))")
        else:
            click.echo(f"ERR {r['path']}: {r['error']}", err=True)

    if err_count:
        click.echo(
            f"Validation failed: {err_count} file(s) invalid, {ok_count} file(s) valid",
            err=True,
        )
        sys.exit(1)

    click.echo(f"Validated {ok_count} file(s).")


def render_record(record: ParsedRecord) -> str:
    """Render a parsed record back into blocks for display."""
    parts = [Block.META.marker]
    parts.extend(f"{key}: {value}" for key, value in sorted(record.meta.items()))
    parts.append(END_MARKER)
    for kind, body in (
        (Block.COMMAND, record.command),
        (Block.STDOUT, record.stdout),
        (Block.STDERR, record.stderr),
    ):
        parts.append(kind.marker)
        if body:
            parts.append(body)
        parts.append(END_MARKER)
    return "\n".join(parts)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format", "fmt", default="text", type=click.Choice(["text", "json"]), help="Output format"
)
@click.option("--record", "record_no", type=int, help="Show only record N (1-based)")
def show(path: Path, fmt: str, record_no: int | None) -> None:
    """Print the records of a record file."""
    try:
        records = parse_file(path)
    except (RommyError, OSError) as e:
        click.echo(f"Error: {path}: {e}", err=True)
        sys.exit(1)

    numbered = list(enumerate(records, start=1))
    if record_no is not None:
        if not 1 <= record_no <= len(records):
            click.echo(
                f"Error: record {record_no} out of range (file has {len(records)} record(s))",
                err=True,
            )
            sys.exit(1)
        numbered = [numbered[record_no - 1]]

    if fmt == "json":
        payload = {
            "path": str(path),
            "records": [
                {"record": i, **record.model_dump()} for i, record in numbered
            ],
        }
        click.echo(json.dumps(payload, indent=2))
        return

    for i, record in numbered:
        click.echo(f"=== Record {i} ===")
        click.echo(render_record(record))


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
