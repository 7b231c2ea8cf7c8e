from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Callable

import structlog
import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .assets import check_assets
from .config import ConfigError, HookSettings, load_settings
from .install import HOOK_NAMES, InstallError, InstallOptions, install_hooks
from .logging import setup_logging
from .migrations import check_migrations
from .payloads import PayloadError, inventory_payloads
from .report import Report, ReportStatus, render_json, render_markdown, render_text
from .search import search_markdown

app = typer.Typer(help="Advisory lifecycle hooks and documentation payload tools.")
hook_app = typer.Typer(help="Advisory checks run on the host tool's stop event. Always exit 0.")
payloads_app = typer.Typer(help="Inspect agent and skill documentation payloads.")
app.add_typer(hook_app, name="hook")
app.add_typer(payloads_app, name="payloads")
console = Console()
log = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID_INPUT = 2
EXIT_NOT_FOUND = 3


class OutputFormat(str, Enum):
    table = "table"
    json = "json"
    md = "md"


class HookFormat(str, Enum):
    text = "text"
    json = "json"
    md = "md"


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for stderr diagnostics."),
    log_json: bool = typer.Option(False, "--log-json", help="Emit logs as JSON."),
) -> None:
    setup_logging(level=log_level, json_format=log_json)


def _json_print(payload: dict) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=True, sort_keys=True))


def _print_key_value_table(title: str, rows: list[tuple[str, str]]) -> None:
    table = Table(title=title)
    table.add_column("Field")
    table.add_column("Value")
    for key, value in rows:
        table.add_row(key, value)
    console.print(table)


def _emit_success(
    command: str,
    output_format: OutputFormat,
    data: dict,
    md_renderer: Callable[[dict], str] | None = None,
    table_renderer: Callable[[dict], None] | None = None,
) -> None:
    if output_format == OutputFormat.json:
        _json_print(
            {
                "ok": True,
                "command": command,
                "exit_code": EXIT_OK,
                "data": data,
            }
        )
        return

    if output_format == OutputFormat.md and md_renderer is not None:
        console.print(md_renderer(data))
        return

    if output_format == OutputFormat.table and table_renderer is not None:
        table_renderer(data)
        return

    # Fallback for simple commands without dedicated renderer.
    if output_format == OutputFormat.md:
        lines = [f"# {command}", ""]
        lines.extend(f"- **{key}**: {value}" for key, value in data.items())
        console.print("\n".join(lines))
    else:
        _print_key_value_table(
            title=command,
            rows=[(str(key), str(value)) for key, value in data.items()],
        )


def _emit_error(
    command: str,
    output_format: OutputFormat,
    exit_code: int,
    code: str,
    message: str,
) -> None:
    if output_format == OutputFormat.json:
        _json_print(
            {
                "ok": False,
                "command": command,
                "exit_code": exit_code,
                "error": {
                    "code": code,
                    "message": message,
                },
            }
        )
    elif output_format == OutputFormat.md:
        console.print(f"# {command}\n\n- **status**: error\n- **code**: {code}\n- **message**: {message}")
    else:
        console.print(f"[red]Error ({code}):[/red] {message}")

    raise typer.Exit(code=exit_code)


def _run_hook(hook: str, root: Path, check: Callable[[Path, HookSettings], Report]) -> Report:
    # Hooks are advisory: nothing raised here may reach the host tool as a failure.
    root = root.resolve()
    try:
        settings = load_settings(root)
        return check(root, settings)
    except ConfigError as error:
        log.warning("invalid hook configuration", hook=hook, error=str(error))
        report = Report(hook=hook, status=ReportStatus.attention)
        return report.add(f"Ignoring invalid configuration: {error}")
    except Exception as error:
        log.exception("hook failed", hook=hook)
        report = Report(hook=hook, status=ReportStatus.attention)
        return report.add(f"Check could not complete: {error}")


def _emit_hook(report: Report, output_format: HookFormat) -> None:
    command = f"hook {report.hook}"
    if output_format == HookFormat.json:
        typer.echo(render_json(report, command=command))
        return

    rendered = render_markdown(report) if output_format == HookFormat.md else render_text(report)
    if rendered:
        typer.echo(rendered)


@hook_app.command("migrations")
def hook_migrations(
    root: Path = typer.Argument(Path("."), help="Project root."),
    output_format: HookFormat = typer.Option(HookFormat.text, "--format", help="Output format."),
) -> None:
    """Report pending database migrations."""
    _emit_hook(_run_hook("migrations", root, check_migrations), output_format)


@hook_app.command("assets")
def hook_assets(
    root: Path = typer.Argument(Path("."), help="Project root."),
    output_format: HookFormat = typer.Option(HookFormat.text, "--format", help="Output format."),
) -> None:
    """Report whether the frontend build is stale."""
    _emit_hook(_run_hook("assets", root, check_assets), output_format)


@hook_app.command("all")
def hook_all(
    root: Path = typer.Argument(Path("."), help="Project root."),
    output_format: HookFormat = typer.Option(HookFormat.text, "--format", help="Output format."),
) -> None:
    """Run every advisory hook in order."""
    reports = [
        _run_hook("migrations", root, check_migrations),
        _run_hook("assets", root, check_assets),
    ]
    if output_format == HookFormat.json:
        _json_print(
            {
                "ok": True,
                "command": "hook all",
                "exit_code": EXIT_OK,
                "data": {"reports": [report.to_dict() for report in reports]},
            }
        )
        return

    render = render_markdown if output_format == HookFormat.md else render_text
    rendered = [text for text in (render(report) for report in reports) if text]
    if rendered:
        typer.echo("\n\n".join(rendered))


@payloads_app.command("list")
def payloads_list(
    scope: Path = typer.Option(Path("."), "--scope", help="Directory to inspect."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """List agent personas and skills with their frontmatter problems."""
    try:
        docs = inventory_payloads(scope.resolve())
    except PayloadError as error:
        _emit_error(
            command="payloads list",
            output_format=output_format,
            exit_code=EXIT_INVALID_INPUT,
            code="payload_error",
            message=str(error),
        )
        raise

    if not docs:
        _emit_error(
            command="payloads list",
            output_format=output_format,
            exit_code=EXIT_NOT_FOUND,
            code="no_payloads",
            message="No agent or skill documents found.",
        )
        raise

    data = {
        "scope": str(scope.resolve()),
        "payloads": [
            {
                "kind": doc.kind.value,
                "name": doc.name,
                "path": str(doc.path),
                "description": doc.description,
                "problems": list(doc.problems),
            }
            for doc in docs
        ],
    }

    def render_md(payload: dict) -> str:
        lines = [f"# Payloads in `{payload['scope']}`", ""]
        for item in payload["payloads"]:
            problems = ", ".join(item["problems"]) if item["problems"] else "none"
            lines.append(f"- `{item['name']}` ({item['kind']}) `{item['path']}` | problems: {problems}")
        return "\n".join(lines)

    def render_table(payload: dict) -> None:
        table = Table(title=f"Payloads: {payload['scope']}")
        table.add_column("Kind")
        table.add_column("Name")
        table.add_column("Description")
        table.add_column("Problems")
        for item in payload["payloads"]:
            table.add_row(
                item["kind"],
                item["name"],
                item["description"] or "-",
                ", ".join(item["problems"]) if item["problems"] else "-",
            )
        console.print(table)

    _emit_success(
        command="payloads list",
        output_format=output_format,
        data=data,
        md_renderer=render_md,
        table_renderer=render_table,
    )


@payloads_app.command("search")
def payloads_search(
    query: str = typer.Argument(..., help="Text query to find in markdown payloads."),
    scope: Path = typer.Option(Path("."), "--scope", help="Directory to search within."),
    limit: int = typer.Option(10, "--limit", "-l", help="Max hits."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Search markdown payloads with lightweight relevance scoring."""
    root = scope.resolve()
    hits = search_markdown(query=query, scope=root, limit=limit)
    if not hits:
        _emit_error(
            command="payloads search",
            output_format=output_format,
            exit_code=EXIT_NOT_FOUND,
            code="no_matches",
            message="No matches found.",
        )
        raise

    data = {
        "query": query,
        "scope": str(root),
        "limit": limit,
        "hits": [
            {
                "name": hit.name,
                "path": str(hit.path),
                "location": f"{hit.path.relative_to(root).as_posix()}:{hit.line}",
                "score": round(hit.score, 8),
                "line": hit.line,
                "snippet": hit.snippet,
            }
            for hit in hits
        ],
    }

    def render_md(payload: dict) -> str:
        lines = [f"# Payloads matching `{payload['query']}`", ""]
        for hit in payload["hits"]:
            lines.append(f"## {hit['name']}")
            lines.append("")
            lines.append(f"`{hit['location']}` (score {hit['score']:.4f})")
            lines.append("")
            lines.append(f"> {hit['snippet']}" if hit["snippet"] else "> (matched frontmatter only)")
            lines.append("")
        return "\n".join(lines).rstrip()

    def render_table(payload: dict) -> None:
        table = Table(title=f"Payloads matching: {payload['query']}")
        table.add_column("Payload")
        table.add_column("Location")
        table.add_column("Score", justify="right")
        table.add_column("Snippet")
        for hit in payload["hits"]:
            table.add_row(hit["name"], hit["location"], f"{hit['score']:.2f}", hit["snippet"] or "-")
        console.print(table)

    _emit_success(
        command="payloads search",
        output_format=output_format,
        data=data,
        md_renderer=render_md,
        table_renderer=render_table,
    )


@app.command("install")
def install(
    target: Path = typer.Argument(Path("."), help="Project to wire the hooks into."),
    executable: str = typer.Option("hookkit", "--executable", help="Command the host tool runs."),
    with_config: bool = typer.Option(False, "--with-config", help="Also write a default .hookkit.yml."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing .hookkit.yml."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Register the stop hooks in the project's host-tool settings."""
    options = InstallOptions(
        target=target,
        executable=executable,
        hooks=HOOK_NAMES,
        with_config=with_config,
        force=force,
    )
    try:
        report = install_hooks(options)
    except InstallError as error:
        _emit_error(
            command="install",
            output_format=output_format,
            exit_code=EXIT_INVALID_INPUT,
            code="install_error",
            message=str(error),
        )
        raise

    data = {
        "target": str(report.target),
        "settings_path": str(report.settings_path),
        "merged": report.merged,
        "config_path": str(report.config_path) if report.config_path else "",
    }
    _emit_success(command="install", output_format=output_format, data=data)


@app.command("version")
def version(
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
) -> None:
    """Print version."""
    _emit_success(command="version", output_format=output_format, data={"version": __version__})


if __name__ == "__main__":
    app()
