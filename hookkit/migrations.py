"""Migration-status hook.

Reports pending database migrations by asking the framework CLI for
``migrate:status``. The hook is advisory: it never runs migrations itself and
every failed precondition turns into a suggestion.
"""

from __future__ import annotations

import re
from pathlib import Path

import structlog

from .config import HookSettings
from .report import Report, ReportStatus
from .runner import CommandResult, CommandRunner, run_framework_command

log = structlog.get_logger(__name__)

HOOK_NAME = "migrations"
PENDING_MARKER = "Pending"
PENDING_RE = re.compile(r"\b" + PENDING_MARKER + r"\s*\|?\s*$")

CONNECTION_MARKERS = (
    "sqlstate",
    "connection refused",
    "could not connect",
    "access denied",
    "unknown database",
    "no such file or directory",
    "could not find driver",
)

FILLER_RE = re.compile(r"^[\s|.\-+─│┃═]*$")


def pending_lines(output: str) -> list[str]:
    return [line for line in output.splitlines() if PENDING_RE.search(line)]


def migration_name(line: str) -> str:
    for token in line.split():
        if not FILLER_RE.match(token):
            return token.strip("|")
    return line.strip()


def _missing_table(output: str) -> bool:
    lowered = output.lower()
    return "migration" in lowered and ("not found" in lowered or "doesn't exist" in lowered)


def _connection_problem(output: str) -> bool:
    lowered = output.lower()
    return any(marker in lowered for marker in CONNECTION_MARKERS)


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


def _report_failure(report: Report, result: CommandResult, settings: HookSettings) -> Report:
    artisan = settings.framework_command_line
    output = result.error or result.output
    report.status = ReportStatus.attention

    if result.error is None and _missing_table(output):
        return report.add("The migration table does not exist yet.").suggest(f"{artisan} migrate")

    if result.error is None and _connection_problem(output):
        report.add("Could not connect to the database.")
        report.add(f"Check the DB_* settings in {settings.env_file}.")
        return report.suggest(f"{artisan} db:show")

    report.add("Could not read migration status.")
    detail = _first_line(output)
    if detail:
        report.add(detail)
    return report


def check_migrations(
    root: Path,
    settings: HookSettings | None = None,
    run: CommandRunner | None = None,
) -> Report:
    settings = settings or HookSettings()
    run = run or run_framework_command
    artisan = settings.framework_command_line
    report = Report(hook=HOOK_NAME)

    if not (root / settings.bootstrap_marker).exists():
        log.debug("bootstrap marker missing, skipping", root=str(root), marker=settings.bootstrap_marker)
        return Report.skipped(HOOK_NAME)

    if not (root / settings.env_file).exists():
        report.status = ReportStatus.attention
        report.add(f"No {settings.env_file} file found.")
        if (root / settings.env_example_file).exists():
            report.suggest(f"cp {settings.env_example_file} {settings.env_file}")
        else:
            report.suggest(f"touch {settings.env_file}")
        return report.suggest(f"{artisan} key:generate")

    if not (root / settings.dependency_dir).is_dir():
        report.status = ReportStatus.attention
        report.add(f"Dependencies are not installed ({settings.dependency_dir}/ is missing).")
        return report.suggest("composer install")

    result = run(root, ("migrate:status",), settings)
    if not result.ok:
        log.info("migrate:status failed", returncode=result.returncode, error=result.error)
        return _report_failure(report, result, settings)

    pending = pending_lines(result.stdout)
    if not pending:
        return report.add("All migrations have run.")

    count = len(pending)
    limit = settings.pending_preview_limit
    report.status = ReportStatus.attention
    report.add(f"{count} pending migration{'s' if count != 1 else ''}:")
    for line in pending[:limit]:
        report.add(f"- {migration_name(line)}")
    if count > limit:
        report.add(f"... and {count - limit} more")
    return report.suggest(f"{artisan} migrate")
