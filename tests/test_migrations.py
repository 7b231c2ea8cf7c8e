from pathlib import Path

from hookkit.config import HookSettings
from hookkit.migrations import check_migrations, migration_name
from hookkit.report import ReportStatus, render_text
from hookkit.runner import CommandResult

STATUS_HEADER = "  Migration name .............................................. Batch / Status\n"


def _project(root: Path, env: bool = True, vendor: bool = True) -> Path:
    (root / "artisan").write_text("#!/usr/bin/env php\n", encoding="utf-8")
    if env:
        (root / ".env").write_text("APP_KEY=\n", encoding="utf-8")
    if vendor:
        (root / "vendor").mkdir()
    return root


def _status_output(ran: int, pending: int) -> str:
    lines = [STATUS_HEADER]
    for idx in range(ran):
        lines.append(f"  2024_01_01_{idx:06d}_create_ran_{idx}_table ........... [1] Ran\n")
    for idx in range(pending):
        lines.append(f"  2024_02_01_{idx:06d}_create_pending_{idx}_table ........... Pending\n")
    return "".join(lines)


def _fake_runner(result: CommandResult, calls: list | None = None):
    def run(root, arguments, settings):
        if calls is not None:
            calls.append(tuple(arguments))
        return result

    return run


def _ok(stdout: str) -> CommandResult:
    return CommandResult(args=("php", "artisan", "migrate:status"), returncode=0, stdout=stdout)


def test_missing_bootstrap_marker_is_silent(tmp_path: Path):
    calls: list = []
    report = check_migrations(tmp_path, run=_fake_runner(_ok(""), calls))

    assert report.status == ReportStatus.skipped
    assert report.is_empty
    assert render_text(report) == ""
    assert calls == []


def test_missing_env_suggests_copy_and_key_generate(tmp_path: Path):
    root = _project(tmp_path, env=False)
    (root / ".env.example").write_text("APP_KEY=\n", encoding="utf-8")

    report = check_migrations(root, run=_fake_runner(_ok("")))

    assert report.status == ReportStatus.attention
    assert report.commands == ["cp .env.example .env", "php artisan key:generate"]


def test_missing_env_without_example_suggests_touch(tmp_path: Path):
    root = _project(tmp_path, env=False)

    report = check_migrations(root, run=_fake_runner(_ok("")))

    assert report.commands == ["touch .env", "php artisan key:generate"]


def test_missing_vendor_suggests_composer_install(tmp_path: Path):
    calls: list = []
    root = _project(tmp_path, vendor=False)

    report = check_migrations(root, run=_fake_runner(_ok(""), calls))

    assert report.commands == ["composer install"]
    assert calls == []


def test_all_migrations_ran(tmp_path: Path):
    calls: list = []
    root = _project(tmp_path)

    report = check_migrations(root, run=_fake_runner(_ok(_status_output(ran=3, pending=0)), calls))

    assert report.status == ReportStatus.ok
    assert report.lines == ["All migrations have run."]
    assert report.commands == []
    assert calls == [("migrate:status",)]


def test_pending_count_and_preview(tmp_path: Path):
    root = _project(tmp_path)

    report = check_migrations(root, run=_fake_runner(_ok(_status_output(ran=2, pending=3))))

    assert report.lines[0] == "3 pending migrations:"
    assert report.lines[1:] == [
        "- 2024_02_01_000000_create_pending_0_table",
        "- 2024_02_01_000001_create_pending_1_table",
        "- 2024_02_01_000002_create_pending_2_table",
    ]
    assert report.commands == ["php artisan migrate"]


def test_single_pending_migration_is_singular(tmp_path: Path):
    root = _project(tmp_path)

    report = check_migrations(root, run=_fake_runner(_ok(_status_output(ran=0, pending=1))))

    assert report.lines[0] == "1 pending migration:"


def test_pending_overflow_message(tmp_path: Path):
    root = _project(tmp_path)

    report = check_migrations(root, run=_fake_runner(_ok(_status_output(ran=1, pending=12))))

    assert report.lines[0] == "12 pending migrations:"
    assert len([line for line in report.lines if line.startswith("- ")]) == 5
    assert report.lines[-1] == "... and 7 more"


def test_exactly_five_pending_has_no_overflow(tmp_path: Path):
    root = _project(tmp_path)

    report = check_migrations(root, run=_fake_runner(_ok(_status_output(ran=0, pending=5))))

    assert not any("more" in line for line in report.lines)


def test_preview_limit_comes_from_settings(tmp_path: Path):
    root = _project(tmp_path)
    settings = HookSettings(pending_preview_limit=2)

    report = check_migrations(root, settings, run=_fake_runner(_ok(_status_output(ran=0, pending=4))))

    assert report.lines[-1] == "... and 2 more"


def test_missing_migration_table(tmp_path: Path):
    root = _project(tmp_path)
    result = CommandResult(args=(), returncode=1, stdout="\n   ERROR  Migration table not found.\n")

    report = check_migrations(root, run=_fake_runner(result))

    assert report.lines == ["The migration table does not exist yet."]
    assert report.commands == ["php artisan migrate"]


def test_database_connection_failure(tmp_path: Path):
    root = _project(tmp_path)
    result = CommandResult(
        args=(),
        returncode=1,
        stderr="SQLSTATE[HY000] [2002] Connection refused (Connection: mysql)",
    )

    report = check_migrations(root, run=_fake_runner(result))

    assert report.lines[0] == "Could not connect to the database."
    assert report.commands == ["php artisan db:show"]


def test_framework_command_unavailable(tmp_path: Path):
    root = _project(tmp_path)
    result = CommandResult(args=("php",), returncode=-1, error="Command not found: php")

    report = check_migrations(root, run=_fake_runner(result))

    assert report.lines == ["Could not read migration status.", "Command not found: php"]
    assert report.commands == []


def test_custom_framework_command_in_suggestions(tmp_path: Path):
    root = _project(tmp_path)
    settings = HookSettings(framework_command=("sail", "artisan"))

    report = check_migrations(root, settings, run=_fake_runner(_ok(_status_output(ran=0, pending=1))))

    assert report.commands == ["sail artisan migrate"]


def test_migration_name_from_table_row():
    assert migration_name("| 2019_08_19_000000_create_failed_jobs_table | Pending |") == "2019_08_19_000000_create_failed_jobs_table"
    assert migration_name("  ..... 2020_create_x ..... Pending") == "2020_create_x"


def test_pending_in_migration_name_is_not_counted(tmp_path: Path):
    root = _project(tmp_path)
    output = (
        STATUS_HEADER
        + "  2024_05_01_000000_add_Pending_flag_to_orders ........... [1] Ran\n"
        + "  2024_05_02_000000_create_invoices_table ........... Pending\n"
        + "| 2024_05_03_000000_create_refunds_table | Pending |\n"
    )

    report = check_migrations(root, run=_fake_runner(_ok(output)))

    assert report.lines == [
        "2 pending migrations:",
        "- 2024_05_02_000000_create_invoices_table",
        "- 2024_05_03_000000_create_refunds_table",
    ]
