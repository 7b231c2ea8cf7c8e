import sys
from pathlib import Path

from hookkit.config import HookSettings
from hookkit.runner import run_framework_command


def test_successful_command_captures_output(tmp_path: Path):
    settings = HookSettings(framework_command=(sys.executable, "-c"))

    result = run_framework_command(tmp_path, ("print('Pending')",), settings)

    assert result.ok
    assert result.returncode == 0
    assert result.stdout.strip() == "Pending"


def test_failing_command_is_not_ok(tmp_path: Path):
    settings = HookSettings(framework_command=(sys.executable, "-c"))

    result = run_framework_command(tmp_path, ("import sys; sys.stderr.write('boom'); sys.exit(3)",), settings)

    assert not result.ok
    assert result.returncode == 3
    assert result.output == "boom"


def test_missing_executable_returns_result(tmp_path: Path):
    settings = HookSettings(framework_command=("hookkit-no-such-binary",))

    result = run_framework_command(tmp_path, ("migrate:status",), settings)

    assert not result.ok
    assert result.returncode == -1
    assert result.error == "Command not found: hookkit-no-such-binary"


def test_timeout_returns_result(tmp_path: Path):
    settings = HookSettings(framework_command=(sys.executable, "-c"), timeout=0.5)

    result = run_framework_command(tmp_path, ("import time; time.sleep(5)",), settings)

    assert not result.ok
    assert result.error == "Command timed out after 0.5s"


def test_undecodable_output_is_replaced(tmp_path: Path):
    settings = HookSettings(framework_command=(sys.executable, "-c"))

    result = run_framework_command(
        tmp_path,
        ("import sys; sys.stdout.buffer.write(b'\\xff Pending')",),
        settings,
    )

    assert result.ok
    assert result.stdout == "\ufffd Pending"
