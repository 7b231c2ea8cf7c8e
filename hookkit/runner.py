from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

import structlog

from .config import HookSettings

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


CommandRunner = Callable[[Path, Sequence[str], HookSettings], CommandResult]


def run_framework_command(root: Path, arguments: Sequence[str], settings: HookSettings) -> CommandResult:
    """Run the framework CLI in ``root``. Failures come back as results, never exceptions."""
    cmd = tuple(settings.framework_command) + tuple(arguments)
    log.debug("running framework command", cmd=" ".join(cmd), cwd=str(root))

    try:
        proc = subprocess.run(
            cmd,
            cwd=root,
            check=False,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=settings.timeout,
        )
    except FileNotFoundError:
        log.info("framework command not found", cmd=cmd[0])
        return CommandResult(args=cmd, returncode=-1, error=f"Command not found: {cmd[0]}")
    except subprocess.TimeoutExpired:
        log.info("framework command timed out", cmd=" ".join(cmd), timeout=settings.timeout)
        return CommandResult(args=cmd, returncode=-1, error=f"Command timed out after {settings.timeout:g}s")
    except OSError as error:
        log.info("framework command failed to start", cmd=" ".join(cmd), error=str(error))
        return CommandResult(args=cmd, returncode=-1, error=str(error))

    log.debug("framework command finished", cmd=" ".join(cmd), returncode=proc.returncode)
    return CommandResult(
        args=cmd,
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )
