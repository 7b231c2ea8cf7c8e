from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum


class ReportStatus(str, Enum):
    skipped = "skipped"
    ok = "ok"
    attention = "attention"


@dataclass
class Report:
    hook: str
    status: ReportStatus = ReportStatus.ok
    lines: list[str] = field(default_factory=list)
    commands: list[str] = field(default_factory=list)

    @classmethod
    def skipped(cls, hook: str) -> "Report":
        return cls(hook=hook, status=ReportStatus.skipped)

    @property
    def is_empty(self) -> bool:
        return not self.lines and not self.commands

    def add(self, line: str) -> "Report":
        self.lines.append(line)
        return self

    def suggest(self, *commands: str) -> "Report":
        self.commands.extend(commands)
        return self

    def to_dict(self) -> dict:
        return {
            "hook": self.hook,
            "status": self.status.value,
            "lines": list(self.lines),
            "commands": list(self.commands),
        }


def render_text(report: Report) -> str:
    if report.is_empty:
        return ""

    lines = [f"[{report.hook}]"]
    lines.extend(f"  {line}" for line in report.lines)
    if report.commands:
        lines.append("")
        lines.append("  Suggested commands:")
        lines.extend(f"    {command}" for command in report.commands)
    return "\n".join(lines)


def render_markdown(report: Report) -> str:
    if report.is_empty:
        return ""

    lines = [f"# {report.hook}", "", f"- **status**: {report.status.value}"]
    lines.extend(f"- {line}" for line in report.lines)
    if report.commands:
        lines.extend(["", "## Suggested commands", "", "```sh"])
        lines.extend(report.commands)
        lines.append("```")
    return "\n".join(lines)


def render_json(report: Report, command: str) -> str:
    payload = {
        "ok": True,
        "command": command,
        "exit_code": 0,
        "data": report.to_dict(),
    }
    return json.dumps(payload, ensure_ascii=True, sort_keys=True)
