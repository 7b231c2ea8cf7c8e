from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import yaml

from .config import SKIP_DIRS


class PayloadKind(str, Enum):
    agent = "agent"
    skill = "skill"


class PayloadError(RuntimeError):
    pass


@dataclass(frozen=True)
class PayloadDoc:
    kind: PayloadKind
    path: Path
    name: str
    description: str
    problems: tuple[str, ...]


def split_frontmatter(text: str) -> tuple[str | None, str]:
    """Return the raw frontmatter block (or None) and the remaining body."""
    text = text.replace("\r\n", "\n")
    if not text.startswith("---\n"):
        return None, text
    end = text.find("\n---", 4)
    if end == -1:
        return None, text
    body_start = text.find("\n", end + 4)
    body = text[body_start + 1 :] if body_start != -1 else ""
    return text[4:end], body


def _read_payload(kind: PayloadKind, path: Path, fallback_name: str) -> PayloadDoc:
    problems: list[str] = []
    raw, _ = split_frontmatter(path.read_text(encoding="utf-8", errors="ignore"))

    data: dict = {}
    if raw is None:
        problems.append("missing frontmatter")
    else:
        try:
            loaded = yaml.safe_load(raw) or {}
        except yaml.YAMLError:
            loaded = None
            problems.append("invalid frontmatter")
        if isinstance(loaded, dict):
            data = loaded
        elif loaded is not None:
            problems.append("invalid frontmatter")

    name = str(data.get("name", "")).strip()
    description = " ".join(str(data.get("description", "")).split())
    if raw is not None and "missing frontmatter" not in problems and "invalid frontmatter" not in problems:
        if not name:
            problems.append("missing name")
        if not description:
            problems.append("missing description")

    return PayloadDoc(
        kind=kind,
        path=path,
        name=name or fallback_name,
        description=description,
        problems=tuple(problems),
    )


def _skipped(path: Path, root: Path) -> bool:
    return any(part in SKIP_DIRS for part in path.relative_to(root).parts)


def inventory_payloads(scope: Path) -> tuple[PayloadDoc, ...]:
    root = scope.resolve()
    if not root.exists() or not root.is_dir():
        raise PayloadError(f"Scope path does not exist: {root}")

    docs: list[PayloadDoc] = []
    for path in root.rglob("agents/*.md"):
        if path.is_file() and not _skipped(path, root):
            docs.append(_read_payload(PayloadKind.agent, path, path.stem))

    for path in root.rglob("skills/*/SKILL.md"):
        if path.is_file() and not _skipped(path, root):
            docs.append(_read_payload(PayloadKind.skill, path, path.parent.name))

    docs.sort(key=lambda item: (item.kind.value, str(item.path)))
    return tuple(docs)


def payload_name(path: Path, frontmatter: str | None) -> str:
    """Frontmatter ``name`` if present, otherwise the skill directory or file stem."""
    if frontmatter:
        try:
            data = yaml.safe_load(frontmatter)
        except yaml.YAMLError:
            data = None
        if isinstance(data, dict) and str(data.get("name", "")).strip():
            return str(data["name"]).strip()
    return path.parent.name if path.name == "SKILL.md" else path.stem
