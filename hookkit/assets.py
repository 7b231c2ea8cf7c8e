"""Frontend-build staleness hook."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import structlog

from .config import SKIP_DIRS, HookSettings
from .report import Report, ReportStatus

log = structlog.get_logger(__name__)

HOOK_NAME = "assets"


def _iter_source_files(root: Path, sources: Iterable[str]) -> Iterable[Path]:
    for source in sources:
        path = root / source
        if path.is_file():
            yield path
        elif path.is_dir():
            for candidate in path.rglob("*"):
                if any(part in SKIP_DIRS for part in candidate.relative_to(root).parts):
                    continue
                if candidate.is_file():
                    yield candidate


def newest_source(root: Path, sources: Iterable[str]) -> tuple[Path, float] | None:
    newest: tuple[Path, float] | None = None
    # Sorted so ties resolve to the same file on every run.
    for path in sorted(_iter_source_files(root, sources)):
        mtime = path.stat().st_mtime
        if newest is None or mtime > newest[1]:
            newest = (path, mtime)
    return newest


def check_assets(root: Path, settings: HookSettings | None = None) -> Report:
    settings = settings or HookSettings()
    report = Report(hook=HOOK_NAME)

    if not (root / settings.bootstrap_marker).exists():
        log.debug("bootstrap marker missing, skipping", root=str(root), marker=settings.bootstrap_marker)
        return Report.skipped(HOOK_NAME)

    if not (root / settings.frontend_manifest).is_file():
        log.debug("no frontend manifest, skipping", root=str(root))
        return Report.skipped(HOOK_NAME)

    if not (root / settings.node_dependency_dir).is_dir():
        report.status = ReportStatus.attention
        report.add(f"Frontend dependencies are not installed ({settings.node_dependency_dir}/ is missing).")
        return report.suggest("npm install")

    build_dir = root / settings.build_dir
    if not build_dir.is_dir() or not (build_dir / settings.build_manifest).is_file():
        report.status = ReportStatus.attention
        report.add(f"Frontend assets have not been built ({settings.build_dir}/{settings.build_manifest} is missing).")
        return report.suggest("npm run build")

    built_at = build_dir.stat().st_mtime
    newest = newest_source(root, settings.asset_sources)
    if newest is not None and newest[1] > built_at:
        source, _ = newest
        log.debug("build output is stale", built_at=built_at, newest=str(source))
        report.status = ReportStatus.attention
        report.add("The frontend build needs rebuilding.")
        report.add(f"Most recently changed source: {source.relative_to(root).as_posix()}")
        return report.suggest("npm run build")

    return report.add("The frontend build is up to date.")
