from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import structlog
import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .config import CONFIG_FILE, default_settings_document, templates_root

log = structlog.get_logger(__name__)

HOOK_NAMES = ("migrations", "assets")
SETTINGS_PATH = Path(".claude") / "settings.json"


@dataclass(frozen=True)
class InstallOptions:
    target: Path
    executable: str = "hookkit"
    hooks: tuple[str, ...] = HOOK_NAMES
    timeout: int = 60
    with_config: bool = False
    force: bool = False


@dataclass(frozen=True)
class InstallReport:
    target: Path
    settings_path: Path
    merged: bool
    config_path: Path | None


class InstallError(RuntimeError):
    pass


def render_hook_settings(options: InstallOptions) -> dict:
    env = Environment(
        loader=FileSystemLoader(str(templates_root())),
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    rendered = env.get_template("settings.json.j2").render(
        executable=options.executable,
        hooks=list(options.hooks),
        timeout=options.timeout,
    )
    return json.loads(rendered)


def _load_existing(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise InstallError(f"Could not parse existing settings file {path}: {error}") from error
    if not isinstance(data, dict):
        raise InstallError(f"Expected a JSON object in {path}")
    return data


def install_hooks(options: InstallOptions) -> InstallReport:
    target = options.target.resolve()
    if not target.exists() or not target.is_dir():
        raise InstallError(f"Target path does not exist: {target}")

    unknown = [hook for hook in options.hooks if hook not in HOOK_NAMES]
    if unknown:
        raise InstallError(f"Unsupported hook(s): {', '.join(unknown)}")

    config_path = target / CONFIG_FILE if options.with_config else None
    if config_path is not None and config_path.exists() and not options.force:
        raise InstallError(f"Config file already exists: {config_path}")

    settings_path = target / SETTINGS_PATH
    fresh = render_hook_settings(options)

    merged = settings_path.exists()
    if merged:
        document = _load_existing(settings_path)
        hooks = document.get("hooks")
        if not isinstance(hooks, dict):
            hooks = {}
        hooks["Stop"] = fresh["hooks"]["Stop"]
        document["hooks"] = hooks
    else:
        document = fresh

    settings_path.parent.mkdir(parents=True, exist_ok=True)
    settings_path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    log.info("hook settings written", path=str(settings_path), merged=merged)

    if config_path is not None:
        config_path.write_text(yaml.safe_dump(default_settings_document(), sort_keys=False), encoding="utf-8")

    return InstallReport(
        target=target,
        settings_path=settings_path,
        merged=merged,
        config_path=config_path,
    )
