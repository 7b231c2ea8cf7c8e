from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

CONFIG_FILE = ".hookkit.yml"

BOOTSTRAP_MARKER = "artisan"
ENV_FILE = ".env"
ENV_EXAMPLE_FILE = ".env.example"
DEPENDENCY_DIR = "vendor"
NODE_DEPENDENCY_DIR = "node_modules"
FRONTEND_MANIFEST = "package.json"
BUILD_DIR = "public/build"
BUILD_MANIFEST = "manifest.json"

FRAMEWORK_COMMAND = ("php", "artisan")
ASSET_SOURCES = (
    "resources/js",
    "resources/css",
    "resources/views",
    "vite.config.js",
    "vite.config.ts",
    "package.json",
    "tailwind.config.js",
    "postcss.config.js",
)

PENDING_PREVIEW_LIMIT = 5
COMMAND_TIMEOUT = 30.0

SKIP_DIRS = {".git", ".venv", "venv", "node_modules", "vendor", "dist", "build", "__pycache__", ".mypy_cache", ".pytest_cache"}


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class HookSettings:
    bootstrap_marker: str = BOOTSTRAP_MARKER
    env_file: str = ENV_FILE
    env_example_file: str = ENV_EXAMPLE_FILE
    dependency_dir: str = DEPENDENCY_DIR
    node_dependency_dir: str = NODE_DEPENDENCY_DIR
    frontend_manifest: str = FRONTEND_MANIFEST
    build_dir: str = BUILD_DIR
    build_manifest: str = BUILD_MANIFEST
    framework_command: tuple[str, ...] = FRAMEWORK_COMMAND
    asset_sources: tuple[str, ...] = ASSET_SOURCES
    pending_preview_limit: int = PENDING_PREVIEW_LIMIT
    timeout: float = COMMAND_TIMEOUT

    @property
    def framework_command_line(self) -> str:
        return " ".join(self.framework_command)


def _coerce(name: str, value: object, default: object) -> object:
    if isinstance(default, tuple):
        if isinstance(value, str):
            items = value.split() if name == "framework_command" else [value]
        elif isinstance(value, list):
            items = [str(item) for item in value]
        else:
            raise ConfigError(f"{name} must be a string or a list")
        if not items:
            raise ConfigError(f"{name} cannot be empty")
        return tuple(items)

    if isinstance(default, bool) or isinstance(value, bool):
        raise ConfigError(f"Invalid value for {name}: {value!r}")

    if isinstance(default, int):
        if not isinstance(value, int) or value <= 0:
            raise ConfigError(f"{name} must be a positive integer")
        return value

    if isinstance(default, float):
        if not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError(f"{name} must be a positive number")
        return float(value)

    text = str(value).strip()
    if not text:
        raise ConfigError(f"{name} cannot be empty")
    return text


def load_settings(root: Path) -> HookSettings:
    """Read ``.hookkit.yml`` from the project root, falling back to defaults."""
    defaults = HookSettings()
    marker = root / CONFIG_FILE
    if not marker.is_file():
        return defaults

    try:
        text = marker.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as error:
        raise ConfigError(f"Could not read {marker}: {error}") from error

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Could not parse {marker}: {error}") from error
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping in {marker}")

    known = {field.name: getattr(defaults, field.name) for field in fields(HookSettings)}
    unknown = sorted(str(key) for key in data if key not in known)
    if unknown:
        raise ConfigError(f"Unknown setting(s) in {marker}: {', '.join(unknown)}")

    overrides = {key: _coerce(key, value, known[key]) for key, value in data.items()}
    return replace(defaults, **overrides)


def default_settings_document() -> dict:
    defaults = HookSettings()
    document = {}
    for field in fields(HookSettings):
        value = getattr(defaults, field.name)
        document[field.name] = list(value) if isinstance(value, tuple) else value
    return document


def templates_root() -> Path:
    return Path(__file__).resolve().parent / "templates"
