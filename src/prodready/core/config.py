"""Scan configuration dataclass and the optional ``.prodready.yml`` file."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from prodready.errors import ConfigError

CONFIG_FILE_NAMES = (".prodready.yml", ".prodready.yaml")
IGNORE_FILE_NAME = ".prodreadyignore"
WORKERS_ENV = "PRODREADY_WORKERS"

DEFAULT_EXTENSIONS = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx")
DEFAULT_EXCLUDES = frozenset(
    {"node_modules", ".git", "dist", "build", "coverage", ".next", ".nuxt"}
)

_KNOWN_KEYS = frozenset({"exclude", "extensions", "wrappers", "workers", "backups"})


def _default_workers() -> int:
    return min(8, (os.cpu_count() or 1) + 4)


@dataclass(frozen=True)
class ScanConfig:
    """Immutable scan configuration."""

    root: Path
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    exclude_dirs: frozenset[str] = DEFAULT_EXCLUDES
    ignore_file: str = IGNORE_FILE_NAME
    max_file_bytes: int = 2_000_000  # 2 MB safety limit
    workers: int = 0                 # 0 = choose from CPU count
    async_wrappers: tuple[str, ...] = ()
    create_backups: bool = True

    @property
    def effective_workers(self) -> int:
        return self.workers if self.workers > 0 else _default_workers()


def _string_list(data: dict[str, Any], key: str, path: Path) -> tuple[str, ...]:
    value = data.get(key, [])
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{path}: '{key}' must be a list of strings")
    return tuple(value)


def find_config_file(root: Path) -> Path | None:
    for name in CONFIG_FILE_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_project_config(root: Path) -> dict[str, Any]:
    """Read ``.prodready.yml`` under *root*; ``{}`` when there is none."""
    path = find_config_file(root)
    if path is None:
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"{path}: unknown key(s): {', '.join(unknown)}")

    out: dict[str, Any] = {}
    if "exclude" in data:
        out["exclude_dirs"] = DEFAULT_EXCLUDES | frozenset(_string_list(data, "exclude", path))
    if "extensions" in data:
        exts = _string_list(data, "extensions", path)
        out["extensions"] = tuple(e if e.startswith(".") else f".{e}" for e in exts)
    if "wrappers" in data:
        out["async_wrappers"] = _string_list(data, "wrappers", path)
    if "workers" in data:
        workers = data["workers"]
        if not isinstance(workers, int) or isinstance(workers, bool) or workers < 0:
            raise ConfigError(f"{path}: 'workers' must be a non-negative integer")
        out["workers"] = workers
    if "backups" in data:
        if not isinstance(data["backups"], bool):
            raise ConfigError(f"{path}: 'backups' must be true or false")
        out["create_backups"] = data["backups"]
    return out


def build_config(root: str | Path, **overrides: Any) -> ScanConfig:
    """Defaults, then ``.prodready.yml``, then ``PRODREADY_WORKERS``, then *overrides*."""
    root_p = Path(root).resolve()
    cfg = replace(ScanConfig(root=root_p), **load_project_config(root_p))

    env_workers = os.environ.get(WORKERS_ENV, "")
    if env_workers:
        try:
            cfg = replace(cfg, workers=max(0, int(env_workers)))
        except ValueError as exc:
            raise ConfigError(f"{WORKERS_ENV} must be an integer, got {env_workers!r}") from exc

    explicit = {k: v for k, v in overrides.items() if v is not None}
    return replace(cfg, **explicit) if explicit else cfg
