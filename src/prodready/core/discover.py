"""File discovery — find JavaScript files respecting exclusion patterns."""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterator

from prodready.core.config import DEFAULT_EXCLUDES, DEFAULT_EXTENSIONS, IGNORE_FILE_NAME, ScanConfig

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoverConfig:
    """Configuration for file discovery.

    All parameters are optional and have sensible defaults.
    """

    root: Path = field(default_factory=lambda: Path("."))
    include_exts: tuple[str, ...] = DEFAULT_EXTENSIONS
    ignore_dirs: frozenset[str] = DEFAULT_EXCLUDES
    ignore_file: str = IGNORE_FILE_NAME
    follow_symlinks: bool = False
    max_file_bytes: int = 2_000_000

    @classmethod
    def from_scan_config(cls, cfg: ScanConfig) -> "DiscoverConfig":
        return cls(
            root=cfg.root,
            include_exts=cfg.extensions,
            ignore_dirs=cfg.exclude_dirs,
            ignore_file=cfg.ignore_file,
            max_file_bytes=cfg.max_file_bytes,
        )


def read_ignore_patterns(path: Path) -> list[str]:
    """Non-empty, non-comment lines of an ignore file."""
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return []
    return [ln.strip() for ln in lines if ln.strip() and not ln.lstrip().startswith("#")]


def is_ignored(rel_path: str, patterns: list[str]) -> bool:
    """Match *rel_path* (posix) against ignore patterns.

    A pattern matches as a glob against the whole relative path or the
    basename, or as a directory prefix (``build/`` or ``build``).
    """
    name = rel_path.rsplit("/", 1)[-1]
    for raw in patterns:
        pattern = raw.lstrip("/")
        if fnmatch.fnmatch(rel_path, pattern) or fnmatch.fnmatch(name, pattern):
            return True
        prefix = pattern.rstrip("/")
        if prefix and (rel_path == prefix or rel_path.startswith(prefix + "/")):
            return True
    return False


def iter_source_files(cfg: DiscoverConfig) -> Iterator[Path]:
    """Yield source files under *cfg.root* respecting all exclusion rules."""
    root = cfg.root
    if not root.exists():
        return
    patterns = read_ignore_patterns(root / cfg.ignore_file)
    exts = {e.lower() for e in cfg.include_exts}
    for p in root.rglob("*"):
        try:
            if p.is_symlink() and not cfg.follow_symlinks:
                continue
            if not p.is_file():
                continue
            if p.suffix.lower() not in exts:
                continue
            rel = p.relative_to(root)
            # skip if any parent is in ignore_dirs
            if any(part in cfg.ignore_dirs for part in rel.parts[:-1]):
                continue
            if patterns and is_ignored(rel.as_posix(), patterns):
                _logger.debug("%s: ignored by %s", rel.as_posix(), cfg.ignore_file)
                continue
            if p.stat().st_size > cfg.max_file_bytes:
                _logger.warning("%s: skipped, larger than %d bytes", rel.as_posix(), cfg.max_file_bytes)
                continue
            yield p.resolve()
        except OSError:
            continue


def discover_js_files(root: Path, cfg: DiscoverConfig | None = None) -> list[Path]:
    """Sorted list of absolute paths of the JavaScript files under *root*."""
    cfg = cfg or DiscoverConfig(root=root)
    if cfg.root != root:
        cfg = replace(cfg, root=root)
    return sorted(set(iter_source_files(cfg)))
