"""
Discovery and configuration tests
=================================
File discovery (extensions, excluded directories, ``.prodreadyignore``)
and ``.prodready.yml`` / ``PRODREADY_WORKERS`` handling.
"""

import textwrap
from pathlib import Path

import pytest

from prodready.core.config import (
    DEFAULT_EXCLUDES,
    WORKERS_ENV,
    ScanConfig,
    build_config,
    load_project_config,
)
from prodready.core.discover import (
    DiscoverConfig,
    discover_js_files,
    is_ignored,
    read_ignore_patterns,
)
from prodready.errors import ConfigError


def write(root: Path, name: str, content: str = "") -> Path:
    p = root / name
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(textwrap.dedent(content), encoding="utf-8")
    return p


def rel(root: Path, paths: list[Path]) -> list[str]:
    return [p.relative_to(root.resolve()).as_posix() for p in paths]


# ============================================================================
# Discovery
# ============================================================================

class TestDiscovery:

    def test_extensions(self, tmp_path):
        for name in ("a.js", "b.jsx", "c.mjs", "d.cjs", "e.ts", "f.tsx", "g.py", "h.json"):
            write(tmp_path, name, "1;")
        found = rel(tmp_path, discover_js_files(tmp_path.resolve()))
        assert found == ["a.js", "b.jsx", "c.mjs", "d.cjs", "e.ts", "f.tsx"]

    def test_excluded_directories(self, tmp_path):
        write(tmp_path, "src/app.js", "1;")
        write(tmp_path, "node_modules/lib/index.js", "1;")
        write(tmp_path, "dist/bundle.js", "1;")
        write(tmp_path, ".git/hooks/x.js", "1;")
        found = rel(tmp_path, discover_js_files(tmp_path.resolve()))
        assert found == ["src/app.js"]

    def test_sorted_output(self, tmp_path):
        for name in ("z.js", "a/b.js", "m.js"):
            write(tmp_path, name, "1;")
        found = rel(tmp_path, discover_js_files(tmp_path.resolve()))
        assert found == sorted(found)

    def test_ignore_file(self, tmp_path):
        write(tmp_path, "src/app.js", "1;")
        write(tmp_path, "src/generated/api.js", "1;")
        write(tmp_path, "src/app.min.js", "1;")
        write(tmp_path, ".prodreadyignore", """
            # generated code
            src/generated/
            *.min.js
        """)
        found = rel(tmp_path, discover_js_files(tmp_path.resolve()))
        assert found == ["src/app.js"]

    def test_large_files_skipped(self, tmp_path):
        write(tmp_path, "big.js", "x;" * 100)
        write(tmp_path, "small.js", "x;")
        cfg = DiscoverConfig(root=tmp_path.resolve(), max_file_bytes=50)
        found = rel(tmp_path, discover_js_files(tmp_path.resolve(), cfg))
        assert found == ["small.js"]

    def test_missing_root(self, tmp_path):
        assert discover_js_files(tmp_path / "nope") == []


class TestIgnorePatterns:

    def test_read_skips_comments_and_blanks(self, tmp_path):
        path = write(tmp_path, ".prodreadyignore", "# c\n\nvendor/\n  *.min.js  \n")
        assert read_ignore_patterns(path) == ["vendor/", "*.min.js"]

    def test_missing_file(self, tmp_path):
        assert read_ignore_patterns(tmp_path / ".prodreadyignore") == []

    @pytest.mark.parametrize(
        "path, patterns, expected",
        [
            ("vendor/x.js", ["vendor/"], True),
            ("vendor/x.js", ["vendor"], True),
            ("src/vendor.js", ["vendor"], False),
            ("src/a.min.js", ["*.min.js"], True),
            ("src/a.js", ["/src/a.js"], True),
            ("src/a.js", ["lib/**"], False),
        ],
    )
    def test_is_ignored(self, path, patterns, expected):
        assert is_ignored(path, patterns) is expected


# ============================================================================
# Configuration
# ============================================================================

class TestProjectConfig:

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv(WORKERS_ENV, raising=False)
        cfg = build_config(tmp_path)
        assert cfg == ScanConfig(root=tmp_path.resolve())
        assert cfg.create_backups is True
        assert cfg.effective_workers >= 1

    def test_yaml_values(self, tmp_path, monkeypatch):
        monkeypatch.delenv(WORKERS_ENV, raising=False)
        write(tmp_path, ".prodready.yml", """
            exclude: [fixtures]
            extensions: [js, .jsx]
            wrappers: [safeAsync]
            workers: 2
            backups: false
        """)
        cfg = build_config(tmp_path)
        assert "fixtures" in cfg.exclude_dirs
        assert DEFAULT_EXCLUDES <= cfg.exclude_dirs
        assert cfg.extensions == (".js", ".jsx")
        assert cfg.async_wrappers == ("safeAsync",)
        assert cfg.workers == 2
        assert cfg.create_backups is False

    def test_empty_file(self, tmp_path):
        write(tmp_path, ".prodready.yml", "")
        assert load_project_config(tmp_path) == {}

    def test_unknown_key(self, tmp_path):
        write(tmp_path, ".prodready.yml", "color: blue\n")
        with pytest.raises(ConfigError, match="unknown key"):
            load_project_config(tmp_path)

    def test_bad_types(self, tmp_path):
        write(tmp_path, ".prodready.yml", "workers: many\n")
        with pytest.raises(ConfigError, match="workers"):
            load_project_config(tmp_path)

    def test_invalid_yaml(self, tmp_path):
        write(tmp_path, ".prodready.yml", "exclude: [unclosed\n")
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_project_config(tmp_path)

    def test_not_a_mapping(self, tmp_path):
        write(tmp_path, ".prodready.yml", "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_project_config(tmp_path)


class TestOverrides:

    def test_env_workers(self, tmp_path, monkeypatch):
        monkeypatch.setenv(WORKERS_ENV, "3")
        assert build_config(tmp_path).workers == 3

    def test_env_workers_invalid(self, tmp_path, monkeypatch):
        monkeypatch.setenv(WORKERS_ENV, "lots")
        with pytest.raises(ConfigError, match=WORKERS_ENV):
            build_config(tmp_path)

    def test_explicit_override_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv(WORKERS_ENV, "3")
        write(tmp_path, ".prodready.yml", "backups: false\n")
        cfg = build_config(tmp_path, workers=1, create_backups=True)
        assert cfg.workers == 1
        assert cfg.create_backups is True

    def test_none_override_ignored(self, tmp_path, monkeypatch):
        monkeypatch.delenv(WORKERS_ENV, raising=False)
        write(tmp_path, ".prodready.yml", "backups: false\n")
        assert build_config(tmp_path, create_backups=None).create_backups is False
