"""Unit tests for leakscan/config.py: file loading, validation and env overrides.

Covers:
  - Missing config file → defaults, no exception
  - Missing/unknown 'version', invalid YAML, non-mapping → SystemExit(1)
  - Section values merged onto defaults; comma strings accepted for lists
  - LEAKSCAN_CONFIG and LEAKSCAN_THREADS environment variables
  - Config.validate() cross-field checks
"""

from __future__ import annotations

import textwrap

import pytest

from leakscan.config import (
    SUPPORTED_VERSIONS,
    Config,
    FilterConfig,
    OutputConfig,
    ScanConfig,
    load_config,
)
from leakscan.constants import DEFAULT_FILE_TYPES, DEFAULT_KEYWORDS


def _write(tmp_path, body: str) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return str(path)


# ─── Missing config file → defaults ─────────────────────────────────────────


class TestMissingConfigFile:
    def test_nonexistent_path_returns_defaults(self) -> None:
        config = load_config(config_path="/nonexistent/path/to/config.yaml")
        assert isinstance(config, Config)
        assert config.version == 1

    def test_defaults(self) -> None:
        config = load_config(config_path="/nonexistent/config.yaml")
        assert config.scan.context_length == 150
        assert config.scan.verbose is True
        assert config.scan.keywords == list(DEFAULT_KEYWORDS)
        assert config.filters.file_types == list(DEFAULT_FILE_TYPES)
        assert config.filters.max_size_mb == 0
        assert config.output.file == "res.txt"
        assert config.scan.threads >= 1

    def test_defaults_are_not_shared(self) -> None:
        a = Config.defaults()
        b = Config.defaults()
        a.scan.keywords.append("extra")
        assert "extra" not in b.scan.keywords


# ─── Version and syntax errors → SystemExit(1) ──────────────────────────────


class TestInvalidConfig:
    def test_missing_version(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "scan:\n  threads: 2\n")
        with pytest.raises(SystemExit) as exc:
            load_config(path)
        assert exc.value.code == 1
        assert "version" in capsys.readouterr().err

    def test_unknown_version(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "version: 2\n")
        with pytest.raises(SystemExit) as exc:
            load_config(path)
        assert exc.value.code == 1
        assert "Unsupported config version" in capsys.readouterr().err

    def test_invalid_yaml(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "version: 1\nscan: [unclosed\n")
        with pytest.raises(SystemExit):
            load_config(path)
        assert "Failed to parse" in capsys.readouterr().err

    def test_empty_file(self, tmp_path) -> None:
        path = _write(tmp_path, "")
        with pytest.raises(SystemExit):
            load_config(path)

    def test_scalar_document(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "just a string\n")
        with pytest.raises(SystemExit):
            load_config(path)
        assert "not a valid YAML mapping" in capsys.readouterr().err

    def test_section_must_be_mapping(self, tmp_path) -> None:
        path = _write(tmp_path, "version: 1\nscan: 5\n")
        with pytest.raises(SystemExit):
            load_config(path)

    def test_non_integer_threads(self, tmp_path) -> None:
        path = _write(tmp_path, "version: 1\nscan:\n  threads: many\n")
        with pytest.raises(SystemExit):
            load_config(path)

    def test_supported_versions(self) -> None:
        assert SUPPORTED_VERSIONS == frozenset({1})


# ─── Values merged onto defaults ────────────────────────────────────────────


class TestLoadedValues:
    def test_full_file(self, tmp_path) -> None:
        path = _write(tmp_path, """
            version: 1
            scan:
              threads: 3
              context_length: 64
              verbose: false
              keywords: ["password=", "token"]
              binary: true
            filters:
              file_types: [".txt", ".dll"]
              max_size_mb: 10
              exclude_dirs: [".git", "node_modules"]
              exclude_files: "*.min.js, *.map"
            output:
              file: out.txt
              html: out-report.html
        """)
        config = load_config(path)
        assert config.path == path
        assert config.scan.threads == 3
        assert config.scan.context_length == 64
        assert config.scan.verbose is False
        assert config.scan.keywords == ["password=", "token"]
        assert config.scan.binary is True
        assert config.filters.file_types == [".txt", ".dll"]
        assert config.filters.max_file_size == 10 * 1024 * 1024
        assert config.filters.exclude_dirs == [".git", "node_modules"]
        assert config.filters.exclude_files == ["*.min.js", "*.map"]
        assert config.output.file == "out.txt"
        assert config.output.html_path == "out-report.html"

    def test_partial_file_keeps_defaults(self, tmp_path) -> None:
        path = _write(tmp_path, "version: 1\nfilters:\n  max_size_mb: 5\n")
        config = load_config(path)
        assert config.filters.max_size_mb == 5
        assert config.filters.file_types == list(DEFAULT_FILE_TYPES)
        assert config.scan.keywords == list(DEFAULT_KEYWORDS)

    def test_empty_keyword_list(self, tmp_path) -> None:
        path = _write(tmp_path, "version: 1\nscan:\n  keywords: []\n")
        assert load_config(path).scan.keywords == []


# ─── Environment variables ──────────────────────────────────────────────────


class TestEnvironment:
    def test_leakscan_config_env(self, tmp_path, monkeypatch) -> None:
        path = _write(tmp_path, "version: 1\nscan:\n  threads: 7\n")
        monkeypatch.setenv("LEAKSCAN_CONFIG", path)
        assert load_config().scan.threads == 7

    def test_explicit_path_wins_over_env(self, tmp_path, monkeypatch) -> None:
        explicit = _write(tmp_path, "version: 1\nscan:\n  threads: 2\n")
        other = tmp_path / "other.yaml"
        other.write_text("version: 1\nscan:\n  threads: 9\n", encoding="utf-8")
        monkeypatch.setenv("LEAKSCAN_CONFIG", str(other))
        assert load_config(explicit).scan.threads == 2

    def test_threads_override_with_file(self, tmp_path, monkeypatch) -> None:
        path = _write(tmp_path, "version: 1\nscan:\n  threads: 2\n")
        monkeypatch.setenv("LEAKSCAN_THREADS", "12")
        assert load_config(path).scan.threads == 12

    def test_threads_override_without_file(self, monkeypatch) -> None:
        monkeypatch.setenv("LEAKSCAN_THREADS", "5")
        assert load_config("/nonexistent.yaml").scan.threads == 5

    def test_invalid_threads_env(self, monkeypatch, capsys) -> None:
        monkeypatch.setenv("LEAKSCAN_THREADS", "lots")
        with pytest.raises(SystemExit):
            load_config("/nonexistent.yaml")
        assert "LEAKSCAN_THREADS" in capsys.readouterr().err


# ─── Validation ─────────────────────────────────────────────────────────────


class TestValidate:
    def _config(self, **scan) -> Config:
        return Config(directory="/data", scan=ScanConfig(**scan))

    def test_valid(self) -> None:
        self._config().validate()

    def test_directory_required(self) -> None:
        with pytest.raises(SystemExit):
            Config().validate()

    def test_file_types_required(self) -> None:
        config = Config(directory="/data", filters=FilterConfig(file_types=[]))
        with pytest.raises(SystemExit):
            config.validate()

    def test_keywords_required_without_binary_types(self) -> None:
        with pytest.raises(SystemExit):
            self._config(keywords=[]).validate()

    def test_keywords_optional_with_binary_types(self) -> None:
        config = Config(
            directory="/data",
            scan=ScanConfig(keywords=[]),
            filters=FilterConfig(file_types=[".txt", ".DLL"]),
        )
        config.validate()

    def test_keywords_optional_in_binary_mode(self) -> None:
        self._config(keywords=[], binary=True).validate()

    def test_threads_clamped(self) -> None:
        config = self._config(threads=0)
        config.validate()
        assert config.scan.threads == 1


class TestOutputConfig:
    def test_html_path_derived_from_txt(self) -> None:
        assert OutputConfig(file="res.txt").html_path == "res.html"

    def test_html_path_for_other_extension(self) -> None:
        assert OutputConfig(file="results.log").html_path == "results.log.html"

    def test_explicit_html_path(self) -> None:
        assert OutputConfig(file="res.txt", html="r.html").html_path == "r.html"
