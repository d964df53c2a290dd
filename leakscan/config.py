"""Config loading for leakscan.

Reads `.leakscan/config.yaml` (or `~/.leakscan/config.yaml`).
Raises SystemExit on parse errors or missing `version` field.
If no config file is found, returns default values (safe to run without config).

Config search order:
  1. `config_path` argument (the CLI's --config flag, or a test override)
  2. LEAKSCAN_CONFIG environment variable (if set)
  3. `.leakscan/config.yaml` (working directory)
  4. `~/.leakscan/config.yaml` (home directory)

Environment variable overrides:
  LEAKSCAN_THREADS — overrides scan.threads (takes precedence over config file value)
  LEAKSCAN_CONFIG  — sets an explicit config file path to try first

CLI flags are applied on top of the loaded config by leakscan.run.

Example file::

    version: 1
    scan:
      threads: 8
      context_length: 150
      verbose: true
      keywords: ["password=", "jdbc:"]
    filters:
      file_types: [".txt", ".dll"]
      max_size_mb: 10
      exclude_dirs: [".git", "node_modules"]
      exclude_files: ["*.min.js"]
    output:
      file: res.txt
      html: report.html
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Optional

import yaml

from leakscan.constants import (
    BINARY_EXTENSIONS,
    DEFAULT_CONTEXT_LENGTH,
    DEFAULT_FILE_TYPES,
    DEFAULT_KEYWORDS,
    DEFAULT_OUTPUT_FILE,
)
from leakscan.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

# Default config search paths (LEAKSCAN_CONFIG env var prepended at runtime)
DEFAULT_CONFIG_PATHS = [
    ".leakscan/config.yaml",
    os.path.expanduser("~/.leakscan/config.yaml"),
]


def default_thread_count() -> int:
    return os.cpu_count() or 1


def _config_error(msg: str) -> SystemExit:
    print(f"CONFIG ERROR: {msg}", file=sys.stderr)
    return SystemExit(1)


def _as_list(value: object, name: str) -> list[str]:
    """Accept a YAML list or a comma-separated string; strip and drop empties."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        raise _config_error(f"'{name}' must be a list or a comma-separated string.")
    return [item.strip() for item in items if item.strip()]


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class ScanConfig:
    """Scan behaviour: worker count, keywords and binary engine settings."""

    threads: int = field(default_factory=default_thread_count)
    context_length: int = DEFAULT_CONTEXT_LENGTH
    verbose: bool = True
    keywords: list[str] = field(default_factory=lambda: list(DEFAULT_KEYWORDS))
    binary: bool = False


@dataclass
class FilterConfig:
    """Which files discovery keeps."""

    file_types: list[str] = field(default_factory=lambda: list(DEFAULT_FILE_TYPES))
    max_size_mb: int = 0  # 0 = no limit
    exclude_dirs: list[str] = field(default_factory=list)
    exclude_files: list[str] = field(default_factory=list)

    @property
    def max_file_size(self) -> int:
        """Size limit in bytes (0 = no limit)."""
        return self.max_size_mb * 1024 * 1024

    def binary_types(self) -> list[str]:
        return [t for t in self.file_types if t.lower() in BINARY_EXTENSIONS]


@dataclass
class OutputConfig:
    """Result file and HTML report locations."""

    file: str = DEFAULT_OUTPUT_FILE
    html: Optional[str] = None  # None = derived from `file`

    @property
    def html_path(self) -> str:
        if self.html:
            return self.html
        stem = self.file[:-len(".txt")] if self.file.endswith(".txt") else self.file
        return stem + ".html"


@dataclass
class Config:
    """Root configuration object populated from .leakscan/config.yaml.

    All fields have safe defaults; ``directory`` is always supplied by the CLI.
    """

    version: int = SUPPORTED_CONFIG_VERSION
    directory: str = ""
    scan: ScanConfig = field(default_factory=ScanConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    path: Optional[str] = None  # Path to the loaded config file

    @classmethod
    def defaults(cls) -> "Config":
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "Config":
        """Construct Config from a parsed YAML dict.

        Merges user-supplied values onto defaults; unknown keys are silently ignored.

        Raises:
            SystemExit(1): On a section that is not a mapping or a malformed list.
        """
        sections = {}
        for name in ("scan", "filters", "output"):
            section = raw.get(name) or {}
            if not isinstance(section, dict):
                raise _config_error(f"'{name}' must be a mapping.")
            sections[name] = section

        # ── Scan ──────────────────────────────────────────────────────────────
        scan_raw = sections["scan"]
        scan = ScanConfig()
        scan.threads = _as_int(scan_raw.get("threads", scan.threads), "scan.threads")
        scan.context_length = _as_int(
            scan_raw.get("context_length", DEFAULT_CONTEXT_LENGTH), "scan.context_length"
        )
        scan.verbose = bool(scan_raw.get("verbose", True))
        scan.binary = bool(scan_raw.get("binary", False))
        if "keywords" in scan_raw:
            scan.keywords = _as_list(scan_raw["keywords"], "scan.keywords")

        # ── Filters ───────────────────────────────────────────────────────────
        filters_raw = sections["filters"]
        filters = FilterConfig()
        if "file_types" in filters_raw:
            filters.file_types = _as_list(filters_raw["file_types"], "filters.file_types")
        filters.max_size_mb = _as_int(filters_raw.get("max_size_mb", 0), "filters.max_size_mb")
        filters.exclude_dirs = _as_list(filters_raw.get("exclude_dirs"), "filters.exclude_dirs")
        filters.exclude_files = _as_list(filters_raw.get("exclude_files"), "filters.exclude_files")

        # ── Output ────────────────────────────────────────────────────────────
        output_raw = sections["output"]
        output = OutputConfig(
            file=str(output_raw.get("file", DEFAULT_OUTPUT_FILE)),
            html=output_raw.get("html"),
        )

        return cls(
            version=raw.get("version", SUPPORTED_CONFIG_VERSION),
            scan=scan,
            filters=filters,
            output=output,
            path=path,
        )

    def validate(self) -> None:
        """Check cross-field constraints before a scan starts.

        Thread counts below 1 are clamped to 1 rather than rejected.

        Raises:
            SystemExit(1): On an empty directory or file-type list, or when no
                           keywords are configured and no binary types are scanned.
        """
        if not self.directory:
            raise _config_error("The scan directory must not be empty.")
        if not self.filters.file_types:
            raise _config_error("The file type list must not be empty.")
        if not self.scan.keywords and not self.scan.binary and not self.filters.binary_types():
            raise _config_error(
                "The keyword list must not be empty unless binary scanning is enabled."
            )
        if self.scan.threads < 1:
            logger.warning("Thread count below 1, clamping", threads=self.scan.threads)
            self.scan.threads = 1


def _as_int(value: object, name: str) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise _config_error(f"'{name}' must be an integer, got {value!r}.")


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate leakscan configuration.

    If no file is found at any of the search paths, returns default Config (not an
    error). If a file is found but invalid, writes error to stderr and raises
    SystemExit(1).

    After loading (or defaulting), ``LEAKSCAN_THREADS`` is applied as an override
    to ``config.scan.threads`` regardless of whether a config file was found.

    Raises:
        SystemExit(1): On YAML parse error, missing ``version`` field, unsupported
                       version, malformed section, or invalid ``LEAKSCAN_THREADS``.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("LEAKSCAN_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    # ── No config file found ─────────────────────────────────────────────────
    if found_path is None:
        logger.debug("No config file found, using defaults", searched=search_paths)
        config = Config.defaults()
        _apply_env_overrides(config)
        return config

    # ── Parse config file ─────────────────────────────────────────────────────
    logger.info("Loading config", path=found_path)

    try:
        with open(found_path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise _config_error(
            f"Failed to parse {found_path}: {exc}\n"
            "leakscan refuses to start with an invalid config. "
            "Check the YAML syntax and try again."
        )
    except OSError as exc:
        raise _config_error(f"Could not read {found_path}: {exc}")

    if not isinstance(raw, dict):
        if raw is None:
            raise _config_error(
                f"{found_path} is missing the required 'version' field.\n"
                "Add 'version: 1' to the top of your config file."
            )
        raise _config_error(
            f"{found_path} is not a valid YAML mapping.\n"
            "The config file must be a YAML dictionary at the top level."
        )

    # ── Version validation ────────────────────────────────────────────────────
    version = raw.get("version")
    if version is None:
        raise _config_error(
            f"{found_path} is missing the required 'version' field.\n"
            "Add 'version: 1' to the top of your config file."
        )
    if version not in SUPPORTED_VERSIONS:
        raise _config_error(
            f"Unsupported config version: {version}. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}."
        )

    config = Config.from_dict(raw, path=found_path)
    _apply_env_overrides(config)

    logger.info(
        "Config loaded",
        path=found_path,
        version=config.version,
        threads=config.scan.threads,
    )
    return config


def _apply_env_overrides(config: Config) -> None:
    """Apply environment variable overrides to a Config object in-place.

    Raises:
        SystemExit(1): If LEAKSCAN_THREADS is set but not a valid integer.
    """
    env_threads = os.environ.get("LEAKSCAN_THREADS")
    if env_threads is not None:
        try:
            config.scan.threads = int(env_threads)
        except ValueError:
            raise _config_error(
                f"LEAKSCAN_THREADS environment variable is not a valid integer: '{env_threads}'"
            )
