"""Directory walk that selects the files to scan.

A directory is pruned when its basename equals an exclude entry or its path
contains one. A file is dropped when its name matches an ``fnmatch`` exclude
pattern, when it is larger than the configured limit, or when its name does not
end with a configured extension. Walk order is made deterministic by sorting each
directory's entries.
"""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass, field
from typing import Sequence

from leakscan.config import FilterConfig
from leakscan.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class DiscoveryResult:
    """Files selected for scanning plus skip counters."""

    files: list[str] = field(default_factory=list)
    skipped_dirs: int = 0
    skipped_files: int = 0
    skipped_size: int = 0

    @property
    def skipped_any(self) -> bool:
        return bool(self.skipped_dirs or self.skipped_files or self.skipped_size)


def should_exclude_dir(dir_path: str, exclude_dirs: Sequence[str]) -> bool:
    name = os.path.basename(dir_path.rstrip(os.sep))
    return any(name == exclude or exclude in dir_path for exclude in exclude_dirs)


def should_exclude_file(file_path: str, exclude_files: Sequence[str]) -> bool:
    name = os.path.basename(file_path)
    return any(fnmatch.fnmatch(name, pattern) for pattern in exclude_files)


def should_skip_by_size(size: int, max_file_size: int) -> bool:
    return max_file_size > 0 and size > max_file_size


def is_supported_type(file_name: str, file_types: Sequence[str]) -> bool:
    return any(file_name.endswith(ext) for ext in file_types)


def discover_files(directory: str, filters: FilterConfig) -> DiscoveryResult:
    """Walk ``directory`` and return the files to scan, in walk order.

    Unreadable subdirectories are logged and skipped; they never abort the walk.
    """
    result = DiscoveryResult()
    file_types = tuple(filters.file_types)
    max_file_size = filters.max_file_size

    def on_error(exc: OSError) -> None:
        logger.warning("Cannot list directory", path=exc.filename, error=str(exc))

    for root, dirs, files in os.walk(directory, onerror=on_error):
        kept_dirs = []
        for name in sorted(dirs):
            path = os.path.join(root, name)
            if should_exclude_dir(path, filters.exclude_dirs):
                result.skipped_dirs += 1
                logger.debug("Skipping excluded directory", path=path)
                continue
            kept_dirs.append(name)
        dirs[:] = kept_dirs

        for name in sorted(files):
            path = os.path.join(root, name)
            if should_exclude_file(path, filters.exclude_files):
                result.skipped_files += 1
                continue
            if not is_supported_type(name, file_types):
                continue
            if max_file_size > 0:
                try:
                    size = os.path.getsize(path)
                except OSError as exc:
                    logger.warning("Cannot stat file", path=path, error=str(exc))
                    continue
                if should_skip_by_size(size, max_file_size):
                    result.skipped_size += 1
                    logger.debug(
                        "Skipping large file",
                        path=path,
                        size_mb=round(size / 1024 / 1024, 2),
                    )
                    continue
            result.files.append(path)

    if result.skipped_any:
        logger.info(
            "Discovery skipped entries",
            dirs=result.skipped_dirs,
            files=result.skipped_files,
            large_files=result.skipped_size,
        )
    return result
