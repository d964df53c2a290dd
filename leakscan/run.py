"""Command-line entry point for leakscan.

Usage:
    leakscan -f /path/to/scan            # via pyproject.toml [project.scripts]
    python -m leakscan.run -f /path/to/scan
    leakscan examples                    # print usage examples

Settings come from the YAML config (see leakscan.config) and are then overridden by
any CLI flag given explicitly. Findings are printed to stdout and appended to the
result file; logs go to stderr.
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import Optional, Sequence

from leakscan import __version__
from leakscan.config import Config, load_config
from leakscan.constants import BINARY_EXTENSIONS
from leakscan.discovery import discover_files
from leakscan.output.formatter import ResultFormatter
from leakscan.output.html import build_html_report, write_html_report
from leakscan.output.records import risk_distribution
from leakscan.output.writer import ResultWriter
from leakscan.scanner.pool import ResultAggregator, ScanOrchestrator
from leakscan.utils.logger import PerformanceLogger, configure_logging, get_logger

logger = get_logger(__name__)

EXAMPLES = """Examples:

  # Basic scan
  leakscan -f /path/to/scan

  # Specify file types and keywords
  leakscan -f /path/to/scan -t .txt,.log -k "password,token"

  # Custom output and HTML report names
  leakscan -f /path/to/scan -o result.txt --html report.html

  # Scan a Python project, excluding virtual environments
  leakscan -f /path/to/project -t .py,.ini,.yaml -ed "venv,.venv"

  # Scan binaries (add all binary types with -b)
  leakscan -b -f /path/to/binaries

  # Scan binaries by naming their types directly
  leakscan -t .dll,.exe -f /path/to/binaries

  # Scan binaries with detection rules only (no keywords)
  leakscan -b -k "" -f /path/to/binaries

  # Wider context around binary findings
  leakscan -b -f /path/to/binaries --ctx 200

  # High-throughput scan
  leakscan -f /path/to/scan -n 16 -s 10 --quiet -ed "node_modules,.git"
"""


def parse_list(value: Optional[str]) -> list[str]:
    """Split a comma-separated flag value; blanks are dropped."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="leakscan",
        description="Scan files and PE binaries for leaked credentials and sensitive strings.",
        epilog="Run 'leakscan examples' for more examples.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    basic = parser.add_argument_group("basic")
    basic.add_argument("-f", "--folder", help="Directory to scan (required)")
    basic.add_argument("-o", "--output", help="Result file path (default: res.txt)")
    basic.add_argument("--html", "--html-output", dest="html",
                       help="HTML report path (default: result file name with .html)")
    basic.add_argument("--config", help="Config file path (default: .leakscan/config.yaml)")

    types = parser.add_argument_group("file types")
    types.add_argument("-t", "--type", dest="file_types", help="File types, comma separated")
    types.add_argument("-ta", "--ta", "--type-append", dest="type_append",
                       help="Extra file types, comma separated")

    keywords = parser.add_argument_group("keywords")
    keywords.add_argument("-k", "--keyword", dest="keywords",
                          help="Keywords, comma separated (may be empty when scanning binaries)")
    keywords.add_argument("-ka", "--ka", "--keyword-append", dest="keyword_append",
                          help="Extra keywords, comma separated")

    perf = parser.add_argument_group("performance")
    perf.add_argument("-n", "--thread", dest="threads", type=int, help="Number of worker threads")
    perf.add_argument("--verbose", dest="verbose", action="store_true", default=None,
                      help="Print findings as files complete (default)")
    perf.add_argument("--quiet", dest="verbose", action="store_false",
                      help="Only print the summary")

    advanced = parser.add_argument_group("advanced")
    advanced.add_argument("-s", "--max-size", dest="max_size", type=int,
                          help="Max file size in MB (0 = no limit)")
    advanced.add_argument("-ed", "--ed", "--exclude-dir", dest="exclude_dirs",
                          help="Excluded directories, comma separated")
    advanced.add_argument("-ef", "--ef", "--exclude-file", dest="exclude_files",
                          help="Excluded file patterns, comma separated")

    binary = parser.add_argument_group("binary")
    binary.add_argument("-b", "--binary", action="store_true", default=None,
                        help="Also scan binary types (" + ", ".join(BINARY_EXTENSIONS) + ")")
    binary.add_argument("--ctx", "--context", dest="context_length", type=int,
                        help="Context length around binary findings (default: 150)")

    logging_group = parser.add_argument_group("logging")
    logging_group.add_argument("--log-level", default="WARNING",
                               choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    logging_group.add_argument("--log-json", action="store_true", help="Emit logs as JSON")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("examples", aliases=["ex"], help="Show usage examples")
    return parser


def apply_cli_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Overlay explicitly given CLI flags onto ``config`` in-place."""
    config.directory = args.folder or config.directory

    if args.output is not None:
        config.output.file = args.output
    if args.html is not None:
        config.output.html = args.html

    if args.file_types is not None:
        config.filters.file_types = parse_list(args.file_types)
    config.filters.file_types.extend(parse_list(args.type_append))
    if args.binary:
        config.scan.binary = True
    if config.scan.binary:
        config.filters.file_types.extend(
            ext for ext in BINARY_EXTENSIONS if ext not in config.filters.file_types
        )

    if args.keywords is not None:
        config.scan.keywords = parse_list(args.keywords)
    config.scan.keywords.extend(parse_list(args.keyword_append))

    if args.threads is not None:
        config.scan.threads = args.threads
    if args.verbose is not None:
        config.scan.verbose = args.verbose
    if args.context_length is not None:
        config.scan.context_length = args.context_length

    if args.max_size is not None:
        config.filters.max_size_mb = args.max_size
    if args.exclude_dirs is not None:
        config.filters.exclude_dirs = parse_list(args.exclude_dirs)
    if args.exclude_files is not None:
        config.filters.exclude_files = parse_list(args.exclude_files)
    return config


def format_config(config: Config) -> str:
    lines = [
        "[*] Scan configuration:",
        f"    Directory:   {config.directory}",
        f"    Output:      {config.output.file}",
        f"    Threads:     {config.scan.threads}",
        f"    File types:  {', '.join(config.filters.file_types)}",
    ]
    if config.scan.keywords:
        lines.append(f"    Keywords:    {len(config.scan.keywords)}")
    else:
        lines.append("    Keywords:    none (detection rules only)")
    binary_types = config.filters.binary_types()
    if binary_types:
        lines.append(f"    Binary mode: {', '.join(binary_types)}")
    if config.filters.max_size_mb > 0:
        lines.append(f"    Max size:    {config.filters.max_size_mb} MB")
    if config.filters.exclude_dirs:
        lines.append(f"    Excl. dirs:  {', '.join(config.filters.exclude_dirs)}")
    if config.filters.exclude_files:
        lines.append(f"    Excl. files: {', '.join(config.filters.exclude_files)}")
    return "\n".join(lines) + "\n"


def run_scan(config: Config) -> int:
    """Discover, scan, aggregate and report. Returns the process exit code."""
    start = time.perf_counter()
    formatter = ResultFormatter()

    discovery = discover_files(config.directory, config.filters)
    if not discovery.files:
        print("[*] No matching files found")
        return 0

    aggregator = ResultAggregator(
        formatter=formatter,
        writer=ResultWriter(config.output.file),
        verbose=config.scan.verbose,
    )
    orchestrator = ScanOrchestrator(
        thread_count=config.scan.threads,
        keywords=config.scan.keywords,
        context_length=config.scan.context_length,
        aggregator=aggregator,
    )
    with PerformanceLogger("scan", logger):
        results = orchestrator.run(discovery.files)
    elapsed = time.perf_counter() - start

    all_lines = [line for lines in results.values() for line in lines]
    print(formatter.format_summary(
        total_files=len(discovery.files),
        files_with_findings=len(results),
        total_findings=len(all_lines),
        elapsed_s=elapsed,
        stats=risk_distribution(all_lines),
    ), end="")
    if results:
        print(f"[*] Results appended to: {config.output.file}")

    html_path = config.output.html_path
    try:
        write_html_report(html_path, build_html_report(config.directory, elapsed, results))
    except OSError as exc:
        logger.error("Failed to write HTML report", path=html_path, error=str(exc))
    else:
        print(f"[*] HTML report saved to: {html_path}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, load config and run the scan.

    Raises:
        SystemExit: Propagated from argparse and from config loading/validation.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command in ("examples", "ex"):
        print(EXAMPLES)
        return 0
    if not args.folder:
        parser.error("the following arguments are required: -f/--folder")

    configure_logging(args.log_level, json_output=args.log_json)

    config = apply_cli_overrides(load_config(args.config), args)
    config.validate()

    print(format_config(config))
    return run_scan(config)


if __name__ == "__main__":
    sys.exit(main())
