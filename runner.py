#!/usr/bin/env python3
#  Licensed to the Apache Software Foundation (ASF) under one
#  or more contributor license agreements.  See the NOTICE file
#  distributed with this work for additional information
#  regarding copyright ownership.  The ASF licenses this file
#  to you under the Apache License, Version 2.0 (the
#  "License"); you may not use this file except in compliance
#  with the License.  You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing,
#  software distributed under the License is distributed on an
#  "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
#  KIND, either express or implied.  See the License for the
#  specific language governing permissions and limitations
#  under the License.

"""
ClickBench Benchmark Runner

A CLI tool that runs the ClickBench query corpus against Limbo and SQLite
and appends timed transcripts of every run to one log per engine.

Each query runs TRIES times against three variants, in this order, with the
OS caches purged before every invocation:
    1. limbo --vfs syscall --quiet <db>
    2. limbo --quiet <db>                (io_uring backend)
    3. sqlite3 <db>

Usage Examples:
    # Run the corpus once with the defaults (paths relative to the repo root)
    python runner.py

    # Three trials per query, custom binaries
    python runner.py --tries 3 --limbo-bin ./limbo --sqlite-bin /usr/local/bin/sqlite3

    # Also save the raw timings as CSV
    python runner.py --output clickbench.csv

    # Show what would be run and exit
    python runner.py --list-variants
"""

import argparse
import logging
import subprocess
import sys
from pathlib import Path
from typing import Optional

from clickbench.cache import get_cache_clearer
from clickbench.driver import run_benchmark
from clickbench.engine_base import EngineVariant
from clickbench.engine_runner import DEFAULT_TIMEOUT, EngineRunner
from clickbench.engines import (
    COMPARISON_ORDER,
    REFERENCE_ENGINE,
    TARGET_ENGINE,
    get_engine,
    list_engines,
)
from clickbench.errors import SourceUnreadable
from clickbench.query_source import DEFAULT_COMMENT_MARKER, load_queries
from clickbench.reporting import (
    BenchmarkSummary,
    print_comparison_table,
    print_results_table,
    save_csv,
    save_json,
)
from clickbench.result_log import FileResultLog, ResultSink

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

CLICKBENCH_SUBDIR = Path("perf") / "clickbench"
EXIT_INTERRUPTED = 130


def find_repo_root() -> Path:
    """Return the enclosing git work tree, or the current directory outside one."""
    try:
        proc = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return Path.cwd()
    return Path(proc.stdout.strip())


def build_variants(
    limbo_bin: str,
    sqlite_bin: str,
    database: Path,
) -> list[EngineVariant]:
    """Return every variant in execution order: target engine first, reference last."""
    executables = {TARGET_ENGINE: limbo_bin, REFERENCE_ENGINE: sqlite_bin}
    variants: list[EngineVariant] = []
    for engine_name in COMPARISON_ORDER:
        engine = get_engine(engine_name)
        variants.extend(engine.build_variants(executables[engine_name], str(database)))
    return variants


def print_summary(summary: BenchmarkSummary, show_trials: bool = False) -> None:
    """Print the final success/failure summary of a run.

    Args:
        summary: Summary returned by run_benchmark()
        show_trials: Also print every trial as its own row
    """
    print(f"\n{'='*60}")
    print("RESULTS")
    print(f"{'='*60}\n")

    for engine_name, version in summary.engine_versions.items():
        trials = summary.results_for(engine_name)
        failed = sum(1 for r in trials if not r.success)
        print(f"Engine: {engine_name} ({version}): {len(trials)} trials, {failed} failed")
    print(f"Tries: {summary.tries}")
    print(f"Queries: {summary.queries_run}")
    print(f"Successful trials: {summary.successful_trials}/{summary.total_trials}")
    if summary.cache_clear_failures:
        print(
            f"Cache clear failures: {summary.cache_clear_failures} "
            "(affected timings may have used warm caches)"
        )
    if summary.interrupted:
        print("Run was interrupted before completion")

    if show_trials:
        print()
        print_results_table(summary.results)

    print_comparison_table(summary)


def save_output(summary: BenchmarkSummary, output_path: Path, output_format: str) -> None:
    """Save raw results as JSON or CSV, choosing by extension first."""
    if output_path.suffix.lower() == ".csv":
        output_format = "csv"
    elif output_path.suffix.lower() == ".json":
        output_format = "json"

    if output_format == "json":
        save_json(summary, output_path)
    else:
        save_csv(summary, output_path)
    logger.info(f"Results saved to {output_path}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the benchmark runner."""
    parser = argparse.ArgumentParser(
        description="ClickBench Benchmark Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s --tries 3
  %(prog)s --queries-file ./queries.sql --database ./hits.db --no-clear-caches
  %(prog)s --output results.json
  %(prog)s --list-variants

Defaults for paths are resolved against the enclosing git repository.
        """,
    )

    # Corpus and data
    parser.add_argument(
        "--queries-file",
        "-q",
        type=Path,
        help="Query corpus, one statement per line (default: perf/clickbench/queries.sql)",
    )

    parser.add_argument(
        "--database",
        "-d",
        type=Path,
        help="Database file opened by every engine (default: perf/clickbench/mydb)",
    )

    parser.add_argument(
        "--comment-marker",
        type=str,
        default=DEFAULT_COMMENT_MARKER,
        help=f"Lines starting with this marker are skipped (default: {DEFAULT_COMMENT_MARKER})",
    )

    parser.add_argument(
        "--tries",
        "-n",
        type=int,
        default=1,
        help="Number of trials per query (default: 1)",
    )

    # Engines
    parser.add_argument(
        "--limbo-bin",
        type=str,
        help="Limbo executable (default: target/release/limbo)",
    )

    parser.add_argument(
        "--sqlite-bin",
        type=str,
        help="SQLite shell executable (default: sqlite3)",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Seconds before a hung engine is killed, 0 to wait forever (default: {DEFAULT_TIMEOUT:g})",
    )

    # Result logs and output
    parser.add_argument(
        "--limbo-log",
        type=Path,
        help="Append-only result log for Limbo (default: clickbench-limbo.txt)",
    )

    parser.add_argument(
        "--sqlite-log",
        type=Path,
        help="Append-only result log for SQLite (default: clickbench-sqlite3.txt)",
    )

    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Also save raw results to this file (JSON or CSV based on extension)",
    )

    parser.add_argument(
        "--output-format",
        type=str,
        choices=["json", "csv"],
        default="json",
        help="Output format when extension is ambiguous (default: json)",
    )

    # Execution options
    parser.add_argument(
        "--no-clear-caches",
        action="store_true",
        help="Do not purge OS caches before each invocation (no sudo needed)",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (debug) logging and print every trial",
    )

    # Information commands
    parser.add_argument(
        "--list-engines",
        action="store_true",
        help="List the registered engines and exit",
    )

    parser.add_argument(
        "--list-variants",
        action="store_true",
        help="List the engine variants in execution order and exit",
    )

    args = parser.parse_args(argv)

    # Handle verbose logging
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.tries < 1:
        parser.error("--tries must be at least 1")
    if args.timeout < 0:
        parser.error("--timeout must not be negative")
    if not args.comment_marker:
        parser.error("--comment-marker must not be empty")

    repo_root = find_repo_root()
    clickbench_dir = repo_root / CLICKBENCH_SUBDIR
    queries_file = args.queries_file or clickbench_dir / "queries.sql"
    database = args.database or clickbench_dir / "mydb"
    limbo = get_engine(TARGET_ENGINE)
    sqlite = get_engine(REFERENCE_ENGINE)
    limbo_bin = args.limbo_bin or str(repo_root / limbo.default_executable)
    sqlite_bin = args.sqlite_bin or sqlite.default_executable

    variants = build_variants(limbo_bin, sqlite_bin, database)
    log_paths = {
        TARGET_ENGINE: args.limbo_log or Path(limbo.log_filename),
        REFERENCE_ENGINE: args.sqlite_log or Path(sqlite.log_filename),
    }

    if args.list_engines:
        print("Registered engines:")
        for name in list_engines():
            engine = get_engine(name)
            print(f"  - {name} (default: {engine.default_executable}, log: {engine.log_filename})")
        return 0

    if args.list_variants:
        print("Engine variants (execution order):")
        for variant in variants:
            print(f"  - {variant.display_name}: {' '.join(variant.command())}")
            print(f"      log: {log_paths[variant.engine]}")
        cache_clearer = get_cache_clearer("none" if args.no_clear_caches else None)
        print(f"Cache clearing ({cache_clearer.name}), before every invocation:")
        for command in cache_clearer.commands():
            print(f"  $ {' '.join(command.argv)}")
        return 0

    try:
        queries = load_queries(queries_file, args.comment_marker)
    except SourceUnreadable as e:
        logger.error(str(e))
        return 1

    if not database.exists():
        logger.warning(f"Database file not found: {database}")

    logs: dict[str, ResultSink] = {name: FileResultLog(path) for name, path in log_paths.items()}
    cache_clearer = get_cache_clearer("none" if args.no_clear_caches else None)
    engine_runner = EngineRunner(timeout=args.timeout or None)

    logger.info(
        f"Running {len(queries)} queries × {args.tries} tries × {len(variants)} variants "
        f"= {len(queries) * args.tries * len(variants)} invocations"
    )
    logger.info(f"Cache clearing: {cache_clearer.name}")
    print()  # Blank line before results

    summary = run_benchmark(
        queries=queries,
        variants=variants,
        logs=logs,
        cache_clearer=cache_clearer,
        engine_runner=engine_runner,
        tries=args.tries,
    )
    summary.engine_versions = {
        TARGET_ENGINE: limbo.get_version(limbo_bin),
        REFERENCE_ENGINE: sqlite.get_version(sqlite_bin),
    }

    print_summary(summary, show_trials=args.verbose)

    if args.output:
        save_output(summary, args.output, args.output_format)

    for name, path in log_paths.items():
        logger.info(f"{name} transcript appended to {path}")

    if summary.interrupted:
        return EXIT_INTERRUPTED
    return 0 if summary.all_succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
