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
Benchmark Result Reporting

This module provides utilities for summarising a run and exporting the raw
trial results. No statistics are computed over the timings; each trial is
reported as measured.
"""

import csv
import json
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

from clickbench.engine_base import TrialResult

CSV_COLUMNS = [
    "query_ordinal",
    "engine",
    "variant",
    "trial",
    "success",
    "elapsed_seconds",
    "exit_status",
    "error_message",
    "timestamp",
    "query_text",
]


@dataclass
class BenchmarkSummary:
    """Everything a run produced, in execution order.

    Attributes:
        tries: Number of trials per query
        variants: Display names of the variants, in execution order
        results: Every TrialResult, in execution order
        queries_run: Number of corpus queries processed
        successful_trials: Number of trials that completed
        failed_trials: Number of trials that could not be completed
        cache_clear_failures: Number of cache purges that failed
        engine_versions: Engine name -> version string
        interrupted: Whether the operator stopped the run early
    """

    tries: int = 1
    variants: list[str] = field(default_factory=list)
    results: list[TrialResult] = field(default_factory=list)
    queries_run: int = 0
    successful_trials: int = 0
    failed_trials: int = 0
    cache_clear_failures: int = 0
    engine_versions: dict[str, str] = field(default_factory=dict)
    interrupted: bool = False
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def add_result(self, result: TrialResult) -> None:
        """Add a trial result to the summary."""
        self.results.append(result)
        if result.success:
            self.successful_trials += 1
        else:
            self.failed_trials += 1

    @property
    def total_trials(self) -> int:
        return len(self.results)

    @property
    def all_succeeded(self) -> bool:
        return self.failed_trials == 0

    def results_for(self, engine: str) -> list[TrialResult]:
        """Return the results of one engine, in execution order."""
        return [r for r in self.results if r.engine_label == engine]

    def total_time_by_variant(self) -> dict[str, float]:
        """Sum of elapsed time of the completed trials of each variant."""
        totals: dict[str, float] = {name: 0.0 for name in self.variants}
        for result in self.results:
            if result.success:
                key = f"{result.engine_label} {result.variant_label}"
                totals[key] = totals.get(key, 0.0) + result.elapsed_seconds
        return totals

    def to_dict(self) -> dict:
        """Convert summary to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "tries": self.tries,
            "variants": self.variants,
            "engine_versions": self.engine_versions,
            "interrupted": self.interrupted,
            "summary": {
                "queries_run": self.queries_run,
                "total_trials": self.total_trials,
                "successful_trials": self.successful_trials,
                "failed_trials": self.failed_trials,
                "cache_clear_failures": self.cache_clear_failures,
                "total_time_seconds": self.total_time_by_variant(),
            },
            "raw_results": [r.to_dict() for r in self.results],
        }


def print_results_table(
    results: list[TrialResult],
    file: Optional[TextIO] = None,
) -> None:
    """Print trial results as an ASCII table.

    Args:
        results: List of trial results to display
        file: Output file (defaults to stdout)
    """
    if file is None:
        file = sys.stdout

    headers = ["Query", "Engine", "Variant", "Trial", "Duration (s)", "Exit", "Status"]
    widths = [6, 8, 10, 5, 14, 5, 6]

    header_line = " | ".join(h.ljust(w) for h, w in zip(headers, widths))
    separator = "-+-".join("-" * w for w in widths)

    print(separator, file=file)
    print(header_line, file=file)
    print(separator, file=file)

    for result in results:
        status = "OK" if result.success else "FAIL"
        duration = f"{result.elapsed_seconds:.4f}" if result.success else "-"
        exit_status = "-" if result.exit_status is None else str(result.exit_status)

        row = [
            str(result.query_ordinal).ljust(widths[0]),
            result.engine_label.ljust(widths[1]),
            result.variant_label.ljust(widths[2]),
            str(result.trial).rjust(widths[3]),
            duration.rjust(widths[4]),
            exit_status.rjust(widths[5]),
            status.ljust(widths[6]),
        ]
        print(" | ".join(row), file=file)

    print(separator, file=file)


def print_comparison_table(
    summary: BenchmarkSummary,
    file: Optional[TextIO] = None,
) -> None:
    """Print the variants side by side, one row per (query, trial).

    Args:
        summary: Benchmark summary to display
        file: Output file (defaults to stdout)
    """
    if file is None:
        file = sys.stdout

    if not summary.results:
        print("No results to compare", file=file)
        return

    variants = summary.variants or sorted(
        {f"{r.engine_label} {r.variant_label}" for r in summary.results}
    )

    rows: dict[tuple[int, int], dict[str, TrialResult]] = {}
    for result in summary.results:
        key = (result.query_ordinal, result.trial)
        rows.setdefault(key, {})[f"{result.engine_label} {result.variant_label}"] = result

    headers = ["Query", "Trial"] + [f"{name} (s)" for name in variants]
    widths = [6, 5] + [max(12, len(h)) for h in headers[2:]]

    header_line = " | ".join(h.ljust(w) for h, w in zip(headers, widths))
    separator = "-+-".join("-" * w for w in widths)

    print("\n" + "=" * len(separator), file=file)
    print("COMPARISON: Wall Time per Trial", file=file)
    print("=" * len(separator), file=file)
    print(header_line, file=file)
    print(separator, file=file)

    for (ordinal, trial), by_variant in rows.items():
        row = [str(ordinal).ljust(widths[0]), str(trial).rjust(widths[1])]
        for i, name in enumerate(variants):
            result = by_variant.get(name)
            if result is not None and result.success:
                cell = f"{result.elapsed_seconds:.4f}"
            elif result is not None:
                cell = "FAIL"
            else:
                cell = "-"
            row.append(cell.rjust(widths[i + 2]))
        print(" | ".join(row), file=file)

    print(separator, file=file)

    totals = summary.total_time_by_variant()
    row = ["TOTAL".ljust(widths[0]), "".rjust(widths[1])]
    for i, name in enumerate(variants):
        row.append(f"{totals.get(name, 0.0):.4f}".rjust(widths[i + 2]))
    print(" | ".join(row), file=file)
    print(separator, file=file)


def save_json(summary: BenchmarkSummary, output_path: Path) -> None:
    """Save benchmark results to JSON file.

    Args:
        summary: Benchmark summary to save
        output_path: Path to output file
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(summary.to_dict(), f, indent=2)


def save_csv(summary: BenchmarkSummary, output_path: Path) -> None:
    """Save raw trial results to CSV file, one row per trial.

    Args:
        summary: Benchmark summary to save
        output_path: Path to output file
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)
        for result in summary.results:
            row = result.to_dict()
            writer.writerow([
                row["query_ordinal"],
                row["engine"],
                row["variant"],
                row["trial"],
                row["success"],
                row["elapsed_seconds"],
                row["exit_status"],
                row["error_message"],
                row["timestamp"],
                row["query_text"],
            ])
