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
Tests for the reporting module.

These tests verify:
1. BenchmarkSummary counts successes and failures
2. Console tables render every trial
3. JSON/CSV export produces parseable files with one entry per trial
"""

import csv
import io
import json

import pytest

from clickbench.engine_base import TrialResult
from clickbench.reporting import (
    CSV_COLUMNS,
    BenchmarkSummary,
    print_comparison_table,
    print_results_table,
    save_csv,
    save_json,
)

VARIANTS = ["limbo syscall", "limbo io_uring", "sqlite3 default"]


def trial(ordinal, engine, variant, elapsed=1.0, success=True, trial_no=1):
    return TrialResult(
        query_ordinal=ordinal,
        query_text=f"SELECT {ordinal};",
        engine_label=engine,
        variant_label=variant,
        trial=trial_no,
        success=success,
        elapsed_seconds=elapsed if success else 0.0,
        exit_status=0 if success else None,
        error_message=None if success else "EngineInvocationError: could not start",
    )


@pytest.fixture
def summary():
    s = BenchmarkSummary(tries=1, variants=list(VARIANTS))
    s.add_result(trial(1, "limbo", "syscall", 0.5))
    s.add_result(trial(1, "limbo", "io_uring", 0.25))
    s.add_result(trial(1, "sqlite3", "default", 1.0))
    s.add_result(trial(2, "limbo", "syscall", 1.5))
    s.add_result(trial(2, "limbo", "io_uring", success=False))
    s.add_result(trial(2, "sqlite3", "default", 2.0))
    s.queries_run = 2
    return s


class TestBenchmarkSummary:
    """Tests for the BenchmarkSummary class."""

    def test_defaults(self):
        s = BenchmarkSummary()

        assert s.tries == 1
        assert s.results == []
        assert s.total_trials == 0
        assert s.all_succeeded is True
        assert s.interrupted is False

    def test_counts(self, summary):
        """Successful and failed trials are counted separately."""
        assert summary.total_trials == 6
        assert summary.successful_trials == 5
        assert summary.failed_trials == 1
        assert summary.all_succeeded is False

    def test_results_for_engine(self, summary):
        """results_for() keeps execution order."""
        sqlite = summary.results_for("sqlite3")

        assert [r.query_ordinal for r in sqlite] == [1, 2]

    def test_total_time_ignores_failed_trials(self, summary):
        """Failed trials do not contribute to totals."""
        totals = summary.total_time_by_variant()

        assert totals["limbo syscall"] == pytest.approx(2.0)
        assert totals["limbo io_uring"] == pytest.approx(0.25)
        assert totals["sqlite3 default"] == pytest.approx(3.0)

    def test_to_dict(self, summary):
        """to_dict() carries the run summary and every raw result."""
        d = summary.to_dict()

        assert d["tries"] == 1
        assert d["variants"] == VARIANTS
        assert d["summary"]["total_trials"] == 6
        assert d["summary"]["failed_trials"] == 1
        assert d["summary"]["queries_run"] == 2
        assert len(d["raw_results"]) == 6


class TestTables:
    """Tests for console output."""

    def test_results_table_has_row_per_trial(self, summary):
        out = io.StringIO()

        print_results_table(summary.results, file=out)

        lines = out.getvalue().splitlines()
        # separator, header, separator, 6 rows, separator
        assert len(lines) == 10
        assert "FAIL" in out.getvalue()

    def test_comparison_table(self, summary):
        """One row per (query, trial), one column per variant."""
        out = io.StringIO()

        print_comparison_table(summary, file=out)

        text = out.getvalue()
        assert "COMPARISON" in text
        assert "limbo syscall (s)" in text
        assert "sqlite3 default (s)" in text
        assert "0.2500" in text
        assert "FAIL" in text
        assert "TOTAL" in text

    def test_comparison_table_empty(self):
        out = io.StringIO()

        print_comparison_table(BenchmarkSummary(), file=out)

        assert "No results to compare" in out.getvalue()


class TestExport:
    """Tests for JSON and CSV export."""

    def test_save_json(self, summary, tmp_path):
        path = tmp_path / "out" / "results.json"

        save_json(summary, path)

        data = json.loads(path.read_text())
        assert data["summary"]["successful_trials"] == 5
        assert data["raw_results"][1]["variant"] == "io_uring"

    def test_save_csv(self, summary, tmp_path):
        path = tmp_path / "results.csv"

        save_csv(summary, path)

        with open(path, newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0] == CSV_COLUMNS
        assert len(rows) == 7
        assert rows[1][:4] == ["1", "limbo", "syscall", "1"]
        assert rows[5][4] == "False"
