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
Tests for the result log module.

These tests verify:
1. FileResultLog appends and never truncates
2. Parent directories are created on demand
3. Query headers and trial sections are rendered as documented
"""

from unittest.mock import patch

from clickbench.engine_base import TrialResult
from clickbench.result_log import (
    FileResultLog,
    format_query_header,
    format_trial_section,
)


def make_result(**overrides) -> TrialResult:
    fields = dict(
        query_ordinal=1,
        query_text="SELECT 1;",
        engine_label="limbo",
        variant_label="syscall",
        trial=1,
        elapsed_seconds=0.5,
        captured_output="1\n",
        exit_status=0,
        timestamp="2024-05-01T12:00:00",
    )
    fields.update(overrides)
    return TrialResult(**fields)


class TestFileResultLog:
    """Tests for the file-backed result log."""

    def test_creates_file_and_parents(self, tmp_path):
        """The first append creates the file and any missing directories."""
        path = tmp_path / "logs" / "nested" / "clickbench-limbo.txt"

        FileResultLog(path).append("1 SELECT 1;\n")

        assert path.read_text() == "1 SELECT 1;\n"

    def test_appends_never_truncates(self, tmp_path):
        """Existing content is preserved and new text goes after it."""
        path = tmp_path / "clickbench-sqlite3.txt"
        path.write_text("previous run\n")

        log = FileResultLog(path)
        log.append("a\n")
        log.append("b\n")

        assert path.read_text() == "previous run\na\nb\n"

    def test_separate_instances_append_to_same_file(self, tmp_path):
        """A second harness run (new log object) keeps growing the file."""
        path = tmp_path / "log.txt"
        FileResultLog(path).append("run 1\n")
        size_after_first = path.stat().st_size

        FileResultLog(path).append("run 2\n")

        assert path.stat().st_size > size_after_first
        assert path.read_text().startswith("run 1\n")

    def test_fsyncs_every_append(self, tmp_path):
        """Every append is forced to disk before returning."""
        with patch("clickbench.result_log.os.fsync") as mock_fsync:
            log = FileResultLog(tmp_path / "log.txt")
            log.append("x")
            log.append("y")

        assert mock_fsync.call_count == 2


class TestFormatting:
    """Tests for section formatting."""

    def test_query_header(self):
        """The header is the ordinal and the query on one line."""
        assert format_query_header(3, "SELECT COUNT(*) FROM hits;") == "3 SELECT COUNT(*) FROM hits;\n"

    def test_successful_section(self):
        """A completed trial shows banner, output and wall time."""
        section = format_trial_section(make_result(), tries=2)

        assert section == (
            "---- limbo syscall IO [trial 1/2] 2024-05-01T12:00:00 ----\n"
            "1\n"
            "real\t0.5000s\n"
        )

    def test_nonzero_exit_is_noted(self):
        """A non-zero exit status is shown after the timing."""
        section = format_trial_section(make_result(exit_status=1, captured_output="Error: no such table\n"))

        assert "Error: no such table\n" in section
        assert section.endswith("exit status 1\n")

    def test_failed_section(self):
        """A failed trial records the error so the operator can find it."""
        result = make_result(
            success=False,
            elapsed_seconds=0.0,
            captured_output="",
            exit_status=None,
            error_message="EngineInvocationError: could not start limbo",
        )

        section = format_trial_section(result)

        assert section == (
            "---- limbo syscall IO [trial 1/1] 2024-05-01T12:00:00 ----\n"
            "FAILED: EngineInvocationError: could not start limbo\n"
        )

    def test_failed_section_keeps_partial_output_and_time(self):
        """A timed-out trial keeps what the engine printed and how long it ran."""
        result = make_result(
            success=False,
            elapsed_seconds=2.0,
            captured_output="partial",
            error_message="EngineInvocationTimeout: timed out after 2s and was killed",
        )

        lines = format_trial_section(result).splitlines()

        assert lines[1] == "partial"
        assert lines[2].startswith("FAILED: EngineInvocationTimeout")
        assert lines[3] == "real\t2.0000s"
