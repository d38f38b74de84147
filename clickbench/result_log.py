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
Result Logs

Each compared system gets a human-readable transcript: a header line per
query followed by one section per trial. Logs are append-only. Nothing
already written is ever rewritten, and re-running the harness against the
same files adds to them, so an interrupted run leaves a valid (if
incomplete) log behind.
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from clickbench.engine_base import TrialResult


class ResultSink(ABC):
    """Write-only destination for result log text."""

    @abstractmethod
    def append(self, text: str) -> None:
        """Append text to the destination. Must not return before the text is durable."""
        pass


class FileResultLog(ResultSink):
    """A result log backed by a text file opened in append mode.

    The file is opened, written, flushed and fsynced on every append, so a
    crash loses at most the section being written.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def append(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())

    def __repr__(self) -> str:
        return f"FileResultLog({str(self.path)!r})"


def format_query_header(ordinal: int, text: str) -> str:
    """Return the line that opens a query's block in a result log."""
    return f"{ordinal} {text}\n"


def format_trial_section(result: TrialResult, tries: int = 1) -> str:
    """Render one trial as a log section.

    Example:
        ---- limbo syscall IO [trial 1/3] 2024-05-01T12:00:00 ----
        <engine output>
        real	0.1234s
    """
    lines = [
        f"---- {result.engine_label} {result.variant_label} IO "
        f"[trial {result.trial}/{tries}] {result.timestamp} ----"
    ]

    output = result.captured_output.rstrip("\n")
    if output:
        lines.append(output)

    if result.success:
        lines.append(f"real\t{result.elapsed_seconds:.4f}s")
        if result.exit_status:
            lines.append(f"exit status {result.exit_status}")
    else:
        lines.append(f"FAILED: {result.error_message}")
        if result.elapsed_seconds:
            lines.append(f"real\t{result.elapsed_seconds:.4f}s")

    return "\n".join(lines) + "\n"
