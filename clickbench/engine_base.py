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
Engine Model for the ClickBench Harness

This module defines the data types shared by every part of the harness and
the interface that engine definitions must follow. Engines are external
command-line programs; an engine definition only knows how to describe the
ways it should be invoked (its variants). Running a variant is the job of
clickbench.engine_runner.

To add a new engine:

    from clickbench.engine_base import BenchmarkEngine, EngineVariant

    class DuckDBCliEngine(BenchmarkEngine):
        '''Engine definition for the duckdb shell.'''

        @property
        def name(self) -> str:
            return "duckdb"

        @property
        def default_executable(self) -> str:
            return "duckdb"

        def build_variants(self, executable: str, database_path: str) -> list[EngineVariant]:
            return [
                EngineVariant(
                    engine=self.name,
                    label="default",
                    executable_path=executable,
                    database_path=database_path,
                )
            ]
"""

import logging
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineVariant:
    """A named way of invoking one engine.

    Attributes:
        engine: Name of the engine this variant belongs to (e.g., "limbo")
        label: Variant name within the engine (e.g., "syscall")
        executable_path: Program to spawn
        extra_args: Flags placed between the executable and the database path
        database_path: Database file handed to the engine as its last argument
    """

    engine: str
    label: str
    executable_path: str
    database_path: str
    extra_args: tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        """Return "<engine> <label>", used in logs and console output."""
        return f"{self.engine} {self.label}"

    def command(self) -> list[str]:
        """Return the argv used to spawn this variant."""
        return [self.executable_path, *self.extra_args, self.database_path]


@dataclass
class TrialResult:
    """Outcome of one timed execution of one query against one variant.

    Attributes:
        query_ordinal: 1-based position of the query in the corpus
        query_text: The SQL that was fed to the engine
        engine_label: Engine name (selects the result log)
        variant_label: Variant name within the engine
        trial: Which trial this result is from (1..tries)
        success: False if the engine could not be run to completion
        elapsed_seconds: End-to-end wall time, process spawn through exit
        captured_output: Merged stdout/stderr of the engine process
        exit_status: Process return code (None if it never started)
        error_message: Error description (if failed)
        timestamp: When the trial finished
    """

    query_ordinal: int
    query_text: str
    engine_label: str
    variant_label: str
    trial: int = 1
    success: bool = True
    elapsed_seconds: float = 0.0
    captured_output: str = ""
    exit_status: Optional[int] = None
    error_message: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for JSON serialization."""
        return {
            "query_ordinal": self.query_ordinal,
            "query_text": self.query_text,
            "engine": self.engine_label,
            "variant": self.variant_label,
            "trial": self.trial,
            "success": self.success,
            "elapsed_seconds": self.elapsed_seconds,
            "exit_status": self.exit_status,
            "error_message": self.error_message,
            "timestamp": self.timestamp,
            "captured_output": self.captured_output,
        }


class BenchmarkEngine(ABC):
    """Abstract base class for engine definitions.

    An engine definition turns an executable path and a database file into
    the ordered list of variants the driver runs for every trial. The order
    of build_variants() is part of the result log layout, so it must be
    stable.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the short identifier for this engine (e.g., 'limbo', 'sqlite3').

        This is used in CLI arguments, result log names and reporting.
        """
        pass

    @property
    @abstractmethod
    def default_executable(self) -> str:
        """Return the executable used when none is given on the command line."""
        pass

    @abstractmethod
    def build_variants(self, executable: str, database_path: str) -> list[EngineVariant]:
        """Return the variants to run, in execution order.

        Args:
            executable: Path (or PATH-resolvable name) of the engine program
            database_path: Database file every variant should open

        Returns:
            Non-empty list of EngineVariant
        """
        pass

    @property
    def log_filename(self) -> str:
        """Return the default result log file name for this engine."""
        return f"clickbench-{self.name}.txt"

    def get_version(self, executable: str) -> str:
        """Return the engine's version string, or "unknown".

        Runs ``<executable> --version`` with a short deadline. Override this
        for engines that report their version some other way.
        """
        try:
            proc = subprocess.run(
                [executable, "--version"],
                capture_output=True,
                text=True,
                timeout=10,
                stdin=subprocess.DEVNULL,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"Could not query {self.name} version: {e}")
            return "unknown"

        lines = (proc.stdout or proc.stderr).strip().splitlines()
        if proc.returncode != 0 or not lines:
            return "unknown"
        return lines[0].strip()


class TimedExecution:
    """Context manager for timing code execution.

    Usage:
        with TimedExecution() as timer:
            # code to time
        print(f"Elapsed: {timer.elapsed:.3f}s")
    """

    def __init__(self) -> None:
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "TimedExecution":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
