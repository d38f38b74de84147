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
Engine Runner

Runs one query against one engine variant as a child process and times it.

The query is written to the child's stdin followed by a newline, then stdin
is closed so the engine shell exits after executing it. stdout and stderr
share one pipe, so the captured transcript keeps the order in which the
engine wrote it. The measured time spans process spawn through exit:
start-up and tear-down cost are part of what is being compared.

The process boundary is the ProcessRunner interface. SubprocessRunner is
the real implementation; tests substitute their own.
"""

import logging
import signal
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from clickbench.engine_base import EngineVariant, TimedExecution, TrialResult
from clickbench.errors import EngineInvocationError, EngineInvocationTimeout

logger = logging.getLogger(__name__)

# Per-invocation deadline in seconds
DEFAULT_TIMEOUT = 1200.0


@dataclass(frozen=True)
class ProcessOutcome:
    """What a finished child process left behind."""

    output: str
    elapsed_seconds: float
    exit_status: int


class ProcessRunner(ABC):
    """Runs a command with some text on stdin and waits for it to exit."""

    @abstractmethod
    def execute(
        self,
        command: Sequence[str],
        stdin_text: str,
        timeout: Optional[float] = None,
    ) -> ProcessOutcome:
        """Run command to completion.

        Raises:
            EngineInvocationError: If the process cannot be started or dies from a signal
            EngineInvocationTimeout: If the process outlives the timeout (it is killed)
        """
        pass


def _decode(output: object) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return str(output)


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


class SubprocessRunner(ProcessRunner):
    """ProcessRunner backed by subprocess.run()."""

    def execute(
        self,
        command: Sequence[str],
        stdin_text: str,
        timeout: Optional[float] = None,
    ) -> ProcessOutcome:
        timer = TimedExecution()
        try:
            with timer:
                proc = subprocess.run(
                    list(command),
                    input=stdin_text,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    timeout=timeout,
                )
        except subprocess.TimeoutExpired as e:
            raise EngineInvocationTimeout(
                f"timed out after {timeout:g}s and was killed",
                output=_decode(e.output),
                elapsed_seconds=timer.elapsed,
            ) from e
        except OSError as e:
            raise EngineInvocationError(
                f"could not start {command[0]}: {e}",
                elapsed_seconds=timer.elapsed,
            ) from e

        if proc.returncode < 0:
            raise EngineInvocationError(
                f"terminated by signal {_signal_name(-proc.returncode)}",
                output=proc.stdout or "",
                elapsed_seconds=timer.elapsed,
                exit_status=proc.returncode,
            )

        return ProcessOutcome(
            output=proc.stdout or "",
            elapsed_seconds=timer.elapsed,
            exit_status=proc.returncode,
        )


class EngineRunner:
    """Turns (variant, query) pairs into TrialResults.

    Invocation failures never escape run_query(): they come back as a
    TrialResult with success=False so the driver can log them and move on.

    Attributes:
        process_runner: Process boundary used to spawn engines
        timeout: Per-invocation deadline in seconds (None waits forever)
    """

    def __init__(
        self,
        process_runner: Optional[ProcessRunner] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ) -> None:
        self.process_runner = process_runner or SubprocessRunner()
        self.timeout = timeout

    def run_query(
        self,
        variant: EngineVariant,
        query: str,
        query_ordinal: int = 0,
        trial: int = 1,
    ) -> TrialResult:
        """Execute a query against a variant and measure it.

        Args:
            variant: How to invoke the engine
            query: SQL text, fed to the engine on stdin
            query_ordinal: Position of the query in the corpus (for reporting)
            trial: Trial index (for reporting)

        Returns:
            TrialResult with timing, captured output and status
        """
        command = variant.command()
        logger.debug(f"Executing query {query_ordinal} with {' '.join(command)}")

        try:
            outcome = self.process_runner.execute(command, query + "\n", self.timeout)
        except EngineInvocationError as e:
            logger.error(f"Query {query_ordinal} failed on {variant.display_name}: {e}")
            return TrialResult(
                query_ordinal=query_ordinal,
                query_text=query,
                engine_label=variant.engine,
                variant_label=variant.label,
                trial=trial,
                success=False,
                elapsed_seconds=e.elapsed_seconds,
                captured_output=e.output,
                exit_status=e.exit_status,
                error_message=f"{type(e).__name__}: {e}",
            )

        logger.debug(
            f"Query {query_ordinal} on {variant.display_name} exited with status "
            f"{outcome.exit_status} in {outcome.elapsed_seconds:.3f}s"
        )

        return TrialResult(
            query_ordinal=query_ordinal,
            query_text=query,
            engine_label=variant.engine,
            variant_label=variant.label,
            trial=trial,
            success=True,
            elapsed_seconds=outcome.elapsed_seconds,
            captured_output=outcome.output,
            exit_status=outcome.exit_status,
        )
