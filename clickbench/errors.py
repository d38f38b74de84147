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
Error Taxonomy for the ClickBench Harness

Only SourceUnreadable stops a run. Every other error is isolated to the
trial (or cache clear) that raised it and is reported in the result logs
or as a console warning.
"""

from typing import Optional


class BenchmarkError(Exception):
    """Base class for all harness errors."""


class SourceUnreadable(BenchmarkError):
    """The query corpus does not exist or cannot be opened."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read query corpus {path}: {reason}")


class CacheClearFailure(BenchmarkError):
    """A cache purge command could not be run or exited with an error."""


class EngineInvocationError(BenchmarkError):
    """An engine process could not be started or was killed by a signal.

    Attributes:
        output: Whatever the process wrote before it failed (may be empty)
        elapsed_seconds: Wall time spent before the failure was detected
    """

    def __init__(
        self,
        message: str,
        output: str = "",
        elapsed_seconds: float = 0.0,
        exit_status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.output = output
        self.elapsed_seconds = elapsed_seconds
        self.exit_status = exit_status


class EngineInvocationTimeout(EngineInvocationError):
    """An engine process exceeded its deadline and was killed."""
