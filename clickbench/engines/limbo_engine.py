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
Limbo Engine Definition

Limbo is the target engine. Every trial runs it twice, once per I/O backend,
so the two backends can be compared against each other as well as against
the reference engine:

- syscall: plain blocking syscalls, selected with ``--vfs syscall``
- io_uring: Limbo's default backend on Linux, selected by passing no --vfs
"""

from clickbench.engine_base import BenchmarkEngine, EngineVariant

QUIET_FLAG = "--quiet"


class LimboEngine(BenchmarkEngine):
    """Limbo command-line shell, run once per I/O backend."""

    @property
    def name(self) -> str:
        return "limbo"

    @property
    def default_executable(self) -> str:
        return "target/release/limbo"

    def build_variants(self, executable: str, database_path: str) -> list[EngineVariant]:
        return [
            EngineVariant(
                engine=self.name,
                label="syscall",
                executable_path=executable,
                extra_args=("--vfs", "syscall", QUIET_FLAG),
                database_path=database_path,
            ),
            EngineVariant(
                engine=self.name,
                label="io_uring",
                executable_path=executable,
                extra_args=(QUIET_FLAG,),
                database_path=database_path,
            ),
        ]
