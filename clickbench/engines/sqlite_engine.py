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

"""SQLite reference engine, driven through the stock ``sqlite3`` shell."""

from clickbench.engine_base import BenchmarkEngine, EngineVariant


class SQLiteEngine(BenchmarkEngine):
    """The ``sqlite3`` shell with no extra flags."""

    @property
    def name(self) -> str:
        return "sqlite3"

    @property
    def default_executable(self) -> str:
        return "sqlite3"

    def build_variants(self, executable: str, database_path: str) -> list[EngineVariant]:
        return [
            EngineVariant(
                engine=self.name,
                label="default",
                executable_path=executable,
                database_path=database_path,
            )
        ]
