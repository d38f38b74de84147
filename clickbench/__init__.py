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
ClickBench Comparison Harness

Runs the ClickBench query corpus against Limbo (once per I/O backend) and
the SQLite shell, clearing OS caches before every invocation and appending
a timed transcript of every run to one log per engine.

To add support for a new engine:
1. Create a new file in clickbench/engines/ (e.g., duckdb_engine.py)
2. Subclass BenchmarkEngine from clickbench.engine_base
3. Implement name, default_executable and build_variants()
4. Register your engine in clickbench/engines/__init__.py
"""

from clickbench.engine_base import BenchmarkEngine, EngineVariant, TrialResult
from clickbench.engines import ENGINES, get_engine
from clickbench.query_source import QueryRecord, read_queries

__version__ = "0.1.0"

__all__ = [
    "BenchmarkEngine",
    "EngineVariant",
    "TrialResult",
    "QueryRecord",
    "ENGINES",
    "get_engine",
    "read_queries",
]
