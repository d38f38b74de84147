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
Benchmark Driver

The control loop of the harness. For every query, for every trial, every
variant runs once, each right after a cache purge:

    for query in corpus:
        header -> every result log
        for trial in 1..tries:
            for variant in (limbo syscall, limbo io_uring, sqlite3 default):
                clear caches
                run variant, append its section to its engine's log

This order is what lets downstream tools line target and reference results
up by position, so it must not change. Everything runs sequentially.
"""

import logging
from typing import Iterable, Mapping, Optional, Sequence

from clickbench.cache import SUDO_NOTICE, CacheClearer
from clickbench.engine_base import EngineVariant
from clickbench.engine_runner import EngineRunner
from clickbench.query_source import QueryRecord
from clickbench.reporting import BenchmarkSummary
from clickbench.result_log import ResultSink, format_query_header, format_trial_section

logger = logging.getLogger(__name__)


def run_benchmark(
    queries: Iterable[QueryRecord],
    variants: Sequence[EngineVariant],
    logs: Mapping[str, ResultSink],
    cache_clearer: CacheClearer,
    engine_runner: Optional[EngineRunner] = None,
    tries: int = 1,
    show_progress: bool = True,
) -> BenchmarkSummary:
    """Run every query against every variant, tries times.

    Args:
        queries: Corpus queries, in ordinal order (may be lazy)
        variants: Variants to run within each trial, in execution order
        logs: Engine name -> result log; every variant's engine needs one
        cache_clearer: Strategy used before every invocation
        engine_runner: Runs the engine processes (default: real subprocesses)
        tries: Number of trials per query
        show_progress: Print per-trial progress lines to stdout

    Returns:
        BenchmarkSummary with all results. If the operator interrupts the
        run, the summary covers what finished and has interrupted=True.

    Raises:
        SourceUnreadable: If the corpus cannot be read
        ValueError: If tries < 1, variants is empty or a log is missing
    """
    if tries < 1:
        raise ValueError(f"tries must be at least 1, got {tries}")
    if not variants:
        raise ValueError("At least one engine variant is required")
    missing = sorted({v.engine for v in variants} - set(logs.keys()))
    if missing:
        raise ValueError(f"No result log configured for: {', '.join(missing)}")

    engine_runner = engine_runner or EngineRunner()
    summary = BenchmarkSummary(
        tries=tries,
        variants=[v.display_name for v in variants],
    )
    failures_before = cache_clearer.failures

    if cache_clearer.requires_privileges:
        print(SUDO_NOTICE)
    cache_clearer.clear()

    try:
        for query in queries:
            _run_query_block(query, variants, logs, cache_clearer, engine_runner, tries, summary, show_progress)
            summary.queries_run += 1
    except KeyboardInterrupt:
        logger.warning(
            f"Interrupted after {summary.queries_run} queries "
            f"({summary.total_trials} trials); result logs are intact"
        )
        summary.interrupted = True
    finally:
        summary.cache_clear_failures = cache_clearer.failures - failures_before

    return summary


def _run_query_block(
    query: QueryRecord,
    variants: Sequence[EngineVariant],
    logs: Mapping[str, ResultSink],
    cache_clearer: CacheClearer,
    engine_runner: EngineRunner,
    tries: int,
    summary: BenchmarkSummary,
    show_progress: bool,
) -> None:
    header = format_query_header(query.ordinal, query.text)
    if show_progress:
        print(header, end="")
    for log in logs.values():
        log.append(header)

    for trial in range(1, tries + 1):
        if tries > 1:
            logger.debug(f"Query {query.ordinal}: trial {trial}/{tries}")

        for variant in variants:
            cache_clearer.clear()
            result = engine_runner.run_query(
                variant,
                query.text,
                query_ordinal=query.ordinal,
                trial=trial,
            )
            logs[variant.engine].append(format_trial_section(result, tries))
            summary.add_result(result)

            if show_progress:
                status = "✓" if result.success else "✗"
                if result.success:
                    print(f"  [{status}] {variant.display_name}: {result.elapsed_seconds:.4f}s")
                else:
                    print(f"  [{status}] {variant.display_name}: FAILED - {result.error_message}")
