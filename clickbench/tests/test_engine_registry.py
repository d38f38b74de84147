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
Tests for the engine registry and the engine definitions.

These tests verify:
1. All engines are properly registered
2. get_engine() returns correct engine instances
3. Each engine produces its variants in the documented order
"""

import pytest

from clickbench.engine_base import BenchmarkEngine
from clickbench.engines import (
    COMPARISON_ORDER,
    ENGINES,
    REFERENCE_ENGINE,
    TARGET_ENGINE,
    LimboEngine,
    SQLiteEngine,
    get_engine,
    list_engines,
)


class TestEngineRegistry:
    """Tests for the ENGINES registry dictionary."""

    def test_all_expected_engines_registered(self):
        """Both compared systems are registered."""
        assert set(ENGINES.keys()) == {"limbo", "sqlite3"}

    def test_registry_maps_to_correct_classes(self):
        """Registry maps engine names to correct classes."""
        assert ENGINES["limbo"] is LimboEngine
        assert ENGINES["sqlite3"] is SQLiteEngine

    def test_all_registered_classes_are_benchmark_engines(self):
        """All registered classes are subclasses of BenchmarkEngine."""
        for name, engine_class in ENGINES.items():
            assert issubclass(engine_class, BenchmarkEngine), (
                f"Engine '{name}' is not a BenchmarkEngine subclass"
            )

    def test_target_runs_before_reference(self):
        """The target engine comes first in every trial."""
        assert COMPARISON_ORDER == (TARGET_ENGINE, REFERENCE_ENGINE) == ("limbo", "sqlite3")


class TestGetEngine:
    """Tests for the get_engine() function."""

    def test_get_engine_case_insensitive(self):
        """get_engine() is case-insensitive."""
        assert type(get_engine("limbo")) is type(get_engine("LIMBO")) is LimboEngine

    def test_get_engine_unknown_raises_value_error(self):
        """get_engine() raises ValueError listing the available engines."""
        with pytest.raises(ValueError, match="Unknown engine") as exc_info:
            get_engine("postgres")

        assert "limbo" in str(exc_info.value)
        assert "sqlite3" in str(exc_info.value)

    def test_get_engine_returns_new_instance_each_time(self):
        """get_engine() returns a new instance on each call."""
        assert get_engine("sqlite3") is not get_engine("sqlite3")

    def test_list_engines_returns_sorted_list(self):
        """list_engines() returns engines in sorted order."""
        assert list_engines() == sorted(ENGINES.keys())

    def test_engine_names_match_registry_keys(self):
        """Each engine's name property matches its registry key."""
        for registry_name in list_engines():
            assert get_engine(registry_name).name == registry_name


class TestLimboEngine:
    """Tests for the Limbo engine definition."""

    def test_two_variants_syscall_first(self):
        """Limbo runs the syscall backend, then io_uring."""
        variants = LimboEngine().build_variants("/bin/limbo", "mydb")

        assert [v.label for v in variants] == ["syscall", "io_uring"]

    def test_syscall_variant_command(self):
        """The syscall variant selects the backend with --vfs."""
        syscall = LimboEngine().build_variants("/bin/limbo", "mydb")[0]

        assert syscall.command() == ["/bin/limbo", "--vfs", "syscall", "--quiet", "mydb"]

    def test_io_uring_variant_uses_default_backend(self):
        """The io_uring variant passes no --vfs flag."""
        io_uring = LimboEngine().build_variants("/bin/limbo", "mydb")[1]

        assert io_uring.command() == ["/bin/limbo", "--quiet", "mydb"]

    def test_variants_share_database(self):
        """Both variants open the same database file."""
        variants = LimboEngine().build_variants("/bin/limbo", "/data/hits.db")

        assert {v.database_path for v in variants} == {"/data/hits.db"}
        assert {v.engine for v in variants} == {"limbo"}

    def test_log_filename(self):
        assert LimboEngine().log_filename == "clickbench-limbo.txt"


class TestSQLiteEngine:
    """Tests for the SQLite engine definition."""

    def test_single_default_variant(self):
        """SQLite has one variant with no extra flags."""
        variants = SQLiteEngine().build_variants("sqlite3", "mydb")

        assert len(variants) == 1
        assert variants[0].label == "default"
        assert variants[0].command() == ["sqlite3", "mydb"]

    def test_default_executable(self):
        assert SQLiteEngine().default_executable == "sqlite3"

    def test_log_filename(self):
        assert SQLiteEngine().log_filename == "clickbench-sqlite3.txt"
