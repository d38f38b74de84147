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
Page Cache Control

Every timed engine invocation is preceded by a cache purge so each trial
starts cold. The purge mechanism depends on the platform and needs root, so
it is wrapped in a strategy object chosen once at startup:

- macOS: ``sync`` then ``sudo purge``
- Linux (and anything else): ``sync`` then ``3`` written to
  /proc/sys/vm/drop_caches through ``sudo tee``

A failed purge is logged and the run continues. Timings taken after a
failure may have been measured against warm caches.
"""

import logging
import subprocess
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Type

from clickbench.errors import CacheClearFailure

logger = logging.getLogger(__name__)

DROP_CACHES_PATH = "/proc/sys/vm/drop_caches"
# 3 = free page cache, dentries and inodes
DROP_CACHES_VALUE = "3"

SUDO_NOTICE = (
    "The benchmark might ask you to enter the password for sudo, "
    "in order to clear system caches."
)


@dataclass(frozen=True)
class CacheCommand:
    """One command of a purge sequence, with optional text for its stdin."""

    argv: list[str]
    stdin_text: Optional[str] = None


class CacheClearer(ABC):
    """Strategy for flushing OS filesystem caches.

    Attributes:
        failures: Number of clear() calls that did not complete
    """

    def __init__(self) -> None:
        self.failures: int = 0

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the short identifier for this strategy."""
        pass

    @property
    def requires_privileges(self) -> bool:
        """Return whether clear() may prompt for a sudo password."""
        return True

    @abstractmethod
    def commands(self) -> list[CacheCommand]:
        """Return the commands that flush the caches, in execution order."""
        pass

    def purge(self) -> None:
        """Run every command of commands() in turn.

        Raises:
            CacheClearFailure: If any of the commands could not be run
        """
        for command in self.commands():
            run_command(command.argv, stdin_text=command.stdin_text)

    def clear(self) -> bool:
        """Flush the caches, downgrading failures to a warning.

        Returns:
            True if the caches were flushed
        """
        try:
            self.purge()
        except CacheClearFailure as e:
            self.failures += 1
            logger.warning(f"Failed to clear caches, timings may use warm caches: {e}")
            return False
        return True


def run_command(command: list[str], stdin_text: Optional[str] = None) -> None:
    """Run one cache control command to completion.

    stdin is inherited unless stdin_text is given, so sudo can prompt on the
    terminal.

    Raises:
        CacheClearFailure: If the command is missing or exits non-zero
    """
    logger.debug(f"Running {' '.join(command)}")
    try:
        subprocess.run(
            command,
            input=stdin_text,
            text=True,
            stdout=subprocess.DEVNULL if stdin_text is not None else None,
            check=True,
        )
    except FileNotFoundError as e:
        raise CacheClearFailure(f"command not found: {command[0]}") from e
    except subprocess.CalledProcessError as e:
        raise CacheClearFailure(
            f"'{' '.join(command)}' exited with status {e.returncode}"
        ) from e
    except OSError as e:
        raise CacheClearFailure(f"could not run '{' '.join(command)}': {e}") from e


class DarwinCacheClearer(CacheClearer):
    """macOS: sync, then purge the unified buffer cache."""

    @property
    def name(self) -> str:
        return "darwin"

    def commands(self) -> list[CacheCommand]:
        return [CacheCommand(["sync"]), CacheCommand(["sudo", "purge"])]


class LinuxCacheClearer(CacheClearer):
    """Linux: sync, then drop page cache, dentries and inodes."""

    def __init__(self, drop_caches_path: str = DROP_CACHES_PATH) -> None:
        super().__init__()
        self.drop_caches_path = drop_caches_path

    @property
    def name(self) -> str:
        return "linux"

    def commands(self) -> list[CacheCommand]:
        return [
            CacheCommand(["sync"]),
            CacheCommand(["sudo", "tee", self.drop_caches_path], stdin_text=DROP_CACHES_VALUE + "\n"),
        ]


class NoopCacheClearer(CacheClearer):
    """Leaves caches alone. Used when the operator opts out of purging."""

    @property
    def name(self) -> str:
        return "none"

    @property
    def requires_privileges(self) -> bool:
        return False

    def commands(self) -> list[CacheCommand]:
        return []


CACHE_CLEARERS: dict[str, Type[CacheClearer]] = {
    "darwin": DarwinCacheClearer,
    "linux": LinuxCacheClearer,
    "none": NoopCacheClearer,
}


def get_cache_clearer(platform: Optional[str] = None) -> CacheClearer:
    """Select the cache clearing strategy for a platform.

    Args:
        platform: A sys.platform value, or "none" to disable purging.
            Defaults to the running platform.

    Returns:
        A new CacheClearer instance
    """
    if platform is None:
        platform = sys.platform

    if platform == "none":
        key = "none"
    elif platform.startswith("darwin"):
        key = "darwin"
    else:
        key = "linux"
    return CACHE_CLEARERS[key]()
