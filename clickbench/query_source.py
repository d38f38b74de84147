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
Query Source for ClickBench Benchmarks

This module reads the query corpus: a plain text file holding one SQL
statement per line. Lines that start with the comment marker (``--`` by
default) are disabled and skipped entirely; every other line, blank lines
included, becomes a numbered query.

Only an exact marker at column 0 disables a line. ``  -- SELECT 1;`` is
passed to the engines as written. Surrounding whitespace is never trimmed
either: a query keeps its leading and trailing blanks, only the line
terminator is removed.

The corpus must be UTF-8. Undecodable bytes make the corpus unreadable.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

from clickbench.errors import SourceUnreadable

logger = logging.getLogger(__name__)

DEFAULT_COMMENT_MARKER = "--"


@dataclass(frozen=True)
class QueryRecord:
    """A query read from the corpus.

    Attributes:
        ordinal: 1-based position among the enabled lines of the corpus
        text: The query exactly as written on its line, minus the line terminator
    """

    ordinal: int
    text: str


def is_disabled(line: str, comment_marker: str = DEFAULT_COMMENT_MARKER) -> bool:
    """Return True if the line is commented out."""
    return line.startswith(comment_marker)


def read_queries(
    path: Union[str, Path],
    comment_marker: str = DEFAULT_COMMENT_MARKER,
) -> Iterator[QueryRecord]:
    """Lazily yield the enabled queries of a corpus file.

    Args:
        path: Path to the corpus
        comment_marker: Prefix that disables a line

    Yields:
        QueryRecord for each enabled line, numbered from 1

    Raises:
        SourceUnreadable: If the corpus does not exist, cannot be opened or
            is not valid UTF-8
    """
    if not comment_marker:
        raise ValueError("comment_marker must not be empty")

    path = Path(path)
    try:
        f = open(path, "r", encoding="utf-8", newline="")
    except OSError as e:
        raise SourceUnreadable(str(path), e.strerror or str(e)) from e

    ordinal = 0
    skipped = 0
    with f:
        while True:
            try:
                raw_line = f.readline()
            except UnicodeDecodeError as e:
                raise SourceUnreadable(
                    str(path), f"not valid UTF-8 ({e.reason})"
                ) from e
            if not raw_line:
                break
            line = raw_line.rstrip("\r\n")
            if is_disabled(line, comment_marker):
                skipped += 1
                continue
            ordinal += 1
            yield QueryRecord(ordinal=ordinal, text=line)

    logger.debug(f"Read {ordinal} queries from {path} ({skipped} disabled)")


def load_queries(
    path: Union[str, Path],
    comment_marker: str = DEFAULT_COMMENT_MARKER,
) -> list[QueryRecord]:
    """Read the whole corpus up front.

    Unlike read_queries(), an unreadable corpus is reported here rather
    than when the first query is requested.

    Raises:
        SourceUnreadable: If the corpus does not exist or cannot be opened
    """
    return list(read_queries(path, comment_marker))

