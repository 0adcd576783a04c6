# SPDX-License-Identifier: BSD-3-Clause

"""File-based cache of checker results.

Checking a document requires a round trip to the checker service, which
is slow compared to serving a page. Since a web app tends to serve the
same document many times, results are stored on disk, keyed by the
SHA-1 checksum of the document, and reused for a day.

Each result is stored as C{<checksum>.json}, containing the checker's
reply object with an added C{storedAt} field that records when it was
written, in seconds since the epoch.

There is no locking between processes: when two requests for the same
document miss the cache at the same time, both will contact the checker
and the last one to finish wins. The results are identical, so the only
cost is a redundant request to the checker.
"""

from __future__ import annotations

import json
import os
from hashlib import sha1
from logging import getLogger
from pathlib import Path
from tempfile import NamedTemporaryFile
from time import time
from typing import Any, Callable, Mapping, Optional, Tuple, Union

from htmlvalidator.message import ValidationMessage, parse_messages
from htmlvalidator.typing import Clock

_LOG = getLogger(__name__)

MAX_AGE = 24 * 60 * 60
"""Number of seconds for which a stored result is considered fresh."""

STORED_AT = "storedAt"
"""Name of the field in which the storage time of a result is recorded."""


def checksum(content: Union[str, bytes]) -> str:
    """
    Returns the checksum that identifies C{content} in the cache.

    Text is encoded as UTF-8 before computing the checksum.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    return sha1(content).hexdigest()


class ValidationCache:
    """Stores checker results in a directory, one file per document."""

    def __init__(
        self, directory: Path, clock: Clock = time, max_age: float = MAX_AGE
    ):
        """
        Initializes a cache that stores its files in C{directory}.

        The directory is created when the first result is stored.

        @param directory:
            Directory to store results in.
        @param clock:
            Returns the current time; the default is C{time.time}.
        @param max_age:
            Number of seconds a result stays fresh after it was stored.
        """
        self.directory = Path(directory)
        self.clock = clock
        self.max_age = max_age

    def path_for(self, digest: str) -> Path:
        """Returns the path of the file storing the result for C{digest}."""
        return self.directory / f"{digest}.json"

    def load(self, digest: str) -> Optional[Mapping[str, Any]]:
        """
        Returns the fresh stored result for C{digest}, or C{None} if
        there is no such result.

        Files that cannot be read or parsed count as missing.
        """
        path = self.path_for(digest)
        try:
            with open(path, encoding="utf-8") as inp:
                result = json.load(inp)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as ex:
            _LOG.warning('Ignoring unreadable cache file "%s": %s', path, ex)
            return None

        if not isinstance(result, dict):
            _LOG.warning('Ignoring cache file "%s": not a JSON object', path)
            return None
        stored_at = result.get(STORED_AT)
        if isinstance(stored_at, bool) or not isinstance(stored_at, (int, float)):
            _LOG.warning('Ignoring cache file "%s": no storage time', path)
            return None

        age = self.clock() - stored_at
        if not 0 <= age < self.max_age:
            _LOG.debug('Cache file "%s" is stale (age %.0f seconds)', path, age)
            return None
        return result

    def store(self, digest: str, result: Mapping[str, Any]) -> None:
        """
        Stores a checker result for C{digest}, replacing any older result.

        The file is written under a temporary name first and then moved
        into place, so readers never see a partially written file.

        @raise OSError:
            If the file could not be written.
        """
        record = dict(result)
        record[STORED_AT] = self.clock()

        self.directory.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self.directory,
            prefix=f".{digest}.",
            suffix=".tmp",
            delete=False,
        ) as out:
            try:
                json.dump(record, out)
                out.close()
                os.replace(out.name, self.path_for(digest))
            except Exception:
                os.unlink(out.name)
                raise

    def get_or_compute(
        self, digest: str, compute: Callable[[], Mapping[str, Any]]
    ) -> Tuple[Tuple[ValidationMessage, ...], bool]:
        """
        Returns the messages for the document identified by C{digest}.

        If there is no fresh result stored, C{compute} is called to obtain
        one; that result is stored and the messages are read back from
        the stored file, so callers always get what the cache holds.

        @return:
            A pair of the messages and a flag that is C{True} iff the
            messages were taken from the cache.
        """
        result = self.load(digest)
        if result is not None:
            try:
                messages = parse_messages(result)
            except ValueError as ex:
                _LOG.warning("Ignoring cached result for %s: %s", digest, ex)
            else:
                _LOG.debug("Cache hit for %s", digest)
                return messages, True

        _LOG.debug("Cache miss for %s", digest)
        computed = compute()
        try:
            self.store(digest, computed)
        except OSError as ex:
            _LOG.error("Failed to store result for %s: %s", digest, ex)
            return parse_messages(computed), False

        stored = self.load(digest)
        return parse_messages(computed if stored is None else stored), False
