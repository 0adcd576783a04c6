"""
Unit tests for `htmlvalidator.cache`.
"""

import json
from hashlib import sha1
from logging import WARNING

from pytest import mark, raises

from htmlvalidator.cache import MAX_AGE, STORED_AT, ValidationCache, checksum
from htmlvalidator.message import ValidationMessage

from utils import FakeClock

MESSAGE = {"type": "error", "firstLine": 2, "lastLine": 3, "message": "Oops"}


class Computer:
    """Compute function that counts how often it is called."""

    def __init__(self, *messages):
        self.result = {"messages": list(messages)}
        self.count = 0

    def __call__(self):
        self.count += 1
        return self.result


def test_checksum():
    """Test that the checksum is the SHA-1 of the UTF-8 encoded content."""
    assert checksum(b"abc") == "a9993e364706816aba3e25717850c26c9cd0d89d"
    assert checksum("abc") == checksum(b"abc")
    assert checksum("smile \U0001f603") == sha1("smile \U0001f603".encode()).hexdigest()


def test_miss_then_hit(tmp_path):
    """Test that a stored result is reused."""
    cache = ValidationCache(tmp_path / "cache", FakeClock())
    compute = Computer(MESSAGE)

    messages, hit = cache.get_or_compute("abc", compute)
    assert not hit
    assert messages == (ValidationMessage("error", 2, 3, "Oops"),)
    assert compute.count == 1

    messages, hit = cache.get_or_compute("abc", compute)
    assert hit
    assert messages == (ValidationMessage("error", 2, 3, "Oops"),)
    assert compute.count == 1


def test_directory_created_lazily(tmp_path):
    """Test that the cache directory is created on first write."""
    directory = tmp_path / "a" / "b"
    cache = ValidationCache(directory, FakeClock())
    assert not directory.exists()
    cache.get_or_compute("abc", Computer())
    assert (directory / "abc.json").is_file()
    assert [path.name for path in directory.iterdir()] == ["abc.json"]


def test_artifact_contents(tmp_path):
    """Test that the stored file contains the result and storage time."""
    clock = FakeClock(1234.5)
    cache = ValidationCache(tmp_path, clock)
    cache.get_or_compute("abc", Computer(MESSAGE))
    with open(tmp_path / "abc.json", encoding="utf-8") as inp:
        stored = json.load(inp)
    assert stored == {"messages": [MESSAGE], STORED_AT: 1234.5}


def test_empty_result_is_cached(tmp_path):
    """Test that a result without messages is a cache hit too."""
    cache = ValidationCache(tmp_path, FakeClock())
    compute = Computer()
    assert cache.get_or_compute("abc", compute) == ((), False)
    assert cache.get_or_compute("abc", compute) == ((), True)
    assert compute.count == 1


@mark.parametrize("age", (0, 1, MAX_AGE - 1))
def test_fresh(tmp_path, age):
    """Test that results younger than a day are reused."""
    clock = FakeClock()
    cache = ValidationCache(tmp_path, clock)
    compute = Computer(MESSAGE)
    cache.get_or_compute("abc", compute)
    clock.advance(age)
    messages_, hit = cache.get_or_compute("abc", compute)
    assert hit
    assert compute.count == 1


@mark.parametrize("age", (MAX_AGE, MAX_AGE + 1, 10 * MAX_AGE))
def test_stale(tmp_path, age):
    """Test that results of a day or older are recomputed and replaced."""
    clock = FakeClock()
    cache = ValidationCache(tmp_path, clock)
    compute = Computer(MESSAGE)
    cache.get_or_compute("abc", compute)
    clock.advance(age)
    messages, hit = cache.get_or_compute("abc", compute)
    assert not hit
    assert len(messages) == 1
    assert compute.count == 2

    # The recomputed result is fresh again.
    messages_, hit = cache.get_or_compute("abc", compute)
    assert hit
    assert compute.count == 2


def test_stored_in_future(tmp_path):
    """Test that a result stored after the current time is not trusted."""
    clock = FakeClock()
    cache = ValidationCache(tmp_path, clock)
    compute = Computer()
    cache.get_or_compute("abc", compute)
    clock.advance(-60)
    messages_, hit = cache.get_or_compute("abc", compute)
    assert not hit


def test_separate_entries(tmp_path):
    """Test that different checksums have different entries."""
    cache = ValidationCache(tmp_path, FakeClock())
    cache.get_or_compute("abc", Computer(MESSAGE))
    messages, hit = cache.get_or_compute("def", Computer())
    assert messages == ()
    assert not hit


@mark.parametrize(
    "contents",
    (
        "",
        "{not json",
        "[]",
        '{"messages": []}',
        '{"messages": [], "storedAt": "yesterday"}',
        '{"messages": [], "storedAt": true}',
        '{"messages": "nope", "storedAt": 1500000000}',
        '{"messages": [42], "storedAt": 1500000000}',
    ),
)
def test_malformed_artifact(tmp_path, caplog, contents):
    """Test that an unusable cache file is treated as a miss and replaced."""
    (tmp_path / "abc.json").write_text(contents, encoding="utf-8")
    cache = ValidationCache(tmp_path, FakeClock())
    compute = Computer(MESSAGE)

    with caplog.at_level(WARNING, logger="htmlvalidator.cache"):
        messages, hit = cache.get_or_compute("abc", compute)
    assert not hit
    assert compute.count == 1
    assert messages == (ValidationMessage.from_json(MESSAGE),)
    assert caplog.records

    messages, hit = cache.get_or_compute("abc", compute)
    assert hit
    assert compute.count == 1


def test_write_failure(tmp_path, caplog):
    """Test that the computed result is returned when it cannot be stored."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    cache = ValidationCache(blocker / "cache", FakeClock())
    compute = Computer(MESSAGE)

    messages, hit = cache.get_or_compute("abc", compute)
    assert not hit
    assert messages == (ValidationMessage.from_json(MESSAGE),)
    assert "Failed to store" in caplog.text


def test_failed_write_leaves_no_files(tmp_path):
    """Test that a result that cannot be written leaves nothing behind."""
    cache = ValidationCache(tmp_path, FakeClock())
    with raises(TypeError):
        cache.store("abc", {"messages": [], "extra": object()})
    assert list(tmp_path.iterdir()) == []
