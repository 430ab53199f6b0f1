"""
Record types exchanged with the word-count job under test.

The job under test is plain Python code that takes and returns tuples. Every
value crossing that boundary goes through one of the explicit constructor or
accessor functions below; nothing is converted implicitly.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Tuple


@dataclass(frozen=True)
class Record:
    """One mapper input: line ordinal and line text"""
    key: int
    value: str


@dataclass(frozen=True)
class WordCountPair:
    """One (word, count) pair emitted by a mapper or reducer"""
    word: str
    count: int


@dataclass(frozen=True)
class Group:
    """One reducer input: a word and all of its counts"""
    word: str
    counts: Tuple[int, ...]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def make_record(key: int, value: str) -> Record:
    """
    Build a mapper input record

    Raises:
        TypeError: If key is not an int or value is not a str
    """
    if not _is_int(key):
        raise TypeError(f"Record key must be int, got {type(key).__name__}")
    if not isinstance(value, str):
        raise TypeError(f"Record value must be str, got {type(value).__name__}")
    return Record(key=key, value=value)


def make_group(word: str, counts: Iterable[int]) -> Group:
    """
    Build a reducer input group

    Raises:
        TypeError: If word is not a str or any count is not an int
    """
    if not isinstance(word, str):
        raise TypeError(f"Group word must be str, got {type(word).__name__}")
    counts = tuple(counts)
    for count in counts:
        if not _is_int(count):
            raise TypeError(f"Group count must be int, got {type(count).__name__}")
    return Group(word=word, counts=counts)


def make_pair(word: str, count: int) -> WordCountPair:
    """
    Build a (word, count) pair

    Raises:
        TypeError: If word is not a str or count is not an int
    """
    if not isinstance(word, str):
        raise TypeError(f"Pair word must be str, got {type(word).__name__}")
    if not _is_int(count):
        raise TypeError(f"Pair count must be int, got {type(count).__name__}")
    return WordCountPair(word=word, count=count)


def pair_from_output(item: Any) -> WordCountPair:
    """
    Convert one raw item emitted by the job into a WordCountPair

    Args:
        item: Expected to be a 2-tuple (or list) of (str, int)

    Raises:
        TypeError: If the item does not have that shape
    """
    if not isinstance(item, (tuple, list)) or len(item) != 2:
        raise TypeError(f"Expected a (word, count) pair, got {item!r}")
    word, count = item
    return make_pair(word, count)


def pair_to_tuple(pair: WordCountPair) -> Tuple[str, int]:
    """Plain tuple form of a pair, as the job itself would emit it"""
    return (pair.word, pair.count)
