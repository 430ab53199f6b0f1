"""
Random input generators with shrinking.

A generator is a plain callable taking a ``random.Random`` and returning a
``Shrinkable``: the generated value plus a zero-argument callable that lazily
yields smaller Shrinkables. Combinators take generators and return new ones,
so shrinking always stays in step with whatever was built on top of a value.

The word-count generators at the bottom pair every input with the result the
job should produce. That result comes from how the input was constructed
(which words were drawn as blank, which counts were drawn), never from
running the job.
"""

import bisect
import functools
import itertools
import operator
import random
import string
from collections import Counter
from typing import Any, Callable, Iterator, List, NamedTuple, Sequence, Tuple

from mrcheck.common.errors import GenerationError
from mrcheck.common.records import make_pair, make_record


class Shrinkable(NamedTuple):
    """A generated value and its shrink candidates, smallest-first where possible"""
    value: Any
    shrinks: Callable[[], Iterator['Shrinkable']]


Generator = Callable[[random.Random], Shrinkable]

ALPHA_CHARS = string.ascii_lowercase + string.ascii_uppercase
BLANK_CHARS = ' \t'


def _no_shrinks() -> Iterator[Shrinkable]:
    return iter(())


def _shrink_int(value: int, target: int) -> Shrinkable:
    def shrinks():
        if value == target:
            return
        yield Shrinkable(target, _no_shrinks)
        # Halve the remaining distance towards value; every candidate is closer to target
        delta = int((value - target) / 2)
        while delta != 0:
            yield _shrink_int(value - delta, target)
            delta = int(delta / 2)

    return Shrinkable(value, shrinks)


def _shrink_list(items: List[Shrinkable], min_size: int) -> Shrinkable:
    def shrinks():
        size = len(items)
        chunk = size - min_size
        # Drop chunks first, halving the chunk size each round
        while chunk > 0:
            for start in range(0, size - chunk + 1, chunk):
                yield _shrink_list(items[:start] + items[start + chunk:], min_size)
            chunk //= 2
        # Then shrink elements in place
        for index, item in enumerate(items):
            for smaller in item.shrinks():
                yield _shrink_list(items[:index] + [smaller] + items[index + 1:], min_size)

    return Shrinkable([item.value for item in items], shrinks)


def _shrink_tuple(parts: List[Shrinkable]) -> Shrinkable:
    def shrinks():
        for index, part in enumerate(parts):
            for smaller in part.shrinks():
                yield _shrink_tuple(parts[:index] + [smaller] + parts[index + 1:])

    return Shrinkable(tuple(part.value for part in parts), shrinks)


def _map_shrinkable(shrinkable: Shrinkable, func: Callable[[Any], Any]) -> Shrinkable:
    return Shrinkable(
        func(shrinkable.value),
        lambda: (_map_shrinkable(smaller, func) for smaller in shrinkable.shrinks()),
    )


# -- Combinators --

def constant(value: Any) -> Generator:
    """Always the same value, never shrinks"""
    def gen(rng):
        return Shrinkable(value, _no_shrinks)
    return gen


def choose(low: int, high: int) -> Generator:
    """
    Integers in the closed range [low, high], shrinking towards zero
    (or the bound nearest zero when zero is out of range)
    """
    def gen(rng):
        if not (isinstance(low, int) and isinstance(high, int)):
            raise GenerationError(f"choose() bounds must be integers, got {low!r} and {high!r}")
        if low > high:
            raise GenerationError(f"choose() lower bound {low} exceeds upper bound {high}")
        target = low if low > 0 else (high if high < 0 else 0)
        return _shrink_int(rng.randint(low, high), target)
    return gen


def elements(values: Sequence[Any]) -> Generator:
    """One of the given values, shrinking towards the first"""
    values = list(values)

    def gen(rng):
        if not values:
            raise GenerationError("elements() needs at least one value")
        return _map_shrinkable(choose(0, len(values) - 1)(rng), values.__getitem__)
    return gen


def one_of(*gens: Generator) -> Generator:
    """Value from one generator picked uniformly"""
    def gen(rng):
        if not gens:
            raise GenerationError("one_of() needs at least one generator")
        return gens[rng.randrange(len(gens))](rng)
    return gen


def frequency(*weighted: Tuple[int, Generator]) -> Generator:
    """Value from one generator picked with the given integer weights"""
    def gen(rng):
        if not weighted or any(weight < 0 for weight, _ in weighted):
            raise GenerationError("frequency() needs non-negative weights")
        total = sum(weight for weight, _ in weighted)
        if total == 0:
            raise GenerationError("frequency() weights sum to zero")
        cumulative = list(itertools.accumulate(weight for weight, _ in weighted))
        index = bisect.bisect_right(cumulative, rng.randrange(total))
        return weighted[index][1](rng)
    return gen


def list_of(elem: Generator, max_size: int = 20, min_size: int = 0) -> Generator:
    """Lists of min_size..max_size elements, shrinking by dropping then shrinking elements"""
    def gen(rng):
        if min_size < 0 or max_size < min_size:
            raise GenerationError(f"list_of() bad size range [{min_size}, {max_size}]")
        size = rng.randint(min_size, max_size)
        return _shrink_list([elem(rng) for _ in range(size)], min_size)
    return gen


def tuples(*gens: Generator) -> Generator:
    """Tuples with one value from each generator, drawn independently"""
    def gen(rng):
        return _shrink_tuple([g(rng) for g in gens])
    return gen


def map_gen(gen: Generator, func: Callable[[Any], Any]) -> Generator:
    """Apply func to every generated value and to every shrink candidate"""
    def mapped(rng):
        return _map_shrinkable(gen(rng), func)
    return mapped


def alpha_char() -> Generator:
    return elements(ALPHA_CHARS)


def alpha_str(max_size: int = 10) -> Generator:
    """Possibly empty strings of ASCII letters"""
    return map_gen(list_of(alpha_char(), max_size), ''.join)


def blank_str(max_size: int = 5) -> Generator:
    """Possibly empty strings of spaces and tabs"""
    return map_gen(list_of(elements(BLANK_CHARS), max_size), ''.join)


def sample(gen: Generator, seed=None) -> Any:
    """Draw one value, for poking at generators by hand"""
    return gen(random.Random(seed)).value


# -- Word-count generators --

def ordinal_gen(upper: int = 99999) -> Generator:
    """Line ordinals in [0, upper]"""
    return choose(0, upper)


def word_gen(max_size: int = 10) -> Generator:
    """
    (word, is_blank) pairs. Letter words are blank only when empty; whitespace
    words are always blank.
    """
    letters = map_gen(alpha_str(max_size), lambda word: (word, word == ''))
    blanks = map_gen(blank_str(), lambda word: (word, True))
    return frequency((4, letters), (1, blanks))


def single_word_gen() -> Generator:
    """(word, expected mapper output) for lines holding at most one word"""
    def expected(tagged):
        word, is_blank = tagged
        return (word, [] if is_blank else [make_pair(word, 1)])
    return map_gen(word_gen(), expected)


def text_line_with_count_gen(max_words: int = 20) -> Generator:
    """
    (line, non-blank word count). The line joins the drawn words with single
    spaces; blank words are part of the line but not of the count.
    """
    def line_and_count(tagged_words):
        line = ' '.join(word for word, _ in tagged_words)
        count = sum(1 for _, is_blank in tagged_words if not is_blank)
        return (line, count)
    return map_gen(list_of(word_gen(), max_words), line_and_count)


def counts_with_sum_gen(max_count: int = 9999, max_size: int = 20) -> Generator:
    """(counts, total), counts possibly empty"""
    def with_total(counts):
        return (counts, functools.reduce(operator.add, counts, 0))
    return map_gen(list_of(choose(0, max_count), max_size), with_total)


def corpus_gen(max_lines: int = 10, max_words: int = 10) -> Generator:
    """(records, expected word totals) for whole-job runs"""
    def records_and_totals(lines):
        records = [make_record(index, ' '.join(word for word, _ in words))
                   for index, words in enumerate(lines)]
        totals = Counter(word for words in lines for word, is_blank in words if not is_blank)
        return (records, dict(totals))
    return map_gen(list_of(list_of(word_gen(), max_words), max_lines), records_and_totals)
