"""
Word-count properties checked against a job.

Each property pairs a generator of (input, expected) values with a predicate
that runs the job through a TaskExecutor and raises PredicateFailure when the
output differs from what the generator said it should be.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from mrcheck.common.errors import PredicateFailure
from mrcheck.common.records import WordCountPair, make_group, make_record, pair_to_tuple
from mrcheck.coordinator import generators as gen
from mrcheck.worker.task_executor import TaskExecutor


@dataclass(frozen=True)
class Property:
    """A named predicate over generated values"""
    name: str
    description: str
    generator: gen.Generator
    predicate: Callable[[TaskExecutor, Any], None]


def _tuples(pairs: Iterable[WordCountPair]) -> List[tuple]:
    return [pair_to_tuple(pair) for pair in pairs]


def expect_same_pairs(message: str, expected: List[WordCountPair], actual: List[WordCountPair]):
    """Compare pair lists as multisets"""
    if Counter(expected) != Counter(actual):
        raise PredicateFailure(message, _tuples(expected), _tuples(actual))


def expect_equal(message: str, expected: Any, actual: Any):
    if expected != actual:
        raise PredicateFailure(message, expected, actual)


def mapper_single_word(executor: TaskExecutor, value):
    key, (word, expected) = value
    actual = executor.execute_map(make_record(key, word))
    expect_same_pairs("mapper output for a single word", expected, actual)


def mapper_blank_line(executor: TaskExecutor, value):
    key, line = value
    actual = executor.execute_map(make_record(key, line))
    expect_same_pairs("mapper output for a blank line", [], actual)


def mapper_multi_word_line(executor: TaskExecutor, value):
    key, (line, word_count) = value
    actual = executor.execute_map(make_record(key, line))
    expect_equal("number of mapper pairs", word_count, len(actual))
    counts = [pair.count for pair in actual]
    expect_equal("mapper pair counts", [1] * word_count, counts)


def reducer_sum(executor: TaskExecutor, value):
    word, (counts, total) = value
    actual = executor.execute_reduce(make_group(word, counts))
    if not counts:
        expect_same_pairs("reducer output for an empty group", [], actual)
    else:
        expect_same_pairs("reducer output", [WordCountPair(word, total)], actual)


def reducer_empty_group(executor: TaskExecutor, word):
    actual = executor.execute_reduce(make_group(word, []))
    expect_same_pairs("reducer output for an empty group", [], actual)


def _totals_by_word(pairs: List[WordCountPair]) -> Dict[str, int]:
    totals = {}
    for pair in pairs:
        if pair.word in totals:
            raise PredicateFailure(f"reducer emitted word {pair.word!r} more than once",
                                   1, sum(1 for p in pairs if p.word == pair.word))
        totals[pair.word] = pair.count
    return totals


def _round_trip(use_combiner: bool):
    def predicate(executor: TaskExecutor, value):
        records, expected_totals = value
        actual = executor.execute_job(records, use_combiner=use_combiner)
        expect_equal("word totals after map and reduce", expected_totals, _totals_by_word(actual))
    return predicate


WORD_COUNT_PROPERTIES = [
    Property(
        name='mapper_single_word',
        description="The mapper maps a single word to (word, 1) and a blank word to nothing",
        generator=gen.tuples(gen.ordinal_gen(), gen.single_word_gen()),
        predicate=mapper_single_word,
    ),
    Property(
        name='mapper_blank_line',
        description="The mapper emits nothing for empty and all-blank lines",
        generator=gen.tuples(gen.ordinal_gen(), gen.blank_str(20)),
        predicate=mapper_blank_line,
    ),
    Property(
        name='mapper_multi_word_line',
        description="The mapper emits one (word, 1) pair per non-blank word of a line",
        generator=gen.tuples(gen.ordinal_gen(), gen.text_line_with_count_gen()),
        predicate=mapper_multi_word_line,
    ),
    Property(
        name='reducer_sum',
        description="The reducer emits (word, sum of counts), or nothing for no counts",
        generator=gen.tuples(gen.alpha_str(), gen.counts_with_sum_gen()),
        predicate=reducer_sum,
    ),
    Property(
        name='reducer_empty_group',
        description="The reducer emits nothing for a word with no counts",
        generator=gen.alpha_str(),
        predicate=reducer_empty_group,
    ),
    Property(
        name='map_reduce_round_trip',
        description="Map, group by word and reduce reproduces the word totals of the input",
        generator=gen.corpus_gen(),
        predicate=_round_trip(use_combiner=False),
    ),
    Property(
        name='combiner_round_trip',
        description="Same as map_reduce_round_trip with the combiner run on each record's output",
        generator=gen.corpus_gen(),
        predicate=_round_trip(use_combiner=True),
    ),
]


def get_properties(names: Optional[Iterable[str]] = None) -> List[Property]:
    """
    Look up registered properties by name, all of them when names is None

    Raises:
        KeyError: If a name is not registered
    """
    if names is None:
        return list(WORD_COUNT_PROPERTIES)
    by_name = {prop.name: prop for prop in WORD_COUNT_PROPERTIES}
    selected = []
    for name in names:
        if name not in by_name:
            raise KeyError(f"Unknown property: {name}")
        selected.append(by_name[name])
    return selected
