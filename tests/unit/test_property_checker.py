"""
(meta-)tests for the property checker, running it on correct and broken
word count jobs to make sure failures are found, reported and shrunk.
"""

import threading

import pytest

from mrcheck.common.config import CheckerConfig
from mrcheck.common.errors import GenerationError, PredicateFailure, UnitUnderTestError
from mrcheck.coordinator import generators as gen
from mrcheck.coordinator.metrics import MetricsCollector
from mrcheck.coordinator.properties import Property, get_properties
from mrcheck.coordinator.property_checker import (
    CheckStatus,
    FailureSlot,
    PropertyChecker,
    TrialFailure,
    TrialProgress,
)
from mrcheck.worker.task_executor import TaskExecutor


# Example mappers / reducers
def mapper(key, value):
    for word in value.split():
        yield word, 1


def reducer(key, values):
    if values:
        yield key, sum(values)


def dropping_mapper(key, value):
    return []


def lowercasing_mapper(key, value):
    for word in value.split():
        yield word.lower(), 1


def exploding_mapper(key, value):
    if value.strip():
        raise ValueError("cannot map")
    return []


def zero_emitting_reducer(key, values):
    yield key, sum(values)


def off_by_one_reducer(key, values):
    yield key, sum(values) + 1


def doubling_combiner(key, values):
    yield key, 2 * sum(values)


def check(name, map_fn=mapper, reduce_fn=reducer, combiner_fn=None, **config):
    settings = dict(trials=100, workers=2, seed=99)
    settings.update(config)
    checker = PropertyChecker(TaskExecutor(map_fn, reduce_fn, combiner_fn), CheckerConfig(**settings))
    return checker.check(get_properties([name])[0])


class TestCorrectJob:
    """A correct job passes every property"""

    def test_all_properties_pass(self, small_config):
        checker = PropertyChecker(TaskExecutor(mapper, reducer), small_config)

        results = checker.check_all(get_properties())

        assert [r.status for r in results] == [CheckStatus.PASSED] * len(results)
        assert all(r.trials_run == small_config.trials for r in results)
        assert all(r.counterexample is None for r in results)

    def test_random_seed_when_not_configured(self):
        checker = PropertyChecker(TaskExecutor(mapper, reducer), CheckerConfig(trials=5))

        result = checker.check(get_properties(['reducer_sum'])[0])

        assert result.passed
        assert isinstance(result.seed, int)


class TestBrokenMappers:
    """Broken mappers are caught and shrunk"""

    def test_mapper_dropping_words_fails_single_word(self):
        result = check('mapper_single_word', map_fn=dropping_mapper)

        assert result.status == CheckStatus.FAILED
        example = result.counterexample
        key, (word, _) = example.value
        assert key == 0
        assert word == 'a'
        assert example.expected == [('a', 1)]
        assert example.actual == []

    def test_lowercasing_mapper_shrinks_to_smallest_uppercase_word(self):
        result = check('mapper_single_word', map_fn=lowercasing_mapper)

        assert not result.passed
        _, (word, _) = result.counterexample.value
        assert word == 'A'

    def test_dropping_mapper_fails_word_count(self):
        result = check('mapper_multi_word_line', map_fn=dropping_mapper)

        assert not result.passed
        _, (line, count) = result.counterexample.value
        assert count == 1
        assert result.counterexample.error.message == "number of mapper pairs"

    def test_mapper_exception_is_reported_as_failure(self):
        result = check('mapper_multi_word_line', map_fn=exploding_mapper)

        assert not result.passed
        error = result.counterexample.error
        assert isinstance(error, UnitUnderTestError)
        assert error.phase == 'map'
        assert isinstance(error.cause, ValueError)

    def test_blank_lines_pass_even_for_exploding_mapper(self):
        assert check('mapper_blank_line', map_fn=exploding_mapper).passed


class TestBrokenReducers:
    """Broken reducers are caught and shrunk"""

    def test_reducer_emitting_zero_for_empty_group(self):
        result = check('reducer_empty_group', reduce_fn=zero_emitting_reducer)

        assert not result.passed
        assert result.counterexample.value == ''
        assert result.counterexample.actual == [('', 0)]

    def test_reducer_emitting_zero_for_empty_counts_fails_reducer_sum(self):
        result = check('reducer_sum', reduce_fn=zero_emitting_reducer, trials=500)

        assert not result.passed
        assert result.counterexample.value == ('', ([], 0))

    def test_off_by_one_reducer(self):
        result = check('reducer_sum', reduce_fn=off_by_one_reducer)

        assert not result.passed
        assert isinstance(result.counterexample.error, PredicateFailure)

    def test_round_trip_catches_broken_combiner(self):
        assert check('map_reduce_round_trip', combiner_fn=doubling_combiner).passed

        result = check('combiner_round_trip', combiner_fn=doubling_combiner)

        assert not result.passed
        records, totals = result.counterexample.value
        assert len(records) == 1
        assert list(totals.values()) == [1]


class TestCheckerBehaviour:
    """Trial scheduling, replay and shrinking switches"""

    def test_single_worker_stops_after_first_failure(self):
        result = check('mapper_blank_line', map_fn=lambda k, v: [('x', 1)], workers=1)

        assert not result.passed
        assert result.trials_run == 1
        assert result.counterexample.trial == 0

    def test_no_shrink_reports_original_input(self):
        result = check('mapper_single_word', map_fn=dropping_mapper, shrink=False)

        example = result.counterexample
        assert example.shrink_steps == 0
        assert example.value == example.original_value

    def test_shrink_step_limit(self):
        result = check('mapper_single_word', map_fn=dropping_mapper, max_shrink_steps=1)

        assert result.counterexample.shrink_steps <= 1

    def test_recorded_seed_replays_failure(self):
        prop = get_properties(['mapper_single_word'])[0]
        checker = PropertyChecker(TaskExecutor(dropping_mapper, reducer),
                                  CheckerConfig(trials=100, seed=7))

        result = checker.check(prop)

        assert checker.replay(prop, result.counterexample.seed) is not None

    def test_same_seed_same_counterexample_with_one_worker(self):
        first = check('mapper_single_word', map_fn=dropping_mapper, workers=1, shrink=False)
        second = check('mapper_single_word', map_fn=dropping_mapper, workers=1, shrink=False)

        assert first.counterexample.value == second.counterexample.value

    def test_generation_error_aborts_the_run(self):
        prop = Property(
            name='bad_bounds',
            description="generator with an empty range",
            generator=gen.choose(5, 1),
            predicate=lambda executor, value: None,
        )
        checker = PropertyChecker(TaskExecutor(mapper, reducer), CheckerConfig(trials=10, seed=1))

        with pytest.raises(GenerationError):
            checker.check(prop)

    def test_progress_callback_sees_every_trial(self):
        seen = []
        lock = threading.Lock()

        def on_progress(name, completed, total):
            with lock:
                seen.append((name, completed, total))

        checker = PropertyChecker(TaskExecutor(mapper, reducer), CheckerConfig(trials=20, seed=3),
                                  progress_callback=on_progress)
        checker.check(get_properties(['reducer_empty_group'])[0])

        assert sorted(c for _, c, _ in seen) == list(range(1, 21))
        assert {(n, t) for n, _, t in seen} == {('reducer_empty_group', 20)}

    def test_metrics_are_collected(self):
        metrics = MetricsCollector()
        checker = PropertyChecker(TaskExecutor(dropping_mapper, reducer),
                                  CheckerConfig(trials=30, seed=5), metrics=metrics)

        checker.check(get_properties(['mapper_single_word'])[0])

        recorded = metrics.get_metrics('mapper_single_word')
        assert recorded.seed == 5
        assert recorded.passed is False
        assert recorded.shrink_steps > 0
        assert recorded.end_rss_bytes > 0


class TestSharedState:
    """Tests for the state shared between trial threads"""

    def test_failure_slot_keeps_first_offer(self):
        slot = FailureSlot()
        first = TrialFailure(1, 11, gen.constant('a')(None), PredicateFailure('x'))
        second = TrialFailure(2, 12, gen.constant('b')(None), PredicateFailure('y'))

        assert not slot.is_set
        assert slot.offer(first)
        assert not slot.offer(second)
        assert slot.failure is first

    def test_failure_slot_single_winner_across_threads(self):
        slot = FailureSlot()
        wins = []
        barrier = threading.Barrier(8)

        def offer(index):
            barrier.wait()
            if slot.offer(TrialFailure(index, index, gen.constant(index)(None), PredicateFailure('x'))):
                wins.append(index)

        threads = [threading.Thread(target=offer, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(wins) == 1
        assert slot.failure.trial == wins[0]

    def test_progress_counter_is_thread_safe(self):
        progress = TrialProgress()

        def bump():
            for _ in range(1000):
                progress.increment()

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert progress.completed == 4000
