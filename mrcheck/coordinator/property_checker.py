"""
Property checker.
Runs each property for a number of independent trials on a thread pool,
keeps the first failing trial and shrinks it to a smaller counterexample.
"""

import logging
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional

from mrcheck.common.config import CheckerConfig
from mrcheck.common.errors import GenerationError, MRCheckError, PredicateFailure, UnitUnderTestError
from mrcheck.coordinator.generators import Shrinkable
from mrcheck.coordinator.metrics import MetricsCollector
from mrcheck.coordinator.properties import Property
from mrcheck.worker.task_executor import TaskExecutor

logger = logging.getLogger(__name__)


class CheckStatus(Enum):
    """Outcome of checking one property"""
    PASSED = "passed"
    FAILED = "failed"


@dataclass
class Counterexample:
    """The failing input of a property, after shrinking if enabled"""
    trial: int
    seed: int
    value: Any
    original_value: Any
    error: MRCheckError
    shrink_steps: int = 0

    @property
    def expected(self):
        return self.error.expected if isinstance(self.error, PredicateFailure) else None

    @property
    def actual(self):
        return self.error.actual if isinstance(self.error, PredicateFailure) else None


@dataclass
class CheckResult:
    """Result of checking one property"""
    property_name: str
    status: CheckStatus
    trials_run: int
    seed: int
    counterexample: Optional[Counterexample] = None
    elapsed_seconds: float = 0.0

    @property
    def passed(self) -> bool:
        return self.status == CheckStatus.PASSED


@dataclass
class TrialFailure:
    trial: int
    seed: int
    shrinkable: Shrinkable
    error: MRCheckError


class FailureSlot:
    """Write-once holder for the first failing trial; later offers are dropped"""

    def __init__(self):
        self._lock = threading.Lock()
        self._failure: Optional[TrialFailure] = None

    def offer(self, failure: TrialFailure) -> bool:
        with self._lock:
            if self._failure is not None:
                return False
            self._failure = failure
            return True

    @property
    def failure(self) -> Optional[TrialFailure]:
        with self._lock:
            return self._failure

    @property
    def is_set(self) -> bool:
        return self.failure is not None


class TrialProgress:
    """Count of evaluated trials, shared by all worker threads"""

    def __init__(self):
        self._lock = threading.Lock()
        self._completed = 0

    def increment(self) -> int:
        with self._lock:
            self._completed += 1
            return self._completed

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed


class PropertyChecker:
    """
    Checks properties against one job.

    With more than one worker, which failing trial is reported first can
    differ between runs with the same seed. Every reported failure is a real
    one, and the recorded trial seed replays it exactly.
    """

    def __init__(self, executor: TaskExecutor, config: Optional[CheckerConfig] = None,
                 metrics: Optional[MetricsCollector] = None,
                 progress_callback: Optional[Callable[[str, int, int], None]] = None):
        self.executor = executor
        self.config = config or CheckerConfig()
        self.metrics = metrics
        self.progress_callback = progress_callback

    def _evaluate(self, prop: Property, value: Any) -> Optional[MRCheckError]:
        """Run the predicate once; return the failure, or None if it held"""
        try:
            prop.predicate(self.executor, value)
        except (PredicateFailure, UnitUnderTestError) as e:
            return e
        return None

    def check(self, prop: Property) -> CheckResult:
        """
        Check one property

        Raises:
            GenerationError: If the property's generator fails; the run is aborted
        """
        seed = self.config.seed if self.config.seed is not None else random.randrange(2 ** 32)
        trials = self.config.trials
        slot = FailureSlot()
        progress = TrialProgress()

        logger.info(f"Checking {prop.name}: {trials} trials, {self.config.workers} workers, seed {seed}")
        if self.metrics is not None:
            self.metrics.start_property(prop.name, seed)
        start_time = time.time()

        def run_trial(index: int):
            # Stop picking up new trials once a failure is recorded
            if slot.is_set:
                return
            trial_seed = seed + index
            shrinkable = prop.generator(random.Random(trial_seed))
            error = self._evaluate(prop, shrinkable.value)
            completed = progress.increment()
            if self.progress_callback is not None:
                self.progress_callback(prop.name, completed, trials)
            if error is not None:
                logger.debug(f"{prop.name}: trial {index} failed: {error}")
                slot.offer(TrialFailure(index, trial_seed, shrinkable, error))

        with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
            futures = [pool.submit(run_trial, index) for index in range(trials)]
            try:
                for future in as_completed(futures):
                    future.result()
            except GenerationError as e:
                for future in futures:
                    future.cancel()
                logger.error(f"{prop.name}: generator failed, aborting: {e}")
                raise

        failure = slot.failure
        counterexample = None
        if failure is not None:
            counterexample = self._build_counterexample(prop, failure)
        elapsed = time.time() - start_time

        result = CheckResult(
            property_name=prop.name,
            status=CheckStatus.PASSED if failure is None else CheckStatus.FAILED,
            trials_run=progress.completed,
            seed=seed,
            counterexample=counterexample,
            elapsed_seconds=elapsed,
        )
        if self.metrics is not None:
            self.metrics.finish_property(
                prop.name, trials_run=result.trials_run, passed=result.passed,
                shrink_steps=counterexample.shrink_steps if counterexample else 0)

        if result.passed:
            logger.info(f"{prop.name}: passed {result.trials_run} trials in {elapsed:.2f}s")
        else:
            logger.warning(f"{prop.name}: failed after {result.trials_run} trials: {counterexample.error}")
        return result

    def check_all(self, props: List[Property]) -> List[CheckResult]:
        """Check every property in order"""
        return [self.check(prop) for prop in props]

    def replay(self, prop: Property, trial_seed: int) -> Optional[MRCheckError]:
        """Regenerate the input of one trial and evaluate it again"""
        shrinkable = prop.generator(random.Random(trial_seed))
        return self._evaluate(prop, shrinkable.value)

    def _build_counterexample(self, prop: Property, failure: TrialFailure) -> Counterexample:
        shrinkable, error, steps = failure.shrinkable, failure.error, 0
        if self.config.shrink:
            shrinkable, error, steps = self._shrink(prop, failure)
        return Counterexample(
            trial=failure.trial,
            seed=failure.seed,
            value=shrinkable.value,
            original_value=failure.shrinkable.value,
            error=error,
            shrink_steps=steps,
        )

    def _shrink(self, prop: Property, failure: TrialFailure):
        """
        Greedily move to the first shrink candidate that still fails, until
        no candidate fails or the step limit is reached
        """
        current, error, steps = failure.shrinkable, failure.error, 0
        while steps < self.config.max_shrink_steps:
            for candidate in current.shrinks():
                candidate_error = self._evaluate(prop, candidate.value)
                if candidate_error is not None:
                    current, error = candidate, candidate_error
                    steps += 1
                    break
            else:
                break
        if steps:
            logger.info(f"{prop.name}: shrunk counterexample in {steps} steps")
        return current, error, steps
