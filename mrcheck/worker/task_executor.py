"""
TaskExecutor, runs the job under test on single inputs.

The map and reduce functions are treated as synchronous, side-effect-free
calls: one input in, a list of (word, count) pairs out. Anything the job
raises, or emits in the wrong shape, is reported as a UnitUnderTestError.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional

from mrcheck.common.errors import UnitUnderTestError
from mrcheck.common.records import (
    Group,
    Record,
    WordCountPair,
    make_group,
    make_pair,
    pair_from_output,
)
from mrcheck.worker.function_loader import FunctionLoader

logger = logging.getLogger(__name__)


class TaskExecutor:
    """Calls the map, reduce and combiner functions of one job"""

    def __init__(self, map_fn: Callable, reduce_fn: Callable,
                 combiner_fn: Optional[Callable] = None):
        self.map_fn = map_fn
        self.reduce_fn = reduce_fn
        self.combiner_fn = combiner_fn

    @classmethod
    def from_job_file(cls, job_file_path: str) -> 'TaskExecutor':
        """
        Build an executor from a job file

        Raises:
            FileNotFoundError: If the job file doesn't exist
            AttributeError: If the job file lacks a map or reduce function
        """
        loader = FunctionLoader(job_file_path)
        map_fn = loader.get_map_function()
        reduce_fn = loader.get_reduce_function()
        return cls(map_fn, reduce_fn, loader.get_combiner_function())

    def execute_map(self, record: Record) -> List[WordCountPair]:
        """Run the map function on one record"""
        try:
            return [pair_from_output(item) for item in self.map_fn(record.key, record.value)]
        except Exception as e:
            logger.debug(f"Map failed on record {record!r}: {e}")
            raise UnitUnderTestError('map', f"{type(e).__name__}: {e}", e) from e

    def execute_reduce(self, group: Group) -> List[WordCountPair]:
        """Run the reduce function on one group"""
        return self._run_reducer('reduce', self.reduce_fn, group)

    def execute_combine(self, group: Group) -> List[WordCountPair]:
        """Run the combiner (or the reducer when the job has none) on one group"""
        combiner = self.combiner_fn if self.combiner_fn is not None else self.reduce_fn
        return self._run_reducer('combine', combiner, group)

    def _run_reducer(self, phase: str, func: Callable, group: Group) -> List[WordCountPair]:
        try:
            result = func(group.word, list(group.counts))
            return self._normalize_reduce_output(group.word, result)
        except Exception as e:
            logger.debug(f"{phase} failed on group {group!r}: {e}")
            raise UnitUnderTestError(phase, f"{type(e).__name__}: {e}", e) from e

    @staticmethod
    def _normalize_reduce_output(key: str, result) -> List[WordCountPair]:
        """
        Reduce functions may yield pairs, return a bare count, or return None
        """
        if result is None:
            return []
        if isinstance(result, int) and not isinstance(result, bool):
            return [make_pair(key, result)]
        return [pair_from_output(item) for item in result]

    @staticmethod
    def shuffle(pairs: Iterable[WordCountPair]) -> List[Group]:
        """Group pairs by word, sorted by word"""
        key_groups: Dict[str, List[int]] = defaultdict(list)
        for pair in pairs:
            key_groups[pair.word].append(pair.count)
        return [make_group(word, key_groups[word]) for word in sorted(key_groups)]

    def execute_job(self, records: Iterable[Record], use_combiner: bool = False) -> List[WordCountPair]:
        """
        Run map, optional combine, shuffle and reduce over all records in-process

        Args:
            records: Mapper inputs
            use_combiner: Apply the combiner to each record's map output before the shuffle

        Returns:
            Reducer output, in word order
        """
        intermediate: List[WordCountPair] = []
        for record in records:
            mapped = self.execute_map(record)
            if use_combiner:
                for group in self.shuffle(mapped):
                    intermediate.extend(self.execute_combine(group))
            else:
                intermediate.extend(mapped)

        results: List[WordCountPair] = []
        for group in self.shuffle(intermediate):
            results.extend(self.execute_reduce(group))
        logger.debug(f"Job produced {len(results)} pairs from {len(intermediate)} intermediate pairs")
        return results
