"""
Metrics collection for property checker runs.
"""

import json
import time
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

import psutil


@dataclass
class CheckMetrics:
    """Metrics for checking a single property."""

    property_name: str
    seed: int
    start_time: float
    end_time: float = 0.0
    trials_run: int = 0
    shrink_steps: int = 0
    passed: bool = False
    start_rss_bytes: int = 0
    end_rss_bytes: int = 0

    @property
    def total_time_seconds(self) -> float:
        """Total check time in seconds."""
        return self.end_time - self.start_time

    @property
    def trials_per_second(self) -> float:
        elapsed = self.total_time_seconds
        return self.trials_run / elapsed if elapsed > 0 else 0.0

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        data = asdict(self)
        data['total_time_seconds'] = self.total_time_seconds
        return data


class MetricsCollector:
    """Collects metrics for every property checked in one run."""

    def __init__(self):
        self.property_metrics: Dict[str, CheckMetrics] = {}
        self.process = psutil.Process()

    def get_memory_usage(self) -> int:
        """Current resident memory of this process in bytes."""
        return self.process.memory_info().rss

    def start_property(self, property_name: str, seed: int):
        self.property_metrics[property_name] = CheckMetrics(
            property_name=property_name,
            seed=seed,
            start_time=time.time(),
            start_rss_bytes=self.get_memory_usage(),
        )

    def finish_property(self, property_name: str, trials_run: int, passed: bool,
                        shrink_steps: int = 0):
        metrics = self.property_metrics.get(property_name)
        if metrics is None:
            return
        metrics.end_time = time.time()
        metrics.trials_run = trials_run
        metrics.passed = passed
        metrics.shrink_steps = shrink_steps
        metrics.end_rss_bytes = self.get_memory_usage()

    def get_metrics(self, property_name: str) -> Optional[CheckMetrics]:
        return self.property_metrics.get(property_name)

    def all_metrics(self) -> List[CheckMetrics]:
        return list(self.property_metrics.values())

    def save_to_file(self, filepath: str):
        """Save all collected metrics to a JSON file."""
        with open(filepath, 'w') as f:
            json.dump([m.to_dict() for m in self.all_metrics()], f, indent=2)
