"""
Checker configuration, read from the environment with CLI overrides
"""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_JOB_FILE = os.getenv('MRCHECK_JOB_FILE', 'examples/wordcount.py')

_FALSE_VALUES = ('0', 'false', 'no', 'off')


@dataclass
class CheckerConfig:
    """Settings for a property checker run"""
    trials: int = 100
    workers: int = 4
    seed: Optional[int] = None
    shrink: bool = True
    max_shrink_steps: int = 1000

    def __post_init__(self):
        if self.trials < 1:
            raise ValueError(f"trials must be positive, got {self.trials}")
        if self.workers < 1:
            raise ValueError(f"workers must be positive, got {self.workers}")
        if self.max_shrink_steps < 0:
            raise ValueError(f"max_shrink_steps must not be negative, got {self.max_shrink_steps}")

    @classmethod
    def from_env(cls, environ=None) -> 'CheckerConfig':
        """
        Build a config from MRCHECK_* environment variables

        Args:
            environ: Mapping to read instead of os.environ

        Raises:
            ValueError: If a variable is not a valid number
        """
        if environ is None:
            environ = os.environ

        seed = environ.get('MRCHECK_SEED')
        return cls(
            trials=int(environ.get('MRCHECK_TRIALS', 100)),
            workers=int(environ.get('MRCHECK_WORKERS', 4)),
            seed=int(seed) if seed else None,
            shrink=environ.get('MRCHECK_SHRINK', '1').lower() not in _FALSE_VALUES,
            max_shrink_steps=int(environ.get('MRCHECK_MAX_SHRINK_STEPS', 1000)),
        )
