"""
Errors raised while checking a map/reduce job
"""

from typing import Any, Optional


class MRCheckError(Exception):
    """Base class for all harness errors"""


class GenerationError(MRCheckError):
    """A generator could not produce a value within its constraints"""


class PredicateFailure(MRCheckError):
    """Output of the job under test did not match the expected result"""

    def __init__(self, message: str, expected: Any = None, actual: Any = None):
        super().__init__(message)
        self.message = message
        self.expected = expected
        self.actual = actual

    def __str__(self):
        return f"{self.message}: expected {self.expected!r}, got {self.actual!r}"


class UnitUnderTestError(MRCheckError):
    """
    The job under test raised, or emitted something that is not a
    (word, count) pair. The original exception is kept as __cause__.
    """

    def __init__(self, phase: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{phase} failed: {message}")
        self.phase = phase
        self.cause = cause
