"""
Pytest configuration and shared fixtures
"""

import os
import shutil
import tempfile

import pytest

from mrcheck.common.config import CheckerConfig
from mrcheck.worker.task_executor import TaskExecutor

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def wordcount_job_file():
    """Path to word count example job file"""
    return os.path.join(REPO_ROOT, 'examples', 'wordcount.py')


@pytest.fixture
def wordcount_executor(wordcount_job_file):
    """Executor wrapping the example word count job"""
    return TaskExecutor.from_job_file(wordcount_job_file)


@pytest.fixture
def small_config():
    """Fast, reproducible checker settings"""
    return CheckerConfig(trials=50, workers=2, seed=1234)


@pytest.fixture
def write_job_file(temp_dir):
    """Write a job file with the given source and return its path"""
    def write(source, name='job.py'):
        path = os.path.join(temp_dir, name)
        with open(path, 'w') as f:
            f.write(source)
        return path
    return write
