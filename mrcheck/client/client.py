"""
Command line entry point: check a word-count job's properties.
"""

import argparse
import dataclasses
import logging
import sys
import threading

from mrcheck.client.monitoring import (
    format_progress_bar,
    format_result,
    format_summary,
    show_resource_usage,
)
from mrcheck.common.config import DEFAULT_JOB_FILE, CheckerConfig
from mrcheck.common.errors import GenerationError
from mrcheck.coordinator.metrics import MetricsCollector
from mrcheck.coordinator.properties import WORD_COUNT_PROPERTIES, get_properties
from mrcheck.coordinator.property_checker import PropertyChecker
from mrcheck.worker.task_executor import TaskExecutor

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2


def _progress_printer():
    lock = threading.Lock()

    def show(name, completed, total):
        with lock:
            sys.stderr.write(f"\r{name}: {format_progress_bar(completed, total)}")
            sys.stderr.flush()
    return show


def _end_progress_line():
    # A failing property stops before its bar reaches the total
    sys.stderr.write("\n")
    sys.stderr.flush()


def check_job(args) -> int:
    """Run the selected properties against a job file."""
    overrides = {}
    if args.trials is not None:
        overrides['trials'] = args.trials
    if args.workers is not None:
        overrides['workers'] = args.workers
    if args.seed is not None:
        overrides['seed'] = args.seed
    if args.no_shrink:
        overrides['shrink'] = False
    try:
        config = dataclasses.replace(CheckerConfig.from_env(), **overrides)
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        return EXIT_ERROR

    try:
        props = get_properties(args.property or None)
    except KeyError as e:
        print(f"Error: {e.args[0]}")
        return EXIT_ERROR

    try:
        executor = TaskExecutor.from_job_file(args.job_file)
    except (OSError, ImportError, AttributeError) as e:
        print(f"Error loading job file {args.job_file}: {e}")
        return EXIT_ERROR

    metrics = MetricsCollector()
    checker = PropertyChecker(
        executor, config, metrics=metrics,
        progress_callback=_progress_printer() if args.progress else None)

    results = []
    for prop in props:
        try:
            result = checker.check(prop)
        except GenerationError as e:
            print(f"! {prop.name}: generator error: {e}")
            return EXIT_ERROR
        finally:
            if args.progress:
                _end_progress_line()
        print(format_result(result))
        results.append(result)

    print(format_summary(results))
    if args.resources:
        show_resource_usage(metrics.all_metrics())
    if args.metrics_file:
        metrics.save_to_file(args.metrics_file)
        logger.info(f"Wrote metrics to {args.metrics_file}")

    return EXIT_OK if all(r.passed for r in results) else EXIT_FAILED


def list_properties(args) -> int:
    """List registered properties."""
    for prop in WORD_COUNT_PROPERTIES:
        print(f"{prop.name}")
        print(f"  {prop.description}")
    return EXIT_OK


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Property checks for word-count map/reduce jobs")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    check_parser = subparsers.add_parser("check", help="Check a job's properties")
    check_parser.add_argument("--job-file", default=DEFAULT_JOB_FILE,
                              help="Python file with map/reduce functions")
    check_parser.add_argument("--trials", "-n", type=int,
                              help="Trials per property (default 100)")
    check_parser.add_argument("--workers", "-w", type=int,
                              help="Worker threads (default 4)")
    check_parser.add_argument("--seed", "-s", type=int,
                              help="Base random seed")
    check_parser.add_argument("--no-shrink", action="store_true",
                              help="Report failing inputs without shrinking them")
    check_parser.add_argument("--property", "-p", action="append",
                              help="Property to check, repeatable (default all)")
    check_parser.add_argument("--progress", action="store_true",
                              help="Show a progress bar per property")
    check_parser.add_argument("--resources", "-r", action="store_true",
                              help="Show resource usage")
    check_parser.add_argument("--metrics-file",
                              help="Write metrics as JSON to this path")

    subparsers.add_parser("list", help="List properties")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.command == "check":
        return check_job(args)
    elif args.command == "list":
        return list_properties(args)
    else:
        parser.print_help()
        return EXIT_ERROR


if __name__ == '__main__':
    sys.exit(main())
