"""Report formatting for property checker runs."""

from typing import List

from mrcheck.common.errors import PredicateFailure, UnitUnderTestError
from mrcheck.coordinator.metrics import CheckMetrics
from mrcheck.coordinator.property_checker import CheckResult


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human readable string."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds / 60)
    seconds = seconds % 60
    if minutes < 60:
        return f"{minutes}m {seconds:.1f}s"
    hours = int(minutes / 60)
    minutes = minutes % 60
    return f"{hours}h {minutes}m {seconds:.1f}s"


def format_progress_bar(completed: int, total: int, width: int = 40) -> str:
    """Create a progress bar string."""
    percentage = (completed / total) if total > 0 else 0
    filled = int(width * percentage)
    bar = "█" * filled + "░" * (width - filled)
    return f"[{bar}] {percentage:.1%}"


def format_result(result: CheckResult) -> str:
    """One line for a passing property, a counterexample report for a failing one."""
    if result.passed:
        return (f"+ {result.property_name}: OK, passed {result.trials_run} trials "
                f"in {format_duration(result.elapsed_seconds)}")

    example = result.counterexample
    lines = [
        f"! {result.property_name}: Falsified after {result.trials_run} trials (seed {result.seed})",
        f"  Trial: {example.trial} (replay seed {example.seed})",
        f"  Input: {example.value!r}",
    ]
    if example.shrink_steps:
        lines.append(f"  Shrunk from: {example.original_value!r} ({example.shrink_steps} steps)")

    error = example.error
    if isinstance(error, PredicateFailure):
        lines.append(f"  Check: {error.message}")
        lines.append(f"  Expected: {error.expected!r}")
        lines.append(f"  Actual: {error.actual!r}")
    elif isinstance(error, UnitUnderTestError):
        lines.append(f"  Job raised during {error.phase}: {error.cause!r}")
    else:
        lines.append(f"  Error: {error}")
    return "\n".join(lines)


def format_summary(results: List[CheckResult]) -> str:
    failed = [r.property_name for r in results if not r.passed]
    if not failed:
        return f"All {len(results)} properties passed"
    return f"{len(failed)} of {len(results)} properties failed: {', '.join(failed)}"


def show_resource_usage(metrics: List[CheckMetrics]):
    """Print time and memory usage for each checked property."""
    print("\nResource usage:")
    for m in metrics:
        print(f"\n  {m.property_name}:")
        print(f"    Time: {format_duration(m.total_time_seconds)}")
        print(f"    Trials/s: {m.trials_per_second:.1f}")
        print(f"    Shrink steps: {m.shrink_steps}")
        print(f"    Memory: {m.end_rss_bytes / (1024 * 1024):.1f} MB "
              f"(delta {(m.end_rss_bytes - m.start_rss_bytes) / (1024 * 1024):+.1f} MB)")
