"""
Classic MapReduce word count job.
Counts the occurrences of each whitespace-separated word in the input text.
"""


def map_function(key, value):
    """
    Map function: emit (word, 1) for each word in the line.

    Args:
        key: Line number (unused)
        value: Text line

    Yields:
        (word, 1) tuples
    """
    for word in value.split():
        yield (word, 1)


def reduce_function(key, values):
    """
    Reduce function: sum all counts for a word.

    Args:
        key: Word
        values: List of counts (all 1s from map, or combined counts)

    Yields:
        (word, total_count) tuple, nothing when there are no counts
    """
    total = 0
    seen = False
    for count in values:
        total += count
        seen = True
    if seen:
        yield (key, total)


def combiner_function(key, values):
    """
    Combiner function: pre-aggregate counts locally (same as reduce).
    """
    yield from reduce_function(key, values)
