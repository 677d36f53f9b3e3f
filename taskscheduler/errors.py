from __future__ import annotations


class TaskSchedulerError(Exception):
    pass


class InvalidInput(TaskSchedulerError, ValueError):
    """
    Malformed task data: negative or non-finite cost, priority outside 1..5,
    unparsable deadline, unknown algorithm name.
    """
