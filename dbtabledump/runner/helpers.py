"""
Helper functions for the runner.

- vprint: progress output on stderr, or the log
- timer: elapsed-time generator
"""

import sys
from collections.abc import Generator
from logging import getLogger
from time import monotonic

from .types import ArgType

logger = getLogger(__name__)


def vprint(args: ArgType, *pargs, **pkwargs):
    """
    Conditional print/log based on args settings.

    Args:
        args: ArgType with verbosity and log_rather_than_print settings
        *pargs: Arguments to print/log
        **pkwargs: Keyword arguments passed to print

    Behavior:
        - If verbosity is 0: silent
        - If log_rather_than_print: logs to logger
        - Otherwise: prints to stderr
    """
    if not args.verbosity:
        return
    if args.log_rather_than_print:
        message = " ".join(map(str, pargs)).strip()
        if message:
            logger.info(message)
    else:
        print(*pargs, file=sys.stderr, flush=True, **pkwargs)


def timer() -> Generator[float, None, None]:
    """
    Generator to show time elapsed since the last iteration.

    Yields:
        float: Elapsed time in seconds since last yield

    Example:
        >>> t = timer()
        >>> next(t)  # Initialize
        0.0
        >>> # ... do work ...
        >>> next(t)  # Get elapsed time
        0.523
    """
    last = monotonic()
    while True:
        cur = monotonic()
        yield (cur - last)
        last = cur
