"""Ordered selection strategies for loosely structured pages.

RA markup varies between meetings and over time, so extractors describe
each way of finding candidates as a plain function and try them in order,
keeping the first non-empty result.
"""

import logging
from typing import Any, Callable, Optional, Sequence

logger = logging.getLogger(__name__)

Strategy = Callable[[Any], list]


def first_non_empty(
    strategies: Sequence[Strategy],
    source: Any,
    limit: Optional[int] = None,
) -> list:
    """Apply strategies in order and return the first non-empty result."""
    for strategy in strategies:
        found = strategy(source)
        if found:
            logger.debug(f"{strategy.__name__} matched {len(found)} candidates")
            return found[:limit] if limit is not None else found
    return []
