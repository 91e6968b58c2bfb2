import logging
from collections.abc import Sequence
from itertools import cycle, islice
from typing import TypeVar

from .errors import PlanningError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def plan(entries: Sequence[T], total: int) -> list[T]:
    """
    Expand dataset entries into exactly ``total`` work items.

    Longer datasets are truncated to their first ``total`` entries; shorter
    ones are repeated cyclically, so item ``i`` is ``entries[i % len(entries)]``.
    """
    if total < 0:
        raise PlanningError(f"total must be >= 0, got {total}")
    if not entries:
        raise PlanningError("Empty dataset: a run needs at least one request entry")

    if len(entries) >= total:
        planned = list(entries[:total])
    else:
        planned = list(islice(cycle(entries), total))
        logger.debug(f"Cycling {len(entries)} entries to reach {total} requests")
    return planned
