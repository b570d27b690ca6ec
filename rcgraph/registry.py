from __future__ import annotations
from typing import List, Mapping
import logging

logger = logging.getLogger(__name__)


# constants used to name counters
RC_ALLOCATED = "rc.allocated"
RC_VALUE_DROPPED = "rc.value.dropped"
RC_FREED = "rc.freed"
RC_IMPLICIT_DROP = "rc.implicit_drop"

_COUNTER_NAMES = [RC_ALLOCATED, RC_VALUE_DROPPED, RC_FREED, RC_IMPLICIT_DROP]

_counters: Mapping[str, int] = {name: 0 for name in _COUNTER_NAMES}

# Live allocation records, keyed by id(). Insertion order is allocation order.
_live = {}


def register(record) -> None:
    _live[id(record)] = record


def unregister(record) -> None:
    # Records allocated while tracking was off were never registered.
    _live.pop(id(record), None)


def live_allocations() -> List:
    return list(_live.values())


def live_count() -> int:
    return len(_live)


def inc(name: str, by: int = 1) -> None:
    _counters[name] += by


def counter(name: str) -> int:
    return _counters[name]


def reset_counters():
    for name in _COUNTER_NAMES:
        _counters[name] = 0


# Forget every tracked record without touching its counts. Test isolation only: a forgotten
# record that is still referenced keeps working, it just is not listed any more.
def clear():
    if _live:
        logger.debug("[rc] forgetting %d live allocation records", len(_live))
    _live.clear()
