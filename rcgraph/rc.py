from __future__ import annotations
from typing import Any, List, Optional
from dataclasses import dataclass, field
from rcgraph import registry
import itertools
from rcgraph.config import get_config
from rcgraph.errors import UseAfterDrop
import logging

logger = logging.getLogger(__name__)

"""
/***************************************************************************************
 *
 * Single-threaded reference counting
 *
 *   `Rc` is a shared owning handle to a value stored in an `RcBox` allocation record,
 *   `Weak` a non-owning handle to the same record. The value is destroyed exactly once,
 *   when the strong count goes from 1 to 0, even if weak handles remain. The record is
 *   freed when both counts are 0.
 *
 *   Handles are released by `drop()`, by leaving a `with` block, or by the collector when
 *   the handle object goes away. A handle releases its count at most once.
 *
 **************************************************************************************/
"""


# Values whose class implements Drop have `drop()` called exactly once, when the last strong
# handle to them is released. Typically used to release the handles the value owns.
class Drop:
    def drop(self) -> None:
        pass


_sequence = itertools.count()


# The allocation record shared by all handles to one value. Records compare by identity and
# order by allocation sequence number.
@dataclass(eq=False)
class RcBox:
    value: Any
    strong: int = 1
    weak: int = 0
    value_dropped: bool = False
    freed: bool = False
    seq: int = field(default_factory=lambda: next(_sequence))

    def is_alive(self) -> bool:
        return self.strong > 0

    def __lt__(self, other: RcBox) -> bool:
        return self.seq < other.seq

    def __repr__(self):
        return f"RcBox(seq={self.seq}, strong={self.strong}, weak={self.weak}, value={type(self.value).__name__})"


# Records whose strong count reached 0 and whose values still need destroying. Drained by a
# single loop so that destroying a long chain does not nest one call per link.
_pending: List[RcBox] = []
_draining = False


def _destroy_value(record: RcBox):
    global _draining
    _pending.append(record)
    if _draining:
        return
    _draining = True
    try:
        while _pending:
            current = _pending.pop()
            value = current.value
            current.value = None
            current.value_dropped = True
            registry.inc(registry.RC_VALUE_DROPPED)
            logger.debug("[rc] dropping value %s", type(value).__name__)
            if isinstance(value, Drop):
                value.drop()
            del value
            if current.weak == 0:
                _free(current)
    finally:
        _draining = False


def _free(record: RcBox):
    if record.freed:
        return
    record.freed = True
    registry.unregister(record)
    registry.inc(registry.RC_FREED)


def _release_strong(record: RcBox):
    assert record.strong > 0
    record.strong -= 1
    if record.strong == 0:
        _destroy_value(record)


def _release_weak(record: RcBox):
    assert record.weak > 0
    record.weak -= 1
    if record.weak == 0 and record.value_dropped:
        _free(record)


def _implicit_drop(handle):
    registry.inc(registry.RC_IMPLICIT_DROP)
    if get_config().warn_on_implicit_drop:
        logger.warning("[rc] %s released by the collector without drop()", type(handle).__name__)
    handle.drop()


class Rc:
    def __init__(self, record: RcBox):
        self._record = record

    @classmethod
    def new(cls, value) -> Rc:
        record = RcBox(value)
        registry.inc(registry.RC_ALLOCATED)
        if get_config().track_allocations:
            registry.register(record)
        logger.debug("[rc] allocated %s", type(value).__name__)
        return cls(record)

    def _live_record(self) -> RcBox:
        if self._record is None:
            raise UseAfterDrop("Rc")
        return self._record

    @property
    def record(self) -> RcBox:
        return self._live_record()

    @property
    def value(self):
        return self._live_record().value

    def deref(self):
        return self.value

    def clone(self) -> Rc:
        record = self._live_record()
        record.strong += 1
        return Rc(record)

    def strong_count(self) -> int:
        return self._live_record().strong

    def weak_count(self) -> int:
        return self._live_record().weak

    def downgrade(self) -> Weak:
        record = self._live_record()
        record.weak += 1
        return Weak(record)

    def ptr_eq(self, other: Rc) -> bool:
        return self._live_record() is other._live_record()

    # Moves the value out if this is the only strong handle. The value is not dropped, and
    # weak handles can no longer be upgraded. Returns None, leaving everything as it was,
    # when other strong handles exist.
    def try_unwrap(self) -> Optional[Any]:
        record = self._live_record()
        if record.strong != 1:
            return None
        value = record.value
        self._record = None
        record.strong = 0
        record.value = None
        record.value_dropped = True
        if record.weak == 0:
            _free(record)
        return value

    def is_dropped(self) -> bool:
        return self._record is None

    def drop(self):
        record = self._record
        if record is None:
            return
        self._record = None
        _release_strong(record)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, tb):
        self.drop()
        return False

    def __del__(self):
        if getattr(self, "_record", None) is not None:
            _implicit_drop(self)

    def __repr__(self):
        if self._record is None:
            return "Rc(<dropped>)"
        return f"Rc({self._record.value!r})"


class Weak:
    def __init__(self, record: Optional[RcBox] = None):
        self._record = record

    # A weak handle that points at nothing and can never be upgraded.
    @classmethod
    def new(cls) -> Weak:
        return cls(None)

    def upgrade(self) -> Optional[Rc]:
        record = self._record
        if record is None or record.strong == 0:
            return None
        record.strong += 1
        return Rc(record)

    def clone(self) -> Weak:
        record = self._record
        if record is None:
            return Weak.new()
        record.weak += 1
        return Weak(record)

    def strong_count(self) -> int:
        if self._record is None:
            return 0
        return self._record.strong

    # Like the strong side, reports 0 once no strong handle is left.
    def weak_count(self) -> int:
        if self._record is None or self._record.strong == 0:
            return 0
        return self._record.weak

    def ptr_eq(self, other: Weak) -> bool:
        return self._record is other._record

    def points_to(self, rc: Rc) -> bool:
        return self._record is not None and self._record is rc.record

    def is_empty(self) -> bool:
        return self._record is None

    # A dropped weak handle behaves like an empty one.
    def drop(self):
        record = self._record
        if record is None:
            return
        self._record = None
        _release_weak(record)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, tb):
        self.drop()
        return False

    def __del__(self):
        if getattr(self, "_record", None) is not None:
            _implicit_drop(self)

    def __repr__(self):
        return "(Weak)"
