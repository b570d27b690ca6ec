from __future__ import annotations
from enum import IntEnum
from typing import Any, Optional
from canoser import RustEnum, Uint32
from rcgraph.errors import BorrowError, BorrowMutError, UseAfterDrop

# A mutable memory location with dynamically checked borrow rules.
#
# Any number of `Ref` handles may coexist, or exactly one `RefMut`, never both. Every request
# is checked against the cell's borrow state at the moment it is made, and a refused request
# raises immediately. Handles release their borrow exactly once: when their `with` block exits,
# when `release()` is called, or when the handle object itself is collected.
#
# As context managers the two handles differ: `with cell.borrow() as value` binds the borrowed
# value itself, while `with cell.borrow_mut() as handle` binds the RefMut, since writing goes
# through `handle.set()` or `handle.v0 = ...`.


# Borrow state of a RefCell:
# Unborrowed - no handle is outstanding.
# Shared - `value` read handles are outstanding, value >= 1.
# Exclusive - one write handle is outstanding.
class BorrowState(RustEnum):
    _enums = [
        ('Unborrowed', None),
        ('Shared', Uint32),
        ('Exclusive', None)
    ]

BorrowState_Unborrowed = BorrowState('Unborrowed')
BorrowState_Exclusive = BorrowState('Exclusive')


class BorrowFlag(IntEnum):
    UNUSED = 0
    #READ >= 1
    WRITE = -1


class Ref:
    def __init__(self, cell: RefCell):
        self._cell = cell
        self._released = False

    @property
    def v0(self):
        if self._released:
            raise UseAfterDrop("Ref")
        return self._cell.v0

    @property
    def released(self) -> bool:
        return self._released

    def release(self):
        if not self._released:
            self._released = True
            self._cell.unborrow()

    def __enter__(self):
        return self.v0

    def __exit__(self, exc_type, exc_value, tb):
        self.release()
        return False

    def __del__(self):
        if not getattr(self, "_released", True):
            self.release()

    def __repr__(self):
        if self._released:
            return "Ref(<released>)"
        return f"Ref({self._cell.v0!r})"


class RefMut:
    def __init__(self, cell: RefCell):
        self.cell = cell
        self._released = False

    @property
    def v0(self):
        if self._released:
            raise UseAfterDrop("RefMut")
        return self.cell.v0

    @v0.setter
    def v0(self, value):
        self.set(value)

    @property
    def released(self) -> bool:
        return self._released

    def set(self, value):
        if self._released:
            raise UseAfterDrop("RefMut")
        self.cell.check_value(value)
        self.cell.v0 = value

    def release(self):
        if not self._released:
            self._released = True
            self.cell.unborrow_mut()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, tb):
        self.release()
        return False

    def __del__(self):
        if not getattr(self, "_released", True):
            self.release()

    def __repr__(self):
        if self._released:
            return "RefMut(<released>)"
        return f"RefMut({self.cell.v0!r})"


class RefCell:
    def __init__(self, obj):
        self.check_value(obj)
        self.v0 = obj
        self.state = BorrowState_Unborrowed

    # Subclasses restrict what the cell may hold by raising TypeError here.
    @classmethod
    def check_value(cls, value):
        pass

    @property
    def flag(self) -> int:
        if self.state.Exclusive:
            return BorrowFlag.WRITE
        elif self.state.Shared:
            return self.state.value
        else:
            return BorrowFlag.UNUSED

    def into_inner(self):
        if not self.state.Unborrowed:
            raise BorrowMutError(self.state)
        return self.v0

    def borrow(self) -> Ref:
        if self.state.Exclusive:
            raise BorrowError(self.state)
        if self.state.Shared:
            self.state = BorrowState('Shared', self.state.value + 1)
        else:
            self.state = BorrowState('Shared', 1)
        return Ref(self)

    def try_borrow(self) -> Optional[Ref]:
        if self.state.Exclusive:
            return None
        return self.borrow()

    def unborrow(self):
        assert self.state.Shared
        count = self.state.value - 1
        if count:
            self.state = BorrowState('Shared', count)
        else:
            self.state = BorrowState_Unborrowed

    def borrow_mut(self) -> RefMut:
        if not self.state.Unborrowed:
            raise BorrowMutError(self.state)
        self.state = BorrowState_Exclusive
        return RefMut(self)

    def try_borrow_mut(self) -> Optional[RefMut]:
        if not self.state.Unborrowed:
            return None
        return self.borrow_mut()

    def borrow_mut_set(self, value):
        with self.borrow_mut() as refmut:
            refmut.set(value)

    def replace(self, value) -> Any:
        with self.borrow_mut() as refmut:
            old = refmut.v0
            refmut.set(value)
        return old

    def take(self, default=None) -> Any:
        return self.replace(default)

    def unborrow_mut(self):
        assert self.state.Exclusive
        self.state = BorrowState_Unborrowed

    def __repr__(self):
        if self.state.Exclusive:
            return "RefCell { value: <borrowed> }"
        return f"RefCell {{ value: {self.v0!r} }}"
