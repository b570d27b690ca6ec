from __future__ import annotations
from typing import Any, Iterator, Optional
from dataclasses import dataclass
from rcgraph.rc import Drop, Rc
from rcgraph.ref_cell import RefCell

# Cons lists built from Rc.
#
# `ConsList` shares tails: several lists can point at the same tail, which lives as long as
# the last list using it. Heads may themselves be `Rc[RefCell[...]]` so that every list
# sharing a head sees mutations made through any of them.
#
# `CellList` keeps its tail in a RefCell so it can be rewired after construction. Rewiring
# the tail of a list to a list that points back at it creates a strong cycle: neither is
# ever dropped.


@dataclass(eq=False)
class ConsList(Drop):
    tag: int
    head: Any = None
    tail: Optional[Rc] = None

    CONS = 1
    NIL = 2

    @classmethod
    def Cons(cls, head, tail: Rc) -> ConsList:
        return cls(cls.CONS, head, tail)

    @classmethod
    def Nil(cls) -> ConsList:
        return cls(cls.NIL)

    def is_nil(self) -> bool:
        return self.tag == ConsList.NIL

    def __iter__(self) -> Iterator[Any]:
        current = self
        while current.tag == ConsList.CONS:
            yield current.head
            current = current.tail.value

    def drop(self):
        if isinstance(self.head, Rc):
            self.head.drop()
        if self.tail is not None:
            self.tail.drop()


@dataclass(eq=False)
class CellList(Drop):
    tag: int
    head: int = 0
    tail: Optional[RefCell] = None  # RefCell[Rc[CellList]]

    CONS = 1
    NIL = 2

    @classmethod
    def Cons(cls, head: int, tail: Rc) -> CellList:
        return cls(cls.CONS, head, RefCell(tail))

    @classmethod
    def Nil(cls) -> CellList:
        return cls(cls.NIL)

    def next(self) -> Optional[RefCell]:
        if self.tag == CellList.CONS:
            return self.tail
        return None

    def drop(self):
        if self.tail is not None:
            self.tail.take().drop()


# Points the tail of `rc_list` at `target`, releasing the tail it held before.
def set_tail(rc_list: Rc, target: Rc):
    link = rc_list.value.next()
    if link is None:
        raise ValueError("Nil has no tail")
    link.replace(target.clone()).drop()
