from rcgraph.cons import *
from rcgraph.rc import Rc
from rcgraph.ref_cell import RefCell
from rcgraph import registry
import pytest


def test_shared_tail_counts():
    five = Rc.new(ConsList.Cons(5, Rc.new(ConsList.Cons(10, Rc.new(ConsList.Nil())))))
    assert five.strong_count() == 1
    b = ConsList.Cons(3, five.clone())
    assert five.strong_count() == 2
    c = ConsList.Cons(4, five.clone())
    assert five.strong_count() == 3
    c.drop()
    assert five.strong_count() == 2
    assert list(b) == [3, 5, 10]
    assert list(five.value) == [5, 10]
    b.drop()
    five.drop()
    assert registry.live_count() == 0


def test_shared_mutable_head():
    value = Rc.new(RefCell(5))
    a = Rc.new(ConsList.Cons(value.clone(), Rc.new(ConsList.Nil())))
    b = ConsList.Cons(Rc.new(RefCell(6)), a.clone())
    c = ConsList.Cons(Rc.new(RefCell(10)), a.clone())

    with value.value.borrow_mut() as v:
        v.set(v.v0 + 10)

    assert [cell.value.v0 for cell in b] == [6, 15]
    assert [cell.value.v0 for cell in c] == [10, 15]
    b.drop()
    c.drop()
    a.drop()
    assert value.strong_count() == 1
    value.drop()
    assert registry.live_count() == 0


def test_cell_list_next():
    nil = CellList.Nil()
    assert nil.next() is None
    a = Rc.new(CellList.Cons(5, Rc.new(CellList.Nil())))
    link = a.value.next()
    with link.borrow() as tail:
        assert tail.value.tag == CellList.NIL
    with pytest.raises(ValueError):
        set_tail(Rc.new(CellList.Nil()), a)


def test_cell_list_cycle_leaks():
    a = Rc.new(CellList.Cons(5, Rc.new(CellList.Nil())))
    assert a.strong_count() == 1
    b = Rc.new(CellList.Cons(10, a.clone()))
    assert a.strong_count() == 2
    assert b.strong_count() == 1

    set_tail(a, b)
    assert b.strong_count() == 2
    assert a.strong_count() == 2

    # the old Nil tail of `a` was released, the two lists are all that is left
    assert registry.live_count() == 2
    wa = a.downgrade()
    a.drop()
    b.drop()
    # neither list is dropped: each keeps the other alive
    up = wa.upgrade()
    assert up is not None
    assert up.strong_count() == 2
    up.drop()
    assert registry.live_count() == 2
    # a repr of a cycle terminates
    assert "..." in repr(wa.upgrade().value)
