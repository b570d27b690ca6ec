from rcgraph.ref_cell import *
from rcgraph.errors import BorrowConflict, BorrowError, BorrowMutError, UseAfterDrop
import pytest


def test_refcell():
    x = ['a', 'b', 'c']
    refcell = RefCell(x)
    y = refcell.into_inner()
    assert y == x
    b1 = refcell.borrow()
    b2 = refcell.borrow()
    assert refcell.flag == 2
    assert refcell.state.Shared
    assert refcell.state.value == 2
    assert b1.v0 == b2.v0
    with pytest.raises(BorrowMutError):
        refcell.borrow_mut()
    del b1
    assert refcell.flag == 1
    del b2
    assert refcell.flag == 0
    assert refcell.state.Unborrowed
    def lambda0():
        mb1 = refcell.borrow_mut()
        assert refcell.flag == BorrowFlag.WRITE
        assert refcell.state.Exclusive
        assert mb1.v0 == x
        mb1.v0 = "change through handle"
        assert refcell.v0 == "change through handle"
        mb1.set(x)
        with pytest.raises(BorrowMutError):
            refcell.borrow_mut()
        with pytest.raises(BorrowError):
            refcell.borrow()
    lambda0()
    lambda0()
    assert refcell.flag == 0
    refcell.borrow() #borrow, and then throw the return value, so borrow returned.
    assert refcell.flag == 0


def test_any_number_of_readers():
    refcell = RefCell(5)
    handles = [refcell.borrow() for _ in range(10)]
    assert refcell.flag == 10
    assert all(h.v0 == 5 for h in handles)
    for h in handles:
        h.release()
    assert refcell.state.Unborrowed


def test_conflicts_are_borrow_conflicts():
    refcell = RefCell([])
    with refcell.borrow():
        with pytest.raises(BorrowConflict) as excinfo:
            refcell.borrow_mut()
        assert excinfo.value.state.Shared
    with refcell.borrow_mut():
        with pytest.raises(BorrowConflict):
            refcell.borrow()
        with pytest.raises(BorrowConflict):
            refcell.borrow_mut()


def test_write_then_read_after_release():
    refcell = RefCell([1, 2])
    w = refcell.borrow_mut()
    with pytest.raises(BorrowError):
        refcell.borrow()
    w.release()
    with refcell.borrow() as items:
        assert items == [1, 2]


def test_release_on_exception():
    refcell = RefCell([])
    with pytest.raises(KeyError):
        with refcell.borrow_mut() as items:
            items.v0.append(1)
            raise KeyError("boom")
    assert refcell.state.Unborrowed
    assert refcell.v0 == [1]

    def early_return():
        with refcell.borrow() as items:
            for item in items:
                return item
    assert early_return() == 1
    assert refcell.state.Unborrowed


def test_release_is_idempotent():
    refcell = RefCell(1)
    r = refcell.borrow()
    r.release()
    r.release()
    assert refcell.flag == 0
    assert r.released
    with pytest.raises(UseAfterDrop):
        r.v0
    w = refcell.borrow_mut()
    w.release()
    w.release()
    assert refcell.flag == 0
    with pytest.raises(UseAfterDrop):
        w.set(2)


def test_try_borrow():
    refcell = RefCell("x")
    w = refcell.try_borrow_mut()
    assert w is not None
    assert refcell.try_borrow() is None
    assert refcell.try_borrow_mut() is None
    w.release()
    r = refcell.try_borrow()
    assert r.v0 == "x"
    assert refcell.try_borrow_mut() is None
    r.release()


def test_replace_take_and_set():
    refcell = RefCell(1)
    assert refcell.replace(2) == 1
    refcell.borrow_mut_set(3)
    assert refcell.v0 == 3
    assert refcell.take() == 3
    assert refcell.v0 is None
    assert refcell.take(default=[]) is None
    assert refcell.v0 == []
    with refcell.borrow():
        with pytest.raises(BorrowMutError):
            refcell.replace(4)
        with pytest.raises(BorrowMutError):
            refcell.into_inner()


def test_repr():
    refcell = RefCell(5)
    assert repr(refcell) == "RefCell { value: 5 }"
    with refcell.borrow_mut():
        assert repr(refcell) == "RefCell { value: <borrowed> }"


def test_check_value():
    class IntCell(RefCell):
        @classmethod
        def check_value(cls, value):
            if not isinstance(value, int):
                raise TypeError(value)

    with pytest.raises(TypeError):
        IntCell("a")
    cell = IntCell(1)
    with pytest.raises(TypeError):
        cell.replace("b")
    assert cell.v0 == 1
    assert cell.state.Unborrowed


def test_with_binds_value_for_read_and_handle_for_write():
    cell = RefCell([1])
    with cell.borrow() as value:
        assert value is cell.v0
    with cell.borrow_mut() as handle:
        assert isinstance(handle, RefMut)
        handle.v0 = [2]
    assert cell.v0 == [2]
    assert cell.state.Unborrowed
