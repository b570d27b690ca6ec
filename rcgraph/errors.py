from __future__ import annotations
from typing import Any
from dataclasses import dataclass


class RcGraphError(Exception):
    pass


# Raised at the point of an illegal `borrow` / `borrow_mut`. The caller has to release the
# outstanding handle before trying again.
@dataclass
class BorrowConflict(RcGraphError):
    state: Any
    message: str

    def __init__(self, state, message: str = None):
        self.state = state
        if message is None:
            message = f"already borrowed: {state.enum_name}"
        self.message = message
        super().__init__(message)

    def __str__(self):
        return self.message


# The value is currently mutably borrowed.
class BorrowError(BorrowConflict):
    pass


# The value is currently borrowed, shared or exclusive.
class BorrowMutError(BorrowConflict):
    pass


# A handle was used after its own drop(). The compiler of an ownership-checked language would
# have rejected this as a use after move.
@dataclass
class UseAfterDrop(RcGraphError):
    handle: str

    def __init__(self, handle: str):
        self.handle = handle
        super().__init__(f"{handle} used after drop")


# Raised when linking two nodes would let them own each other.
class CycleError(RcGraphError):
    pass
