from __future__ import annotations
from typing import List
from dataclasses import dataclass
from rcgraph.ref_cell import RefCell
import abc
import math

# Tracks a value against a quota and reports through a Messenger.
#
# `Messenger.send` takes a read-only receiver; implementations that need to record what they
# were sent keep that state in a RefCell.

OVER_QUOTA = "Error: You are over your quota!"
URGENT_WARNING = "Urgent warning: You've used up over 90% of your quota!"
WARNING = "Warning: You've used up over 75% of your quota!"


class Messenger(abc.ABC):
    @abc.abstractmethod
    def send(self, msg: str):
        pass


class MockMessenger(Messenger):
    def __init__(self):
        self.sent_messages = RefCell([])

    def send(self, msg: str):
        with self.sent_messages.borrow_mut() as messages:
            messages.v0.append(msg)

    def messages(self) -> List[str]:
        with self.sent_messages.borrow() as messages:
            return list(messages)


# Float division: a zero quota gives inf for any positive value and nan for zero.
def _ratio(value: int, max: int) -> float:
    if max == 0:
        if value == 0:
            return math.nan
        return math.copysign(math.inf, value)
    return value / max


@dataclass
class LimitTracker:
    messenger: Messenger
    value: int
    max: int

    @classmethod
    def new(cls, messenger: Messenger, max: int) -> LimitTracker:
        return cls(messenger, 0, max)

    def set_value(self, value: int):
        self.value = value

        percentage_of_max = _ratio(self.value, self.max)

        if percentage_of_max >= 1.0:
            self.messenger.send(OVER_QUOTA)
        elif percentage_of_max >= 0.9:
            self.messenger.send(URGENT_WARNING)
        elif percentage_of_max >= 0.75:
            self.messenger.send(WARNING)
