from __future__ import annotations

from enum import Enum
from typing import Generic, TypeVar

from .errors import SlotStateError

T = TypeVar("T")


class SlotState(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


class ReportSlot(Generic[T]):
    """Display state of one report (daily or monthly).

    Requests are never cancelled. Several may be in flight at once and the
    last one to settle decides what the slot shows.
    """

    def __init__(self, name: str):
        self.name = name
        self.state = SlotState.EMPTY
        self.value: T | None = None
        self.error: str | None = None
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def begin(self) -> None:
        self._in_flight += 1
        self.state = SlotState.LOADING
        self.error = None

    def resolve(self, value: T) -> None:
        self._settle()
        self.state = SlotState.READY
        self.value = value
        self.error = None

    def fail(self, message: str) -> None:
        # The last good value stays visible next to the error.
        self._settle()
        self.state = SlotState.ERRORED
        self.error = message

    def reset(self) -> None:
        # A pending request will still settle the slot, so it stays loading.
        if self._in_flight:
            self.value = None
            self.error = None
            return
        self.state = SlotState.EMPTY
        self.value = None
        self.error = None

    def _settle(self) -> None:
        if self._in_flight == 0:
            raise SlotStateError(f"{self.name} slot has no request in flight")
        self._in_flight -= 1

    def __repr__(self) -> str:
        return f"ReportSlot({self.name!r}, state={self.state.value}, in_flight={self._in_flight})"
