from __future__ import annotations

from enum import Enum

from .errors import NoEntrants, NotReady
from .journal import Journal


class LifecycleState(str, Enum):
    OPEN = "open"
    SETTLING = "settling"
    SETTLED = "settled"


class RaffleLifecycle:
    """Open -> Settling -> Settled, then a fresh Open for the next epoch."""

    def __init__(self, journal: Journal, opened_at: float, min_duration: float) -> None:
        if min_duration < 0:
            raise ValueError("Minimum duration must not be negative.")
        self._journal = journal
        self.min_duration = min_duration
        self._state = LifecycleState.OPEN
        self._opened_at = opened_at

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def opened_at(self) -> float:
        return self._opened_at

    @property
    def settleable_at(self) -> float:
        return self._opened_at + self.min_duration

    def require_open(self) -> None:
        if self._state is not LifecycleState.OPEN:
            raise NotReady(f"Raffle is {self._state.value}, not open.")

    def check_settleable(self, now: float, occupied_count: int) -> None:
        self.require_open()
        if occupied_count < 1:
            raise NoEntrants("Raffle has no entrants.")
        if now - self._opened_at < self.min_duration:
            raise NotReady(
                f"Raffle can settle at {self.settleable_at:.0f}, "
                f"{self.settleable_at - now:.0f}s from now."
            )

    def begin_settling(self) -> None:
        self.require_open()
        self._set_state(LifecycleState.SETTLING)

    def finish(self) -> None:
        if self._state is not LifecycleState.SETTLING:
            raise RuntimeError(f"Cannot finish settlement from {self._state.value} (unexpected).")
        self._set_state(LifecycleState.SETTLED)

    def reopen(self, now: float) -> None:
        if self._state is not LifecycleState.SETTLED:
            raise RuntimeError(f"Cannot reopen from {self._state.value} (unexpected).")
        prev = self._opened_at
        self._opened_at = now
        self._journal.record(lambda: setattr(self, "_opened_at", prev))
        self._set_state(LifecycleState.OPEN)

    def _set_state(self, state: LifecycleState) -> None:
        prev = self._state
        self._state = state
        self._journal.record(lambda: setattr(self, "_state", prev))
