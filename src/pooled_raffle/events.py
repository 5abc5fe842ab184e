from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Tuple, Union

from .journal import Journal
from .project_constants import EVENT_LOG_LIMIT

log = logging.getLogger("events")


@dataclass(frozen=True)
class EntryRecorded:
    accounts: Tuple[str, ...]
    epoch: int


@dataclass(frozen=True)
class Refunded:
    account: str
    slot_index: int
    epoch: int


@dataclass(frozen=True)
class WinnerSelected:
    account: str
    rarity: str
    prize_amount: int
    epoch: int


RaffleEvent = Union[EntryRecorded, Refunded, WinnerSelected]
Subscriber = Callable[[RaffleEvent], None]


class EventLog:
    """
    Record of the most recent events emitted by committed operations, oldest
    dropped first once `limit` is reached.
    Events emitted inside a transaction that later rolls back are discarded,
    and subscribers only hear about an event after the outermost commit.
    """

    def __init__(self, journal: Journal, limit: int = EVENT_LOG_LIMIT) -> None:
        self._journal = journal
        self._events: Deque[RaffleEvent] = deque(maxlen=limit)
        self._subscribers: List[Subscriber] = []

    def subscribe(self, fn: Subscriber) -> None:
        self._subscribers.append(fn)

    def emit(self, event: RaffleEvent) -> None:
        self._journal.append_bounded(self._events, event)
        self._journal.after_commit(lambda: self._deliver(event))

    def _deliver(self, event: RaffleEvent) -> None:
        log.debug("Event: %s", event)
        for fn in self._subscribers:
            try:
                fn(event)
            except Exception:
                log.exception("Subscriber %r failed on %s", fn, event)

    def __iter__(self):
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)

    def of_type(self, kind: type) -> List[RaffleEvent]:
        return [e for e in self._events if isinstance(e, kind)]
