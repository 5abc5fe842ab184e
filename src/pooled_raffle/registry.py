from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import AlreadyVacant, BadPayment, DuplicateEntrant, NotOccupant
from .journal import Journal

log = logging.getLogger("registry")


@dataclass
class Slot:
    index: int
    occupant: Optional[str]  # None = vacant

    @property
    def vacant(self) -> bool:
        return self.occupant is None


class EntrantRegistry:
    """
    Ordered, stably indexed slots for the current epoch.

    Membership is an (epoch, account) -> slot index mapping, so duplicate
    checks are a single lookup however many accounts have ever entered.
    Vacated slots keep their index for the lifetime of the epoch.
    """

    def __init__(self, journal: Journal, entrance_fee: int) -> None:
        if entrance_fee <= 0:
            raise ValueError("Entrance fee must be positive.")
        self._journal = journal
        self.entrance_fee = entrance_fee
        self._epoch = 0
        self._slots: List[Slot] = []
        self._members: Dict[Tuple[int, str], int] = {}
        self._occupied = 0

    @property
    def epoch(self) -> int:
        return self._epoch

    def occupied_count(self) -> int:
        return self._occupied

    def slot_count(self) -> int:
        return len(self._slots)

    def slot(self, index: int) -> Slot:
        return self._slots[index]

    def slots(self) -> List[Slot]:
        return [Slot(s.index, s.occupant) for s in self._slots]

    def occupied(self) -> List[Slot]:
        """Occupied slots in insertion order."""
        return [Slot(s.index, s.occupant) for s in self._slots if not s.vacant]

    def active_index_of(self, account: str) -> Optional[int]:
        return self._members.get((self._epoch, account))

    def check_entry(self, accounts: Sequence[str], payment: int) -> None:
        """Raise if the batch cannot be entered; touches no state."""
        if not accounts:
            raise BadPayment("No accounts to enter.")
        expected = self.entrance_fee * len(accounts)
        if payment != expected:
            raise BadPayment(
                f"Payment {payment} does not match {len(accounts)} x {self.entrance_fee} = {expected}"
            )

        seen = set()
        for account in accounts:
            if account in seen:
                raise DuplicateEntrant(f"{account} appears more than once in the batch")
            if (self._epoch, account) in self._members:
                raise DuplicateEntrant(f"{account} already occupies a slot")
            seen.add(account)

    def append(self, accounts: Sequence[str]) -> List[int]:
        indices: List[int] = []
        for account in accounts:
            index = len(self._slots)
            self._slots.append(Slot(index, account))
            self._journal.record(self._slots.pop)
            self._set_member(account, index)
            indices.append(index)
        self._set_occupied(self._occupied + len(accounts))
        log.debug("Appended slots %s in epoch %d", indices, self._epoch)
        return indices

    def vacate(self, slot_index: int, caller: str) -> str:
        """Mark a slot vacant on behalf of its occupant. Returns the occupant."""
        if slot_index < 0 or slot_index >= len(self._slots):
            raise AlreadyVacant(f"Slot {slot_index} has no occupant")
        slot = self._slots[slot_index]
        if slot.vacant:
            raise AlreadyVacant(f"Slot {slot_index} has no occupant")
        if slot.occupant != caller:
            raise NotOccupant(f"{caller} does not occupy slot {slot_index}")

        occupant = slot.occupant
        slot.occupant = None
        self._journal.record(lambda: setattr(slot, "occupant", occupant))
        self._drop_member(occupant)
        self._set_occupied(self._occupied - 1)
        log.debug("Vacated slot %d (%s) in epoch %d", slot_index, occupant, self._epoch)
        return occupant

    def advance_epoch(self) -> List[Slot]:
        """Archive the current slots and start an empty epoch. Returns the archive."""
        prev_epoch, prev_slots = self._epoch, self._slots
        prev_members, prev_occupied = self._members, self._occupied

        self._epoch += 1
        self._slots = []
        self._members = {}
        self._occupied = 0

        def undo() -> None:
            self._epoch = prev_epoch
            self._slots = prev_slots
            self._members = prev_members
            self._occupied = prev_occupied

        self._journal.record(undo)
        return prev_slots

    def _set_member(self, account: str, index: int) -> None:
        key = (self._epoch, account)
        self._members[key] = index
        self._journal.record(lambda: self._members.pop(key, None))

    def _drop_member(self, account: str) -> None:
        key = (self._epoch, account)
        index = self._members.pop(key)
        self._journal.record(lambda: self._members.__setitem__(key, index))

    def _set_occupied(self, value: int) -> None:
        prev = self._occupied
        self._occupied = value
        self._journal.record(lambda: setattr(self, "_occupied", prev))
