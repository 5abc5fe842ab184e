from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional, Sequence, Tuple

from .accounts import normalize_account, normalize_accounts
from .draw import Rarity, select_winner, split_pot, to_tokens
from .errors import InvalidAccount, MintFailed, RaffleError, RandomnessUnavailable, Unauthorized
from .events import EntryRecorded, EventLog, Refunded, WinnerSelected
from .journal import Journal
from .ledger import FundLedger, RecipientHook
from .lifecycle import LifecycleState, RaffleLifecycle
from .minter import CollectibleMinter
from .project_constants import EVENT_LOG_LIMIT, HISTORY_LIMIT
from .randomness import RandomnessSource
from .registry import EntrantRegistry, Slot

log = logging.getLogger("raffle")

Clock = Callable[[], float]


@dataclass(frozen=True)
class SettlementOutcome:
    epoch: int
    winner: str
    winner_slot: int
    rarity: Rarity
    rarity_roll: int
    token_id: int
    entrance_fee: int
    total_collected: int
    prize: int
    operator_fee: int
    operator_account: str
    seed: str
    seed_source: str
    seed_hash_hex: str
    seed_int: int
    opened_at: float
    settled_at: float
    # Every slot of the settled epoch, vacant ones included, in index order.
    slots: Tuple[Slot, ...]


class Raffle:
    """
    One pooled-entry raffle.

    Every public operation runs as a single transaction: it either completes
    or raises with no state changed. State is always fully updated before
    value leaves the raffle, so a recipient that calls back in during a
    transfer sees the post-operation state.
    """

    def __init__(
        self,
        entrance_fee: int,
        min_duration: float,
        operator_account: str,
        randomness: RandomnessSource,
        minter: CollectibleMinter,
        clock: Clock = time.time,
        opened_at: Optional[float] = None,
        history_limit: int = HISTORY_LIMIT,
        event_limit: int = EVENT_LOG_LIMIT,
    ) -> None:
        self._journal = Journal()
        self._clock = clock
        self.operator_account = normalize_account(operator_account)
        self.randomness = randomness
        self.minter = minter

        self.registry = EntrantRegistry(self._journal, entrance_fee)
        self.ledger = FundLedger(self._journal)
        self.lifecycle = RaffleLifecycle(
            self._journal,
            opened_at=clock() if opened_at is None else opened_at,
            min_duration=min_duration,
        )
        self.events = EventLog(self._journal, limit=event_limit)

        self._previous_winner: Optional[str] = None
        self._previous_rarity: Optional[Rarity] = None
        # Most recent settlements only; callers archive the returned outcomes.
        self._history: Deque[SettlementOutcome] = deque(maxlen=history_limit)

    # -- read side ------------------------------------------------------

    @property
    def entrance_fee(self) -> int:
        return self.registry.entrance_fee

    @property
    def epoch(self) -> int:
        return self.registry.epoch

    @property
    def state(self) -> LifecycleState:
        return self.lifecycle.state

    @property
    def opened_at(self) -> float:
        return self.lifecycle.opened_at

    @property
    def previous_winner(self) -> Optional[str]:
        return self._previous_winner

    @property
    def previous_rarity(self) -> Optional[Rarity]:
        return self._previous_rarity

    @property
    def history(self) -> List[SettlementOutcome]:
        return list(self._history)

    def total_collected(self) -> int:
        return self.ledger.collected

    def occupied_count(self) -> int:
        return self.registry.occupied_count()

    def active_index_of(self, account: str) -> Optional[int]:
        try:
            account = normalize_account(account)
        except InvalidAccount:
            return None
        return self.registry.active_index_of(account)

    def register_recipient(self, account: str, hook: RecipientHook) -> None:
        self.ledger.register_recipient(normalize_account(account), hook)

    # -- operations -----------------------------------------------------

    def enter(self, accounts: Sequence[str], payment: int) -> List[int]:
        """Claim one slot per account. Returns the new slot indices."""
        with self._journal.transaction("enter"):
            self.lifecycle.require_open()
            batch = normalize_accounts(accounts)
            self.registry.check_entry(batch, payment)
            indices = self.registry.append(batch)
            self.ledger.deposit(payment)
            self.events.emit(EntryRecorded(tuple(batch), self.epoch))

        log.info("Entered %d account(s) into epoch %d, slots %s", len(batch), self.epoch, indices)
        return indices

    def refund(self, slot_index: int, caller: str) -> None:
        with self._journal.transaction("refund"):
            self.lifecycle.require_open()
            account = self.registry.vacate(slot_index, normalize_account(caller))
            # Slot is vacant and membership dropped before any value moves.
            self.ledger.transfer(account, self.entrance_fee)
            self.events.emit(Refunded(account, slot_index, self.epoch))

        log.info("Refunded slot %d to %s", slot_index, account)

    def request_settlement(self) -> SettlementOutcome:
        if self._journal.active:
            raise Unauthorized("Settlement cannot be requested from inside another raffle operation.")

        with self._journal.transaction("settlement"):
            now = self._clock()
            self.lifecycle.check_settleable(now, self.occupied_count())

            seed = self._get_seed()
            occupied = self.registry.occupied()
            selection = select_winner(occupied, seed)

            total = self.ledger.collected
            prize, operator_fee = split_pot(total)
            epoch = self.epoch
            opened_at = self.opened_at

            # Bookkeeping first: a recipient calling back in finds the raffle
            # settling under a new epoch with no entrants.
            self._record_winner(selection.winner, selection.rarity)
            self.lifecycle.begin_settling()
            archived = self.registry.advance_epoch()

            self.ledger.transfer(selection.winner, prize)
            self.ledger.transfer(self.operator_account, operator_fee)
            token_id = self._mint(selection.winner, selection.rarity)

            self.events.emit(WinnerSelected(selection.winner, selection.rarity.value, prize, epoch))
            self.lifecycle.finish()

            outcome = SettlementOutcome(
                epoch=epoch,
                winner=selection.winner,
                winner_slot=selection.winner_slot,
                rarity=selection.rarity,
                rarity_roll=selection.rarity_roll,
                token_id=token_id,
                entrance_fee=self.entrance_fee,
                total_collected=total,
                prize=prize,
                operator_fee=operator_fee,
                operator_account=self.operator_account,
                seed=seed,
                seed_source=self.randomness.describe(),
                seed_hash_hex=selection.seed_hash_hex,
                seed_int=selection.seed_int,
                opened_at=opened_at,
                settled_at=now,
                slots=tuple(Slot(s.index, s.occupant) for s in archived),
            )
            self._journal.append_bounded(self._history, outcome)

            self.lifecycle.reopen(now)

        log.info(
            "Epoch %d settled: winner %s (slot %d, %s), prize %s, operator fee %s",
            epoch,
            outcome.winner,
            outcome.winner_slot,
            outcome.rarity.value,
            to_tokens(prize),
            to_tokens(operator_fee),
        )
        return outcome

    # -- internals ------------------------------------------------------

    def _get_seed(self) -> str:
        try:
            seed = self.randomness.get_seed()
        except RandomnessUnavailable:
            raise
        except Exception as e:
            raise RandomnessUnavailable(f"Randomness source failed: {e}") from e
        if not seed:
            raise RandomnessUnavailable("Randomness source returned an empty seed.")
        log.debug("Settlement seed (%s): %s", self.randomness.describe(), seed)
        return seed

    def _mint(self, recipient: str, rarity: Rarity) -> int:
        try:
            return self.minter.mint(recipient, rarity)
        except RaffleError:
            raise
        except Exception as e:
            raise MintFailed(f"Minting {rarity.value} token to {recipient} failed: {e}") from e

    def _record_winner(self, winner: str, rarity: Rarity) -> None:
        prev = (self._previous_winner, self._previous_rarity)
        self._previous_winner, self._previous_rarity = winner, rarity

        def undo() -> None:
            self._previous_winner, self._previous_rarity = prev

        self._journal.record(undo)
