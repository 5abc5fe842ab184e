from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Dict

from .errors import TransferFailed
from .journal import Journal

log = logging.getLogger("ledger")

# Called with (recipient, amount) while the transfer is in flight.
# It may run arbitrary code, including calls back into the raffle.
RecipientHook = Callable[[str, int], None]


class FundLedger:
    """
    Custody of the value collected by one raffle.

    `collected` is what the raffle currently holds. `balances` mirrors what the
    host ledger has paid out to each account. Transfers are all-or-nothing:
    if the recipient hook raises, the debit, the credit and anything the hook
    did are undone and TransferFailed is raised.
    """

    def __init__(self, journal: Journal) -> None:
        self._journal = journal
        self._collected = 0
        self._balances: Dict[str, int] = defaultdict(int)
        self._hooks: Dict[str, RecipientHook] = {}

    @property
    def collected(self) -> int:
        return self._collected

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def register_recipient(self, account: str, hook: RecipientHook) -> None:
        self._hooks[account] = hook

    def unregister_recipient(self, account: str) -> None:
        self._hooks.pop(account, None)

    def deposit(self, amount: int) -> None:
        if amount < 0:
            raise ValueError("Deposit amount must not be negative.")
        self._set_collected(self._collected + amount)

    def transfer(self, to: str, amount: int) -> None:
        if amount < 0:
            raise TransferFailed(f"Refusing negative transfer of {amount} to {to}")
        if amount > self._collected:
            raise TransferFailed(
                f"Insufficient funds: transfer {amount} to {to}, holding {self._collected}"
            )

        try:
            with self._journal.transaction(f"transfer to {to}"):
                self._set_collected(self._collected - amount)
                self._credit(to, amount)
                log.debug("Transfer %d -> %s", amount, to)
                hook = self._hooks.get(to)
                if hook is not None:
                    hook(to, amount)
        except Exception as e:
            raise TransferFailed(f"Transfer of {amount} to {to} failed: {e}") from e

    def _set_collected(self, value: int) -> None:
        prev = self._collected
        self._collected = value
        self._journal.record(lambda: setattr(self, "_collected", prev))

    def _credit(self, account: str, amount: int) -> None:
        prev = self._balances.get(account)
        self._balances[account] = (prev or 0) + amount

        def undo() -> None:
            if prev is None:
                self._balances.pop(account, None)
            else:
                self._balances[account] = prev

        self._journal.record(undo)
