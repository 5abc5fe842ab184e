import pytest

from pooled_raffle.errors import TransferFailed
from pooled_raffle.journal import Journal
from pooled_raffle.ledger import FundLedger

from conftest import addr


@pytest.fixture
def journal():
    return Journal()


@pytest.fixture
def ledger(journal):
    ledger = FundLedger(journal)
    with journal.transaction("seed"):
        ledger.deposit(100)
    return ledger


def test_transfer_moves_value(journal, ledger):
    with journal.transaction("pay"):
        ledger.transfer(addr(1), 40)

    assert ledger.collected == 60
    assert ledger.balance_of(addr(1)) == 40


def test_transfer_more_than_held_fails(journal, ledger):
    with pytest.raises(TransferFailed):
        with journal.transaction("pay"):
            ledger.transfer(addr(1), 101)
    assert ledger.collected == 100


def test_failing_recipient_undoes_transfer(journal, ledger):
    def reject(to, amount):
        raise RuntimeError("recipient refuses funds")

    ledger.register_recipient(addr(1), reject)

    with pytest.raises(TransferFailed) as exc:
        with journal.transaction("pay"):
            ledger.transfer(addr(1), 10)

    assert isinstance(exc.value.__cause__, RuntimeError)
    assert ledger.collected == 100
    assert ledger.balance_of(addr(1)) == 0


def test_recipient_sees_credited_state(journal, ledger):
    seen = []
    ledger.register_recipient(addr(1), lambda to, amount: seen.append((ledger.balance_of(to), ledger.collected)))

    with journal.transaction("pay"):
        ledger.transfer(addr(1), 25)

    assert seen == [(25, 75)]


def test_unregistered_recipient_is_plain_transfer(journal, ledger):
    ledger.register_recipient(addr(1), lambda to, amount: None)
    ledger.unregister_recipient(addr(1))
    with journal.transaction("pay"):
        ledger.transfer(addr(1), 1)
    assert ledger.balance_of(addr(1)) == 1
