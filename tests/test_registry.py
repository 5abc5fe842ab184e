import pytest

from pooled_raffle.errors import AlreadyVacant, BadPayment, DuplicateEntrant, NotOccupant
from pooled_raffle.journal import Journal
from pooled_raffle.registry import EntrantRegistry

from conftest import FEE, addr


@pytest.fixture
def journal():
    return Journal()


@pytest.fixture
def registry(journal):
    return EntrantRegistry(journal, FEE)


def test_append_assigns_stable_indices(journal, registry):
    with journal.transaction("enter"):
        assert registry.append([addr(1), addr(2)]) == [0, 1]
    with journal.transaction("enter"):
        assert registry.append([addr(3)]) == [2]

    assert registry.occupied_count() == 3
    assert registry.active_index_of(addr(3)) == 2


def test_check_entry_rejects_wrong_payment(registry):
    with pytest.raises(BadPayment):
        registry.check_entry([addr(1), addr(2)], FEE)
    with pytest.raises(BadPayment):
        registry.check_entry([addr(1)], FEE + 1)
    with pytest.raises(BadPayment):
        registry.check_entry([], 0)


def test_check_entry_rejects_duplicates(journal, registry):
    with pytest.raises(DuplicateEntrant):
        registry.check_entry([addr(1), addr(2), addr(1)], 3 * FEE)

    with journal.transaction("enter"):
        registry.append([addr(1)])
    with pytest.raises(DuplicateEntrant):
        registry.check_entry([addr(2), addr(1)], 2 * FEE)


def test_vacate_keeps_index_reserved(journal, registry):
    with journal.transaction("enter"):
        registry.append([addr(1), addr(2), addr(3)])
    with journal.transaction("refund"):
        assert registry.vacate(1, addr(2)) == addr(2)

    assert registry.slot_count() == 3
    assert registry.slot(1).vacant
    assert registry.active_index_of(addr(2)) is None
    assert [s.index for s in registry.occupied()] == [0, 2]


def test_vacate_errors(journal, registry):
    with journal.transaction("enter"):
        registry.append([addr(1)])

    with pytest.raises(NotOccupant):
        with journal.transaction("refund"):
            registry.vacate(0, addr(2))
    with pytest.raises(AlreadyVacant):
        with journal.transaction("refund"):
            registry.vacate(5, addr(1))

    with journal.transaction("refund"):
        registry.vacate(0, addr(1))
    with pytest.raises(AlreadyVacant):
        with journal.transaction("refund"):
            registry.vacate(0, addr(1))


def test_rollback_restores_slots_and_membership(journal, registry):
    with journal.transaction("enter"):
        registry.append([addr(1)])

    with pytest.raises(RuntimeError):
        with journal.transaction("enter"):
            registry.append([addr(2), addr(3)])
            registry.vacate(0, addr(1))
            raise RuntimeError("boom")

    assert registry.slot_count() == 1
    assert registry.occupied_count() == 1
    assert registry.active_index_of(addr(1)) == 0
    assert registry.active_index_of(addr(2)) is None


def test_advance_epoch_scopes_membership(journal, registry):
    with journal.transaction("enter"):
        registry.append([addr(1), addr(2)])
    with journal.transaction("settle"):
        archived = registry.advance_epoch()

    assert [s.occupant for s in archived] == [addr(1), addr(2)]
    assert registry.epoch == 1
    assert registry.occupied_count() == 0
    assert registry.active_index_of(addr(1)) is None
    registry.check_entry([addr(1)], FEE)


def test_advance_epoch_rolls_back(journal, registry):
    with journal.transaction("enter"):
        registry.append([addr(1)])
    with pytest.raises(RuntimeError):
        with journal.transaction("settle"):
            registry.advance_epoch()
            raise RuntimeError("transfer failed")

    assert registry.epoch == 0
    assert registry.active_index_of(addr(1)) == 0


def test_fee_must_be_positive(journal):
    with pytest.raises(ValueError):
        EntrantRegistry(journal, 0)
