import hashlib

import pytest

from pooled_raffle.draw import Rarity, rarity_for_roll, rarity_roll, select_winner, split_pot
from pooled_raffle.errors import NoEntrants
from pooled_raffle.registry import Slot

from conftest import FEE, addr


def _expected_position(seed, n):
    return int(hashlib.sha256(seed.encode("utf-8")).hexdigest(), 16) % n


def test_winner_is_seed_hash_mod_occupied_count():
    slots = [Slot(i, addr(i)) for i in range(7)]
    seed = "GHtXQBsoZHVnNFa9YevAzFr17DJjgHXk3ycTKD5xD3Zi"

    sel = select_winner(slots, seed)

    pos = _expected_position(seed, 7)
    assert sel.winner_position == pos
    assert sel.winner == addr(pos)
    assert sel.winner_slot == pos


def test_vacant_slots_are_not_drawn():
    slots = [Slot(0, None), Slot(1, addr(1)), Slot(2, None), Slot(3, addr(3))]
    occupied = [s for s in slots if not s.vacant]

    for seed in ("a", "b", "c", "d", "e", "f"):
        sel = select_winner(occupied, seed)
        assert sel.winner in (addr(1), addr(3))
        assert sel.winner_slot in (1, 3)


def test_selection_is_reproducible():
    slots = [Slot(i, addr(i)) for i in range(5)]
    assert select_winner(slots, "seed-1") == select_winner(list(slots), "seed-1")


def test_empty_snapshot_raises():
    with pytest.raises(NoEntrants):
        select_winner([], "seed")


@pytest.mark.parametrize(
    "roll, tier",
    [
        (0, Rarity.COMMON),
        (69, Rarity.COMMON),
        (70, Rarity.RARE),
        (94, Rarity.RARE),
        (95, Rarity.LEGENDARY),
        (99, Rarity.LEGENDARY),
    ],
)
def test_rarity_tier_boundaries(roll, tier):
    assert rarity_for_roll(roll) is tier


def test_rarity_roll_out_of_range():
    with pytest.raises(RuntimeError):
        rarity_for_roll(100)


def test_rarity_roll_is_derived_from_seed_hash():
    seed_hash = hashlib.sha256(b"seed").hexdigest()
    expected = int(hashlib.sha256(f"{seed_hash}:rarity".encode()).hexdigest(), 16) % 100
    assert rarity_roll(seed_hash) == expected
    sel = select_winner([Slot(0, addr(0))], "seed")
    assert sel.rarity_roll == expected


def test_split_pot():
    assert split_pot(4 * FEE) == (3_200_000_000, 800_000_000)
    # Remainder goes to the operator.
    assert split_pot(7) == (5, 2)
    assert split_pot(0) == (0, 0)
