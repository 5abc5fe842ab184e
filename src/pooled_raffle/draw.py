from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from .errors import NoEntrants
from .project_constants import (
    COMMON_THRESHOLD,
    PERCENT_BASE,
    PRIZE_POOL_PERCENTAGE,
    RARE_THRESHOLD,
    RARITY_RANGE,
    TOKEN_DECIMALS,
)
from .registry import Slot


class Rarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    LEGENDARY = "legendary"


# Cumulative upper bounds (exclusive) over [0, RARITY_RANGE).
RARITY_TIERS: List[Tuple[int, Rarity]] = [
    (COMMON_THRESHOLD, Rarity.COMMON),
    (RARE_THRESHOLD, Rarity.RARE),
    (RARITY_RANGE, Rarity.LEGENDARY),
]


@dataclass(frozen=True)
class Selection:
    winner: str
    winner_slot: int
    winner_position: int  # position among occupied slots
    rarity: Rarity
    rarity_roll: int
    seed_hash_hex: str
    seed_int: int


def to_tokens(raw_amount: int) -> float:
    return round(raw_amount / (10**TOKEN_DECIMALS), 4)


def hash_seed(seed: str) -> Tuple[str, int]:
    seed_hash_hex = hashlib.sha256(seed.encode("utf-8")).hexdigest()
    return seed_hash_hex, int(seed_hash_hex, 16)


def rarity_roll(seed_hash_hex: str) -> int:
    # Independent of the winner draw: hash the seed hash again under a label.
    digest = hashlib.sha256(f"{seed_hash_hex}:rarity".encode("utf-8")).hexdigest()
    return int(digest, 16) % RARITY_RANGE


def rarity_for_roll(roll: int) -> Rarity:
    for upper, tier in RARITY_TIERS:
        if roll < upper:
            return tier
    raise RuntimeError(f"Rarity roll {roll} out of range (unexpected).")


def split_pot(total: int) -> Tuple[int, int]:
    """Returns (prize, operator_fee); the operator gets the rounding remainder."""
    prize = total * PRIZE_POOL_PERCENTAGE // PERCENT_BASE
    return prize, total - prize


def select_winner(occupied: Sequence[Slot], seed: str) -> Selection:
    """
    Pure mapping of (occupied slots in insertion order, seed) -> winner and rarity.
    Anyone holding the same snapshot and seed recomputes the same result.
    """
    if not occupied:
        raise NoEntrants("No occupied slots to draw from.")

    seed_hash_hex, seed_int = hash_seed(seed)
    position = seed_int % len(occupied)
    slot = occupied[position]
    if slot.occupant is None:
        raise RuntimeError(f"Slot {slot.index} is vacant (unexpected).")

    roll = rarity_roll(seed_hash_hex)
    return Selection(
        winner=slot.occupant,
        winner_slot=slot.index,
        winner_position=position,
        rarity=rarity_for_roll(roll),
        rarity_roll=roll,
        seed_hash_hex=seed_hash_hex,
        seed_int=seed_int,
    )
