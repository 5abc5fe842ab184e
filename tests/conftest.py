from __future__ import annotations

from typing import Callable, Optional

import pytest

from pooled_raffle.accounts import account_from_key
from pooled_raffle.minter import InMemoryMinter
from pooled_raffle.raffle import Raffle
from pooled_raffle.randomness import StaticSeed

FEE = 10**9
DURATION = 3600
START = 1_700_000_000.0


def addr(n: int) -> str:
    return account_from_key(bytes([n % 256]) * 31 + bytes([n // 256 + 1]))


OPERATOR = addr(250)


class FakeClock:
    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def minter() -> InMemoryMinter:
    return InMemoryMinter()


@pytest.fixture
def make_raffle(clock, minter) -> Callable[..., Raffle]:
    def _make(seed: Optional[str] = "5eYkR4n1cR8pVqGmLs3vW9xTz2aBcDeFgHiJkLmNoPq", randomness=None) -> Raffle:
        return Raffle(
            entrance_fee=FEE,
            min_duration=DURATION,
            operator_account=OPERATOR,
            randomness=randomness if randomness is not None else StaticSeed(seed),
            minter=minter,
            clock=clock,
        )

    return _make


@pytest.fixture
def raffle(make_raffle) -> Raffle:
    return make_raffle()
