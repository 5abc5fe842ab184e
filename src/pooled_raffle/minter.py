from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from .draw import Rarity
from .errors import MintFailed

log = logging.getLogger("minter")


class CollectibleMinter(Protocol):
    def mint(self, recipient: str, rarity: Rarity) -> int:
        """Mint one token to recipient. Raises MintFailed."""
        ...


@dataclass(frozen=True)
class Collectible:
    token_id: int
    owner: str
    rarity: Rarity


class InMemoryMinter:
    """Sequential token ids held in a dict. Used by the CLI and in tests."""

    def __init__(self, fail_with: Optional[str] = None) -> None:
        self.tokens: Dict[int, Collectible] = {}
        self.fail_with = fail_with
        self._next_id = 0

    def mint(self, recipient: str, rarity: Rarity) -> int:
        if self.fail_with:
            raise MintFailed(self.fail_with)
        token_id = self._next_id
        self._next_id += 1
        self.tokens[token_id] = Collectible(token_id, recipient, rarity)
        log.info("Minted %s token #%d to %s", rarity.value, token_id, recipient)
        return token_id

    def owned_by(self, owner: str) -> List[Collectible]:
        return [t for t in self.tokens.values() if t.owner == owner]
