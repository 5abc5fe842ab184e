"""
Seed providers for settlement.

A seed must not be predictable or choosable by whoever submits the
settlement request. The production source is the blockhash of a finalized
slot announced before the raffle closes: nobody entering the raffle can
know it in advance, and anyone can fetch it afterwards to re-run the draw.
"""
from __future__ import annotations

import json
import logging
from typing import Optional, Protocol

import httpx

from .errors import RandomnessUnavailable
from .rpc import RpcClient

log = logging.getLogger("randomness")


class RandomnessSource(Protocol):
    def get_seed(self) -> str:
        """Return the seed or raise RandomnessUnavailable."""
        ...

    def describe(self) -> str:
        ...


class StaticSeed:
    """A fixed, already published seed. For replays and tests."""

    def __init__(self, seed: str) -> None:
        self.seed = seed

    def get_seed(self) -> str:
        if not self.seed:
            raise RandomnessUnavailable("Static seed is empty.")
        return self.seed

    def describe(self) -> str:
        return "static"


class BlockhashRandomness:
    def __init__(self, rpc: RpcClient, slot: int) -> None:
        self.rpc = rpc
        self.slot = slot

    def get_seed(self) -> str:
        try:
            seed = self.rpc.get_blockhash_for_slot(self.slot)
        except (httpx.HTTPError, RuntimeError, ValueError) as e:
            raise RandomnessUnavailable(f"Blockhash for slot {self.slot} unavailable: {e}") from e
        log.debug("Seed from slot %d: %s", self.slot, seed)
        return seed

    def describe(self) -> str:
        return f"rpc:getBlock:{self.slot}"


class BlockFeedRandomness:
    """
    Reads the blockhash from a block feed file. Supports:
    1) Raw blockhash string in file
    2) JSON object containing:
       - {"blockhash": "..."}
       - {"result": {"blockhash": "..."}}
       - {"slot": 123, "blockhash": "..."}   (verified against slot when given)
       - {"blocks": {"123": {"blockhash": "..."}}}  (requires slot)
    """

    def __init__(self, path: str, slot: Optional[int] = None) -> None:
        self.path = path
        self.slot = slot

    def describe(self) -> str:
        return f"file:{self.path}"

    def get_seed(self) -> str:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = f.read().strip()
        except OSError as e:
            raise RandomnessUnavailable(f"Cannot read block feed file: {e}") from e

        if not raw:
            raise RandomnessUnavailable(f"Block feed file {self.path} is empty.")

        # If it's just a blockhash string
        if raw[0] != "{":
            return raw

        try:
            j = json.loads(raw)
        except ValueError as e:
            raise RandomnessUnavailable(f"Block feed file is not valid JSON or raw string: {e}") from e

        seed = self._find_blockhash(j)
        if seed is None:
            raise RandomnessUnavailable(
                "Could not find a blockhash in block feed file. "
                "Expected raw string or JSON with blockhash/result.blockhash/(blocks[slot].blockhash)."
            )
        return seed

    def _find_blockhash(self, j: object) -> Optional[str]:
        if not isinstance(j, dict):
            return None

        if isinstance(j.get("blockhash"), str):
            if self.slot is not None and "slot" in j and int(j["slot"]) != int(self.slot):
                raise RandomnessUnavailable(
                    f"Block feed slot mismatch: file slot={j['slot']} vs expected slot={self.slot}"
                )
            return j["blockhash"]

        result = j.get("result")
        if isinstance(result, dict) and isinstance(result.get("blockhash"), str):
            return result["blockhash"]

        # A feed of many blocks
        blocks = j.get("blocks")
        if self.slot is not None and isinstance(blocks, dict):
            block_obj = blocks.get(str(int(self.slot)))
            if isinstance(block_obj, dict) and isinstance(block_obj.get("blockhash"), str):
                return block_obj["blockhash"]

        return None
