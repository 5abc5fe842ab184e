from __future__ import annotations

import json
from typing import Any, Dict

from .draw import select_winner, split_pot
from .registry import Slot


def verify_audit(audit_path: str) -> Dict[str, Any]:
    with open(audit_path, "r", encoding="utf-8") as f:
        audit = json.load(f)
    return verify_audit_data(audit)


def verify_audit_data(audit: Dict[str, Any]) -> Dict[str, Any]:
    meta = audit["metadata"]
    seed = meta["seed"]
    fee = int(meta["entrance_fee"])
    total_expected = int(meta["total_collected"])

    slots = [Slot(int(s["index"]), s["occupant"]) for s in audit["slots"]]
    for pos, slot in enumerate(slots):
        if slot.index != pos:
            raise RuntimeError(f"Slot order broken: position {pos} holds index {slot.index}")
    occupied = [s for s in slots if not s.vacant]

    total = len(occupied) * fee
    if total != total_expected:
        raise RuntimeError(
            f"Total collected mismatch: audit={total_expected} recomputed={total}"
        )

    selection = select_winner(occupied, seed)
    if selection.seed_hash_hex != meta["seed_hash_hex"]:
        raise RuntimeError(
            f"Seed hash mismatch: audit={meta['seed_hash_hex']} recomputed={selection.seed_hash_hex}"
        )

    winner = audit["winner"]
    if selection.winner != winner["address"] or selection.winner_slot != int(winner["slot"]):
        raise RuntimeError(
            f"Winner mismatch: audit={winner['address']} (slot {winner['slot']}) "
            f"recomputed={selection.winner} (slot {selection.winner_slot})"
        )
    if selection.rarity.value != winner["rarity"]:
        raise RuntimeError(
            f"Rarity mismatch: audit={winner['rarity']} recomputed={selection.rarity.value}"
        )

    prize, operator_fee = split_pot(total)
    if prize != int(winner["prize"]) or operator_fee != int(audit["operator"]["fee"]):
        raise RuntimeError(
            f"Payout mismatch: audit={winner['prize']}/{audit['operator']['fee']} "
            f"recomputed={prize}/{operator_fee}"
        )

    return {
        "ok": True,
        "seed_hash_hex": selection.seed_hash_hex,
        "seed_int": selection.seed_int,
        "winner": selection.winner,
        "winner_slot": selection.winner_slot,
        "rarity": selection.rarity.value,
        "entrants": len(occupied),
        "total_collected": total,
        "prize": prize,
        "operator_fee": operator_fee,
    }
