from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict

from .project_constants import (
    COMMON_THRESHOLD,
    OPERATOR_FEE_PERCENTAGE,
    PRIZE_POOL_PERCENTAGE,
    RARE_THRESHOLD,
    RARITY_RANGE,
)
from .raffle import SettlementOutcome


def build_audit(outcome: SettlementOutcome) -> Dict[str, Any]:
    """Everything needed to re-run the draw offline."""
    return {
        "metadata": {
            "tool": "pooled-raffle",
            "version": "1.0.0",
            "generated_at_utc": datetime.now(timezone.utc).isoformat(),
            "epoch": outcome.epoch,
            "opened_at": outcome.opened_at,
            "settled_at": outcome.settled_at,
            "entrance_fee": outcome.entrance_fee,
            "prize_pool_percentage": PRIZE_POOL_PERCENTAGE,
            "operator_fee_percentage": OPERATOR_FEE_PERCENTAGE,
            "rarity_thresholds": {
                "common": COMMON_THRESHOLD,
                "rare": RARE_THRESHOLD,
                "range": RARITY_RANGE,
            },
            "seed": outcome.seed,
            "seed_source": outcome.seed_source,
            "seed_hash_hex": outcome.seed_hash_hex,
            "seed_int": str(outcome.seed_int),  # big int; store as string for safety
            "total_collected": outcome.total_collected,
        },
        "winner": {
            "address": outcome.winner,
            "slot": outcome.winner_slot,
            "rarity": outcome.rarity.value,
            "rarity_roll": outcome.rarity_roll,
            "token_id": outcome.token_id,
            "prize": outcome.prize,
        },
        "operator": {
            "address": outcome.operator_account,
            "fee": outcome.operator_fee,
        },
        # Slot order is the draw order; vacant slots are kept as null occupants.
        "slots": [{"index": s.index, "occupant": s.occupant} for s in outcome.slots],
    }


def write_audit(outcome: SettlementOutcome, path: str) -> Dict[str, Any]:
    audit = build_audit(outcome)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(audit, f, indent=2)
    return audit
