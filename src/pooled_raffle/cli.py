from __future__ import annotations

import argparse
import logging
import time
from datetime import datetime, timezone
from typing import Optional

from .accounts import load_entrants_file
from .audit import write_audit
from .config import Settings
from .draw import to_tokens
from .errors import RaffleError
from .minter import InMemoryMinter
from .project_constants import SLOT_TIME_S
from .raffle import Raffle
from .randomness import BlockFeedRandomness, BlockhashRandomness, RandomnessSource, StaticSeed
from .rpc import RpcClient
from .verify import verify_audit


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def predict_settlement_slot(rpc: RpcClient, settleable_at: float) -> tuple[int, int]:
    """Returns (current slot, projected first slot at or after settleable_at)."""
    curr_slot = rpc.get_slot()
    curr_time = rpc.get_block_time(curr_slot)
    seconds_to_wait = max(0.0, settleable_at - curr_time)
    return curr_slot, curr_slot + int(seconds_to_wait / SLOT_TIME_S)


def _seed_source(args: argparse.Namespace, settings: Settings) -> tuple[RandomnessSource, Optional[RpcClient]]:
    if args.seed:
        return StaticSeed(args.seed), None
    if args.block_feed_file:
        return BlockFeedRandomness(args.block_feed_file, slot=args.slot), None
    if args.slot is None:
        raise SystemExit("--slot is required unless --seed or --block-feed-file is given.")
    rpc = RpcClient(settings.require_rpc_url(), timeout_s=args.timeout)
    return BlockhashRandomness(rpc, args.slot), rpc


def cmd_draw(args: argparse.Namespace) -> int:
    settings = Settings.from_env(
        rpc_url_override=args.rpc_url, operator_override=args.operator
    )
    log = logging.getLogger("draw")

    entrants = load_entrants_file(args.entrants)
    log.info("Entrants loaded    : %d", len(entrants))

    randomness, rpc = _seed_source(args, settings)
    opened_at = args.opened_at
    if opened_at is None:
        # Entry window is already over; settle straight away.
        opened_at = time.time() - settings.min_duration

    raffle = Raffle(
        entrance_fee=settings.entrance_fee,
        min_duration=settings.min_duration,
        operator_account=settings.require_operator(),
        randomness=randomness,
        minter=InMemoryMinter(),
        opened_at=opened_at,
    )
    try:
        raffle.enter(entrants, settings.entrance_fee * len(entrants))
        log.info("Total collected    : %s", to_tokens(raffle.total_collected()))
        outcome = raffle.request_settlement()
    except RaffleError as e:
        raise SystemExit(f"{type(e).__name__}: {e}")
    finally:
        if rpc is not None:
            rpc.close()

    write_audit(outcome, args.out)

    print("========================================")
    print("🎟️  POOLED RAFFLE SETTLEMENT")
    print("========================================")
    print(f"Entrants      : {len(entrants)}")
    print(f"Pot           : {to_tokens(outcome.total_collected)}")
    print(f"Seed          : {outcome.seed}")
    print(f"Seed source   : {outcome.seed_source}")
    print(f"Seed SHA-256  : {outcome.seed_hash_hex}")
    print("----------------------------------------")
    print("🏆 WINNER")
    print(f"Address       : {outcome.winner}")
    print(f"Slot          : {outcome.winner_slot}")
    print(f"Prize         : {to_tokens(outcome.prize)}")
    print(f"Collectible   : #{outcome.token_id} ({outcome.rarity.value})")
    print(f"Operator fee  : {to_tokens(outcome.operator_fee)} -> {outcome.operator_account}")
    print("----------------------------------------")
    print(f"🧾 Wrote audit: {args.out}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    try:
        result = verify_audit(args.audit)
    except (RuntimeError, RaffleError) as e:
        raise SystemExit(f"❌ AUDIT FAILED: {e}")
    print("✅ AUDIT VERIFIED")
    print(f"Winner        : {result['winner']} (slot {result['winner_slot']})")
    print(f"Rarity        : {result['rarity']}")
    print(f"Entrants      : {result['entrants']}")
    print(f"Prize         : {to_tokens(result['prize'])}")
    print(f"Operator fee  : {to_tokens(result['operator_fee'])}")
    print(f"Seed SHA-256  : {result['seed_hash_hex']}")
    return 0


def cmd_predict(args: argparse.Namespace) -> int:
    """Estimates the first slot at which a raffle may be settled."""
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    duration = args.duration if args.duration is not None else settings.min_duration
    settleable_at = args.opened_at + duration

    rpc = RpcClient(settings.require_rpc_url(), timeout_s=args.timeout)
    try:
        curr_slot, target_slot = predict_settlement_slot(rpc, settleable_at)
    finally:
        rpc.close()

    target_dt = datetime.fromtimestamp(settleable_at, tz=timezone.utc)
    print("--- SETTLEMENT SLOT PREDICTION ---")
    print(f"Settleable at (UTC) : {target_dt.strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"Current Slot        : {curr_slot}")
    print(f"Projected Slot      : {target_slot}")
    print(f"Assumed Slot Time   : {int(SLOT_TIME_S * 1000)} ms (heuristic)")
    print("-" * 34)
    print(f'PUBLIC ANNOUNCEMENT:\n"Draw seed is the blockhash of slot {target_slot}"')
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pooled-raffle",
        description="Pooled-entry raffle with verifiable settlement.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")
    p.add_argument("--timeout", type=float, default=60.0, help="RPC timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    pred = sub.add_parser(
        "predict", help="Estimate the first slot at which settlement is allowed."
    )
    pred.add_argument(
        "--opened-at", required=True, type=float, help="Unix time the raffle opened."
    )
    pred.add_argument(
        "--duration", type=int, default=None, help="Override RAFFLE_DURATION (seconds)."
    )
    pred.set_defaults(func=cmd_predict)

    d = sub.add_parser("draw", help="Enter all listed accounts, settle and write an audit JSON.")
    d.add_argument("--entrants", required=True, help="File with one account per line.")
    d.add_argument("--operator", default=None, help="Override OPERATOR_ACCOUNT.")
    d.add_argument("--slot", type=int, default=None, help="Finalized slot whose blockhash seeds the draw.")
    d.add_argument(
        "--opened-at",
        type=float,
        default=None,
        help="Unix time the raffle opened (default: one full duration ago).",
    )
    seed = d.add_mutually_exclusive_group()
    seed.add_argument(
        "--block-feed-file",
        default=None,
        help=(
            "Path to a block feed file to source the seed (blockhash). "
            "Can be raw string or JSON containing blockhash."
        ),
    )
    seed.add_argument("--seed", default=None, help="Use an already published seed verbatim.")
    d.add_argument("--out", default="audit.json", help="Audit output JSON path.")
    d.set_defaults(func=cmd_draw)

    v = sub.add_parser(
        "verify", help="Verify an existing audit.json deterministically."
    )
    v.add_argument("--audit", required=True, help="Path to audit.json.")
    v.set_defaults(func=cmd_verify)

    return p


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
