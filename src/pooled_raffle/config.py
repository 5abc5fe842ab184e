from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .accounts import normalize_account
from .project_constants import DEFAULT_ENTRANCE_FEE, DEFAULT_MIN_DURATION


@dataclass(frozen=True)
class Settings:
    rpc_url: Optional[str]
    entrance_fee: int = DEFAULT_ENTRANCE_FEE
    min_duration: int = DEFAULT_MIN_DURATION
    operator_account: Optional[str] = None

    def require_rpc_url(self) -> str:
        if not self.rpc_url:
            raise RuntimeError(
                "Missing HELIUS_API_KEY (or RPC_URL). Put it in .env or export it."
            )
        return self.rpc_url

    def require_operator(self) -> str:
        if not self.operator_account:
            raise RuntimeError(
                "Missing OPERATOR_ACCOUNT. Put it in .env, export it or pass --operator."
            )
        return self.operator_account

    @staticmethod
    def from_env(
        rpc_url_override: str | None = None,
        operator_override: str | None = None,
    ) -> "Settings":
        load_dotenv(find_dotenv(usecwd=True))

        operator = operator_override or os.getenv("OPERATOR_ACCOUNT", "").strip()
        return Settings(
            rpc_url=_rpc_url(rpc_url_override),
            entrance_fee=_positive_int("ENTRANCE_FEE", DEFAULT_ENTRANCE_FEE),
            min_duration=_positive_int("RAFFLE_DURATION", DEFAULT_MIN_DURATION, allow_zero=True),
            operator_account=normalize_account(operator) if operator else None,
        )


def _rpc_url(override: str | None) -> str | None:
    # If user provides --rpc-url, trust it.
    if override:
        return override

    # Otherwise, use RPC_URL from env if present, else build helius url from key.
    env_rpc = os.getenv("RPC_URL", "").strip()
    if env_rpc:
        return env_rpc

    helius_key = os.getenv("HELIUS_API_KEY", "").strip()
    if not helius_key:
        return None
    return f"https://mainnet.helius-rpc.com/?api-key={helius_key}"


def _positive_int(name: str, default: int, allow_zero: bool = False) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")
    if value < 0 or (value == 0 and not allow_zero):
        raise RuntimeError(f"{name} must be {'non-negative' if allow_zero else 'positive'}, got {value}")
    return value
