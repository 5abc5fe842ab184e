from __future__ import annotations

from typing import Iterable, List

import base58

from .errors import InvalidAccount
from .project_constants import ACCOUNT_KEY_LENGTH


def normalize_account(address: str) -> str:
    """
    Validate a base58 account address and return its canonical encoding.
    The decoded key must be exactly 32 bytes.
    """
    if not isinstance(address, str) or not address.strip():
        raise InvalidAccount(f"Account address must be a non-empty string: {address!r}")

    try:
        raw = base58.b58decode(address.strip())
    except ValueError as e:
        raise InvalidAccount(f"Account {address!r} is not valid base58: {e}") from e

    if len(raw) != ACCOUNT_KEY_LENGTH:
        raise InvalidAccount(
            f"Account {address!r} decodes to {len(raw)} bytes, expected {ACCOUNT_KEY_LENGTH}"
        )
    return base58.b58encode(raw).decode("ascii")


def account_from_key(key: bytes) -> str:
    if len(key) != ACCOUNT_KEY_LENGTH:
        raise InvalidAccount(f"Public key must be {ACCOUNT_KEY_LENGTH} bytes, got {len(key)}")
    return base58.b58encode(key).decode("ascii")


def normalize_accounts(addresses: Iterable[str]) -> List[str]:
    return [normalize_account(a) for a in addresses]


def load_entrants_file(path: str) -> List[str]:
    """One account per line, blank lines and '#' comments ignored. Order is kept."""
    out: List[str] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            w = line.strip()
            if not w or w.startswith("#"):
                continue
            out.append(normalize_account(w))
    return out
