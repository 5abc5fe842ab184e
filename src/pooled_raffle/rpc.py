from __future__ import annotations

import itertools
from typing import Any, Dict, List, Optional

import httpx


class RpcClient:
    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.client = httpx.Client(timeout=timeout_s, transport=transport)
        self._ids = itertools.count(1)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def get_slot(self, commitment: str = "finalized") -> int:
        """Returns the current slot."""
        data = self._call("getSlot", [{"commitment": commitment}])
        return int(data["result"])

    def get_block_time(self, slot: int) -> int:
        """Returns the Unix timestamp for a given slot."""
        data = self._call("getBlockTime", [slot])
        if data.get("result") is None:
            raise RuntimeError(f"Timestamp not available for slot {slot}")
        return int(data["result"])

    def get_blockhash_for_slot(self, slot: int) -> str:
        data = self._call(
            "getBlock",
            [
                slot,
                {"encoding": "json", "transactionDetails": "none", "rewards": False},
            ],
        )
        result = data.get("result")
        if not result or "blockhash" not in result:
            raise RuntimeError(f"Slot {slot}: getBlock returned no blockhash.")
        return result["blockhash"]

    def _call(self, method: str, params: List[Any]) -> Dict[str, Any]:
        request_id = next(self._ids)
        resp = self.client.post(
            self.rpc_url,
            json={"jsonrpc": "2.0", "id": request_id, "method": method, "params": params},
        )
        resp.raise_for_status()
        data = resp.json()
        if "error" in data:
            raise RuntimeError(f"RPC error in {method}: {data['error']}")
        # Some providers omit the id; a different one means a mixed-up reply.
        if data.get("id", request_id) != request_id:
            raise RuntimeError(f"RPC {method}: reply id {data['id']} does not match request {request_id}")
        return data
