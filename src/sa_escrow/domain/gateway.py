# src/sa_escrow/domain/gateway.py
"""Escrow gateway contract: the capability set the lifecycle engine consumes.

Every call is idempotent keyed by (reference_id, operation); callers may retry
a failed call with the same arguments. Success returns None, failure raises
EscrowGatewayError carrying the provider's human-readable reason.

Reference ids used by the engine:
  <bid_id>          lock, full refund (loser / void / breach), release
  <bid_id>:excess   refund of the winner's bid minus the clearing price
"""
from typing import Protocol


class EscrowGatewayProtocol(Protocol):
    async def lock_funds(
        self, reference_id: str, principal_id: str, amount: int
    ) -> None: ...

    async def refund_to_owner(
        self, reference_id: str, principal_id: str, amount: int
    ) -> None: ...

    async def release_to_issuer(
        self,
        reference_id: str,
        principal_id: str,
        net_amount: int,
        platform_fee: int,
    ) -> None: ...

    async def aclose(self) -> None: ...


def excess_reference(bid_id: str) -> str:
    """Reference for the winner's excess refund, distinct from the bid's own."""
    return f"{bid_id}:excess"
