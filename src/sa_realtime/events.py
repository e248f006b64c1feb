"""Lifecycle events broadcast to real-time observers.

Wire format on the Redis channel and the WebSocket:
    {"type": "bidCreated" | "auctionClosed" | "snapshot", "payload": {...}}
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from src.sa_auction.domain.models import AuctionCloseResult, Bid


class BidCreatedPayload(BaseModel):
    id: str
    slot_id: str
    bidder_id: str
    amount: int
    escrow_status: str
    created_at: datetime | None


class AuctionClosedPayload(BaseModel):
    slot_id: str
    status: Literal["VOID", "IN_PROGRESS"]
    contract_id: str | None = None
    winning_bid_id: str | None = None
    clearing_price: int | None = None


class SnapshotPayload(BaseModel):
    connected_at: datetime


class LifecycleEvent(BaseModel):
    type: Literal["bidCreated", "auctionClosed", "snapshot"]
    payload: BidCreatedPayload | AuctionClosedPayload | SnapshotPayload


def bid_created(bid: Bid) -> LifecycleEvent:
    return LifecycleEvent(
        type="bidCreated",
        payload=BidCreatedPayload(
            id=bid.id,
            slot_id=bid.slot_id,
            bidder_id=bid.bidder_id,
            amount=bid.amount,
            escrow_status=bid.escrow_status,
            created_at=bid.created_at,
        ),
    )


def auction_closed(result: AuctionCloseResult) -> LifecycleEvent:
    contract = result.contract
    return LifecycleEvent(
        type="auctionClosed",
        payload=AuctionClosedPayload(
            slot_id=result.slot_id,
            status=result.status.value,
            contract_id=contract.id if contract else None,
            winning_bid_id=contract.winning_bid_id if contract else None,
            clearing_price=contract.clearing_price if contract else None,
        ),
    )


def snapshot(connected_at: datetime) -> LifecycleEvent:
    return LifecycleEvent(type="snapshot", payload=SnapshotPayload(connected_at=connected_at))
