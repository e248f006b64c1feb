# src/sa_auction/application/schemas.py
"""Pydantic request/response schemas for the auction API.

Amounts are StrictInt cents: 10.5, "100" and true are all rejected before the
engine is reached. The issuer's reserve price is never part of a response.
"""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, StrictInt, field_validator

from src.sa_auction.domain.models import (
    AuctionCloseResult,
    Bid,
    CompletionResult,
    Contract,
    Slot,
)
from src.sa_common.cents import MAX_CENTS, cents_to_display

TierLiteral = Literal["7_DAYS", "14_DAYS", "30_DAYS"]


class CreateSlotRequest(BaseModel):
    tier: TierLiteral
    category: str = Field(min_length=1)
    reserve_price_cents: StrictInt = Field(gt=0, le=MAX_CENTS)
    category_tags: list[str] = Field(min_length=1)

    @field_validator("category")
    @classmethod
    def strip_category(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("category must not be blank")
        return v.strip()

    @field_validator("category_tags")
    @classmethod
    def non_empty_tags(cls, v: list[str]) -> list[str]:
        if any(not tag.strip() for tag in v):
            raise ValueError("category_tags must contain non-empty strings")
        return [tag.strip() for tag in v]


class PlaceBidRequest(BaseModel):
    amount_cents: StrictInt = Field(gt=0, le=MAX_CENTS)


class SlotResponse(BaseModel):
    id: str
    issuer_id: str
    tier: str
    category: str
    status: str
    auction_ends_at: datetime
    created_at: datetime | None

    @classmethod
    def from_domain(cls, slot: Slot) -> "SlotResponse":
        return cls(
            id=slot.id,
            issuer_id=slot.issuer_id,
            tier=slot.tier,
            category=slot.category,
            status=slot.status,
            auction_ends_at=slot.auction_ends_at,
            created_at=slot.created_at,
        )


class BidResponse(BaseModel):
    id: str
    slot_id: str
    bidder_id: str
    amount_cents: int
    amount_display: str
    escrow_status: str
    created_at: datetime | None

    @classmethod
    def from_domain(cls, bid: Bid) -> "BidResponse":
        return cls(
            id=bid.id,
            slot_id=bid.slot_id,
            bidder_id=bid.bidder_id,
            amount_cents=bid.amount,
            amount_display=cents_to_display(bid.amount),
            escrow_status=bid.escrow_status,
            created_at=bid.created_at,
        )


class ContractResponse(BaseModel):
    id: str
    slot_id: str
    winning_bid_id: str
    clearing_price_cents: int
    clearing_price_display: str
    status: str
    started_at: datetime
    deadline_at: datetime

    @classmethod
    def from_domain(cls, c: Contract) -> "ContractResponse":
        return cls(
            id=c.id,
            slot_id=c.slot_id,
            winning_bid_id=c.winning_bid_id,
            clearing_price_cents=c.clearing_price,
            clearing_price_display=cents_to_display(c.clearing_price),
            status=c.status,
            started_at=c.started_at,
            deadline_at=c.deadline_at,
        )


class CloseAuctionResponse(BaseModel):
    slot_id: str
    status: Literal["VOID", "IN_PROGRESS"]
    contract: ContractResponse | None
    refunded_bid_ids: list[str]
    excess_refund_cents: int

    @classmethod
    def from_result(cls, r: AuctionCloseResult) -> "CloseAuctionResponse":
        return cls(
            slot_id=r.slot_id,
            status=r.status.value,
            contract=ContractResponse.from_domain(r.contract) if r.contract else None,
            refunded_bid_ids=r.refunded_bid_ids,
            excess_refund_cents=r.excess_refund,
        )


class CompleteContractResponse(BaseModel):
    contract_id: str
    status: str
    clearing_price_cents: int
    platform_fee_cents: int
    net_amount_cents: int
    net_amount_display: str

    @classmethod
    def from_result(cls, r: CompletionResult) -> "CompleteContractResponse":
        return cls(
            contract_id=r.contract_id,
            status=r.status.value,
            clearing_price_cents=r.clearing_price,
            platform_fee_cents=r.platform_fee,
            net_amount_cents=r.net_amount,
            net_amount_display=cents_to_display(r.net_amount),
        )
