"""Domain models for sa_auction: pure dataclasses, no SQLAlchemy dependency.

Status fields hold the enum *values* (plain str) exactly as stored.
"""
from dataclasses import dataclass, field
from datetime import datetime

from src.sa_common.enums import (
    AuctionOutcome,
    BreachAction,
    ContractStatus,
    EscrowStatus,
    PrincipalKind,
    SlotStatus,
)


@dataclass
class Principal:
    id: str
    kind: str  # ISSUER / BIDDER
    verified: bool

    @property
    def is_verified_issuer(self) -> bool:
        return self.kind == PrincipalKind.ISSUER and self.verified

    @property
    def is_verified_bidder(self) -> bool:
        return self.kind == PrincipalKind.BIDDER and self.verified


@dataclass
class IssuerProfile:
    issuer_id: str
    reserve_price: int  # private: never exposed to bidders
    active_slot_id: str | None
    category_tags: list[str] = field(default_factory=list)


@dataclass
class Slot:
    id: str
    issuer_id: str
    tier: str  # 7_DAYS / 14_DAYS / 30_DAYS
    category: str
    status: str
    auction_ends_at: datetime
    created_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status == SlotStatus.OPEN


@dataclass
class Bid:
    id: str
    slot_id: str
    bidder_id: str
    amount: int
    escrow_status: str = EscrowStatus.LOCKED.value
    created_at: datetime | None = None

    @property
    def is_locked(self) -> bool:
        return self.escrow_status == EscrowStatus.LOCKED


@dataclass
class Contract:
    id: str
    slot_id: str
    winning_bid_id: str
    clearing_price: int
    status: str
    started_at: datetime
    deadline_at: datetime


@dataclass
class ContractRecord:
    """Contract joined with its slot's issuer and its winning bid."""

    contract_id: str
    status: str
    clearing_price: int
    deadline_at: datetime
    slot_id: str
    issuer_id: str
    winning_bid_id: str
    winning_bidder_id: str
    winning_escrow_status: str

    @property
    def is_active(self) -> bool:
        return self.status == ContractStatus.ACTIVE


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------


@dataclass
class AuctionCloseResult:
    slot_id: str
    status: AuctionOutcome
    contract: Contract | None = None
    refunded_bid_ids: list[str] = field(default_factory=list)
    excess_refund: int = 0


@dataclass
class CompletionResult:
    contract_id: str
    status: ContractStatus
    clearing_price: int
    platform_fee: int
    net_amount: int


@dataclass
class BreachResult:
    contract_id: str
    action: BreachAction
    refunded_amount: int = 0


@dataclass
class SweepReport:
    processed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
