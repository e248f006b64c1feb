"""Second-price (Vickrey) clearing: pure functions, no I/O.

Ranking is a deterministic total order:
  amount DESC, created_at ASC, id ASC
so two runs over the same bids produce the same winner and the same refund
sequence, even with identical amounts placed concurrently.

A bid is *valid* when amount >= reserve_price. The winner is the top-ranked
valid bid; it pays the second-highest valid amount, or its own amount when it
is the only valid bid. Every other LOCKED bid (below-reserve ones included)
is refunded in full, in ranking order, before the winner's excess refund.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from src.sa_auction.domain.models import Bid
from src.sa_common.enums import AuctionOutcome, SlotTier
from src.sa_escrow.domain.gateway import excess_reference


@dataclass(frozen=True)
class RefundInstruction:
    reference_id: str
    bid_id: str
    bidder_id: str
    amount: int
    marks_refunded: bool  # False for the winner's excess: its row stays LOCKED


@dataclass
class ClearingPlan:
    outcome: AuctionOutcome
    winner: Bid | None = None
    clearing_price: int | None = None
    valid_bids: list[Bid] = field(default_factory=list)
    refunds: list[RefundInstruction] = field(default_factory=list)

    @property
    def excess_refund(self) -> int:
        return sum(r.amount for r in self.refunds if not r.marks_refunded)


def _ranking_key(bid: Bid) -> tuple[int, float, str]:
    created = bid.created_at.timestamp() if bid.created_at else float("-inf")
    return (-bid.amount, created, bid.id)


def rank_bids(bids: list[Bid]) -> list[Bid]:
    return sorted(bids, key=_ranking_key)


def _full_refund(bid: Bid) -> RefundInstruction:
    return RefundInstruction(
        reference_id=bid.id,
        bid_id=bid.id,
        bidder_id=bid.bidder_id,
        amount=bid.amount,
        marks_refunded=True,
    )


def clear_auction(bids: list[Bid], reserve_price: int) -> ClearingPlan:
    ranked = rank_bids(bids)
    valid = [b for b in ranked if b.amount >= reserve_price]

    if not valid:
        return ClearingPlan(
            outcome=AuctionOutcome.VOID,
            refunds=[_full_refund(b) for b in ranked if b.is_locked],
        )

    winner = valid[0]
    clearing_price = valid[1].amount if len(valid) > 1 else winner.amount

    refunds = [_full_refund(b) for b in ranked if b.id != winner.id and b.is_locked]
    excess = winner.amount - clearing_price
    if excess > 0:
        refunds.append(
            RefundInstruction(
                reference_id=excess_reference(winner.id),
                bid_id=winner.id,
                bidder_id=winner.bidder_id,
                amount=excess,
                marks_refunded=False,
            )
        )

    return ClearingPlan(
        outcome=AuctionOutcome.IN_PROGRESS,
        winner=winner,
        clearing_price=clearing_price,
        valid_bids=valid,
        refunds=refunds,
    )


def contract_deadline(started_at: datetime, tier: str) -> datetime:
    duration: timedelta = SlotTier(tier).duration
    return started_at + duration
