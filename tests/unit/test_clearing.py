"""Tests for sa_auction.domain.clearing: second-price clearing, no I/O."""

from datetime import UTC, datetime, timedelta
from typing import Any

from src.sa_auction.domain.clearing import clear_auction, contract_deadline, rank_bids
from src.sa_auction.domain.models import Bid
from src.sa_common.enums import AuctionOutcome

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _bid(bid_id: str, amount: int, offset_s: int = 0, **kwargs: Any) -> Bid:
    defaults: dict[str, Any] = {
        "id": bid_id,
        "slot_id": "slot-1",
        "bidder_id": f"bidder-{bid_id}",
        "amount": amount,
        "escrow_status": "LOCKED",
        "created_at": T0 + timedelta(seconds=offset_s),
    }
    defaults.update(kwargs)
    return Bid(**defaults)


class TestRankBids:
    def test_amount_desc(self) -> None:
        ranked = rank_bids([_bid("a", 50), _bid("b", 100), _bid("c", 70)])
        assert [b.id for b in ranked] == ["b", "c", "a"]

    def test_equal_amounts_earliest_first(self) -> None:
        ranked = rank_bids([_bid("late", 70, offset_s=5), _bid("early", 70, offset_s=1)])
        assert [b.id for b in ranked] == ["early", "late"]

    def test_equal_amount_and_time_id_breaks_tie(self) -> None:
        ranked = rank_bids([_bid("0002", 70), _bid("0001", 70)])
        assert [b.id for b in ranked] == ["0001", "0002"]

    def test_input_order_irrelevant(self) -> None:
        bids = [_bid("a", 70, 2), _bid("b", 70, 1), _bid("c", 90, 3)]
        assert [b.id for b in rank_bids(bids)] == [b.id for b in rank_bids(bids[::-1])]


class TestClearAuction:
    def test_second_price_with_reserve(self) -> None:
        # [100, 70, 70, 50] reserve 60 -> winner 100 pays 70
        bids = [
            _bid("w", 100, 0),
            _bid("r1", 70, 1),
            _bid("r2", 70, 2),
            _bid("low", 50, 3),
        ]
        plan = clear_auction(bids, reserve_price=60)

        assert plan.outcome is AuctionOutcome.IN_PROGRESS
        assert plan.winner is not None and plan.winner.id == "w"
        assert plan.clearing_price == 70
        assert [b.id for b in plan.valid_bids] == ["w", "r1", "r2"]
        # losers in ranking order (below-reserve included), then the excess
        assert [(r.reference_id, r.amount) for r in plan.refunds] == [
            ("r1", 70),
            ("r2", 70),
            ("low", 50),
            ("w:excess", 30),
        ]
        assert plan.excess_refund == 30

    def test_excess_refund_keeps_winner_locked(self) -> None:
        plan = clear_auction([_bid("w", 100), _bid("x", 70, 1)], reserve_price=60)
        excess = plan.refunds[-1]
        assert excess.bid_id == "w"
        assert excess.bidder_id == "bidder-w"
        assert excess.marks_refunded is False
        assert all(r.marks_refunded for r in plan.refunds[:-1])

    def test_sole_valid_bid_pays_own_amount(self) -> None:
        plan = clear_auction([_bid("only", 80)], reserve_price=60)
        assert plan.winner is not None and plan.winner.id == "only"
        assert plan.clearing_price == 80
        assert plan.refunds == []
        assert plan.excess_refund == 0

    def test_sole_valid_bid_with_invalid_others(self) -> None:
        plan = clear_auction([_bid("hi", 80), _bid("lo", 40, 1)], reserve_price=60)
        assert plan.clearing_price == 80
        assert [r.reference_id for r in plan.refunds] == ["lo"]

    def test_tied_top_bids_no_excess(self) -> None:
        plan = clear_auction([_bid("b", 90, 2), _bid("a", 90, 1)], reserve_price=10)
        assert plan.winner is not None and plan.winner.id == "a"
        assert plan.clearing_price == 90
        assert plan.excess_refund == 0
        assert [r.reference_id for r in plan.refunds] == ["b"]

    def test_bid_equal_to_reserve_is_valid(self) -> None:
        plan = clear_auction([_bid("eq", 60)], reserve_price=60)
        assert plan.outcome is AuctionOutcome.IN_PROGRESS
        assert plan.clearing_price == 60

    def test_all_below_reserve_is_void(self) -> None:
        plan = clear_auction([_bid("a", 50), _bid("b", 59, 1)], reserve_price=60)
        assert plan.outcome is AuctionOutcome.VOID
        assert plan.winner is None
        assert plan.clearing_price is None
        assert [r.reference_id for r in plan.refunds] == ["b", "a"]

    def test_no_bids_is_void(self) -> None:
        plan = clear_auction([], reserve_price=60)
        assert plan.outcome is AuctionOutcome.VOID
        assert plan.refunds == []

    def test_already_refunded_bids_not_refunded_again(self) -> None:
        bids = [_bid("w", 100), _bid("gone", 70, 1, escrow_status="REFUNDED")]
        plan = clear_auction(bids, reserve_price=60)
        # still counts for the clearing price, but no second refund
        assert plan.clearing_price == 70
        assert [r.reference_id for r in plan.refunds] == ["w:excess"]

    def test_clearing_price_never_exceeds_winner(self) -> None:
        plan = clear_auction([_bid("a", 75), _bid("b", 74, 1), _bid("c", 73, 2)], 1)
        assert plan.winner is not None
        assert plan.clearing_price is not None
        assert plan.clearing_price <= plan.winner.amount


class TestContractDeadline:
    def test_tiers(self) -> None:
        assert contract_deadline(T0, "7_DAYS") == T0 + timedelta(days=7)
        assert contract_deadline(T0, "14_DAYS") == T0 + timedelta(days=14)
        assert contract_deadline(T0, "30_DAYS") == T0 + timedelta(days=30)
