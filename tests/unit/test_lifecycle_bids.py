"""Unit tests for LifecycleEngine.place_bid."""

from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.sa_auction.domain.models import Bid, Principal, Slot
from src.sa_auction.engine.lifecycle import LifecycleEngine
from src.sa_common.errors import (
    AmountTooLargeError,
    AuctionEndedError,
    EscrowGatewayError,
    NonPositiveAmountError,
    NotVerifiedBidderError,
    SelfBidError,
    SlotNotFoundError,
    SlotNotOpenError,
)
from src.sa_realtime.publisher import LifecycleNotifier

_PATCH_NOW = "src.sa_auction.engine.lifecycle.utc_now"
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _slot(**kwargs: Any) -> Slot:
    defaults: dict[str, Any] = {
        "id": "slot-1",
        "issuer_id": "iss-1",
        "tier": "7_DAYS",
        "category": "engineering",
        "status": "OPEN",
        "auction_ends_at": NOW + timedelta(hours=1),
        "created_at": NOW - timedelta(hours=23),
    }
    defaults.update(kwargs)
    return Slot(**defaults)


async def _insert_bid(db: Any, bid: Bid) -> Bid:
    bid.created_at = NOW
    return bid


@pytest.fixture
def open_slot(repo: AsyncMock) -> AsyncMock:
    repo.get_principal.return_value = Principal(id="bidder-1", kind="BIDDER", verified=True)
    repo.get_slot.return_value = _slot()
    repo.insert_bid.side_effect = _insert_bid
    return repo


class TestPlaceBidHappyPath:
    async def test_locks_then_records(
        self,
        engine: LifecycleEngine,
        db: AsyncMock,
        gateway: AsyncMock,
        open_slot: AsyncMock,
    ) -> None:
        with patch(_PATCH_NOW, return_value=NOW):
            bid = await engine.place_bid(db, "slot-1", "bidder-1", 7500)

        assert bid.amount == 7500
        assert bid.escrow_status == "LOCKED"
        assert bid.slot_id == "slot-1"
        gateway.lock_funds.assert_awaited_once_with(bid.id, "bidder-1", 7500)
        db.commit.assert_awaited_once()

    async def test_slot_read_with_share_lock(
        self, engine: LifecycleEngine, db: AsyncMock, open_slot: AsyncMock
    ) -> None:
        with patch(_PATCH_NOW, return_value=NOW):
            await engine.place_bid(db, "slot-1", "bidder-1", 100)
        open_slot.get_slot.assert_awaited_once_with(db, "slot-1", for_share=True)

    async def test_emits_bid_created_after_commit(
        self,
        engine: LifecycleEngine,
        db: AsyncMock,
        notifier: MagicMock,
        open_slot: AsyncMock,
    ) -> None:
        with patch(_PATCH_NOW, return_value=NOW):
            bid = await engine.place_bid(db, "slot-1", "bidder-1", 100)
        notifier.emit.assert_awaited_once()
        event = notifier.emit.await_args.args[0]
        assert event.type == "bidCreated"
        assert event.payload.id == bid.id

    async def test_publisher_failure_does_not_fail_bid(
        self, repo: AsyncMock, gateway: AsyncMock, db: AsyncMock, open_slot: AsyncMock
    ) -> None:
        publisher = AsyncMock()
        publisher.publish.side_effect = ConnectionError("redis down")
        engine = LifecycleEngine(gateway, notifier=LifecycleNotifier(publisher), repo=repo)
        with patch(_PATCH_NOW, return_value=NOW):
            bid = await engine.place_bid(db, "slot-1", "bidder-1", 100)
        assert bid.escrow_status == "LOCKED"
        publisher.publish.assert_awaited_once()


class TestPlaceBidRejections:
    @pytest.mark.parametrize("amount", [0, -1, 10.5, "100", None])
    async def test_bad_amount(
        self, engine: LifecycleEngine, db: AsyncMock, repo: AsyncMock, amount: Any
    ) -> None:
        with pytest.raises(NonPositiveAmountError):
            await engine.place_bid(db, "slot-1", "bidder-1", amount)
        repo.get_slot.assert_not_awaited()

    async def test_amount_over_bigint_never_locks(
        self,
        engine: LifecycleEngine,
        db: AsyncMock,
        gateway: AsyncMock,
        open_slot: AsyncMock,
    ) -> None:
        with patch(_PATCH_NOW, return_value=NOW), pytest.raises(AmountTooLargeError):
            await engine.place_bid(db, "slot-1", "bidder-1", 2**63)
        gateway.lock_funds.assert_not_awaited()
        open_slot.insert_bid.assert_not_awaited()

    async def test_slot_not_found(
        self, engine: LifecycleEngine, db: AsyncMock, open_slot: AsyncMock
    ) -> None:
        open_slot.get_slot.return_value = None
        with pytest.raises(SlotNotFoundError):
            await engine.place_bid(db, "missing", "bidder-1", 100)

    async def test_issuer_cannot_bid_on_own_slot(
        self,
        engine: LifecycleEngine,
        db: AsyncMock,
        gateway: AsyncMock,
        open_slot: AsyncMock,
    ) -> None:
        open_slot.get_principal.return_value = Principal(id="iss-1", kind="ISSUER", verified=True)
        with pytest.raises(SelfBidError):
            await engine.place_bid(db, "slot-1", "iss-1", 100)
        gateway.lock_funds.assert_not_awaited()

    @pytest.mark.parametrize(
        "principal",
        [
            None,
            Principal(id="bidder-1", kind="BIDDER", verified=False),
            Principal(id="bidder-1", kind="ISSUER", verified=True),
        ],
    )
    async def test_not_verified_bidder(
        self,
        engine: LifecycleEngine,
        db: AsyncMock,
        open_slot: AsyncMock,
        principal: Principal | None,
    ) -> None:
        open_slot.get_principal.return_value = principal
        with pytest.raises(NotVerifiedBidderError):
            await engine.place_bid(db, "slot-1", "bidder-1", 100)

    @pytest.mark.parametrize("status", ["AUCTION_CLOSED", "IN_PROGRESS", "VOID", "COMPLETED"])
    async def test_slot_not_open(
        self, engine: LifecycleEngine, db: AsyncMock, open_slot: AsyncMock, status: str
    ) -> None:
        open_slot.get_slot.return_value = _slot(status=status)
        with pytest.raises(SlotNotOpenError):
            await engine.place_bid(db, "slot-1", "bidder-1", 100)

    async def test_auction_ended_at_exact_end(
        self, engine: LifecycleEngine, db: AsyncMock, gateway: AsyncMock, open_slot: AsyncMock
    ) -> None:
        open_slot.get_slot.return_value = _slot(auction_ends_at=NOW)
        with patch(_PATCH_NOW, return_value=NOW), pytest.raises(AuctionEndedError):
            await engine.place_bid(db, "slot-1", "bidder-1", 100)
        gateway.lock_funds.assert_not_awaited()
        db.rollback.assert_awaited_once()


class TestPlaceBidEscrowFailures:
    async def test_lock_failure_leaves_no_bid(
        self,
        engine: LifecycleEngine,
        db: AsyncMock,
        gateway: AsyncMock,
        open_slot: AsyncMock,
        notifier: MagicMock,
    ) -> None:
        gateway.lock_funds.side_effect = EscrowGatewayError("lock", "x", "(402) insufficient funds")
        with patch(_PATCH_NOW, return_value=NOW), pytest.raises(EscrowGatewayError) as exc:
            await engine.place_bid(db, "slot-1", "bidder-1", 100)

        assert exc.value.reason == "(402) insufficient funds"
        open_slot.insert_bid.assert_not_awaited()
        gateway.refund_to_owner.assert_not_awaited()
        db.rollback.assert_awaited_once()
        notifier.emit.assert_not_awaited()

    async def test_insert_failure_refunds_locked_funds(
        self,
        engine: LifecycleEngine,
        db: AsyncMock,
        gateway: AsyncMock,
        open_slot: AsyncMock,
    ) -> None:
        open_slot.insert_bid.side_effect = RuntimeError("unique violation")
        with patch(_PATCH_NOW, return_value=NOW), pytest.raises(RuntimeError):
            await engine.place_bid(db, "slot-1", "bidder-1", 100)

        bid_id = gateway.lock_funds.await_args.args[0]
        gateway.refund_to_owner.assert_awaited_once_with(bid_id, "bidder-1", 100)
        db.rollback.assert_awaited_once()

    async def test_failed_compensation_keeps_original_error(
        self,
        engine: LifecycleEngine,
        db: AsyncMock,
        gateway: AsyncMock,
        open_slot: AsyncMock,
    ) -> None:
        db.commit.side_effect = RuntimeError("commit failed")
        gateway.refund_to_owner.side_effect = EscrowGatewayError("refund", "x", "down")
        with patch(_PATCH_NOW, return_value=NOW), pytest.raises(RuntimeError, match="commit"):
            await engine.place_bid(db, "slot-1", "bidder-1", 100)
        gateway.refund_to_owner.assert_awaited_once()

    async def test_unexpected_compensation_error_is_logged_not_raised(
        self,
        engine: LifecycleEngine,
        db: AsyncMock,
        gateway: AsyncMock,
        open_slot: AsyncMock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        open_slot.insert_bid.side_effect = RuntimeError("unique violation")
        gateway.refund_to_owner.side_effect = ConnectionResetError("peer reset")
        with patch(_PATCH_NOW, return_value=NOW), pytest.raises(RuntimeError, match="unique"):
            await engine.place_bid(db, "slot-1", "bidder-1", 100)
        assert "could not be refunded" in caplog.text
