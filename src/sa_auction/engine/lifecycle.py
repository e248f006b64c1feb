"""LifecycleEngine: slot creation, bidding, clearing, completion and breach.

Each single-entity operation runs as ONE transaction on the session it is
given: every state it depends on is re-read inside that transaction, and it
either commits fully or rolls back and re-raises. Escrow calls happen inside
the transaction window, before commit, so a gateway failure leaves no row
behind. Events go out only after commit and never affect the outcome.

The two sweeps open a fresh session per item; one failing item is logged and
recorded, the batch carries on.
"""
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.sa_auction.domain.clearing import (
    ClearingPlan,
    RefundInstruction,
    clear_auction,
    contract_deadline,
)
from src.sa_auction.domain.models import (
    AuctionCloseResult,
    Bid,
    BreachResult,
    CompletionResult,
    Contract,
    IssuerProfile,
    Slot,
    SweepReport,
)
from src.sa_auction.domain.repository import AuctionRepositoryProtocol
from src.sa_auction.infrastructure.persistence import AuctionRepository
from src.sa_common.cents import calculate_platform_fee, validate_positive_cents
from src.sa_common.database import async_session_factory
from src.sa_common.datetime_utils import hours_from, utc_now
from src.sa_common.enums import (
    AuctionOutcome,
    BreachAction,
    ContractStatus,
    EscrowStatus,
    SlotStatus,
    SlotTier,
)
from src.sa_common.errors import (
    ActiveSlotExistsError,
    AppError,
    AuctionEndedError,
    ContractDeadlinePassedError,
    ContractNotActiveError,
    ContractNotFoundError,
    EscrowNotLockedError,
    InvalidCategoryTagsError,
    InvalidSlotFieldError,
    IssuerProfileMissingError,
    NotContractIssuerError,
    NotVerifiedBidderError,
    NotVerifiedIssuerError,
    SelfBidError,
    SlotNotClosableError,
    SlotNotFoundError,
    SlotNotOpenError,
)
from src.sa_common.id_generator import generate_id
from src.sa_escrow.domain.gateway import EscrowGatewayProtocol
from src.sa_realtime.events import auction_closed, bid_created
from src.sa_realtime.publisher import LifecycleNotifier

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]


def _normalize_tags(tags: object) -> list[str]:
    if not isinstance(tags, list) or not tags:
        raise InvalidCategoryTagsError()
    if not all(isinstance(t, str) and t.strip() for t in tags):
        raise InvalidCategoryTagsError("category tags must contain non-empty strings")
    return [t.strip() for t in tags]


def _parse_tier(tier: object) -> SlotTier:
    try:
        return SlotTier(tier)
    except ValueError:
        allowed = ", ".join(t.value for t in SlotTier)
        raise InvalidSlotFieldError("tier", f"{tier!r} (allowed: {allowed})") from None


class LifecycleEngine:
    def __init__(
        self,
        gateway: EscrowGatewayProtocol,
        notifier: LifecycleNotifier | None = None,
        repo: AuctionRepositoryProtocol | None = None,
        session_factory: SessionFactory | None = None,
        fee_bps: int = 1200,
        auction_window_hours: int = 24,
    ) -> None:
        self._gateway = gateway
        self._notifier = notifier or LifecycleNotifier()
        self._repo: AuctionRepositoryProtocol = repo or AuctionRepository()
        self._session_factory: SessionFactory = session_factory or async_session_factory
        self._fee_bps = fee_bps
        self._auction_window_hours = auction_window_hours

    @property
    def gateway(self) -> EscrowGatewayProtocol:
        return self._gateway

    # ------------------------------------------------------------------
    # Slot creation
    # ------------------------------------------------------------------

    async def create_slot(
        self,
        db: AsyncSession,
        issuer_id: str,
        tier: str,
        category: str,
        reserve_price: int,
        category_tags: list[str],
    ) -> Slot:
        validate_positive_cents(reserve_price, "reserve_price")
        slot_tier = _parse_tier(tier)
        if not isinstance(category, str) or not category.strip():
            raise InvalidSlotFieldError("category", "must be a non-empty string")
        tags = _normalize_tags(category_tags)

        try:
            # Row lock on the issuer serialises concurrent creations, which
            # makes the active_slot_id read-then-write below race-free.
            issuer = await self._repo.get_principal(db, issuer_id, for_update=True)
            if issuer is None or not issuer.is_verified_issuer:
                raise NotVerifiedIssuerError()

            profile = await self._repo.get_issuer_profile(db, issuer_id)
            if profile is not None and profile.active_slot_id:
                raise ActiveSlotExistsError(issuer_id)

            now = utc_now()
            slot = await self._repo.insert_slot(
                db,
                Slot(
                    id=generate_id(),
                    issuer_id=issuer_id,
                    tier=slot_tier.value,
                    category=category.strip(),
                    status=SlotStatus.OPEN.value,
                    auction_ends_at=hours_from(now, self._auction_window_hours),
                ),
            )
            await self._repo.upsert_issuer_profile(
                db,
                IssuerProfile(
                    issuer_id=issuer_id,
                    reserve_price=reserve_price,
                    active_slot_id=slot.id,
                    category_tags=tags,
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Slot %s opened by issuer %s (tier=%s)", slot.id, issuer_id, slot.tier)
        return slot

    # ------------------------------------------------------------------
    # Bid placement
    # ------------------------------------------------------------------

    async def place_bid(
        self, db: AsyncSession, slot_id: str, bidder_id: str, amount: int
    ) -> Bid:
        validate_positive_cents(amount, "amount")

        bid_id = generate_id()
        locked = False
        try:
            bidder = await self._repo.get_principal(db, bidder_id)
            slot = await self._repo.get_slot(db, slot_id, for_share=True)
            if slot is None:
                raise SlotNotFoundError(slot_id)
            if slot.issuer_id == bidder_id:
                raise SelfBidError()
            if bidder is None or not bidder.is_verified_bidder:
                raise NotVerifiedBidderError()
            if not slot.is_open:
                raise SlotNotOpenError(slot_id, slot.status)
            if slot.auction_ends_at <= utc_now():
                raise AuctionEndedError(slot_id)

            await self._gateway.lock_funds(bid_id, bidder_id, amount)
            locked = True
            bid = await self._repo.insert_bid(
                db,
                Bid(
                    id=bid_id,
                    slot_id=slot_id,
                    bidder_id=bidder_id,
                    amount=amount,
                    escrow_status=EscrowStatus.LOCKED.value,
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            if locked:
                await self._refund_orphaned_lock(bid_id, bidder_id, amount)
            raise

        logger.info("Bid %s placed on slot %s: %d cents", bid.id, slot_id, amount)
        await self._notifier.emit(bid_created(bid))
        return bid

    async def _refund_orphaned_lock(self, bid_id: str, bidder_id: str, amount: int) -> None:
        """Funds were locked but the bid row never committed: give them back."""
        try:
            await self._gateway.refund_to_owner(bid_id, bidder_id, amount)
        except Exception:
            logger.error(
                "Orphaned escrow lock %s (%d cents for %s) could not be refunded",
                bid_id,
                amount,
                bidder_id,
                exc_info=True,
            )

    # ------------------------------------------------------------------
    # Auction close
    # ------------------------------------------------------------------

    async def close_auction(self, db: AsyncSession, slot_id: str) -> AuctionCloseResult:
        try:
            now = utc_now()
            # Compare-and-swap: only one concurrent closer gets the row back.
            slot = await self._repo.close_slot_if_due(db, slot_id, now)
            if slot is None:
                raise SlotNotClosableError(slot_id)

            profile = await self._repo.get_issuer_profile(db, slot.issuer_id)
            if profile is None:
                raise IssuerProfileMissingError(slot.issuer_id)

            bids = await self._repo.list_ranked_bids(db, slot_id)
            plan = clear_auction(bids, profile.reserve_price)
            refunded = await self._apply_refunds(db, plan.refunds)

            if plan.outcome is AuctionOutcome.VOID:
                result = await self._void_slot(db, slot, refunded)
            else:
                result = await self._award_slot(db, slot, plan, refunded, now)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if result.contract is not None:
            logger.info(
                "Auction %s cleared: contract %s, winner %s, clearing price %d",
                slot_id,
                result.contract.id,
                result.contract.winning_bid_id,
                result.contract.clearing_price,
            )
        else:
            logger.info("Auction %s void: %d bids refunded", slot_id, len(refunded))
        await self._notifier.emit(auction_closed(result))
        return result

    async def _apply_refunds(
        self, db: AsyncSession, refunds: list[RefundInstruction]
    ) -> list[str]:
        """Issue refunds in ranking order; flip the bid row when it is a full refund.

        A failed refund aborts the whole close. Nothing is marked, the slot is
        OPEN and due again, and the next sweep replays every refund under the
        same reference ids, which the provider deduplicates.
        """
        refunded: list[str] = []
        for refund in refunds:
            await self._gateway.refund_to_owner(
                refund.reference_id, refund.bidder_id, refund.amount
            )
            if refund.marks_refunded:
                await self._repo.transition_escrow(
                    db, refund.bid_id, EscrowStatus.REFUNDED.value
                )
                refunded.append(refund.bid_id)
        return refunded

    async def _void_slot(
        self, db: AsyncSession, slot: Slot, refunded: list[str]
    ) -> AuctionCloseResult:
        await self._repo.update_slot_status(db, slot.id, SlotStatus.VOID.value)
        await self._repo.clear_active_slot(db, slot.issuer_id)
        return AuctionCloseResult(
            slot_id=slot.id, status=AuctionOutcome.VOID, refunded_bid_ids=refunded
        )

    async def _award_slot(
        self,
        db: AsyncSession,
        slot: Slot,
        plan: ClearingPlan,
        refunded: list[str],
        now: datetime,
    ) -> AuctionCloseResult:
        assert plan.winner is not None and plan.clearing_price is not None
        contract = await self._repo.insert_contract(
            db,
            Contract(
                id=generate_id(),
                slot_id=slot.id,
                winning_bid_id=plan.winner.id,
                clearing_price=plan.clearing_price,
                status=ContractStatus.ACTIVE.value,
                started_at=now,
                deadline_at=contract_deadline(now, slot.tier),
            ),
        )
        await self._repo.update_slot_status(db, slot.id, SlotStatus.IN_PROGRESS.value)
        return AuctionCloseResult(
            slot_id=slot.id,
            status=AuctionOutcome.IN_PROGRESS,
            contract=contract,
            refunded_bid_ids=refunded,
            excess_refund=plan.excess_refund,
        )

    # ------------------------------------------------------------------
    # Contract completion
    # ------------------------------------------------------------------

    async def complete_contract(
        self, db: AsyncSession, contract_id: str, principal_id: str
    ) -> CompletionResult:
        try:
            record = await self._repo.get_contract_record(db, contract_id)
            if record is None:
                raise ContractNotFoundError(contract_id)
            if not record.is_active:
                raise ContractNotActiveError(contract_id, record.status)
            if record.issuer_id != principal_id:
                raise NotContractIssuerError()
            if utc_now() > record.deadline_at:
                raise ContractDeadlinePassedError(contract_id)
            if record.winning_escrow_status != EscrowStatus.LOCKED:
                raise EscrowNotLockedError(record.winning_bid_id, record.winning_escrow_status)

            platform_fee = calculate_platform_fee(record.clearing_price, self._fee_bps)
            net_amount = record.clearing_price - platform_fee
            await self._gateway.release_to_issuer(
                record.winning_bid_id, record.issuer_id, net_amount, platform_fee
            )
            await self._repo.transition_escrow(
                db, record.winning_bid_id, EscrowStatus.RELEASED.value
            )
            await self._repo.update_contract_status(
                db, contract_id, ContractStatus.COMPLETED.value
            )
            await self._repo.update_slot_status(db, record.slot_id, SlotStatus.COMPLETED.value)
            await self._repo.clear_active_slot(db, record.issuer_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Contract %s completed: net %d to issuer, fee %d",
            contract_id,
            net_amount,
            platform_fee,
        )
        return CompletionResult(
            contract_id=contract_id,
            status=ContractStatus.COMPLETED,
            clearing_price=record.clearing_price,
            platform_fee=platform_fee,
            net_amount=net_amount,
        )

    # ------------------------------------------------------------------
    # Automatic breach
    # ------------------------------------------------------------------

    async def auto_breach_contract(self, db: AsyncSession, contract_id: str) -> BreachResult:
        try:
            record = await self._repo.get_contract_record(db, contract_id)
            if record is None or not record.is_active or record.deadline_at > utc_now():
                await db.rollback()
                return BreachResult(contract_id=contract_id, action=BreachAction.NO_ACTION)

            refunded_amount = 0
            if record.winning_escrow_status == EscrowStatus.LOCKED:
                await self._gateway.refund_to_owner(
                    record.winning_bid_id, record.winning_bidder_id, record.clearing_price
                )
                await self._repo.transition_escrow(
                    db, record.winning_bid_id, EscrowStatus.REFUNDED.value
                )
                refunded_amount = record.clearing_price

            await self._repo.update_contract_status(db, contract_id, ContractStatus.BREACH.value)
            await self._repo.update_slot_status(db, record.slot_id, SlotStatus.BREACH.value)
            await self._repo.clear_active_slot(db, record.issuer_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Contract %s breached: %d cents refunded", contract_id, refunded_amount)
        return BreachResult(
            contract_id=contract_id,
            action=BreachAction.BREACH,
            refunded_amount=refunded_amount,
        )

    # ------------------------------------------------------------------
    # Sweeps
    # ------------------------------------------------------------------

    async def close_due_auctions(self, now: datetime | None = None) -> SweepReport:
        now = now or utc_now()
        async with self._session_factory() as db:
            slot_ids = await self._repo.list_due_slot_ids(db, now)
        return await self._sweep(slot_ids, self.close_auction, "close auction")

    async def breach_overdue_contracts(self, now: datetime | None = None) -> SweepReport:
        now = now or utc_now()
        async with self._session_factory() as db:
            contract_ids = await self._repo.list_overdue_contract_ids(db, now)
        return await self._sweep(contract_ids, self.auto_breach_contract, "breach contract")

    async def _sweep(
        self,
        ids: list[str],
        operation: Callable[[AsyncSession, str], Awaitable[object]],
        label: str,
    ) -> SweepReport:
        report = SweepReport()
        for item_id in ids:
            async with self._session_factory() as db:
                try:
                    await operation(db, item_id)
                except AppError as exc:
                    logger.warning("Sweep skipped %s %s: %s", label, item_id, exc.message)
                    report.failed[item_id] = exc.message
                    continue
                except Exception as exc:
                    logger.exception("Sweep failed to %s %s", label, item_id)
                    report.failed[item_id] = str(exc) or type(exc).__name__
                    continue
            report.processed.append(item_id)
        if ids:
            logger.info(
                "Sweep %s: %d processed, %d failed", label, len(report.processed), len(report.failed)
            )
        return report

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------

    async def get_slot(self, db: AsyncSession, slot_id: str) -> Slot:
        slot = await self._repo.get_slot(db, slot_id)
        if slot is None:
            raise SlotNotFoundError(slot_id)
        return slot

    async def get_contract(self, db: AsyncSession, contract_id: str) -> Contract:
        contract = await self._repo.get_contract(db, contract_id)
        if contract is None:
            raise ContractNotFoundError(contract_id)
        return contract
