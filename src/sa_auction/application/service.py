# src/sa_auction/application/service.py
"""Composition layer: owns the process-wide LifecycleEngine and maps results
to response schemas for the router."""
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sa_auction.application.schemas import (
    BidResponse,
    CloseAuctionResponse,
    CompleteContractResponse,
    ContractResponse,
    CreateSlotRequest,
    PlaceBidRequest,
    SlotResponse,
)
from src.sa_auction.engine.lifecycle import LifecycleEngine
from src.sa_common.redis_client import get_redis
from src.sa_escrow.factory import create_escrow_gateway
from src.sa_realtime.publisher import LifecycleNotifier, RedisEventPublisher

_engine: LifecycleEngine | None = None


def get_lifecycle_engine() -> LifecycleEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = LifecycleEngine(
            gateway=create_escrow_gateway(settings),
            notifier=LifecycleNotifier(
                RedisEventPublisher(get_redis, settings.EVENTS_CHANNEL)
            ),
            fee_bps=settings.PLATFORM_FEE_BPS,
            auction_window_hours=settings.AUCTION_WINDOW_HOURS,
        )
    return _engine


async def shutdown_lifecycle_engine() -> None:
    global _engine  # noqa: PLW0603
    if _engine is not None:
        await _engine.gateway.aclose()
        _engine = None


async def create_slot(
    req: CreateSlotRequest, issuer_id: str, db: AsyncSession
) -> SlotResponse:
    slot = await get_lifecycle_engine().create_slot(
        db,
        issuer_id=issuer_id,
        tier=req.tier,
        category=req.category,
        reserve_price=req.reserve_price_cents,
        category_tags=req.category_tags,
    )
    return SlotResponse.from_domain(slot)


async def place_bid(
    slot_id: str, req: PlaceBidRequest, bidder_id: str, db: AsyncSession
) -> BidResponse:
    bid = await get_lifecycle_engine().place_bid(db, slot_id, bidder_id, req.amount_cents)
    return BidResponse.from_domain(bid)


async def close_auction(slot_id: str, db: AsyncSession) -> CloseAuctionResponse:
    result = await get_lifecycle_engine().close_auction(db, slot_id)
    return CloseAuctionResponse.from_result(result)


async def complete_contract(
    contract_id: str, principal_id: str, db: AsyncSession
) -> CompleteContractResponse:
    result = await get_lifecycle_engine().complete_contract(db, contract_id, principal_id)
    return CompleteContractResponse.from_result(result)


async def get_slot(slot_id: str, db: AsyncSession) -> SlotResponse:
    return SlotResponse.from_domain(await get_lifecycle_engine().get_slot(db, slot_id))


async def get_contract(contract_id: str, db: AsyncSession) -> ContractResponse:
    contract = await get_lifecycle_engine().get_contract(db, contract_id)
    return ContractResponse.from_domain(contract)
