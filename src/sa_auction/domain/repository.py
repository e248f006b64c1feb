# src/sa_auction/domain/repository.py
"""Storage operations the lifecycle engine needs from the auction tables.

Every method runs inside the caller's transaction; none commits.
"""
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sa_auction.domain.models import (
    Bid,
    Contract,
    ContractRecord,
    IssuerProfile,
    Principal,
    Slot,
)


class AuctionRepositoryProtocol(Protocol):
    # --- principals / profiles ---
    async def get_principal(
        self, db: AsyncSession, principal_id: str, for_update: bool = False
    ) -> Principal | None: ...

    async def get_issuer_profile(
        self, db: AsyncSession, issuer_id: str
    ) -> IssuerProfile | None: ...

    async def upsert_issuer_profile(
        self, db: AsyncSession, profile: IssuerProfile
    ) -> None: ...

    async def clear_active_slot(self, db: AsyncSession, issuer_id: str) -> None: ...

    # --- slots ---
    async def insert_slot(self, db: AsyncSession, slot: Slot) -> Slot: ...

    async def get_slot(
        self, db: AsyncSession, slot_id: str, for_share: bool = False
    ) -> Slot | None: ...

    async def close_slot_if_due(
        self, db: AsyncSession, slot_id: str, now: datetime
    ) -> Slot | None: ...

    async def update_slot_status(
        self, db: AsyncSession, slot_id: str, status: str
    ) -> None: ...

    async def list_due_slot_ids(self, db: AsyncSession, now: datetime) -> list[str]: ...

    # --- bids ---
    async def insert_bid(self, db: AsyncSession, bid: Bid) -> Bid: ...

    async def list_ranked_bids(self, db: AsyncSession, slot_id: str) -> list[Bid]: ...

    async def transition_escrow(
        self, db: AsyncSession, bid_id: str, status: str
    ) -> bool: ...

    # --- contracts ---
    async def insert_contract(self, db: AsyncSession, contract: Contract) -> Contract: ...

    async def get_contract(
        self, db: AsyncSession, contract_id: str
    ) -> Contract | None: ...

    async def get_contract_record(
        self, db: AsyncSession, contract_id: str
    ) -> ContractRecord | None: ...

    async def update_contract_status(
        self, db: AsyncSession, contract_id: str, status: str
    ) -> None: ...

    async def list_overdue_contract_ids(
        self, db: AsyncSession, now: datetime
    ) -> list[str]: ...
