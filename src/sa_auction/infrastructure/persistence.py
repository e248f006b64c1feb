"""AuctionRepository: concrete implementation of AuctionRepositoryProtocol.

All queries use raw text() SQL (no ORM).
Concurrency guards live in the SQL itself:
  - principal row FOR UPDATE serialises slot creation per issuer
  - slot row FOR SHARE keeps a bid and a concurrent close from interleaving
  - close is a compare-and-swap UPDATE ... WHERE status='OPEN' AND due
  - contract + winning bid rows FOR UPDATE serialise completion vs breach
  - escrow transitions only fire WHERE escrow_status='LOCKED'

Transaction ownership: the CALLER (lifecycle service) commits or rolls back.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sa_auction.domain.models import (
    Bid,
    Contract,
    ContractRecord,
    IssuerProfile,
    Principal,
    Slot,
)

# ---------------------------------------------------------------------------
# SQL: principals / issuer profiles
# ---------------------------------------------------------------------------

_GET_PRINCIPAL_SQL = text("""
    SELECT id, kind, verified FROM principals WHERE id = :principal_id
""")

_GET_PRINCIPAL_FOR_UPDATE_SQL = text("""
    SELECT id, kind, verified FROM principals WHERE id = :principal_id FOR UPDATE
""")

_GET_PROFILE_SQL = text("""
    SELECT issuer_id, reserve_price, active_slot_id, category_tags
    FROM issuer_profiles
    WHERE issuer_id = :issuer_id
""")

_UPSERT_PROFILE_SQL = text("""
    INSERT INTO issuer_profiles (issuer_id, reserve_price, active_slot_id, category_tags)
    VALUES (:issuer_id, :reserve_price, :active_slot_id, :category_tags)
    ON CONFLICT (issuer_id) DO UPDATE
        SET reserve_price  = EXCLUDED.reserve_price,
            active_slot_id = EXCLUDED.active_slot_id,
            category_tags  = EXCLUDED.category_tags,
            updated_at     = NOW()
""")

_CLEAR_ACTIVE_SLOT_SQL = text("""
    UPDATE issuer_profiles
    SET active_slot_id = NULL, updated_at = NOW()
    WHERE issuer_id = :issuer_id
""")

# ---------------------------------------------------------------------------
# SQL: slots
# ---------------------------------------------------------------------------

_SLOT_COLUMNS = "id, issuer_id, tier, category, status, auction_ends_at, created_at"

_INSERT_SLOT_SQL = text(f"""
    INSERT INTO slots (id, issuer_id, tier, category, status, auction_ends_at)
    VALUES (:id, :issuer_id, :tier, :category, :status, :auction_ends_at)
    RETURNING {_SLOT_COLUMNS}
""")

_GET_SLOT_SQL = text(f"""
    SELECT {_SLOT_COLUMNS} FROM slots WHERE id = :slot_id
""")

_GET_SLOT_FOR_SHARE_SQL = text(f"""
    SELECT {_SLOT_COLUMNS} FROM slots WHERE id = :slot_id FOR SHARE
""")

_CLOSE_SLOT_IF_DUE_SQL = text(f"""
    UPDATE slots
    SET status = 'AUCTION_CLOSED', updated_at = NOW()
    WHERE id = :slot_id
      AND status = 'OPEN'
      AND auction_ends_at <= :now
    RETURNING {_SLOT_COLUMNS}
""")

_UPDATE_SLOT_STATUS_SQL = text("""
    UPDATE slots SET status = :status, updated_at = NOW() WHERE id = :slot_id
""")

_LIST_DUE_SLOTS_SQL = text("""
    SELECT id FROM slots
    WHERE status = 'OPEN' AND auction_ends_at <= :now
    ORDER BY auction_ends_at ASC, id ASC
""")

# ---------------------------------------------------------------------------
# SQL: bids
# ---------------------------------------------------------------------------

_BID_COLUMNS = "id, slot_id, bidder_id, amount, escrow_status, created_at"

_INSERT_BID_SQL = text(f"""
    INSERT INTO bids (id, slot_id, bidder_id, amount, escrow_status)
    VALUES (:id, :slot_id, :bidder_id, :amount, :escrow_status)
    RETURNING {_BID_COLUMNS}
""")

_LIST_RANKED_BIDS_SQL = text(f"""
    SELECT {_BID_COLUMNS}
    FROM bids
    WHERE slot_id = :slot_id
    ORDER BY amount DESC, created_at ASC, id ASC
""")

_TRANSITION_ESCROW_SQL = text("""
    UPDATE bids
    SET escrow_status = :status, updated_at = NOW()
    WHERE id = :bid_id AND escrow_status = 'LOCKED'
    RETURNING id
""")

# ---------------------------------------------------------------------------
# SQL: contracts
# ---------------------------------------------------------------------------

_CONTRACT_COLUMNS = (
    "id, slot_id, winning_bid_id, clearing_price, status, started_at, deadline_at"
)

_INSERT_CONTRACT_SQL = text(f"""
    INSERT INTO contracts (id, slot_id, winning_bid_id, clearing_price,
                           status, started_at, deadline_at)
    VALUES (:id, :slot_id, :winning_bid_id, :clearing_price,
            :status, :started_at, :deadline_at)
    RETURNING {_CONTRACT_COLUMNS}
""")

_GET_CONTRACT_SQL = text(f"""
    SELECT {_CONTRACT_COLUMNS} FROM contracts WHERE id = :contract_id
""")

_GET_CONTRACT_RECORD_SQL = text("""
    SELECT c.id            AS contract_id,
           c.status        AS status,
           c.clearing_price,
           c.deadline_at,
           s.id            AS slot_id,
           s.issuer_id,
           b.id            AS winning_bid_id,
           b.bidder_id     AS winning_bidder_id,
           b.escrow_status AS winning_escrow_status
    FROM contracts c
    JOIN slots s ON s.id = c.slot_id
    JOIN bids  b ON b.id = c.winning_bid_id
    WHERE c.id = :contract_id
    FOR UPDATE OF c, b
""")

_UPDATE_CONTRACT_STATUS_SQL = text("""
    UPDATE contracts SET status = :status, updated_at = NOW() WHERE id = :contract_id
""")

_LIST_OVERDUE_CONTRACTS_SQL = text("""
    SELECT id FROM contracts
    WHERE status = 'ACTIVE' AND deadline_at <= :now
    ORDER BY deadline_at ASC, id ASC
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_principal(row: object) -> Principal:
    return Principal(
        id=row.id,  # type: ignore[attr-defined]
        kind=row.kind,  # type: ignore[attr-defined]
        verified=row.verified,  # type: ignore[attr-defined]
    )


def _row_to_profile(row: object) -> IssuerProfile:
    return IssuerProfile(
        issuer_id=row.issuer_id,  # type: ignore[attr-defined]
        reserve_price=row.reserve_price,  # type: ignore[attr-defined]
        active_slot_id=row.active_slot_id,  # type: ignore[attr-defined]
        category_tags=list(row.category_tags or []),  # type: ignore[attr-defined]
    )


def _row_to_slot(row: object) -> Slot:
    return Slot(
        id=row.id,  # type: ignore[attr-defined]
        issuer_id=row.issuer_id,  # type: ignore[attr-defined]
        tier=row.tier,  # type: ignore[attr-defined]
        category=row.category,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        auction_ends_at=row.auction_ends_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_bid(row: object) -> Bid:
    return Bid(
        id=row.id,  # type: ignore[attr-defined]
        slot_id=row.slot_id,  # type: ignore[attr-defined]
        bidder_id=row.bidder_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        escrow_status=row.escrow_status,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_contract(row: object) -> Contract:
    return Contract(
        id=row.id,  # type: ignore[attr-defined]
        slot_id=row.slot_id,  # type: ignore[attr-defined]
        winning_bid_id=row.winning_bid_id,  # type: ignore[attr-defined]
        clearing_price=row.clearing_price,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        started_at=row.started_at,  # type: ignore[attr-defined]
        deadline_at=row.deadline_at,  # type: ignore[attr-defined]
    )


def _row_to_record(row: object) -> ContractRecord:
    return ContractRecord(
        contract_id=row.contract_id,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        clearing_price=row.clearing_price,  # type: ignore[attr-defined]
        deadline_at=row.deadline_at,  # type: ignore[attr-defined]
        slot_id=row.slot_id,  # type: ignore[attr-defined]
        issuer_id=row.issuer_id,  # type: ignore[attr-defined]
        winning_bid_id=row.winning_bid_id,  # type: ignore[attr-defined]
        winning_bidder_id=row.winning_bidder_id,  # type: ignore[attr-defined]
        winning_escrow_status=row.winning_escrow_status,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AuctionRepository:
    """Concrete repository: statements only, the service owns the transaction."""

    async def get_principal(
        self, db: AsyncSession, principal_id: str, for_update: bool = False
    ) -> Principal | None:
        sql = _GET_PRINCIPAL_FOR_UPDATE_SQL if for_update else _GET_PRINCIPAL_SQL
        row = (await db.execute(sql, {"principal_id": principal_id})).fetchone()
        return _row_to_principal(row) if row else None

    async def get_issuer_profile(
        self, db: AsyncSession, issuer_id: str
    ) -> IssuerProfile | None:
        row = (await db.execute(_GET_PROFILE_SQL, {"issuer_id": issuer_id})).fetchone()
        return _row_to_profile(row) if row else None

    async def upsert_issuer_profile(self, db: AsyncSession, profile: IssuerProfile) -> None:
        await db.execute(
            _UPSERT_PROFILE_SQL,
            {
                "issuer_id": profile.issuer_id,
                "reserve_price": profile.reserve_price,
                "active_slot_id": profile.active_slot_id,
                "category_tags": profile.category_tags,
            },
        )

    async def clear_active_slot(self, db: AsyncSession, issuer_id: str) -> None:
        await db.execute(_CLEAR_ACTIVE_SLOT_SQL, {"issuer_id": issuer_id})

    async def insert_slot(self, db: AsyncSession, slot: Slot) -> Slot:
        result = await db.execute(
            _INSERT_SLOT_SQL,
            {
                "id": slot.id,
                "issuer_id": slot.issuer_id,
                "tier": slot.tier,
                "category": slot.category,
                "status": slot.status,
                "auction_ends_at": slot.auction_ends_at,
            },
        )
        return _row_to_slot(result.fetchone())

    async def get_slot(
        self, db: AsyncSession, slot_id: str, for_share: bool = False
    ) -> Slot | None:
        sql = _GET_SLOT_FOR_SHARE_SQL if for_share else _GET_SLOT_SQL
        row = (await db.execute(sql, {"slot_id": slot_id})).fetchone()
        return _row_to_slot(row) if row else None

    async def close_slot_if_due(
        self, db: AsyncSession, slot_id: str, now: datetime
    ) -> Slot | None:
        row = (
            await db.execute(_CLOSE_SLOT_IF_DUE_SQL, {"slot_id": slot_id, "now": now})
        ).fetchone()
        return _row_to_slot(row) if row else None

    async def update_slot_status(self, db: AsyncSession, slot_id: str, status: str) -> None:
        await db.execute(_UPDATE_SLOT_STATUS_SQL, {"slot_id": slot_id, "status": status})

    async def list_due_slot_ids(self, db: AsyncSession, now: datetime) -> list[str]:
        rows = (await db.execute(_LIST_DUE_SLOTS_SQL, {"now": now})).fetchall()
        return [row.id for row in rows]

    async def insert_bid(self, db: AsyncSession, bid: Bid) -> Bid:
        result = await db.execute(
            _INSERT_BID_SQL,
            {
                "id": bid.id,
                "slot_id": bid.slot_id,
                "bidder_id": bid.bidder_id,
                "amount": bid.amount,
                "escrow_status": bid.escrow_status,
            },
        )
        return _row_to_bid(result.fetchone())

    async def list_ranked_bids(self, db: AsyncSession, slot_id: str) -> list[Bid]:
        rows = (await db.execute(_LIST_RANKED_BIDS_SQL, {"slot_id": slot_id})).fetchall()
        return [_row_to_bid(row) for row in rows]

    async def transition_escrow(self, db: AsyncSession, bid_id: str, status: str) -> bool:
        """LOCKED -> status. False when the row was no longer LOCKED."""
        row = (
            await db.execute(_TRANSITION_ESCROW_SQL, {"bid_id": bid_id, "status": status})
        ).fetchone()
        return row is not None

    async def insert_contract(self, db: AsyncSession, contract: Contract) -> Contract:
        result = await db.execute(
            _INSERT_CONTRACT_SQL,
            {
                "id": contract.id,
                "slot_id": contract.slot_id,
                "winning_bid_id": contract.winning_bid_id,
                "clearing_price": contract.clearing_price,
                "status": contract.status,
                "started_at": contract.started_at,
                "deadline_at": contract.deadline_at,
            },
        )
        return _row_to_contract(result.fetchone())

    async def get_contract(self, db: AsyncSession, contract_id: str) -> Contract | None:
        row = (await db.execute(_GET_CONTRACT_SQL, {"contract_id": contract_id})).fetchone()
        return _row_to_contract(row) if row else None

    async def get_contract_record(
        self, db: AsyncSession, contract_id: str
    ) -> ContractRecord | None:
        row = (
            await db.execute(_GET_CONTRACT_RECORD_SQL, {"contract_id": contract_id})
        ).fetchone()
        return _row_to_record(row) if row else None

    async def update_contract_status(
        self, db: AsyncSession, contract_id: str, status: str
    ) -> None:
        await db.execute(
            _UPDATE_CONTRACT_STATUS_SQL, {"contract_id": contract_id, "status": status}
        )

    async def list_overdue_contract_ids(self, db: AsyncSession, now: datetime) -> list[str]:
        rows = (await db.execute(_LIST_OVERDUE_CONTRACTS_SQL, {"now": now})).fetchall()
        return [row.id for row in rows]
