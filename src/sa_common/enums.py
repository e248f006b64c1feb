"""Global enums: must match DB CHECK constraints exactly.

Values are the wire/storage strings and round-trip unchanged through the
database, the API and the event channel.
"""

from datetime import timedelta
from enum import Enum


class PrincipalKind(str, Enum):
    ISSUER = "ISSUER"
    BIDDER = "BIDDER"


class SlotTier(str, Enum):
    """Contract duration class; the value encodes the day count."""
    SEVEN_DAYS = "7_DAYS"
    FOURTEEN_DAYS = "14_DAYS"
    THIRTY_DAYS = "30_DAYS"

    @property
    def duration(self) -> timedelta:
        return timedelta(days=_TIER_DAYS[self])


_TIER_DAYS: dict[SlotTier, int] = {
    SlotTier.SEVEN_DAYS: 7,
    SlotTier.FOURTEEN_DAYS: 14,
    SlotTier.THIRTY_DAYS: 30,
}


class SlotStatus(str, Enum):
    OPEN = "OPEN"
    AUCTION_CLOSED = "AUCTION_CLOSED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    BREACH = "BREACH"
    VOID = "VOID"


class EscrowStatus(str, Enum):
    """LOCKED transitions exactly once to RELEASED or REFUNDED."""
    LOCKED = "LOCKED"
    RELEASED = "RELEASED"
    REFUNDED = "REFUNDED"


class ContractStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    BREACH = "BREACH"


class AuctionOutcome(str, Enum):
    VOID = "VOID"
    IN_PROGRESS = "IN_PROGRESS"


class BreachAction(str, Enum):
    BREACH = "BREACH"
    NO_ACTION = "NO_ACTION"


class EscrowOperation(str, Enum):
    """Gateway operation names; part of the idempotency key."""
    LOCK = "lock"
    REFUND = "refund"
    RELEASE = "release"
