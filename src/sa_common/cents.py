"""Integer arithmetic utilities for cents-denominated escrow amounts.

All reserve prices, bids, clearing prices and fees are int (cents).
No float, no Decimal.
"""

from src.sa_common.errors import AmountTooLargeError, NonPositiveAmountError

# Amount columns are BIGINT.
MAX_CENTS = 2**63 - 1


def validate_positive_cents(value: object, field: str) -> int:
    """Reject anything that is not a strictly positive int (bool and float included)
    or that would overflow a BIGINT column."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise NonPositiveAmountError(field, value)
    if value > MAX_CENTS:
        raise AmountTooLargeError(field, value, MAX_CENTS)
    return value


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def calculate_platform_fee(clearing_price: int, fee_bps: int) -> int:
    """Platform fee with floor division (the issuer never loses a partial cent).

    fee = floor(clearing_price * fee_bps / 10000)
    """
    if clearing_price <= 0 or fee_bps <= 0:
        return 0
    return (clearing_price * fee_bps) // 10000
