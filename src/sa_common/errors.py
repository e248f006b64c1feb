"""Unified error codes and custom exceptions.

Every error belongs to one category so a caller can decide whether to fix
input, escalate, or retry later:

  1xxx: VALIDATION      malformed input, never retried
  2xxx: AUTHORIZATION   wrong principal kind/identity, never retried
  3xxx: STATE_CONFLICT  resource not in the required state, may retry later
  4xxx: INTEGRITY       missing related row, a data-consistency bug
  5xxx: GATEWAY         escrow provider call failed, safe to retry
  SYSTEM          the AppError base itself
"""


class AppError(Exception):
    """Base application error."""

    category: str = "SYSTEM"
    retryable: bool = False

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Validation ---

class InvalidInputError(AppError):
    category = "VALIDATION"

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422)


class NonPositiveAmountError(InvalidInputError):
    def __init__(self, field: str, value: object) -> None:
        super().__init__(1001, f"{field} must be a positive integer in cents, got {value!r}")


class InvalidCategoryTagsError(InvalidInputError):
    def __init__(self, detail: str = "category tags must be a non-empty list of non-empty strings") -> None:
        super().__init__(1002, detail)


class InvalidSlotFieldError(InvalidInputError):
    def __init__(self, field: str, detail: str) -> None:
        super().__init__(1003, f"Invalid {field}: {detail}")


class AmountTooLargeError(InvalidInputError):
    def __init__(self, field: str, value: int, limit: int) -> None:
        super().__init__(1004, f"{field} must not exceed {limit} cents, got {value}")


# --- 2xxx: Authorization ---

class AuthorizationError(AppError):
    category = "AUTHORIZATION"

    def __init__(self, code: int, message: str, http_status: int = 403) -> None:
        super().__init__(code, message, http_status)


class NotVerifiedIssuerError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(2001, "Only verified issuers can create slots")


class NotVerifiedBidderError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(2002, "Only verified bidders can place bids")


class SelfBidError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(2003, "Issuer cannot bid on own slot")


class NotContractIssuerError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(2004, "Only the contract issuer can mark completion")


class InvalidCredentialsError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(2005, "Invalid or expired token", 401)


# --- 3xxx: State conflict ---

class StateConflictError(AppError):
    category = "STATE_CONFLICT"
    retryable = True

    def __init__(self, code: int, message: str, http_status: int = 409) -> None:
        super().__init__(code, message, http_status)


class ActiveSlotExistsError(StateConflictError):
    def __init__(self, issuer_id: str) -> None:
        super().__init__(3001, f"Issuer {issuer_id} already has one active slot")


class SlotNotFoundError(StateConflictError):
    retryable = False

    def __init__(self, slot_id: str) -> None:
        super().__init__(3002, f"Slot not found: {slot_id}", 404)


class SlotNotOpenError(StateConflictError):
    retryable = False

    def __init__(self, slot_id: str, status: str) -> None:
        super().__init__(3003, f"Slot {slot_id} is not open for bidding (status={status})")


class AuctionEndedError(StateConflictError):
    retryable = False

    def __init__(self, slot_id: str) -> None:
        super().__init__(3004, f"Auction already ended for slot {slot_id}")


class SlotNotClosableError(StateConflictError):
    def __init__(self, slot_id: str) -> None:
        super().__init__(3005, f"Slot {slot_id} cannot be closed yet or is already closed")


class ContractNotFoundError(StateConflictError):
    retryable = False

    def __init__(self, contract_id: str) -> None:
        super().__init__(3006, f"Contract not found: {contract_id}", 404)


class ContractNotActiveError(StateConflictError):
    retryable = False

    def __init__(self, contract_id: str, status: str) -> None:
        super().__init__(3007, f"Contract {contract_id} is not active (status={status})")


class ContractDeadlinePassedError(StateConflictError):
    """Completion is no longer possible; the contract will be breached."""

    retryable = False

    def __init__(self, contract_id: str) -> None:
        super().__init__(
            3008, f"Deadline exceeded for contract {contract_id}, contract must be breached"
        )


# --- 4xxx: Integrity ---

class DataIntegrityError(AppError):
    category = "INTEGRITY"

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 500)


class IssuerProfileMissingError(DataIntegrityError):
    def __init__(self, issuer_id: str) -> None:
        super().__init__(4001, f"Issuer profile not found for issuer {issuer_id}")


class EscrowNotLockedError(DataIntegrityError):
    def __init__(self, bid_id: str, status: str) -> None:
        super().__init__(
            4002, f"Winning escrow {bid_id} is not available for release (status={status})"
        )


# --- 5xxx: Escrow gateway ---

class EscrowGatewayError(AppError):
    category = "GATEWAY"
    retryable = True

    def __init__(self, operation: str, reference_id: str, reason: str) -> None:
        self.operation = operation
        self.reference_id = reference_id
        self.reason = reason
        super().__init__(
            5001, f"Escrow {operation} failed for {reference_id}: {reason}", 502
        )
