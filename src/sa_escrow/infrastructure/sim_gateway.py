"""SimulatedEscrowGateway: no funds move; every call succeeds and is logged."""

import logging

logger = logging.getLogger(__name__)


class SimulatedEscrowGateway:
    async def lock_funds(self, reference_id: str, principal_id: str, amount: int) -> None:
        logger.debug("sim escrow lock ref=%s principal=%s amount=%d", reference_id, principal_id, amount)

    async def refund_to_owner(self, reference_id: str, principal_id: str, amount: int) -> None:
        logger.debug("sim escrow refund ref=%s principal=%s amount=%d", reference_id, principal_id, amount)

    async def release_to_issuer(
        self,
        reference_id: str,
        principal_id: str,
        net_amount: int,
        platform_fee: int,
    ) -> None:
        logger.debug(
            "sim escrow release ref=%s principal=%s net=%d fee=%d",
            reference_id,
            principal_id,
            net_amount,
            platform_fee,
        )

    async def aclose(self) -> None:
        return None
