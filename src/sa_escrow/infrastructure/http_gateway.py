"""HttpEscrowGateway: escrow provider reached over JSON/HTTP.

Each operation is a POST to its configured path with:
  Authorization:     Bearer <api key>
  X-Idempotency-Key: <reference_id>:<operation>

Any non-2xx response, timeout or transport error raises EscrowGatewayError.
The provider deduplicates on the idempotency key, so the engine can retry.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from src.sa_common.enums import EscrowOperation
from src.sa_common.errors import EscrowGatewayError

logger = logging.getLogger(__name__)

_MAX_REASON_CHARS = 200


@dataclass(frozen=True)
class HttpEscrowGatewayConfig:
    base_url: str
    api_key: str
    timeout_seconds: float = 10.0
    lock_path: str = "/escrow/lock"
    refund_path: str = "/escrow/refund"
    release_path: str = "/escrow/release"


def normalize_path(path: str) -> str:
    if not path:
        raise ValueError("Escrow gateway path cannot be empty")
    return path if path.startswith("/") else f"/{path}"


def _error_reason(response: httpx.Response) -> str:
    """Best human-readable reason from a failed provider response."""
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            body = response.json()
        except ValueError:
            return "Unexpected JSON error response"
        if isinstance(body, dict):
            for key in ("error", "message"):
                value = body.get(key)
                if isinstance(value, str) and value:
                    return value
    return response.text[:_MAX_REASON_CHARS] or response.reason_phrase or "Unknown error"


class HttpEscrowGateway:
    def __init__(
        self,
        config: HttpEscrowGatewayConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
        )
        self._paths = {
            EscrowOperation.LOCK: normalize_path(config.lock_path),
            EscrowOperation.REFUND: normalize_path(config.refund_path),
            EscrowOperation.RELEASE: normalize_path(config.release_path),
        }

    async def lock_funds(self, reference_id: str, principal_id: str, amount: int) -> None:
        await self._post(
            EscrowOperation.LOCK,
            reference_id,
            {"reference_id": reference_id, "principal_id": principal_id, "amount": amount},
        )

    async def refund_to_owner(self, reference_id: str, principal_id: str, amount: int) -> None:
        await self._post(
            EscrowOperation.REFUND,
            reference_id,
            {"reference_id": reference_id, "principal_id": principal_id, "amount": amount},
        )

    async def release_to_issuer(
        self,
        reference_id: str,
        principal_id: str,
        net_amount: int,
        platform_fee: int,
    ) -> None:
        await self._post(
            EscrowOperation.RELEASE,
            reference_id,
            {
                "reference_id": reference_id,
                "principal_id": principal_id,
                "net_amount": net_amount,
                "platform_fee": platform_fee,
            },
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(
        self, operation: EscrowOperation, reference_id: str, payload: dict[str, Any]
    ) -> None:
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "X-Idempotency-Key": f"{reference_id}:{operation.value}",
        }
        try:
            response = await self._client.post(
                self._paths[operation], json=payload, headers=headers
            )
        except httpx.TimeoutException:
            raise EscrowGatewayError(operation.value, reference_id, "provider timed out") from None
        except httpx.HTTPError as exc:
            raise EscrowGatewayError(operation.value, reference_id, f"transport error: {exc}") from exc

        if response.is_success:
            logger.debug("escrow %s ok ref=%s", operation.value, reference_id)
            return
        reason = f"({response.status_code}) {_error_reason(response)}"
        logger.warning("escrow %s failed ref=%s %s", operation.value, reference_id, reason)
        raise EscrowGatewayError(operation.value, reference_id, reason)
