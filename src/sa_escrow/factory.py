"""Pick the escrow gateway implementation from configuration at startup."""

from config.settings import Settings
from src.sa_escrow.infrastructure.http_gateway import HttpEscrowGateway, HttpEscrowGatewayConfig
from src.sa_escrow.infrastructure.sim_gateway import SimulatedEscrowGateway

GATEWAY_MODES = ("sim", "native")


def create_escrow_gateway(cfg: Settings) -> SimulatedEscrowGateway | HttpEscrowGateway:
    mode = cfg.ESCROW_GATEWAY_MODE.strip().lower()
    if mode == "sim":
        return SimulatedEscrowGateway()
    if mode != "native":
        raise ValueError(f"ESCROW_GATEWAY_MODE must be one of {GATEWAY_MODES}, got {mode!r}")

    base_url = cfg.ESCROW_GATEWAY_BASE_URL.strip()
    api_key = cfg.ESCROW_GATEWAY_API_KEY.strip()
    if not base_url:
        raise ValueError("ESCROW_GATEWAY_BASE_URL is required when ESCROW_GATEWAY_MODE=native")
    if not api_key:
        raise ValueError("ESCROW_GATEWAY_API_KEY is required when ESCROW_GATEWAY_MODE=native")
    if cfg.ESCROW_GATEWAY_TIMEOUT_SECONDS <= 0:
        raise ValueError("ESCROW_GATEWAY_TIMEOUT_SECONDS must be positive")

    return HttpEscrowGateway(
        HttpEscrowGatewayConfig(
            base_url=base_url,
            api_key=api_key,
            timeout_seconds=cfg.ESCROW_GATEWAY_TIMEOUT_SECONDS,
            lock_path=cfg.ESCROW_GATEWAY_LOCK_PATH,
            refund_path=cfg.ESCROW_GATEWAY_REFUND_PATH,
            release_path=cfg.ESCROW_GATEWAY_RELEASE_PATH,
        )
    )
