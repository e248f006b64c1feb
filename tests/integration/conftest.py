"""Integration-test fixtures.

These run against a real PostgreSQL migrated to head (`alembic upgrade head`).
All tests share one session-scoped event loop so the module-level SQLAlchemy
pool stays bound to a single loop. When the database is unreachable the whole
directory is skipped.
"""

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy import text

from src.sa_auction.engine.lifecycle import LifecycleEngine
from src.sa_common.database import async_session_factory, engine
from src.sa_common.id_generator import generate_id
from src.sa_escrow.infrastructure.sim_gateway import SimulatedEscrowGateway


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def database() -> AsyncIterator[None]:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1 FROM contracts LIMIT 1"))
    except Exception as exc:  # noqa: BLE001
        pytest.skip(f"PostgreSQL not available: {exc}")
    yield
    await engine.dispose()


@pytest_asyncio.fixture(loop_scope="session")
async def lifecycle(database: None) -> LifecycleEngine:
    return LifecycleEngine(SimulatedEscrowGateway(), auction_window_hours=1)


@pytest_asyncio.fixture(loop_scope="session")
async def principals(database: None) -> dict[str, str]:
    ids = {
        "issuer": f"iss-{generate_id()}",
        "bidder_a": f"bid-{generate_id()}",
        "bidder_b": f"bid-{generate_id()}",
        "bidder_c": f"bid-{generate_id()}",
    }
    async with async_session_factory() as db:
        await db.execute(
            text("INSERT INTO principals (id, kind, verified) VALUES (:id, 'ISSUER', TRUE)"),
            {"id": ids["issuer"]},
        )
        for key in ("bidder_a", "bidder_b", "bidder_c"):
            await db.execute(
                text("INSERT INTO principals (id, kind, verified) VALUES (:id, 'BIDDER', TRUE)"),
                {"id": ids[key]},
            )
        await db.commit()
    return ids
