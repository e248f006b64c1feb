"""FastAPI dependency: get_current_principal.

    @router.post("/slots/{slot_id}/bids")
    async def place_bid(principal: PrincipalModel = Depends(get_current_principal)):
        ...

Authentication only: whether the principal is a *verified* issuer or bidder
is re-checked by the lifecycle engine inside the operation's transaction.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.sa_common.database import get_db_session
from src.sa_common.errors import InvalidCredentialsError
from src.sa_gateway.auth.jwt_handler import decode_token
from src.sa_gateway.principal.db_models import PrincipalModel

# Tokens are minted out of band; there is no login route to advertise.
bearer_scheme = HTTPBearer(auto_error=False)

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> PrincipalModel:
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        payload = decode_token(credentials.credentials)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    result = await db.execute(
        select(PrincipalModel).where(PrincipalModel.id == payload["sub"])
    )
    principal = result.scalar_one_or_none()
    if principal is None:
        raise _CREDENTIALS_EXCEPTION
    return principal
