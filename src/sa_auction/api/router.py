# src/sa_auction/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.sa_auction.application import service as svc
from src.sa_auction.application.schemas import (
    BidResponse,
    CloseAuctionResponse,
    CompleteContractResponse,
    ContractResponse,
    CreateSlotRequest,
    PlaceBidRequest,
    SlotResponse,
)
from src.sa_common.database import get_db_session
from src.sa_gateway.auth.dependencies import get_current_principal
from src.sa_gateway.principal.db_models import PrincipalModel

router = APIRouter(tags=["auction"])


@router.post("/issuer/slots", response_model=SlotResponse, status_code=201)
async def create_slot(
    req: CreateSlotRequest,
    principal: Annotated[PrincipalModel, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> SlotResponse:
    return await svc.create_slot(req, principal.id, db)


@router.post("/slots/{slot_id}/bids", response_model=BidResponse, status_code=201)
async def place_bid(
    slot_id: str,
    req: PlaceBidRequest,
    principal: Annotated[PrincipalModel, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> BidResponse:
    return await svc.place_bid(slot_id, req, principal.id, db)


@router.post("/auctions/{slot_id}/close", response_model=CloseAuctionResponse)
async def close_auction(
    slot_id: str,
    principal: Annotated[PrincipalModel, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> CloseAuctionResponse:
    return await svc.close_auction(slot_id, db)


@router.post("/contracts/{contract_id}/complete", response_model=CompleteContractResponse)
async def complete_contract(
    contract_id: str,
    principal: Annotated[PrincipalModel, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> CompleteContractResponse:
    return await svc.complete_contract(contract_id, principal.id, db)


@router.get("/slots/{slot_id}", response_model=SlotResponse)
async def get_slot(
    slot_id: str,
    principal: Annotated[PrincipalModel, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> SlotResponse:
    return await svc.get_slot(slot_id, db)


@router.get("/contracts/{contract_id}", response_model=ContractResponse)
async def get_contract(
    contract_id: str,
    principal: Annotated[PrincipalModel, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ContractResponse:
    return await svc.get_contract(contract_id, db)
