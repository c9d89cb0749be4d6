"""pm_account REST API: registration, deposits, read-only user projections."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.application.schemas import (
    DepositRequest,
    DepositResponse,
    LedgerEntryItem,
    LedgerResponse,
    RegisterRequest,
    UserListResponse,
    UserOut,
)
from src.pm_common.database import get_db_session
from src.pm_common.errors import UserNotRegisteredError
from src.pm_common.response import ApiResponse, respond
from src.pm_engine.api.dependencies import get_market_engine
from src.pm_engine.engine.engine import MarketEngine
from src.pm_gateway.auth.dependencies import get_current_caller

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    request: Request,
    caller_id: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[MarketEngine, Depends(get_market_engine)],
) -> ApiResponse:
    user = await engine.register(db, caller_id, body.bio)
    return respond(request, UserOut.from_domain(user).model_dump(), "User registered successfully")


@router.post("/me/deposit")
async def deposit(
    body: DepositRequest,
    request: Request,
    caller_id: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[MarketEngine, Depends(get_market_engine)],
) -> ApiResponse:
    user = await engine.deposit(db, caller_id, body.amount)
    data = DepositResponse(
        credited=user is not None,
        amount=body.amount,
        balance=user.balance if user is not None else None,
    )
    return respond(request, data.model_dump())


@router.get("/me/ledger")
async def list_ledger(
    request: Request,
    caller_id: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[MarketEngine, Depends(get_market_engine)],
) -> ApiResponse:
    entries = await engine.list_ledger(db, caller_id)
    data = LedgerResponse(items=[LedgerEntryItem.from_domain(e) for e in entries])
    return respond(request, data.model_dump())


@router.get("")
async def list_users(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[MarketEngine, Depends(get_market_engine)],
) -> ApiResponse:
    users = await engine.get_users(db)
    data = UserListResponse(items=[UserOut.from_domain(u) for u in users])
    return respond(request, data.model_dump())


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[MarketEngine, Depends(get_market_engine)],
) -> ApiResponse:
    user = await engine.get_user(db, user_id)
    if user is None:
        raise UserNotRegisteredError(user_id)
    return respond(request, UserOut.from_domain(user).model_dump())
