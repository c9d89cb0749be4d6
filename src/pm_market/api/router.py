"""pm_market REST endpoints.

POST /markets                          - create market (auth)
GET  /markets                          - list all markets
GET  /markets/{market_id}              - full detail incl. voter ledger
GET  /markets/{market_id}/cost         - LMSR prices; (0, 0) for unknown market
POST /markets/{market_id}/bets         - place a bet (auth)
POST /markets/{market_id}/resolve      - resolve and pay out (auth, creator only)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.errors import NoSuchMarketError
from src.pm_common.response import ApiResponse, respond
from src.pm_engine.api.dependencies import get_market_engine
from src.pm_engine.engine.engine import MarketEngine
from src.pm_gateway.auth.dependencies import get_current_caller
from src.pm_market.application.schemas import (
    BetReceiptOut,
    CostOut,
    CreateMarketRequest,
    MarketListResponse,
    MarketOut,
    PlaceBetRequest,
    ResolutionOut,
)

router = APIRouter(prefix="/markets", tags=["markets"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_market(
    body: CreateMarketRequest,
    request: Request,
    caller_id: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[MarketEngine, Depends(get_market_engine)],
) -> ApiResponse:
    market = await engine.add_market(db, caller_id, body.question, body.liquidity)
    return respond(request, MarketOut.from_domain(market).model_dump(), "Market created")


@router.get("")
async def list_markets(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[MarketEngine, Depends(get_market_engine)],
) -> ApiResponse:
    markets = await engine.get_markets(db)
    result = MarketListResponse(items=[MarketOut.from_domain(m) for m in markets])
    return respond(request, result.model_dump())


@router.get("/{market_id}")
async def get_market(
    market_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[MarketEngine, Depends(get_market_engine)],
) -> ApiResponse:
    market = await engine.get_market(db, market_id)
    if market is None:
        raise NoSuchMarketError(market_id)
    return respond(request, MarketOut.from_domain(market).model_dump())


@router.get("/{market_id}/cost")
async def get_cost(
    market_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[MarketEngine, Depends(get_market_engine)],
) -> ApiResponse:
    price_yes, price_no = await engine.get_cost(db, market_id)
    result = CostOut(market_id=market_id, price_yes=price_yes, price_no=price_no)
    return respond(request, result.model_dump())


@router.post("/{market_id}/bets")
async def place_bet(
    market_id: str,
    body: PlaceBetRequest,
    request: Request,
    caller_id: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[MarketEngine, Depends(get_market_engine)],
) -> ApiResponse:
    receipt = await engine.bet(db, caller_id, market_id, body.side, body.quantity)
    return respond(request, BetReceiptOut.from_receipt(receipt).model_dump(), "Bet accepted")


@router.post("/{market_id}/resolve")
async def resolve_market(
    market_id: str,
    request: Request,
    caller_id: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[MarketEngine, Depends(get_market_engine)],
) -> ApiResponse:
    resolution = await engine.resolve(db, caller_id, market_id)
    return respond(
        request, ResolutionOut.from_resolution(resolution).model_dump(), "Market resolved"
    )
