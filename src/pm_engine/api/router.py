"""RPC endpoint over the operation table.

POST /rpc/{operation}   body: JSON object of params (may be empty)

Queries may be called anonymously; mutating operations need a Bearer token.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, respond
from src.pm_engine.api.dependencies import get_market_engine
from src.pm_engine.application.operations import OPERATIONS, dispatch
from src.pm_engine.engine.engine import MarketEngine
from src.pm_gateway.auth.dependencies import get_optional_caller

router = APIRouter(prefix="/rpc", tags=["rpc"])


@router.get("")
async def list_operations(request: Request) -> ApiResponse:
    data = [{"name": op.name, "mutates": op.mutates} for op in OPERATIONS.values()]
    return respond(request, data)


@router.post("/{operation}")
async def call_operation(
    operation: str,
    request: Request,
    caller_id: Annotated[str | None, Depends(get_optional_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[MarketEngine, Depends(get_market_engine)],
    params: Annotated[dict[str, Any] | None, Body()] = None,
) -> ApiResponse:
    data = await dispatch(engine, db, operation, caller_id, params)
    return respond(request, data)
