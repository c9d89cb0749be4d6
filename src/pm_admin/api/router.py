# src/pm_admin/api/router.py
"""Admin REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_admin.application.service import AdminService
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, respond
from src.pm_gateway.auth.dependencies import get_current_caller

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


def get_admin_service() -> AdminService:
    return _service


@router.get("/invariants")
async def verify_invariants(
    request: Request,
    caller_id: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    result = await service.verify_all_invariants(db)
    return respond(request, result)
