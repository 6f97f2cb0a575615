# src/md_order/api/router.py
"""Order Store REST API — the CRUD contract dealer and client queues consume."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.md_common.database import get_db_session
from src.md_common.response import ApiResponse, success_response
from src.md_gateway.dependencies import get_caller_id
from src.md_order.application.schemas import CreateOrderRequest, UpdateOrderStatusRequest
from src.md_order.application.service import OrderApplicationService

router = APIRouter(prefix="/orders", tags=["orders"])

_service = OrderApplicationService()


def _wrap(data: dict, request: Request) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("")
async def list_orders(
    caller_id: Annotated[str, Depends(get_caller_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    dealer_id: str | None = Query(None, description="Orders addressed to this dealer"),
    client_id: str | None = Query(None, description="Orders placed by this client"),
) -> ApiResponse:
    data = await _service.list_orders(db, caller_id, dealer_id, client_id)
    return _wrap(data.model_dump(mode="json"), request)


@router.get("/upcoming")
async def list_upcoming(
    caller_id: Annotated[str, Depends(get_caller_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    dealer_id: str = Query(..., description="Dealer whose active jobs to list"),
) -> ApiResponse:
    data = await _service.list_upcoming(db, caller_id, dealer_id)
    return _wrap(data.model_dump(mode="json"), request)


@router.post("", status_code=201)
async def create_order(
    body: CreateOrderRequest,
    caller_id: Annotated[str, Depends(get_caller_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_order(db, caller_id, body)
    return _wrap(data.model_dump(mode="json"), request)


@router.patch("/{order_id}")
async def update_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    caller_id: Annotated[str, Depends(get_caller_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_status(db, caller_id, order_id, body)
    return _wrap(data.model_dump(mode="json"), request)


@router.patch("/{order_id}/opened")
async def mark_opened(
    order_id: str,
    caller_id: Annotated[str, Depends(get_caller_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.mark_opened(db, caller_id, order_id)
    return _wrap(data.model_dump(mode="json"), request)
