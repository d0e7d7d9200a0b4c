"""
Sales order API endpoints.

Mounted by the module system when the sales-order module is enabled. All
endpoints are scoped to the workspace in the X-Workspace-Id header.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from plinth.api.auth import AuthContext, get_workspace_context
from plinth.db.connection import get_db
from plinth.exceptions import NotFoundError

from ..models.sales_order import SalesOrderStatus
from ..services.sales_order import SalesOrderService

router = APIRouter(prefix="/sales/orders", tags=["sales-orders"])


class SalesOrderCreate(BaseModel):
    order_number: str = Field(..., min_length=1, max_length=50)
    customer: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., ge=0)
    status: SalesOrderStatus = SalesOrderStatus.PENDING
    date: Optional[datetime] = None


class SalesOrderUpdate(BaseModel):
    order_number: Optional[str] = Field(None, min_length=1, max_length=50)
    customer: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(None, ge=0)
    status: Optional[SalesOrderStatus] = None
    date: Optional[datetime] = None


class SalesOrderResponse(BaseModel):
    id: UUID
    workspace_id: UUID
    order_number: str
    customer: str
    amount: Decimal
    status: SalesOrderStatus
    date: datetime

    class Config:
        from_attributes = True


@router.get("", response_model=list[SalesOrderResponse])
async def list_orders(
    auth: AuthContext = Depends(get_workspace_context),
    session: Session = Depends(get_db),
) -> list[SalesOrderResponse]:
    orders = SalesOrderService(session).find_all(auth.workspace_id)
    return [SalesOrderResponse.model_validate(o) for o in orders]


@router.get("/{order_id}", response_model=SalesOrderResponse)
async def get_order(
    order_id: UUID,
    auth: AuthContext = Depends(get_workspace_context),
    session: Session = Depends(get_db),
) -> SalesOrderResponse:
    try:
        order = SalesOrderService(session).find_one(auth.workspace_id, order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SalesOrderResponse.model_validate(order)


@router.post("", response_model=SalesOrderResponse, status_code=201)
async def create_order(
    data: SalesOrderCreate,
    auth: AuthContext = Depends(get_workspace_context),
    session: Session = Depends(get_db),
) -> SalesOrderResponse:
    order = SalesOrderService(session).create(auth.workspace_id, **data.model_dump())
    return SalesOrderResponse.model_validate(order)


@router.patch("/{order_id}", response_model=SalesOrderResponse)
async def update_order(
    order_id: UUID,
    data: SalesOrderUpdate,
    auth: AuthContext = Depends(get_workspace_context),
    session: Session = Depends(get_db),
) -> SalesOrderResponse:
    try:
        order = SalesOrderService(session).update(
            auth.workspace_id, order_id, **data.model_dump(exclude_unset=True)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SalesOrderResponse.model_validate(order)


@router.delete("/{order_id}", status_code=204)
async def delete_order(
    order_id: UUID,
    auth: AuthContext = Depends(get_workspace_context),
    session: Session = Depends(get_db),
) -> None:
    try:
        SalesOrderService(session).delete(auth.workspace_id, order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


default = router
