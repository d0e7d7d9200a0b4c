"""Sales order operations, scoped to a workspace."""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from plinth.exceptions import NotFoundError

from ..models.sales_order import SalesOrder, SalesOrderStatus

logger = logging.getLogger(__name__)


class SalesOrderService:
    """CRUD for sales orders. Every query is filtered by workspace."""

    def __init__(self, session: Session):
        self.session = session

    def find_all(self, workspace_id: uuid.UUID) -> List[SalesOrder]:
        return (
            self.session.query(SalesOrder)
            .filter(SalesOrder.workspace_id == workspace_id)
            .order_by(SalesOrder.created_at.desc())
            .all()
        )

    def find_one(self, workspace_id: uuid.UUID, order_id: uuid.UUID) -> SalesOrder:
        """
        Raises:
            NotFoundError: If the order does not exist in the workspace
        """
        order = (
            self.session.query(SalesOrder)
            .filter(SalesOrder.id == order_id, SalesOrder.workspace_id == workspace_id)
            .first()
        )
        if order is None:
            raise NotFoundError(f"Sales order with ID {order_id} not found")
        return order

    def create(
        self,
        workspace_id: uuid.UUID,
        order_number: str,
        customer: str,
        amount: Decimal,
        status: SalesOrderStatus = SalesOrderStatus.PENDING,
        date: Optional[datetime] = None,
    ) -> SalesOrder:
        order = SalesOrder(
            workspace_id=workspace_id,
            order_number=order_number,
            customer=customer,
            amount=amount,
            status=status,
        )
        if date is not None:
            order.date = date
        self.session.add(order)
        self.session.flush()
        logger.info(f"Created sales order {order_number} in workspace {workspace_id}")
        return order

    def update(
        self, workspace_id: uuid.UUID, order_id: uuid.UUID, **changes
    ) -> SalesOrder:
        order = self.find_one(workspace_id, order_id)
        for key, value in changes.items():
            if value is not None:
                setattr(order, key, value)
        self.session.flush()
        return order

    def delete(self, workspace_id: uuid.UUID, order_id: uuid.UUID) -> None:
        order = self.find_one(workspace_id, order_id)
        self.session.delete(order)
        self.session.flush()
