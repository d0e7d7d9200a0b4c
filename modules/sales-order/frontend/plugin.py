"""
Sales order plugin - frontend.

Renders the sales order pages under ``/workspace/<slug>/sales/orders``.
"""

import logging
import re

from plinth.client.plugin_types import PluginModule, WorkspaceContext

from .pages import sales_order_page

logger = logging.getLogger(__name__)

_ORDER_ROUTE = re.compile(r"^sales/orders/(?P<order_id>[^/]+)$")


def match_order_route(path: str):
    match = _ORDER_ROUTE.match(path)
    return match.groupdict() if match else None


def init(context: WorkspaceContext) -> None:
    logger.info(f"Sales order plugin initialized for workspace {context.workspace}")


def destroy() -> None:
    logger.info("Sales order plugin destroyed")


default = PluginModule(
    id="sales-order",
    name="Sales Orders",
    version="1.0.0",
    icon="shopping-cart",
    route="sales/orders",
    component=sales_order_page,
    route_matcher=match_order_route,
    permissions={"sales:read"},
    init=init,
    destroy=destroy,
    metadata={
        "description": "Manage sales orders and transactions",
        "category": "sales",
        "author": "Plinth Team",
    },
)
