"""Page renderers for the sales order plugin."""

from typing import Dict, Optional


def sales_order_page(params: Optional[Dict[str, str]] = None) -> Dict[str, object]:
    """Describe the sales order page; ``params`` holds dynamic route values."""
    params = params or {}
    if "order_id" in params:
        return {"view": "sales-order-detail", "order_id": params["order_id"]}
    return {"view": "sales-order-list", "endpoint": "/sales/orders"}
