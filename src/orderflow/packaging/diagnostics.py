"""Read-side helpers for the warehouse screen and support staff."""

from protean.utils.globals import current_domain

from orderflow.order.order import Order
from orderflow.packaging.initialization import find_session


def packaging_checklist(order_id: str) -> list[dict]:
    """Per-item scan progress, or an empty list if packaging never started."""
    session = find_session(order_id)
    return session.checklist() if session is not None else []


def packaging_mismatch_report(order_id: str) -> list[dict]:
    """Items whose ordered quantity no longer matches the captured scan target.

    With no packaging session every order item is reported, since none of
    them has a scan target yet.
    """
    order = current_domain.repository_for(Order).get(order_id)
    session = find_session(order_id)
    if session is None:
        return [
            {
                "order_item_id": str(item.id),
                "product_code": item.product_code,
                "description": item.description,
                "ordered_quantity": item.quantity,
                "required_scans": None,
                "scanned_count": 0,
            }
            for item in (order.items or [])
        ]
    return session.mismatch_report(order)
