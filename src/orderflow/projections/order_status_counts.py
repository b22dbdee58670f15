"""Order status counts — the dashboard's per-status tallies.

Counts are read straight off the orders' current status, so they always agree
with the orders themselves regardless of how many orders move at once.
"""

from protean.utils.globals import current_domain

from orderflow.order.order import Order, OrderStatus


def status_counts() -> dict[str, int]:
    """Current count for every status, zero where no order is in it."""
    query = current_domain.repository_for(Order)._dao.query
    return {status.value: query.filter(status=status.value).all().total for status in OrderStatus}


def dashboard_summary() -> dict[str, int]:
    counts = status_counts()
    return {
        "total": sum(counts.values()),
        "pending_payment": counts[OrderStatus.PENDIENTE_PAGO.value],
        "pending_review": counts[OrderStatus.REVISION_CARTERA.value],
        "pending_logistics": counts[OrderStatus.LOGISTICA.value],
        "pending_packaging": counts[OrderStatus.PENDIENTE_EMPAQUE.value] + counts[OrderStatus.EMPAQUE.value],
        "ready": counts[OrderStatus.LISTO.value],
        "in_delivery": counts[OrderStatus.REPARTO.value],
        "delivered": counts[OrderStatus.ENTREGADO.value],
        "rejected": counts[OrderStatus.RECHAZADO.value],
        "cancelled": counts[OrderStatus.CANCELADO.value],
    }
