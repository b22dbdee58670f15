"""Audit trail queries over an order's append-only logs."""

from protean.utils.globals import current_domain

from orderflow.order.order import Order


def status_history(order_id: str) -> list[dict]:
    order = current_domain.repository_for(Order).get(order_id)
    return [
        {
            "sequence": change.sequence,
            "from_status": change.from_status,
            "to_status": change.to_status,
            "requested_status": change.requested_status,
            "actor_id": change.actor_id,
            "actor_role": change.actor_role,
            "changed_at": change.changed_at,
        }
        for change in order.status_log()
    ]


def validation_history(order_id: str) -> list[dict]:
    """Wallet decisions, oldest first. The last entry is the current one."""
    order = current_domain.repository_for(Order).get(order_id)
    return [
        {
            "sequence": record.sequence,
            "validated_by": record.validated_by,
            "validation_status": record.validation_status,
            "validation_notes": record.validation_notes,
            "validated_at": record.validated_at,
        }
        for record in order.validation_log()
    ]
