"""Order registration — the intake boundary.

Order intake hands over a fully-formed order with its line items; the core
only stores it and starts tracking its lifecycle.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, String, Text
from protean.utils.globals import current_domain

from orderflow.domain import orderflow
from orderflow.order.order import Order


@orderflow.command(part_of="Order")
class RegisterOrder:
    """Register an order received from intake."""

    order_number = String(required=True, max_length=50)
    payment_method = String(required=True, max_length=20)
    total_amount = Float(default=0.0)
    items = Text(required=True)  # JSON list of item dicts


def find_by_order_number(order_number: str):
    """Return the order with this number, or None."""
    results = current_domain.repository_for(Order)._dao.query.filter(order_number=order_number).all()
    if not results or not results.items:
        return None
    return results.first


@orderflow.command_handler(part_of=Order)
class RegisterOrderHandler:
    @handle(RegisterOrder)
    def register_order(self, command):
        if find_by_order_number(command.order_number) is not None:
            raise ValidationError({"order_number": [f"Order {command.order_number} is already registered"]})

        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        order = Order.register(
            order_number=command.order_number,
            payment_method=command.payment_method,
            items_data=items_data,
            total_amount=command.total_amount or 0.0,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
