"""Line item amendments — command and handler.

Quantities can be corrected until packaging starts; from EMPAQUE on they are
fixed because the scan targets were captured from them.
"""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from orderflow.domain import orderflow
from orderflow.errors import OrderClosed
from orderflow.order.order import Order
from orderflow.roles import Actor, Operation, capabilities


@orderflow.command(part_of="Order")
class AmendItemQuantity:
    """Change the ordered quantity of a line item."""

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=50)


@orderflow.command_handler(part_of=Order)
class AmendmentHandler:
    @handle(AmendItemQuantity)
    def amend_item_quantity(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.is_closed():
            raise OrderClosed(order.status)
        capabilities.ensure(Actor(identity=command.actor_id, role=command.actor_role), Operation.AMEND_ITEMS)
        order.amend_item_quantity(command.item_id, command.quantity)
        repo.add(order)
