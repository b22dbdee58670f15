"""Order status transitions — command and handler.

The handler loads the order and its packaging session, lets the state
machine decide, and keeps the packaging session in step with the order:
entering EMPAQUE opens the session, leaving it seals the session. Everything
commits in the same unit of work.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from orderflow.domain import orderflow
from orderflow.errors import OrderClosed
from orderflow.order.order import Order, OrderStatus
from orderflow.order.state_machine import OrderFulfillmentStateMachine, parse_status
from orderflow.packaging.initialization import find_session, initialize_packaging
from orderflow.packaging.session import PackagingSession
from orderflow.roles import Actor, capabilities
from orderflow.wallet.gate import WalletValidationGate


@orderflow.command(part_of="Order")
class RequestTransition:
    """Ask for an order to move to another status."""

    order_id = Identifier(required=True)
    requested_status = String(required=True, max_length=50)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=50)


@orderflow.command_handler(part_of=Order)
class TransitionHandler:
    @handle(RequestTransition)
    def request_transition(self, command):
        actor = Actor(identity=command.actor_id, role=command.actor_role)
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        current = OrderStatus(order.status)
        if order.is_closed():
            raise OrderClosed(current.value)
        requested = parse_status(current, command.requested_status)
        capabilities.ensure(actor, requested)

        session = find_session(order.id)
        machine = OrderFulfillmentStateMachine(WalletValidationGate.from_config())
        applied = machine.request_transition(order, requested, actor, packaging=session)

        sessions = current_domain.repository_for(PackagingSession)
        if applied == OrderStatus.EMPAQUE:
            sessions.add(initialize_packaging(order, started_by=actor.identity))
        elif session is not None and not session.is_sealed():
            session.seal()
            sessions.add(session)

        repo.add(order)
        return applied.value
