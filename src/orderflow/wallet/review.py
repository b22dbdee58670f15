"""Cartera review — command and handler for wallet decisions."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from orderflow.domain import orderflow
from orderflow.errors import OrderClosed
from orderflow.order.order import Order
from orderflow.roles import Actor, Operation, capabilities
from orderflow.wallet.gate import WalletDecision, WalletValidationGate


@orderflow.command(part_of="Order")
class RecordWalletDecision:
    """Approve or reject an order's payment during cartera review."""

    order_id = Identifier(required=True)
    decision = String(required=True, max_length=10)
    notes = Text()
    reviewer_id = String(required=True, max_length=100)
    reviewer_role = String(required=True, max_length=50)


@orderflow.command_handler(part_of=Order)
class WalletReviewHandler:
    @handle(RecordWalletDecision)
    def record_wallet_decision(self, command):
        reviewer = Actor(identity=command.reviewer_id, role=command.reviewer_role)
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.is_closed():
            raise OrderClosed(order.status)

        capabilities.ensure(reviewer, Operation.WALLET_DECISION)
        try:
            decision = WalletDecision(command.decision)
        except ValueError:
            raise ValidationError({"decision": [f"Unknown decision '{command.decision}'"]}) from None

        status = WalletValidationGate.from_config().record_decision(order, decision, command.notes, reviewer)
        repo.add(order)
        return status.value
