"""Wallet (cartera) validation gate.

Decides which payment methods need an accounts review before an order may
reach logistics, and records the reviewer's approve/reject decisions on the
order. The review policy is a fixed table handed in at construction.
"""

from enum import Enum

import structlog
from protean.utils.globals import current_domain

from orderflow.errors import InvalidTransition, MissingRejectionReason, OrderClosed
from orderflow.order.order import OrderStatus, PaymentMethod, ValidationStatus

logger = structlog.get_logger(__name__)

DEFAULT_REVIEW_METHODS = frozenset({PaymentMethod.CREDIT, PaymentMethod.TRANSFER})


class WalletDecision(Enum):
    APPROVE = "approve"
    REJECT = "reject"


class WalletValidationGate:
    def __init__(self, review_methods=DEFAULT_REVIEW_METHODS):
        self._review_methods = frozenset(PaymentMethod(method) for method in review_methods)

    @classmethod
    def from_config(cls) -> "WalletValidationGate":
        """Build the gate from the active domain's ``[custom]`` configuration."""
        custom = current_domain.config.get("custom", {}) or {}
        methods = custom.get("review_payment_methods")
        if methods is None:
            return cls()
        return cls(review_methods=methods)

    @property
    def review_methods(self) -> frozenset:
        return self._review_methods

    def requires_review(self, payment_method) -> bool:
        return PaymentMethod(payment_method) in self._review_methods

    def blocks(self, order) -> bool:
        """True while the order still waits for a cartera approval."""
        return (
            self.requires_review(order.payment_method)
            and order.validation_status != ValidationStatus.APPROVED.value
        )

    def open_review(self, order) -> None:
        order.open_wallet_review(self.requires_review(order.payment_method))

    def record_decision(self, order, decision, notes: str | None, reviewer) -> OrderStatus:
        """Record an approve/reject decision and return the resulting status.

        Approval advances the order to logistics. Rejection closes it.
        """
        decision = WalletDecision(decision)
        current = OrderStatus(order.status)

        if order.is_closed():
            raise OrderClosed(current.value)

        target = OrderStatus.LOGISTICA if decision == WalletDecision.APPROVE else OrderStatus.RECHAZADO
        if current != OrderStatus.REVISION_CARTERA:
            raise InvalidTransition(current.value, target.value, "wallet decisions are taken during cartera review")

        notes = notes.strip() if notes else None
        if decision == WalletDecision.REJECT and not notes:
            raise MissingRejectionReason()

        if decision == WalletDecision.APPROVE:
            order.record_wallet_decision(ValidationStatus.APPROVED, notes, reviewer.identity)
        else:
            order.record_wallet_decision(ValidationStatus.REJECTED, notes, reviewer.identity)
        order.record_status_change(target, reviewer.identity, reviewer.role)

        logger.info(
            "Wallet decision recorded",
            order_id=str(order.id),
            decision=decision.value,
            reviewer=reviewer.identity,
            status=order.status,
        )
        return target
