"""Order fulfillment state machine.

Validates a requested status change against the allowed-transition table and
the business guards, then applies it to the Order aggregate:

- wallet guard: review-required orders cannot pass cartera until approved;
- packaging redirect: logistics asking for LISTO is sent to PENDIENTE_EMPAQUE,
  because no order may be marked ready without going through packaging;
- packaging guard: EMPAQUE → LISTO only when every item has been scanned.

Roles are not considered here; command handlers consult the capability table
before calling in.
"""

import structlog

from orderflow.errors import InvalidTransition, OrderClosed, PackagingIncomplete, ValidationRequired
from orderflow.order.order import POST_REVIEW_STATUSES, OrderStatus
from orderflow.wallet.gate import WalletValidationGate

logger = structlog.get_logger(__name__)

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDIENTE_PAGO: {OrderStatus.REVISION_CARTERA, OrderStatus.CANCELADO},
    OrderStatus.REVISION_CARTERA: {OrderStatus.LOGISTICA, OrderStatus.RECHAZADO, OrderStatus.CANCELADO},
    OrderStatus.LOGISTICA: {OrderStatus.PENDIENTE_EMPAQUE, OrderStatus.CANCELADO},
    OrderStatus.PENDIENTE_EMPAQUE: {OrderStatus.EMPAQUE, OrderStatus.CANCELADO},
    OrderStatus.EMPAQUE: {OrderStatus.LISTO, OrderStatus.CANCELADO},
    OrderStatus.LISTO: {OrderStatus.REPARTO, OrderStatus.CANCELADO},
    OrderStatus.REPARTO: {OrderStatus.ENTREGADO, OrderStatus.CANCELADO},
    OrderStatus.ENTREGADO: set(),  # terminal
    OrderStatus.RECHAZADO: set(),  # terminal
    OrderStatus.CANCELADO: set(),  # terminal
}

# (current, requested) → status actually applied
REDIRECTS = {
    (OrderStatus.LOGISTICA, OrderStatus.LISTO): OrderStatus.PENDIENTE_EMPAQUE,
}

# Reachable only through a wallet decision, never by a plain request.
DECISION_ONLY_TARGETS = frozenset({OrderStatus.RECHAZADO})


def parse_status(current: OrderStatus, requested) -> OrderStatus:
    """Coerce a requested status, rejecting values outside the state set."""
    if isinstance(requested, OrderStatus):
        return requested
    try:
        return OrderStatus(requested)
    except ValueError:
        raise InvalidTransition(current.value, str(requested), "unknown status") from None


class OrderFulfillmentStateMachine:
    def __init__(self, gate: WalletValidationGate | None = None):
        self._gate = gate or WalletValidationGate()

    @property
    def gate(self) -> WalletValidationGate:
        return self._gate

    def resolve_target(self, order, requested) -> OrderStatus:
        """Validate a request and return the status it would lead to.

        Raises the matching business error when a guard blocks the request.
        Nothing on the order is changed.
        """
        current = OrderStatus(order.status)
        if order.is_closed():
            raise OrderClosed(current.value)

        requested = parse_status(current, requested)
        if requested in DECISION_ONLY_TARGETS:
            raise InvalidTransition(current.value, requested.value, "only a wallet decision can reject an order")

        target = REDIRECTS.get((current, requested), requested)
        if target not in ALLOWED_TRANSITIONS.get(current, set()):
            raise InvalidTransition(current.value, requested.value)

        if target in POST_REVIEW_STATUSES and self._gate.blocks(order):
            raise ValidationRequired(order.payment_method, order.validation_status)

        return target

    def request_transition(self, order, requested_status, actor, packaging=None) -> OrderStatus:
        """Apply a requested status change and return the status applied.

        ``packaging`` is the order's PackagingSession, if one exists; it is
        consulted only for EMPAQUE → LISTO.
        """
        current = OrderStatus(order.status)
        target = self.resolve_target(order, requested_status)
        requested = parse_status(current, requested_status)

        if current == OrderStatus.EMPAQUE and target == OrderStatus.LISTO:
            self._assert_packaging_complete(order, packaging)

        order.record_status_change(target, actor.identity, actor.role, requested=requested)
        if target == OrderStatus.REVISION_CARTERA:
            self._gate.open_review(order)

        if target != requested:
            logger.info(
                "Status request redirected",
                order_id=str(order.id),
                requested=requested.value,
                applied=target.value,
                actor_role=actor.role,
            )
        else:
            logger.info(
                "Order status changed",
                order_id=str(order.id),
                previous=current.value,
                status=target.value,
                actor_role=actor.role,
            )
        return target

    def _assert_packaging_complete(self, order, packaging) -> None:
        if packaging is None:
            raise PackagingIncomplete([str(item.id) for item in (order.items or [])])
        if not packaging.is_complete():
            raise PackagingIncomplete(packaging.unverified_item_ids())
