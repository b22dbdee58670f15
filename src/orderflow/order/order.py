"""Order aggregate (CQRS) — the unit every fulfillment role acts on.

The Order aggregate holds the order's current status, its payment review
state and two append-only logs: the status transition log (audit trail for
dashboards) and the wallet validation history. Status changes are decided by
``OrderFulfillmentStateMachine`` and ``WalletValidationGate``; the aggregate
only applies them and records the facts.

Lifecycle:
    PENDIENTE_PAGO → REVISION_CARTERA → LOGISTICA → PENDIENTE_EMPAQUE → EMPAQUE
    → LISTO → REPARTO → ENTREGADO
    REVISION_CARTERA → RECHAZADO (wallet rejection)
    any non-terminal → CANCELADO
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Integer, String, Text

from orderflow.domain import orderflow
from orderflow.errors import OrderClosed
from orderflow.order.events import (
    ItemQuantityAmended,
    OrderReadyForDispatch,
    OrderRegistered,
    OrderRejected,
    OrderStatusChanged,
    WalletDecisionRecorded,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDIENTE_PAGO = "pendiente_pago"
    REVISION_CARTERA = "revision_cartera"
    LOGISTICA = "logistica"
    PENDIENTE_EMPAQUE = "pendiente_empaque"
    EMPAQUE = "empaque"
    LISTO = "listo"
    REPARTO = "reparto"
    ENTREGADO = "entregado"
    RECHAZADO = "rechazado"
    CANCELADO = "cancelado"


class PaymentMethod(Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    CREDIT = "credit"
    OTHER = "other"


class ValidationStatus(Enum):
    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


TERMINAL_STATUSES = frozenset({OrderStatus.ENTREGADO, OrderStatus.RECHAZADO, OrderStatus.CANCELADO})

# Statuses that lie past the cartera review.
POST_REVIEW_STATUSES = frozenset(
    {
        OrderStatus.LOGISTICA,
        OrderStatus.PENDIENTE_EMPAQUE,
        OrderStatus.EMPAQUE,
        OrderStatus.LISTO,
        OrderStatus.REPARTO,
        OrderStatus.ENTREGADO,
    }
)

# Ordered quantities are frozen from here on.
PACKAGING_STARTED_STATUSES = frozenset(
    {
        OrderStatus.EMPAQUE,
        OrderStatus.LISTO,
        OrderStatus.REPARTO,
        OrderStatus.ENTREGADO,
    }
)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@orderflow.entity(part_of="Order")
class OrderItem:
    """A line item of the order."""

    product_code = String(required=True, max_length=100)
    description = String(max_length=500)
    quantity = Integer(required=True, min_value=1)


@orderflow.entity(part_of="Order")
class StatusChange:
    """One entry of the append-only transition log."""

    sequence = Integer(required=True, min_value=1)
    from_status = String(required=True, max_length=50)
    to_status = String(required=True, max_length=50)
    requested_status = String(required=True, max_length=50)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=50)
    changed_at = DateTime(required=True)


@orderflow.entity(part_of="Order")
class WalletValidationRecord:
    """One cartera decision. The highest sequence is authoritative."""

    sequence = Integer(required=True, min_value=1)
    validated_by = String(required=True, max_length=100)
    validation_status = String(required=True, max_length=20)
    validation_notes = Text()
    validated_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@orderflow.aggregate
class Order:
    order_number = String(required=True, max_length=50)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDIENTE_PAGO.value,
    )
    payment_method = String(required=True, choices=PaymentMethod)
    total_amount = Float(min_value=0.0, default=0.0)
    validation_status = String(
        choices=ValidationStatus,
        default=ValidationStatus.NONE.value,
    )
    validation_notes = Text()
    items = HasMany(OrderItem)
    status_changes = HasMany(StatusChange)
    wallet_validations = HasMany(WalletValidationRecord)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def unresolved_review_must_stay_before_logistics(self):
        if OrderStatus(self.status) in POST_REVIEW_STATUSES and self.validation_status in (
            ValidationStatus.PENDING.value,
            ValidationStatus.REJECTED.value,
        ):
            raise ValidationError(
                {"validation_status": [f"Order cannot be {self.status} while validation is {self.validation_status}"]}
            )

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def register(
        cls,
        order_number: str,
        payment_method: str,
        items_data: list[dict],
        total_amount: float = 0.0,
    ):
        """Register an order handed over by intake, with its line items."""
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            payment_method=payment_method,
            total_amount=total_amount,
            status=OrderStatus.PENDIENTE_PAGO.value,
            validation_status=ValidationStatus.NONE.value,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            order.add_items(OrderItem(**item_data))
        order.raise_(
            OrderRegistered(
                order_id=str(order.id),
                order_number=order_number,
                payment_method=order.payment_method,
                total_amount=order.total_amount,
                status=order.status,
                items=json.dumps(items_data),
                item_count=len(items_data),
                registered_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_closed(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATUSES

    def status_log(self) -> tuple:
        """Transition log in insertion order (read-only view)."""
        return tuple(sorted(self.status_changes or [], key=lambda change: change.sequence))

    def validation_log(self) -> tuple:
        """Wallet decisions in insertion order (read-only view)."""
        return tuple(sorted(self.wallet_validations or [], key=lambda record: record.sequence))

    def latest_validation(self):
        log = self.validation_log()
        return log[-1] if log else None

    def find_item(self, item_id: str):
        return next((i for i in (self.items or []) if str(i.id) == str(item_id)), None)

    # -------------------------------------------------------------------
    # Status changes (decided by the state machine / wallet gate)
    # -------------------------------------------------------------------
    def record_status_change(
        self,
        target: OrderStatus,
        actor_id: str,
        actor_role: str,
        requested: OrderStatus | None = None,
    ) -> None:
        """Apply an already-validated status change and append it to the log."""
        previous = OrderStatus(self.status)
        requested = requested or target
        now = datetime.now(UTC)
        sequence = len(self.status_changes or []) + 1

        self.status = target.value
        self.add_status_changes(
            StatusChange(
                sequence=sequence,
                from_status=previous.value,
                to_status=target.value,
                requested_status=requested.value,
                actor_id=actor_id,
                actor_role=actor_role,
                changed_at=now,
            )
        )
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous.value,
                new_status=target.value,
                requested_status=requested.value,
                actor_id=actor_id,
                actor_role=actor_role,
                sequence=sequence,
                changed_at=now,
            )
        )
        if target == OrderStatus.LISTO:
            self.raise_(
                OrderReadyForDispatch(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    ready_at=now,
                )
            )
        elif target == OrderStatus.RECHAZADO:
            self.raise_(
                OrderRejected(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    reason=self.validation_notes,
                    rejected_by=actor_id,
                    rejected_at=now,
                )
            )

    def open_wallet_review(self, requires_review: bool) -> None:
        """Mark the payment review as pending, or not needed at all."""
        if requires_review:
            self.validation_status = ValidationStatus.PENDING.value
        else:
            self.validation_status = ValidationStatus.NONE.value
        self.updated_at = datetime.now(UTC)

    def record_wallet_decision(self, validation_status: ValidationStatus, notes: str | None, reviewer: str) -> None:
        """Append a cartera decision to the history and make it current."""
        now = datetime.now(UTC)
        self.add_wallet_validations(
            WalletValidationRecord(
                sequence=len(self.wallet_validations or []) + 1,
                validated_by=reviewer,
                validation_status=validation_status.value,
                validation_notes=notes,
                validated_at=now,
            )
        )
        self.validation_status = validation_status.value
        self.validation_notes = notes
        self.updated_at = now
        self.raise_(
            WalletDecisionRecorded(
                order_id=str(self.id),
                validation_status=validation_status.value,
                validation_notes=notes,
                validated_by=reviewer,
                validated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Line items
    # -------------------------------------------------------------------
    def amend_item_quantity(self, item_id: str, quantity: int) -> None:
        """Change an ordered quantity; only allowed before packaging starts."""
        if self.is_closed():
            raise OrderClosed(self.status)
        if OrderStatus(self.status) in PACKAGING_STARTED_STATUSES:
            raise ValidationError({"quantity": [f"Quantities are fixed once the order is {self.status}"]})

        item = self.find_item(item_id)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in this order"]})

        previous = item.quantity
        now = datetime.now(UTC)
        item.quantity = quantity
        self.updated_at = now
        self.raise_(
            ItemQuantityAmended(
                order_id=str(self.id),
                item_id=str(item.id),
                previous_quantity=previous,
                new_quantity=quantity,
                amended_at=now,
            )
        )
