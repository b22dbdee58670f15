"""Order domain events — immutable facts about order state changes.

All events are past tense, versioned, and carry sufficient data for the
dashboard projectors and the notification handler.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from orderflow.domain import orderflow


@orderflow.event(part_of="Order")
class OrderRegistered:
    """A fully-formed order was handed over by order intake."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_method = String(required=True)
    total_amount = Float(required=True)
    status = String(required=True)
    items = Text(required=True)  # JSON list of item dicts
    item_count = Integer(required=True)
    registered_at = DateTime(required=True)


@orderflow.event(part_of="Order")
class OrderStatusChanged:
    """The order moved from one status to another.

    ``requested_status`` differs from ``new_status`` when the request was
    redirected (e.g. ``listo`` from logistics becomes ``pendiente_empaque``).
    """

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    requested_status = String(required=True)
    actor_id = String(required=True)
    actor_role = String(required=True)
    sequence = Integer(required=True)
    changed_at = DateTime(required=True)


@orderflow.event(part_of="Order")
class WalletDecisionRecorded:
    """A cartera reviewer approved or rejected the order's payment."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    validation_status = String(required=True)
    validation_notes = Text()
    validated_by = String(required=True)
    validated_at = DateTime(required=True)


@orderflow.event(part_of="Order")
class OrderRejected:
    """The wallet review rejected the order; it is now closed."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    reason = Text(required=True)
    rejected_by = String(required=True)
    rejected_at = DateTime(required=True)


@orderflow.event(part_of="Order")
class OrderReadyForDispatch:
    """The order passed packaging verification and is ready for delivery."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    ready_at = DateTime(required=True)


@orderflow.event(part_of="Order")
class ItemQuantityAmended:
    """The ordered quantity of a line item was changed before packaging."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    amended_at = DateTime(required=True)
