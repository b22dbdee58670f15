"""Business rule violations raised by the order fulfillment core.

Every error subclasses Protean's ``ValidationError`` so callers that already
handle domain validation failures keep working, and carries the structured
context the caller needs to correct its request. Infrastructure failures
(repository lookups, provider errors) are not wrapped here and propagate as-is.
"""

from protean.exceptions import ValidationError


class FulfillmentRuleViolation(ValidationError):
    """Base class for recoverable, caller-correctable business errors."""

    field = "order"

    def __init__(self, message: str):
        self.message = message
        super().__init__({self.field: [message]})


class InvalidTransition(FulfillmentRuleViolation):
    field = "status"

    def __init__(self, current_status: str, requested_status: str, reason: str | None = None):
        self.current_status = current_status
        self.requested_status = requested_status
        message = f"Cannot transition from {current_status} to {requested_status}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ValidationRequired(FulfillmentRuleViolation):
    field = "validation_status"

    def __init__(self, payment_method: str, validation_status: str):
        self.payment_method = payment_method
        self.validation_status = validation_status
        super().__init__(
            f"Orders paid by {payment_method} need cartera approval first (validation is {validation_status})"
        )


class PackagingIncomplete(FulfillmentRuleViolation):
    field = "packaging"

    def __init__(self, unverified_item_ids: list[str]):
        self.unverified_item_ids = list(unverified_item_ids)
        self.unverified_count = len(self.unverified_item_ids)
        super().__init__(f"{self.unverified_count} item(s) have not been fully scanned")


class OrderClosed(FulfillmentRuleViolation):
    field = "status"

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Order is closed ({status}) and accepts no further changes")


class UnknownItem(FulfillmentRuleViolation):
    field = "item_id"

    def __init__(self, item_ref: str):
        self.item_ref = item_ref
        super().__init__(f"Item {item_ref} does not belong to this order")


class OverScan(FulfillmentRuleViolation):
    field = "scanned_count"

    def __init__(self, item_id: str, scanned_count: int, required_scans: int, delta: int):
        self.item_id = item_id
        self.scanned_count = scanned_count
        self.required_scans = required_scans
        self.delta = delta
        super().__init__(
            f"Scanning {delta} more unit(s) of item {item_id} would exceed the required "
            f"{required_scans} (already {scanned_count})"
        )


class AlreadyInitialized(FulfillmentRuleViolation):
    field = "packaging"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Packaging for order {order_id} has already been initialized")


class MissingRejectionReason(FulfillmentRuleViolation):
    field = "validation_notes"

    def __init__(self):
        super().__init__("A rejection must state its reason")


class PackagingClosed(FulfillmentRuleViolation):
    field = "packaging"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Packaging for order {order_id} is sealed; scans can no longer change")


class ActionNotPermitted(FulfillmentRuleViolation):
    field = "actor"

    def __init__(self, role: str, action: str):
        self.role = role
        self.action = action
        super().__init__(f"Role '{role}' is not allowed to {action}")
