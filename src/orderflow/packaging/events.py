"""Packaging domain events — facts about warehouse scan verification."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from orderflow.domain import orderflow


@orderflow.event(part_of="PackagingSession")
class PackagingStarted:
    """A packaging session was opened with one verification per order item."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    item_count = Integer(required=True)
    required_units = Integer(required=True)
    started_by = String(required=True)
    started_at = DateTime(required=True)


@orderflow.event(part_of="PackagingSession")
class ItemScanned:
    """Units of an item were scanned against its required count."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_item_id = Identifier(required=True)
    delta = Integer(required=True)
    scanned_count = Integer(required=True)
    required_scans = Integer(required=True)
    is_verified = Boolean(default=False)
    scanned_by = String()
    scanned_at = DateTime(required=True)


@orderflow.event(part_of="PackagingSession")
class ItemScansReset:
    """An item's scan count was explicitly reset to zero."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_item_id = Identifier(required=True)
    previous_count = Integer(default=0)
    was_verified = Boolean(default=False)
    reset_by = String()
    reset_at = DateTime(required=True)


@orderflow.event(part_of="PackagingSession")
class PackagingVerified:
    """Every item of the order reached its required scan count."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    item_count = Integer(required=True)
    verified_at = DateTime(required=True)


@orderflow.event(part_of="PackagingSession")
class PackagingSealed:
    """The order left packaging; its verifications are now frozen."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    complete = Boolean(default=False)
    sealed_at = DateTime(required=True)
