"""PackagingSession aggregate (CQRS) — warehouse scan verification for one order.

A session is opened when the order enters EMPAQUE and holds one
ItemVerification per order item. Warehouse staff scan units; each item is
verified once its scanned count equals the ordered quantity captured at
initialization. Over-scans are rejected rather than clamped, because they
usually mean the wrong product or a duplicate physical unit was scanned.

The session is sealed when the order leaves EMPAQUE, after which its
verifications are frozen.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String

from orderflow.domain import orderflow
from orderflow.errors import OverScan, PackagingClosed, UnknownItem
from orderflow.packaging.events import (
    ItemScanned,
    ItemScansReset,
    PackagingSealed,
    PackagingStarted,
    PackagingVerified,
)


class PackagingStatus(Enum):
    IN_PROGRESS = "in_progress"
    SEALED = "sealed"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@orderflow.entity(part_of="PackagingSession")
class ItemVerification:
    """Scan tracker for a single order item."""

    order_item_id = Identifier(required=True)
    product_code = String(max_length=100)
    description = String(max_length=500)
    required_scans = Integer(required=True, min_value=1)
    scanned_count = Integer(default=0, min_value=0)
    is_verified = Boolean(default=False)
    verified_at = DateTime()

    def remaining(self) -> int:
        return self.required_scans - (self.scanned_count or 0)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@orderflow.aggregate
class PackagingSession:
    order_id = Identifier(required=True, unique=True)
    order_number = String(max_length=50)
    status = String(
        choices=PackagingStatus,
        default=PackagingStatus.IN_PROGRESS.value,
    )
    items = HasMany(ItemVerification)
    started_by = String(max_length=100)
    started_at = DateTime()
    sealed_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def scan_counts_must_reconcile(self):
        for item in self.items or []:
            scanned = item.scanned_count or 0
            if scanned < 0 or scanned > item.required_scans:
                raise ValidationError(
                    {"scanned_count": [f"Item {item.order_item_id} has {scanned}/{item.required_scans} scans"]}
                )
            if bool(item.is_verified) != (scanned == item.required_scans):
                raise ValidationError(
                    {"is_verified": [f"Item {item.order_item_id} verification flag disagrees with its scan count"]}
                )

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def initialize(cls, order, items=None, started_by: str = "system"):
        """Open a session with one verification per order item.

        ``required_scans`` is captured from each item's ordered quantity.
        """
        items = list(order.items or []) if items is None else list(items)
        now = datetime.now(UTC)
        session = cls(
            order_id=str(order.id),
            order_number=order.order_number,
            status=PackagingStatus.IN_PROGRESS.value,
            started_by=started_by,
            started_at=now,
            updated_at=now,
        )
        for item in items:
            session.add_items(
                ItemVerification(
                    order_item_id=str(item.id),
                    product_code=item.product_code,
                    description=item.description,
                    required_scans=item.quantity,
                    scanned_count=0,
                    is_verified=False,
                )
            )
        session.raise_(
            PackagingStarted(
                order_id=str(order.id),
                order_number=order.order_number,
                item_count=len(items),
                required_units=sum(item.quantity for item in items),
                started_by=started_by,
                started_at=now,
            )
        )
        return session

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_sealed(self) -> bool:
        return self.status == PackagingStatus.SEALED.value

    def is_complete(self) -> bool:
        items = self.items or []
        return bool(items) and all(item.is_verified for item in items)

    def unverified_item_ids(self) -> list[str]:
        return [str(item.order_item_id) for item in (self.items or []) if not item.is_verified]

    def verification_for(self, item_id: str):
        return next((i for i in (self.items or []) if str(i.order_item_id) == str(item_id)), None)

    def verification_for_code(self, product_code: str):
        """Item carrying this product code, preferring lines still short of their target."""
        code = (product_code or "").strip().lower()
        matches = [i for i in (self.items or []) if (i.product_code or "").strip().lower() == code]
        return next((i for i in matches if i.remaining() > 0), matches[0] if matches else None)

    def checklist(self) -> list[dict]:
        """Per-item scan progress for the warehouse screen."""
        return [
            {
                "order_item_id": str(item.order_item_id),
                "product_code": item.product_code,
                "description": item.description,
                "scanned_count": item.scanned_count or 0,
                "required_scans": item.required_scans,
                "scan_progress": f"{item.scanned_count or 0}/{item.required_scans}",
                "is_verified": bool(item.is_verified),
                "needs_multiple_scans": item.required_scans > 1,
            }
            for item in (self.items or [])
        ]

    def mismatch_report(self, order) -> list[dict]:
        """List items whose ordered quantity disagrees with ``required_scans``.

        Diagnostic only: nothing is corrected. Order items that have no
        verification at all are reported with ``required_scans`` set to None.
        """
        report = []
        for order_item in order.items or []:
            verification = self.verification_for(str(order_item.id))
            required = verification.required_scans if verification else None
            if required == order_item.quantity:
                continue
            report.append(
                {
                    "order_item_id": str(order_item.id),
                    "product_code": order_item.product_code,
                    "description": order_item.description,
                    "ordered_quantity": order_item.quantity,
                    "required_scans": required,
                    "scanned_count": (verification.scanned_count or 0) if verification else 0,
                }
            )
        return report

    # -------------------------------------------------------------------
    # Scanning
    # -------------------------------------------------------------------
    def _assert_open(self) -> None:
        if self.is_sealed():
            raise PackagingClosed(str(self.order_id))

    def record_scan(self, item_id: str, delta: int = 1, scanned_by: str | None = None):
        """Count ``delta`` scanned units of an item and return its verification."""
        self._assert_open()
        if delta is None or delta < 1:
            raise ValidationError({"delta": ["Scans must add at least one unit"]})

        item = self.verification_for(item_id)
        if item is None:
            raise UnknownItem(str(item_id))

        current = item.scanned_count or 0
        if current + delta > item.required_scans:
            raise OverScan(str(item.order_item_id), current, item.required_scans, delta)

        was_complete = self.is_complete()
        now = datetime.now(UTC)
        new_count = current + delta
        verified = new_count == item.required_scans

        with atomic_change(self):
            item.scanned_count = new_count
            item.is_verified = verified
            if verified:
                item.verified_at = now
        self.updated_at = now

        self.raise_(
            ItemScanned(
                order_id=str(self.order_id),
                order_item_id=str(item.order_item_id),
                delta=delta,
                scanned_count=new_count,
                required_scans=item.required_scans,
                is_verified=verified,
                scanned_by=scanned_by,
                scanned_at=now,
            )
        )
        if not was_complete and self.is_complete():
            self.raise_(
                PackagingVerified(
                    order_id=str(self.order_id),
                    item_count=len(self.items),
                    verified_at=now,
                )
            )
        return item

    def record_scan_by_code(self, product_code: str, delta: int = 1, scanned_by: str | None = None):
        """Barcode scan: resolve the item by product code, then count it."""
        item = self.verification_for_code(product_code)
        if item is None:
            raise UnknownItem(product_code)
        return self.record_scan(str(item.order_item_id), delta=delta, scanned_by=scanned_by)

    def reset_item(self, item_id: str, reset_by: str | None = None):
        """Explicitly return an item's scan count to zero."""
        self._assert_open()
        item = self.verification_for(item_id)
        if item is None:
            raise UnknownItem(str(item_id))

        previous = item.scanned_count or 0
        was_verified = bool(item.is_verified)
        now = datetime.now(UTC)
        with atomic_change(self):
            item.scanned_count = 0
            item.is_verified = False
            item.verified_at = None
        self.updated_at = now
        self.raise_(
            ItemScansReset(
                order_id=str(self.order_id),
                order_item_id=str(item.order_item_id),
                previous_count=previous,
                was_verified=was_verified,
                reset_by=reset_by,
                reset_at=now,
            )
        )
        return item

    def seal(self) -> None:
        """Freeze the session once the order leaves packaging."""
        if self.is_sealed():
            return
        now = datetime.now(UTC)
        self.status = PackagingStatus.SEALED.value
        self.sealed_at = now
        self.updated_at = now
        self.raise_(
            PackagingSealed(
                order_id=str(self.order_id),
                complete=self.is_complete(),
                sealed_at=now,
            )
        )
