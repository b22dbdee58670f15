"""Packaging queue — per-order scan progress for the warehouse dashboard."""

from enum import Enum

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from orderflow.domain import orderflow
from orderflow.packaging.events import (
    ItemScanned,
    ItemScansReset,
    PackagingSealed,
    PackagingStarted,
    PackagingVerified,
)
from orderflow.packaging.session import PackagingSession


class QueueStatus(Enum):
    IN_PROGRESS = "in_progress"
    VERIFIED = "verified"
    SEALED = "sealed"


@orderflow.projection
class PackagingQueueView:
    order_id = Identifier(identifier=True, required=True)
    order_number = String(max_length=50)
    status = String(required=True, max_length=20)
    item_count = Integer(default=0)
    verified_items = Integer(default=0)
    required_units = Integer(default=0)
    scanned_units = Integer(default=0)
    started_by = String(max_length=100)
    started_at = DateTime()
    updated_at = DateTime()


@orderflow.projector(projector_for=PackagingQueueView, aggregates=[PackagingSession])
class PackagingQueueProjector:
    @on(PackagingStarted)
    def on_packaging_started(self, event):
        current_domain.repository_for(PackagingQueueView).add(
            PackagingQueueView(
                order_id=event.order_id,
                order_number=event.order_number,
                status=QueueStatus.IN_PROGRESS.value,
                item_count=event.item_count,
                verified_items=0,
                required_units=event.required_units,
                scanned_units=0,
                started_by=event.started_by,
                started_at=event.started_at,
                updated_at=event.started_at,
            )
        )

    @on(ItemScanned)
    def on_item_scanned(self, event):
        repo = current_domain.repository_for(PackagingQueueView)
        view = repo.get(event.order_id)
        view.scanned_units = (view.scanned_units or 0) + event.delta
        if event.is_verified:
            view.verified_items = (view.verified_items or 0) + 1
        view.updated_at = event.scanned_at
        repo.add(view)

    @on(ItemScansReset)
    def on_item_scans_reset(self, event):
        repo = current_domain.repository_for(PackagingQueueView)
        view = repo.get(event.order_id)
        view.scanned_units = max((view.scanned_units or 0) - (event.previous_count or 0), 0)
        if event.was_verified:
            view.verified_items = max((view.verified_items or 0) - 1, 0)
        view.status = QueueStatus.IN_PROGRESS.value
        view.updated_at = event.reset_at
        repo.add(view)

    @on(PackagingVerified)
    def on_packaging_verified(self, event):
        repo = current_domain.repository_for(PackagingQueueView)
        view = repo.get(event.order_id)
        view.status = QueueStatus.VERIFIED.value
        view.updated_at = event.verified_at
        repo.add(view)

    @on(PackagingSealed)
    def on_packaging_sealed(self, event):
        repo = current_domain.repository_for(PackagingQueueView)
        view = repo.get(event.order_id)
        view.status = QueueStatus.SEALED.value
        view.updated_at = event.sealed_at
        repo.add(view)


def packaging_stats() -> dict:
    """Summary of the packaging queue across orders."""
    views = current_domain.repository_for(PackagingQueueView)._dao.query.limit(None).all().items
    required = sum(view.required_units or 0 for view in views)
    scanned = sum(view.scanned_units or 0 for view in views)
    return {
        "sessions": len(views),
        "in_progress": sum(1 for view in views if view.status == QueueStatus.IN_PROGRESS.value),
        "verified": sum(1 for view in views if view.status == QueueStatus.VERIFIED.value),
        "sealed": sum(1 for view in views if view.status == QueueStatus.SEALED.value),
        "required_units": required,
        "scanned_units": scanned,
        "completion_rate": round(scanned / required * 100, 1) if required else 0.0,
    }
