"""Warehouse scanning — commands and handler for the packaging session.

Scans are only accepted while the order is in EMPAQUE and its session is
open. Over-scans are logged and re-raised so the warehouse screen can
tell the operator to re-check the physical unit.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from orderflow.domain import orderflow
from orderflow.errors import OrderClosed, OverScan
from orderflow.order.order import Order
from orderflow.packaging.initialization import find_session
from orderflow.packaging.session import PackagingSession
from orderflow.roles import Actor, Operation, capabilities

logger = structlog.get_logger(__name__)


@orderflow.command(part_of="PackagingSession")
class RecordScan:
    """Count scanned units of an order item."""

    order_id = Identifier(required=True)
    order_item_id = Identifier(required=True)
    delta = Integer(default=1)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=50)


@orderflow.command(part_of="PackagingSession")
class RecordBarcodeScan:
    """Count scanned units of the item carrying this product code."""

    order_id = Identifier(required=True)
    product_code = String(required=True, max_length=100)
    delta = Integer(default=1)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=50)


@orderflow.command(part_of="PackagingSession")
class ResetItemScans:
    """Start counting an item again from zero."""

    order_id = Identifier(required=True)
    order_item_id = Identifier(required=True)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=50)


def _item_state(item) -> dict:
    return {
        "order_item_id": str(item.order_item_id),
        "scanned_count": item.scanned_count or 0,
        "required_scans": item.required_scans,
        "is_verified": bool(item.is_verified),
    }


def _open_session(command, operation: Operation) -> PackagingSession:
    order = current_domain.repository_for(Order).get(command.order_id)
    if order.is_closed():
        raise OrderClosed(order.status)
    capabilities.ensure(Actor(identity=command.actor_id, role=command.actor_role), operation)

    session = find_session(command.order_id)
    if session is None:
        raise ValidationError({"packaging": [f"Packaging has not started for order {order.order_number}"]})
    return session


@orderflow.command_handler(part_of=PackagingSession)
class ScanHandler:
    @handle(RecordScan)
    def record_scan(self, command):
        session = _open_session(command, Operation.RECORD_SCAN)
        try:
            item = session.record_scan(command.order_item_id, delta=command.delta, scanned_by=command.actor_id)
        except OverScan as exc:
            logger.warning(
                "Over-scan rejected",
                order_id=str(command.order_id),
                item_id=exc.item_id,
                scanned_count=exc.scanned_count,
                required_scans=exc.required_scans,
                delta=exc.delta,
            )
            raise

        current_domain.repository_for(PackagingSession).add(session)
        return _item_state(item)

    @handle(RecordBarcodeScan)
    def record_barcode_scan(self, command):
        session = _open_session(command, Operation.RECORD_SCAN)
        try:
            item = session.record_scan_by_code(command.product_code, delta=command.delta, scanned_by=command.actor_id)
        except OverScan as exc:
            logger.warning(
                "Over-scan rejected",
                order_id=str(command.order_id),
                product_code=command.product_code,
                scanned_count=exc.scanned_count,
                required_scans=exc.required_scans,
            )
            raise

        current_domain.repository_for(PackagingSession).add(session)
        return _item_state(item)

    @handle(ResetItemScans)
    def reset_item_scans(self, command):
        session = _open_session(command, Operation.RESET_SCAN)
        item = session.reset_item(command.order_item_id, reset_by=command.actor_id)
        current_domain.repository_for(PackagingSession).add(session)
        logger.info("Item scans reset", order_id=str(command.order_id), item_id=str(command.order_item_id))
        return _item_state(item)
