"""FastAPI routes for order fulfillment.

The acting user arrives in the ``X-Actor-Id`` and ``X-Actor-Role`` headers,
set by the authentication proxy in front of this service.
"""

import json

from fastapi import APIRouter, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from orderflow.api.schemas import (
    AmendQuantityRequest,
    BarcodeScanRequest,
    ItemScanResponse,
    OrderIdResponse,
    OrderItemResponse,
    OrderResponse,
    RecordScanRequest,
    RegisterOrderRequest,
    RequestTransitionRequest,
    StatusResponse,
    WalletDecisionRequest,
)
from orderflow.concurrency import process_for_order
from orderflow.errors import ActionNotPermitted, FulfillmentRuleViolation
from orderflow.order.amendment import AmendItemQuantity
from orderflow.order.history import status_history, validation_history
from orderflow.order.order import Order
from orderflow.order.registration import RegisterOrder
from orderflow.order.transitions import RequestTransition
from orderflow.packaging.diagnostics import packaging_checklist, packaging_mismatch_report
from orderflow.packaging.scanning import RecordBarcodeScan, RecordScan, ResetItemScans
from orderflow.projections.order_status_counts import dashboard_summary
from orderflow.projections.packaging_queue import packaging_stats
from orderflow.wallet.review import RecordWalletDecision

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
orders_router = APIRouter(prefix="/orders", tags=["orders"])


@orders_router.post("", status_code=201, response_model=OrderIdResponse)
async def register_order(body: RegisterOrderRequest) -> OrderIdResponse:
    """Register an order handed over by intake."""
    command = RegisterOrder(
        order_number=body.order_number,
        payment_method=body.payment_method,
        total_amount=body.total_amount,
        items=json.dumps([item.model_dump() for item in body.items]),
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@orders_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        payment_method=order.payment_method,
        total_amount=order.total_amount or 0.0,
        validation_status=order.validation_status,
        validation_notes=order.validation_notes,
        items=[
            OrderItemResponse(
                item_id=str(item.id),
                product_code=item.product_code,
                description=item.description,
                quantity=item.quantity,
            )
            for item in (order.items or [])
        ],
    )


@orders_router.put("/{order_id}/status", response_model=StatusResponse)
async def request_transition(
    order_id: str,
    body: RequestTransitionRequest,
    x_actor_id: str = Header(),
    x_actor_role: str = Header(),
) -> StatusResponse:
    """Ask for a status change; the response carries the status applied."""
    command = RequestTransition(
        order_id=order_id,
        requested_status=body.status,
        actor_id=x_actor_id,
        actor_role=x_actor_role,
    )
    result = process_for_order(command)
    return StatusResponse(status=result)


@orders_router.put("/{order_id}/wallet-decision", response_model=StatusResponse)
async def record_wallet_decision(
    order_id: str,
    body: WalletDecisionRequest,
    x_actor_id: str = Header(),
    x_actor_role: str = Header(),
) -> StatusResponse:
    command = RecordWalletDecision(
        order_id=order_id,
        decision=body.decision,
        notes=body.notes,
        reviewer_id=x_actor_id,
        reviewer_role=x_actor_role,
    )
    result = process_for_order(command)
    return StatusResponse(status=result)


@orders_router.put("/{order_id}/items/{item_id}/quantity", response_model=StatusResponse)
async def amend_item_quantity(
    order_id: str,
    item_id: str,
    body: AmendQuantityRequest,
    x_actor_id: str = Header(),
    x_actor_role: str = Header(),
) -> StatusResponse:
    command = AmendItemQuantity(
        order_id=order_id,
        item_id=item_id,
        quantity=body.quantity,
        actor_id=x_actor_id,
        actor_role=x_actor_role,
    )
    process_for_order(command)
    return StatusResponse(status="quantity_amended")


# ---------------------------------------------------------------------------
# Packaging
# ---------------------------------------------------------------------------
@orders_router.post("/{order_id}/scans", response_model=ItemScanResponse)
async def record_scan(
    order_id: str,
    body: RecordScanRequest,
    x_actor_id: str = Header(),
    x_actor_role: str = Header(),
) -> ItemScanResponse:
    command = RecordScan(
        order_id=order_id,
        order_item_id=body.order_item_id,
        delta=body.delta,
        actor_id=x_actor_id,
        actor_role=x_actor_role,
    )
    return ItemScanResponse(**process_for_order(command))


@orders_router.post("/{order_id}/scans/barcode", response_model=ItemScanResponse)
async def record_barcode_scan(
    order_id: str,
    body: BarcodeScanRequest,
    x_actor_id: str = Header(),
    x_actor_role: str = Header(),
) -> ItemScanResponse:
    command = RecordBarcodeScan(
        order_id=order_id,
        product_code=body.product_code,
        delta=body.delta,
        actor_id=x_actor_id,
        actor_role=x_actor_role,
    )
    return ItemScanResponse(**process_for_order(command))


@orders_router.delete("/{order_id}/items/{item_id}/scans", response_model=ItemScanResponse)
async def reset_item_scans(
    order_id: str,
    item_id: str,
    x_actor_id: str = Header(),
    x_actor_role: str = Header(),
) -> ItemScanResponse:
    command = ResetItemScans(
        order_id=order_id,
        order_item_id=item_id,
        actor_id=x_actor_id,
        actor_role=x_actor_role,
    )
    return ItemScanResponse(**process_for_order(command))


@orders_router.get("/{order_id}/packaging/checklist")
async def get_packaging_checklist(order_id: str) -> list[dict]:
    current_domain.repository_for(Order).get(order_id)
    return packaging_checklist(order_id)


@orders_router.get("/{order_id}/packaging/mismatches")
async def get_packaging_mismatches(order_id: str) -> list[dict]:
    return packaging_mismatch_report(order_id)


# ---------------------------------------------------------------------------
# Audit trail
# ---------------------------------------------------------------------------
@orders_router.get("/{order_id}/history/status")
async def get_status_history(order_id: str) -> list[dict]:
    return status_history(order_id)


@orders_router.get("/{order_id}/history/validations")
async def get_validation_history(order_id: str) -> list[dict]:
    return validation_history(order_id)


# ---------------------------------------------------------------------------
# Dashboard Router
# ---------------------------------------------------------------------------
dashboard_router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@dashboard_router.get("/summary")
async def get_dashboard_summary() -> dict:
    return dashboard_summary()


@dashboard_router.get("/packaging")
async def get_packaging_stats() -> dict:
    return packaging_stats()


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------
def _error_response(status_code: int, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"errors": exc.messages})


async def _not_permitted(request: Request, exc: ActionNotPermitted) -> JSONResponse:
    return _error_response(403, exc)


async def _rule_violation(request: Request, exc: FulfillmentRuleViolation) -> JSONResponse:
    return _error_response(409, exc)


async def _invalid_input(request: Request, exc: ValidationError) -> JSONResponse:
    return _error_response(422, exc)


async def _not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def install_error_handlers(app: FastAPI) -> None:
    """Translate domain errors into HTTP responses on ``app``."""
    app.add_exception_handler(ActionNotPermitted, _not_permitted)
    app.add_exception_handler(FulfillmentRuleViolation, _rule_violation)
    app.add_exception_handler(ValidationError, _invalid_input)
    app.add_exception_handler(ObjectNotFoundError, _not_found)
