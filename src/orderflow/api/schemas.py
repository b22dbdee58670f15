"""Pydantic API schemas for the order fulfillment HTTP adapter.

These are the external API contracts — separate from domain commands.
The routes translate between these schemas and domain commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class OrderItemRequest(BaseModel):
    product_code: str
    description: str | None = None
    quantity: int = Field(ge=1)


class RegisterOrderRequest(BaseModel):
    order_number: str
    payment_method: str
    total_amount: float = 0.0
    items: list[OrderItemRequest]


class RequestTransitionRequest(BaseModel):
    status: str


class WalletDecisionRequest(BaseModel):
    decision: str
    notes: str | None = None


class AmendQuantityRequest(BaseModel):
    quantity: int


class RecordScanRequest(BaseModel):
    order_item_id: str
    delta: int = 1


class BarcodeScanRequest(BaseModel):
    product_code: str
    delta: int = 1


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str


class StatusResponse(BaseModel):
    status: str


class OrderItemResponse(BaseModel):
    item_id: str
    product_code: str
    description: str | None = None
    quantity: int


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_method: str
    total_amount: float
    validation_status: str
    validation_notes: str | None = None
    items: list[OrderItemResponse]


class ItemScanResponse(BaseModel):
    order_item_id: str
    scanned_count: int
    required_scans: int
    is_verified: bool
