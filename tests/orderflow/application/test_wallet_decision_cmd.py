"""Application tests for cartera wallet decisions."""

import json

import pytest
from orderflow.concurrency import process_for_order
from orderflow.errors import ActionNotPermitted, MissingRejectionReason, OrderClosed, ValidationRequired
from orderflow.order.history import validation_history
from orderflow.order.order import Order
from orderflow.order.registration import RegisterOrder
from orderflow.order.transitions import RequestTransition
from orderflow.wallet.review import RecordWalletDecision
from protean import current_domain
from protean.exceptions import ValidationError


def _order_in_review(payment_method="transfer"):
    order_id = current_domain.process(
        RegisterOrder(
            order_number="PED-8001",
            payment_method=payment_method,
            items=json.dumps([{"product_code": "SKU-001", "quantity": 2}]),
        ),
        asynchronous=False,
    )
    process_for_order(
        RequestTransition(
            order_id=order_id, requested_status="revision_cartera", actor_id="fact-1", actor_role="facturador"
        )
    )
    return order_id


def _decide(order_id, decision, notes=None, role="cartera"):
    return process_for_order(
        RecordWalletDecision(
            order_id=order_id,
            decision=decision,
            notes=notes,
            reviewer_id=f"{role}-1",
            reviewer_role=role,
        )
    )


class TestWalletDecision:
    def test_approval_moves_order_to_logistics(self):
        order_id = _order_in_review()
        assert _decide(order_id, "approve", "Pago confirmado") == "logistica"

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == "logistica"
        assert order.validation_status == "approved"

    def test_rejection_closes_order(self):
        order_id = _order_in_review()
        assert _decide(order_id, "reject", "Transferencia rechazada por el banco") == "rechazado"

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == "rechazado"
        assert order.validation_notes == "Transferencia rechazada por el banco"

    def test_rejection_without_reason_changes_nothing(self):
        order_id = _order_in_review()
        with pytest.raises(MissingRejectionReason):
            _decide(order_id, "reject", "  ")

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == "revision_cartera"
        assert validation_history(order_id) == []

    def test_unknown_decision(self):
        order_id = _order_in_review()
        with pytest.raises(ValidationError) as exc:
            _decide(order_id, "maybe")
        assert "decision" in exc.value.messages

    def test_only_cartera_decides(self):
        order_id = _order_in_review()
        with pytest.raises(ActionNotPermitted):
            _decide(order_id, "approve", role="logistica")

    def test_closed_order_reports_closed_before_capability(self):
        order_id = _order_in_review()
        _decide(order_id, "reject", "Sin cupo")
        with pytest.raises(OrderClosed):
            _decide(order_id, "approve", "Pago tardio", role="logistica")

    def test_rejected_order_is_closed_for_transitions(self):
        order_id = _order_in_review()
        _decide(order_id, "reject", "Sin cupo")
        with pytest.raises(OrderClosed):
            process_for_order(
                RequestTransition(
                    order_id=order_id, requested_status="logistica", actor_id="cart-1", actor_role="cartera"
                )
            )

    def test_pending_review_blocks_plain_transition(self):
        order_id = _order_in_review(payment_method="credit")
        with pytest.raises(ValidationRequired):
            process_for_order(
                RequestTransition(
                    order_id=order_id, requested_status="logistica", actor_id="cart-1", actor_role="cartera"
                )
            )

    def test_decision_is_recorded_in_history(self):
        order_id = _order_in_review()
        _decide(order_id, "approve", "Pago confirmado")

        history = validation_history(order_id)
        assert len(history) == 1
        assert history[0]["validated_by"] == "cartera-1"
        assert history[0]["validation_status"] == "approved"
        assert history[0]["validation_notes"] == "Pago confirmado"
