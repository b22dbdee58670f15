"""Concurrent commands on one order are serialized by the per-order lock."""

import json
import threading

from orderflow.concurrency import process_for_order
from orderflow.domain import orderflow
from orderflow.errors import OverScan, PackagingIncomplete
from orderflow.order.order import Order
from orderflow.order.registration import RegisterOrder
from orderflow.order.transitions import RequestTransition
from orderflow.packaging.initialization import find_session
from orderflow.packaging.scanning import RecordScan
from protean import current_domain


def _order_in_packaging(quantity, order_number="PED-9401"):
    order_id = current_domain.process(
        RegisterOrder(
            order_number=order_number,
            payment_method="cash",
            items=json.dumps([{"product_code": "SKU-001", "quantity": quantity}]),
        ),
        asynchronous=False,
    )
    for status in ("revision_cartera", "logistica", "pendiente_empaque", "empaque"):
        process_for_order(
            RequestTransition(order_id=order_id, requested_status=status, actor_id="admin-1", actor_role="admin")
        )
    return order_id


def _scan_concurrently(order_id, item_id, attempts):
    """Fire ``attempts`` single scans from separate threads at once."""
    barrier = threading.Barrier(attempts)
    outcomes = []
    outcomes_lock = threading.Lock()

    def scan(worker):
        with orderflow.domain_context():
            barrier.wait()
            try:
                process_for_order(
                    RecordScan(
                        order_id=order_id,
                        order_item_id=item_id,
                        actor_id=f"emp-{worker}",
                        actor_role="empaque",
                    )
                )
                outcome = "applied"
            except OverScan:
                outcome = "over_scan"
            with outcomes_lock:
                outcomes.append(outcome)

    threads = [threading.Thread(target=scan, args=(worker,)) for worker in range(attempts)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return outcomes


class TestConcurrentScans:
    def test_exactly_required_scans_all_apply(self):
        order_id = _order_in_packaging(quantity=5)
        item_id = str(find_session(order_id).items[0].order_item_id)

        outcomes = _scan_concurrently(order_id, item_id, attempts=5)

        assert outcomes.count("applied") == 5
        assert outcomes.count("over_scan") == 0
        verification = find_session(order_id).verification_for(item_id)
        assert verification.scanned_count == 5
        assert verification.is_verified is True

    def test_surplus_scans_fail_with_over_scan(self):
        order_id = _order_in_packaging(quantity=5)
        item_id = str(find_session(order_id).items[0].order_item_id)

        outcomes = _scan_concurrently(order_id, item_id, attempts=8)

        assert outcomes.count("applied") == 5
        assert outcomes.count("over_scan") == 3
        assert find_session(order_id).verification_for(item_id).scanned_count == 5


def _race_last_scan_against_listo(order_id, item_id):
    """Run the final scan and a request for LISTO at the same moment."""
    barrier = threading.Barrier(2)
    outcomes = {}

    def scan():
        with orderflow.domain_context():
            barrier.wait()
            process_for_order(
                RecordScan(order_id=order_id, order_item_id=item_id, actor_id="emp-1", actor_role="empaque")
            )
            outcomes["scan"] = "applied"

    def finish():
        with orderflow.domain_context():
            barrier.wait()
            try:
                outcomes["transition"] = process_for_order(
                    RequestTransition(
                        order_id=order_id, requested_status="listo", actor_id="emp-2", actor_role="empaque"
                    )
                )
            except PackagingIncomplete:
                outcomes["transition"] = "incomplete"

    threads = [threading.Thread(target=scan), threading.Thread(target=finish)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return outcomes


class TestTransitionRacingScan:
    def test_listo_is_reached_only_with_complete_packaging(self):
        for round_number in range(10):
            order_id = _order_in_packaging(quantity=2, order_number=f"PED-95{round_number:02d}")
            item_id = str(find_session(order_id).items[0].order_item_id)
            process_for_order(
                RecordScan(order_id=order_id, order_item_id=item_id, actor_id="emp-1", actor_role="empaque")
            )

            outcomes = _race_last_scan_against_listo(order_id, item_id)

            assert outcomes["scan"] == "applied"
            assert outcomes["transition"] in ("listo", "incomplete")

            order = current_domain.repository_for(Order).get(order_id)
            session = find_session(order_id)
            assert session.is_complete()
            if outcomes["transition"] == "listo":
                assert order.status == "listo"
                assert session.is_sealed()
            else:
                assert order.status == "empaque"
                assert not session.is_sealed()
