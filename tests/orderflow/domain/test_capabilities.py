"""Tests for role capabilities."""

import pytest
from orderflow.errors import ActionNotPermitted
from orderflow.order.order import OrderStatus
from orderflow.roles import Actor, CapabilityTable, Operation, Role, capabilities


class TestDefaultCapabilities:
    @pytest.mark.parametrize(
        ("role", "action"),
        [
            ("facturador", OrderStatus.REVISION_CARTERA),
            ("cartera", Operation.WALLET_DECISION),
            ("logistica", OrderStatus.PENDIENTE_EMPAQUE),
            ("logistica", OrderStatus.LISTO),
            ("empaque", OrderStatus.EMPAQUE),
            ("empaque", Operation.RECORD_SCAN),
            ("empaque", Operation.RESET_SCAN),
            ("mensajero", OrderStatus.ENTREGADO),
        ],
    )
    def test_allowed(self, role, action):
        assert capabilities.allows(role, action) is True

    @pytest.mark.parametrize(
        ("role", "action"),
        [
            ("empaque", Operation.WALLET_DECISION),
            ("mensajero", Operation.RECORD_SCAN),
            ("cartera", OrderStatus.ENTREGADO),
            ("facturador", OrderStatus.EMPAQUE),
            ("mensajero", OrderStatus.CANCELADO),
        ],
    )
    def test_denied(self, role, action):
        assert capabilities.allows(role, action) is False

    def test_admin_may_do_everything(self):
        for status in OrderStatus:
            assert capabilities.allows("admin", status)
        for operation in Operation:
            assert capabilities.allows("admin", operation)

    def test_unknown_role_may_do_nothing(self):
        assert capabilities.allows("visitante", OrderStatus.CANCELADO) is False


class TestEnsure:
    def test_ensure_raises_with_role_and_action(self):
        actor = Actor(identity="msj-1", role="mensajero")
        with pytest.raises(ActionNotPermitted) as exc:
            capabilities.ensure(actor, Operation.RECORD_SCAN)
        assert exc.value.role == "mensajero"
        assert exc.value.action == "record_scan"

    def test_ensure_describes_status_requests(self):
        actor = Actor(identity="emp-1", role="empaque")
        with pytest.raises(ActionNotPermitted) as exc:
            capabilities.ensure(actor, OrderStatus.REPARTO)
        assert "request status reparto" in str(exc.value)

    def test_ensure_passes_silently(self):
        capabilities.ensure(Actor(identity="cart-1", role="cartera"), Operation.WALLET_DECISION)


class TestCustomTable:
    def test_table_can_be_replaced(self):
        table = CapabilityTable({Role.MENSAJERO: {Operation.RECORD_SCAN}})
        assert table.allows("mensajero", Operation.RECORD_SCAN) is True
        assert table.allows("admin", OrderStatus.CANCELADO) is False
