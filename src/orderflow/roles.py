"""Actors, roles and the capability table consulted by every command handler.

The state machine itself never branches on roles. Handlers ask the
capability table once per operation whether the acting role may request a
given target status or perform a given operation.
"""

from enum import Enum

from protean.fields import String

from orderflow.domain import orderflow
from orderflow.errors import ActionNotPermitted
from orderflow.order.order import OrderStatus


class Role(Enum):
    ADMIN = "admin"
    FACTURADOR = "facturador"
    CARTERA = "cartera"
    LOGISTICA = "logistica"
    EMPAQUE = "empaque"
    MENSAJERO = "mensajero"


class Operation(Enum):
    WALLET_DECISION = "wallet_decision"
    RECORD_SCAN = "record_scan"
    RESET_SCAN = "reset_scan"
    AMEND_ITEMS = "amend_items"


@orderflow.value_object
class Actor:
    """The identity and role supplied by the auth collaborator."""

    identity = String(required=True, max_length=100)
    role = String(required=True, max_length=50)


_ALL_ACTIONS = frozenset(OrderStatus) | frozenset(Operation)

DEFAULT_CAPABILITIES = {
    Role.ADMIN: _ALL_ACTIONS,
    Role.FACTURADOR: frozenset(
        {
            OrderStatus.REVISION_CARTERA,
            OrderStatus.CANCELADO,
            Operation.AMEND_ITEMS,
        }
    ),
    Role.CARTERA: frozenset(
        {
            OrderStatus.LOGISTICA,
            OrderStatus.CANCELADO,
            Operation.WALLET_DECISION,
        }
    ),
    Role.LOGISTICA: frozenset(
        {
            OrderStatus.PENDIENTE_EMPAQUE,
            OrderStatus.LISTO,
            OrderStatus.REPARTO,
            OrderStatus.CANCELADO,
        }
    ),
    Role.EMPAQUE: frozenset(
        {
            OrderStatus.EMPAQUE,
            OrderStatus.LISTO,
            Operation.RECORD_SCAN,
            Operation.RESET_SCAN,
        }
    ),
    Role.MENSAJERO: frozenset(
        {
            OrderStatus.REPARTO,
            OrderStatus.ENTREGADO,
        }
    ),
}


class CapabilityTable:
    """Maps each role to the actions it may perform."""

    def __init__(self, capabilities: dict | None = None):
        source = DEFAULT_CAPABILITIES if capabilities is None else capabilities
        self._capabilities = {Role(role): frozenset(actions) for role, actions in source.items()}

    def allows(self, role: str, action: OrderStatus | Operation) -> bool:
        try:
            permitted = self._capabilities.get(Role(role), frozenset())
        except ValueError:
            return False
        return action in permitted

    def ensure(self, actor: Actor, action: OrderStatus | Operation) -> None:
        if not self.allows(actor.role, action):
            raise ActionNotPermitted(actor.role, _describe(action))


def _describe(action: OrderStatus | Operation) -> str:
    if isinstance(action, OrderStatus):
        return f"request status {action.value}"
    return action.value


capabilities = CapabilityTable()
