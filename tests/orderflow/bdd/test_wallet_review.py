"""BDD tests for the cartera wallet review."""

from orderflow.errors import FulfillmentRuleViolation
from orderflow.roles import Actor
from orderflow.wallet.gate import WalletValidationGate
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/wallet_review.feature")


def _reviewer():
    return Actor(identity="cart-1", role="cartera")


@when("cartera approves the order", target_fixture="order")
def approve_order(order):
    WalletValidationGate().record_decision(order, "approve", None, _reviewer())
    return order


@when("cartera rejects the order without a reason", target_fixture="order")
def reject_without_reason(order, error):
    try:
        WalletValidationGate().record_decision(order, "reject", None, _reviewer())
    except FulfillmentRuleViolation as exc:
        error["exc"] = exc
    return order


@when(parsers.cfparse('cartera rejects the order with reason "{reason}"'), target_fixture="order")
def reject_with_reason(order, reason):
    WalletValidationGate().record_decision(order, "reject", reason, _reviewer())
    return order


@then(parsers.cfparse('the validation status is "{validation_status}"'))
def validation_status_is(order, validation_status):
    assert order.validation_status == validation_status


@then(parsers.cfparse("the validation history has {count:d} entries"))
def validation_history_has(order, count):
    assert len(order.validation_log()) == count
