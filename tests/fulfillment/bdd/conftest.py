"""Shared BDD fixtures and step definitions for the sub-order pipeline."""

import pytest
from pytest_bdd import given, parsers, then
from shared.errors import ConflictError, InvalidTransition


@pytest.fixture()
def error():
    """Container for captured pipeline errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a pending sub-order", target_fixture="sub_order_id")
def pending_sub_order(pipeline, seed_order):
    seed_order("PENDING")
    pipeline.load_orders()
    return "s-1"


@given("the customer has cancelled on the server")
def customer_cancelled(backend, sub_order_id):
    backend.set_server_status(sub_order_id, "CANCELLED")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the sub-order status is "{status}"'))
def sub_order_status_is(pipeline, sub_order_id, status):
    assert pipeline.sub_order(sub_order_id).status == status


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(pipeline, sub_order_id, status):
    assert pipeline.order_for(sub_order_id).status == status


@then(parsers.cfparse("the countdown shows {ticks:d} ticks"))
def countdown_shows(pipeline, sub_order_id, ticks):
    assert pipeline.board.remaining(sub_order_id) == ticks


@then("no countdown is running")
def no_countdown(pipeline):
    assert len(pipeline.board) == 0


@then(parsers.cfparse('the backend received {count:d} "{status}" request'))
def backend_received(backend, count, status):
    requests = [c for c in backend.calls_to("update_sub_order_status") if c[2] == status]
    assert len(requests) == count


@then("the backend received no status request")
def backend_received_nothing(backend):
    assert backend.calls_to("update_sub_order_status") == []


@then("the action fails with an invalid transition")
def action_fails_invalid(error):
    assert error["exc"] is not None, "Expected an invalid transition but none was raised"
    assert isinstance(error["exc"], InvalidTransition)


@then("the action fails with a conflict")
def action_fails_conflict(error):
    assert isinstance(error["exc"], ConflictError)
