import pytest

from orderflow.errors import (
    DeliveryNotFoundError,
    InvalidStateTransitionError,
    OrderNotFoundError,
    ValidationError,
)
from orderflow.models.delivery import DeliveryStatus
from orderflow.services.delivery_service import DeliveryWorkflow


def test_assign_creates_assigned_delivery(db, order_id):
    wf = DeliveryWorkflow(db)
    delivery = wf.get_by_id(wf.assign(order_id, "Kim", "addr-1"))
    assert delivery.status == DeliveryStatus.ASSIGNED
    assert delivery.rider_name == "Kim"
    assert delivery.destination_address_id == "addr-1"
    assert delivery.assigned_at is not None
    assert delivery.picked_up_at is None


@pytest.mark.parametrize("rider,address", [("", "addr-1"), ("   ", "addr-1"), ("Kim", ""), ("Kim", None)])
def test_assign_validates_input(db, order_id, rider, address):
    with pytest.raises(ValidationError):
        DeliveryWorkflow(db).assign(order_id, rider, address)


def test_assign_for_unknown_order(db):
    with pytest.raises(OrderNotFoundError):
        DeliveryWorkflow(db).assign("missing", "Kim", "addr-1")


def test_pickup_then_complete(db, order_id):
    wf = DeliveryWorkflow(db)
    delivery_id = wf.assign(order_id, "Kim", "addr-1")
    picked = wf.pick_up(delivery_id)
    assert picked.status == DeliveryStatus.PICKED_UP
    assert picked.picked_up_at is not None

    done = wf.complete(delivery_id)
    assert done.status == DeliveryStatus.COMPLETED
    assert done.completed_at is not None
    assert done.picked_up_at is not None


def test_complete_requires_pickup_first(db, order_id):
    wf = DeliveryWorkflow(db)
    delivery_id = wf.assign(order_id, "Kim", "addr-1")
    with pytest.raises(InvalidStateTransitionError):
        wf.complete(delivery_id)
    assert wf.get_by_id(delivery_id).status == DeliveryStatus.ASSIGNED


def test_pickup_only_from_assigned(db, order_id):
    wf = DeliveryWorkflow(db)
    delivery_id = wf.assign(order_id, "Kim", "addr-1")
    wf.pick_up(delivery_id)
    with pytest.raises(InvalidStateTransitionError):
        wf.pick_up(delivery_id)


@pytest.mark.parametrize("picked_up", [False, True])
def test_cancel_before_completion(db, order_id, picked_up):
    wf = DeliveryWorkflow(db)
    delivery_id = wf.assign(order_id, "Kim", "addr-1")
    if picked_up:
        wf.pick_up(delivery_id)
    cancelled = wf.cancel(delivery_id)
    assert cancelled.status == DeliveryStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    with pytest.raises(InvalidStateTransitionError):
        wf.pick_up(delivery_id)
    with pytest.raises(InvalidStateTransitionError):
        wf.complete(delivery_id)


def test_completed_delivery_cannot_be_cancelled(db, order_id):
    wf = DeliveryWorkflow(db)
    delivery_id = wf.assign(order_id, "Kim", "addr-1")
    wf.pick_up(delivery_id)
    wf.complete(delivery_id)
    with pytest.raises(InvalidStateTransitionError):
        wf.cancel(delivery_id)
    assert wf.get_by_id(delivery_id).status == DeliveryStatus.COMPLETED


def test_list_for_order(db, order_id):
    wf = DeliveryWorkflow(db)
    first = wf.assign(order_id, "Kim", "addr-1")
    wf.cancel(first)
    second = wf.assign(order_id, "Lee", "addr-1")
    assert [d.id for d in wf.list_for_order(order_id)] == [first, second]


def test_unknown_delivery(db):
    wf = DeliveryWorkflow(db)
    with pytest.raises(DeliveryNotFoundError):
        wf.get_by_id("missing")
    with pytest.raises(DeliveryNotFoundError):
        wf.pick_up("missing")
