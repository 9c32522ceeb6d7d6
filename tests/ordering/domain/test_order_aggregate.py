"""Tests for Order placement, cancellation and administrative updates."""

import pytest
from protean.exceptions import ValidationError
from storefront.errors import StateConflictError
from storefront.ordering.order.events import OrderCancelled, OrderPlaced, OrderStatusUpdated
from storefront.ordering.order.order import Order, build_shipping_address

LINES = [
    {"product_id": "prod-a", "title": "Kurta", "sku": "SKU-A", "quantity": 2, "unit_price": 50.0},
    {"product_id": "prod-b", "title": "Stole", "sku": "SKU-B", "quantity": 1, "unit_price": 150.0},
]


def _place(payment_method="cod", **overrides):
    defaults = {
        "customer_id": "cust-001",
        "lines": LINES,
        "shipping_address": build_shipping_address({"street": "12 MG Road", "city": "Pune"}),
        "payment_method": payment_method,
        "shipping_cost": 85.0,
        "customer_email": "asha@example.com",
    }
    defaults.update(overrides)
    return Order.place(**defaults)


class TestBuildShippingAddress:
    def test_string_becomes_street_with_placeholders(self):
        address = build_shipping_address("  221B Baker Street ")
        assert address.street == "221B Baker Street"
        assert address.city == "Not specified"
        assert address.pincode == "000000"
        assert address.country == "India"

    def test_street_is_required(self):
        with pytest.raises(ValidationError):
            build_shipping_address({"city": "Pune"})

    def test_missing_address(self):
        with pytest.raises(ValidationError):
            build_shipping_address(None)

    def test_invalid_address_type(self):
        with pytest.raises(ValidationError):
            build_shipping_address({"street": "x", "type": "castle"})


class TestPlaceOrder:
    def test_totals(self):
        order = _place()
        assert order.subtotal == 250.0
        assert order.total == 335.0
        assert order.payment.amount == 335.0

    def test_starts_processing(self):
        order = _place()
        assert order.status == "processing"
        assert order.shipping.status == "processing"

    def test_cod_payment_is_pending(self):
        assert _place("cod").payment.status == "pending"

    def test_prepaid_payment_is_unpaid(self):
        assert _place("upi").payment.status == "unpaid"

    def test_invalid_payment_method(self):
        with pytest.raises(ValidationError):
            _place("barter")

    def test_empty_lines(self):
        with pytest.raises(ValidationError):
            _place(lines=[])

    def test_order_number_format(self):
        assert _place().order_number.startswith("ORD-")

    def test_billing_defaults_to_shipping(self):
        order = _place()
        assert order.billing_address == order.shipping_address

    def test_raises_order_placed(self):
        order = _place()
        event = order._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.total == 335.0


class TestCancelOrder:
    def test_cancel_processing_order(self):
        order = _place()
        order.cancel(reason="Changed my mind")
        assert order.status == "cancelled"
        assert order.cancelled_at is not None
        assert order.notes == "Cancellation reason: Changed my mind"
        assert isinstance(order._events[-1], OrderCancelled)

    def test_paid_order_is_refunded(self):
        order = _place("card")
        order.apply_admin_update(payment_status="paid")
        order.cancel()
        assert order.payment.status == "refunded"

    def test_cannot_cancel_twice(self):
        order = _place()
        order.cancel()
        with pytest.raises(StateConflictError):
            order.cancel()

    def test_cannot_cancel_shipped(self):
        order = _place()
        order.apply_admin_update(status="shipped")
        with pytest.raises(StateConflictError) as exc:
            order.cancel()
        assert exc.value.message == "Order cannot be cancelled at this stage"


class TestAdminUpdate:
    def test_ship_sets_estimate_once(self):
        order = _place()
        order.apply_admin_update(shipping_status="shipped")
        first_estimate = order.shipping.estimated_delivery
        assert first_estimate is not None
        assert order.expected_delivery == first_estimate

        order.apply_admin_update(shipping_status="shipped")
        assert order.shipping.estimated_delivery == first_estimate

    def test_payment_date_set_once(self):
        order = _place("card")
        order.apply_admin_update(payment_status="paid")
        paid_at = order.payment.payment_date
        order.apply_admin_update(payment_status="PAID", transaction_id="txn-9")
        assert order.payment.payment_date == paid_at
        assert order.payment.transaction_id == "txn-9"

    def test_delivered_stamps_dates(self):
        order = _place()
        order.apply_admin_update(status="shipped")
        order.apply_admin_update(status="delivered")
        assert order.delivered_at is not None
        assert order.shipping.actual_delivery is not None

    def test_delta(self):
        order = _place()
        delta = order.apply_admin_update(status="shipped", shipping_status="in_transit", tracking_id="TRK1")
        assert delta["previous_status"] == "processing"
        assert delta["new_status"] == "shipped"
        assert delta["has_status_changed"] is True
        assert delta["has_shipping_changed"] is True
        assert delta["tracking_added"] is True
        assert delta["restock_required"] is False

    def test_same_tracking_id_is_not_added_again(self):
        order = _place()
        order.apply_admin_update(tracking_id="TRK1")
        order._events.clear()
        delta = order.apply_admin_update(tracking_id="TRK1")
        assert delta["tracking_added"] is False
        assert order._events == []

    def test_no_op_update_raises_no_event(self):
        order = _place()
        order._events.clear()
        delta = order.apply_admin_update(status="processing")
        assert delta["has_status_changed"] is False
        assert order._events == []

    def test_status_change_raises_event(self):
        order = _place()
        order.apply_admin_update(status="shipped")
        event = order._events[-1]
        assert isinstance(event, OrderStatusUpdated)
        assert event.previous_status == "processing"
        assert event.new_status == "shipped"

    def test_admin_cancel_requires_restock(self):
        order = _place()
        delta = order.apply_admin_update(status="cancelled")
        assert delta["restock_required"] is True
        assert order.cancelled_at is not None

    def test_admin_note_is_timestamped(self):
        order = _place()
        order.apply_admin_update(notes="Called customer")
        assert order.notes.startswith("[")
        assert order.notes.endswith("] Admin: Called customer")

    def test_invalid_enum_leaves_order_untouched(self):
        order = _place()
        with pytest.raises(ValidationError):
            order.apply_admin_update(status="shipped", shipping_status="teleported")
        assert order.status == "processing"
        assert order.shipping.status == "processing"

    def test_backward_transition_rejected(self):
        order = _place()
        order.apply_admin_update(status="shipped")
        with pytest.raises(StateConflictError):
            order.apply_admin_update(status="processing")

    def test_terminal_state_is_final(self):
        order = _place()
        order.cancel()
        with pytest.raises(StateConflictError):
            order.apply_admin_update(status="processing")

    def test_shipping_status_cannot_move_back(self):
        order = _place()
        order.apply_admin_update(shipping_status="out_for_delivery")
        with pytest.raises(StateConflictError):
            order.apply_admin_update(status="shipped", shipping_status="shipped")
        assert order.status == "processing"
        assert order.shipping.status == "out_for_delivery"

    def test_delivered_shipment_cannot_fail(self):
        order = _place()
        order.apply_admin_update(shipping_status="delivered")
        with pytest.raises(StateConflictError):
            order.apply_admin_update(shipping_status="failed")

    def test_failed_or_delivered_shipment_can_be_returned(self):
        order = _place()
        order.apply_admin_update(shipping_status="failed")
        order.apply_admin_update(shipping_status="returned")
        assert order.shipping.status == "returned"
        with pytest.raises(StateConflictError):
            order.apply_admin_update(shipping_status="in_transit")


def test_to_view_shape():
    view = _place().to_view()
    assert view["shipping_address"]["city"] == "Pune"
    assert view["shipping_address"]["state"] == "Not specified"
    assert [item["line_total"] for item in view["items"]] == [100.0, 150.0]
    assert view["shipping"]["cost"] == 85.0
