import pytest
from storefront.notifications.templates import get_template
from storefront.notifications.templates.order_cancellation import refund_status_text

ORDER = {
    "order_number": "ORD-ABC-001",
    "items": [{"title": "Kurta", "quantity": 2, "unit_price": 50.0}],
    "subtotal": 100.0,
    "total": 185.0,
    "shipping": {"cost": 85.0, "tracking_id": None},
    "payment": {"method": "cod", "status": "pending"},
    "shipping_address": {"street": "12 MG Road", "city": "Pune", "pincode": "411001"},
}


class TestOrderConfirmation:
    def test_subject_and_totals(self):
        content = get_template("order_confirmation").render({"order": ORDER, "customer_name": "Asha"})
        assert content["subject"] == "Order ORD-ABC-001 confirmed"
        assert "Hi Asha" in content["body"]
        assert "Kurta x 2 @ 50.00" in content["body"]
        assert "Total: 185.00" in content["body"]


class TestOrderCancellation:
    def test_reason_defaults(self):
        content = get_template("order_cancellation").render({"order": ORDER})
        assert "Reason: No reason given" in content["body"]

    @pytest.mark.parametrize(
        "payment, expected",
        [
            ({"method": "card", "status": "refunded"}, "Refund processed"),
            ({"method": "cod", "status": "pending"}, "No payment to refund"),
            ({"method": "upi", "status": "unpaid"}, "Refund will be processed within 3-5 business days"),
        ],
    )
    def test_refund_status_text(self, payment, expected):
        assert refund_status_text(payment) == expected


class TestOrderStatusUpdate:
    def test_lists_changes(self):
        order = {**ORDER, "shipping": {"cost": 85.0, "tracking_id": "TRK1", "courier_name": "Delhivery"}}
        delta = {
            "has_status_changed": True,
            "previous_status": "processing",
            "new_status": "shipped",
            "has_shipping_changed": True,
            "previous_shipping_status": "processing",
            "new_shipping_status": "in_transit",
        }
        content = get_template("order_status_update").render({"order": order, "status_delta": delta})
        assert content["subject"] == "Order ORD-ABC-001 is Shipped"
        assert "Status: Processing -> Shipped" in content["body"]
        assert "Shipping: Processing -> In Transit" in content["body"]
        assert "Tracking: TRK1 (Delhivery)" in content["body"]


def test_unknown_template():
    with pytest.raises(ValueError):
        get_template("carrier_pigeon")
