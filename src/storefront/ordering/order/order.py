"""Order aggregate: an immutable purchase snapshot with a mutable status machine.

Items and prices are captured from the cart at checkout and never re-priced.
Three statuses evolve independently afterwards:

Order:    pending/processing → shipped → delivered, or → cancelled from
          pending/processing. delivered and cancelled are terminal.
Shipping: processing → shipped → in_transit → out_for_delivery →
          delivered | returned | failed (finer grained, customer messaging).
Payment:  unpaid/pending → paid → refunded, or → failed.
"""

import json
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.domain import storefront
from storefront.errors import StateConflictError
from storefront.ordering.order.events import OrderCancelled, OrderPlaced, OrderStatusUpdated
from storefront.ordering.shipping import ESTIMATED_DELIVERY_DAYS
from storefront.utils.codes import generate_order_number


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ShippingStatus(Enum):
    PROCESSING = "processing"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    RETURNED = "returned"
    FAILED = "failed"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    UNPAID = "unpaid"


class PaymentMethod(Enum):
    COD = "cod"
    PREPAID = "prepaid"
    WALLET = "wallet"
    NETBANKING = "netbanking"
    CARD = "card"
    UPI = "upi"


class AddressType(Enum):
    HOME = "home"
    WORK = "work"
    OTHER = "other"


class CancellationActor(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


# Forward progress along the fulfilment path
_PROGRESS_RANK = {
    OrderStatus.PENDING: 0,
    OrderStatus.PROCESSING: 1,
    OrderStatus.SHIPPED: 2,
    OrderStatus.DELIVERED: 3,
}

_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.PROCESSING}
_TERMINAL_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Shipping moves forward only; delivered and failed are alternative outcomes
# of the last leg and a return can follow either
_SHIPPING_RANK = {
    ShippingStatus.PROCESSING: 0,
    ShippingStatus.SHIPPED: 1,
    ShippingStatus.IN_TRANSIT: 2,
    ShippingStatus.OUT_FOR_DELIVERY: 3,
    ShippingStatus.DELIVERED: 4,
    ShippingStatus.FAILED: 4,
    ShippingStatus.RETURNED: 5,
}

ADDRESS_PLACEHOLDER = "Not specified"
PINCODE_PLACEHOLDER = "000000"
DEFAULT_COUNTRY = "India"


def enum_value(enum_cls, value, field_name):
    """Canonical enum value, or a ValidationError naming the field."""
    try:
        return enum_cls(str(value).strip().lower()).value
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError({field_name: [f"Invalid {field_name} '{value}'. Allowed: {allowed}"]}) from None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingAddress:
    """Delivery address captured at checkout; later profile changes do not affect it."""

    street = String(required=True, max_length=255)
    city = String(max_length=100, default=ADDRESS_PLACEHOLDER)
    state = String(max_length=100, default=ADDRESS_PLACEHOLDER)
    pincode = String(max_length=12, default=PINCODE_PLACEHOLDER)
    country = String(max_length=100, default=DEFAULT_COUNTRY)
    phone = String(max_length=20, default=ADDRESS_PLACEHOLDER)
    landmark = String(max_length=255)
    address_type = String(choices=AddressType, default=AddressType.HOME.value)


def build_shipping_address(value, field_name="shipping_address") -> ShippingAddress:
    """Build an address from a mapping or a bare street string.

    A string is taken as the street; city, state, pincode and phone become
    explicit placeholders rather than being dropped. The same placeholders
    fill any field missing from a mapping.
    """
    if isinstance(value, str):
        value = {"street": value}
    if not isinstance(value, dict):
        raise ValidationError({field_name: ["Shipping address is required"]})

    street = value.get("street")
    if not isinstance(street, str) or not street.strip():
        raise ValidationError({field_name: ["Street address is required"]})

    def _text(key, default):
        raw = value.get(key)
        return raw.strip() if isinstance(raw, str) and raw.strip() else default

    return ShippingAddress(
        street=street.strip(),
        city=_text("city", ADDRESS_PLACEHOLDER),
        state=_text("state", ADDRESS_PLACEHOLDER),
        pincode=_text("pincode", PINCODE_PLACEHOLDER),
        country=_text("country", DEFAULT_COUNTRY),
        phone=_text("phone", ADDRESS_PLACEHOLDER),
        landmark=_text("landmark", None),
        address_type=enum_value(AddressType, value.get("type") or AddressType.HOME.value, "address_type"),
    )


def _address_dict(address: ShippingAddress | None) -> dict | None:
    if address is None:
        return None
    return {
        "street": address.street,
        "city": address.city,
        "state": address.state,
        "pincode": address.pincode,
        "country": address.country,
        "phone": address.phone,
        "landmark": address.landmark,
        "type": address.address_type,
    }


@storefront.value_object(part_of="Order")
class Payment:
    method = String(required=True, choices=PaymentMethod)
    status = String(choices=PaymentStatus, default=PaymentStatus.UNPAID.value)
    amount = Float(default=0.0, min_value=0.0)
    transaction_id = String(max_length=255)
    payment_date = DateTime()


def _payment(current: Payment, **changes) -> Payment:
    values = {
        "method": current.method,
        "status": current.status,
        "amount": current.amount,
        "transaction_id": current.transaction_id,
        "payment_date": current.payment_date,
    }
    values.update(changes)
    return Payment(**values)


@storefront.value_object(part_of="Order")
class Shipping:
    cost = Float(default=0.0, min_value=0.0)
    status = String(choices=ShippingStatus, default=ShippingStatus.PROCESSING.value)
    tracking_id = String(max_length=255)
    awb_number = String(max_length=255)
    courier_name = String(max_length=255)
    estimated_delivery = DateTime()
    actual_delivery = DateTime()


def _shipping(current: Shipping, **changes) -> Shipping:
    values = {
        "cost": current.cost,
        "status": current.status,
        "tracking_id": current.tracking_id,
        "awb_number": current.awb_number,
        "courier_name": current.courier_name,
        "estimated_delivery": current.estimated_delivery,
        "actual_delivery": current.actual_delivery,
    }
    values.update(changes)
    return Shipping(**values)


def _iso(value):
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """A purchased line: product reference plus the title and price paid."""

    product_id = Identifier(required=True)
    title = String(required=True, max_length=200)
    sku = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    variants = Text(default="{}")

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=30)
    customer_id = Identifier(required=True)
    customer_email = String(max_length=255)
    customer_name = String(max_length=255)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress, required=True)
    billing_address = ValueObject(ShippingAddress)
    payment = ValueObject(Payment, required=True)
    shipping = ValueObject(Shipping)
    subtotal = Float(required=True, min_value=0.0)
    total = Float(required=True, min_value=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    notes = Text()
    expected_delivery = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        lines,
        shipping_address: ShippingAddress,
        payment_method,
        shipping_cost,
        billing_address: ShippingAddress | None = None,
        customer_email=None,
        customer_name=None,
        notes=None,
    ):
        """Create an order from a snapshot of cart lines.

        Args:
            lines: List of dicts with product_id, title, sku, quantity, unit_price, variants.
                   Prices come from the cart, never from the live catalogue.
        """
        if not lines:
            raise ValidationError({"cart": ["Cart is empty"]})
        method = enum_value(PaymentMethod, payment_method, "payment_method")

        subtotal = round(sum(line["unit_price"] * line["quantity"] for line in lines), 2)
        total = round(subtotal + shipping_cost, 2)
        now = datetime.now(UTC)

        order = cls(
            order_number=generate_order_number(),
            customer_id=str(customer_id),
            customer_email=customer_email,
            customer_name=customer_name,
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            payment=Payment(
                method=method,
                status=PaymentStatus.PENDING.value if method == PaymentMethod.COD.value else PaymentStatus.UNPAID.value,
                amount=total,
            ),
            shipping=Shipping(cost=shipping_cost, status=ShippingStatus.PROCESSING.value),
            subtotal=subtotal,
            total=total,
            # Checkout fast-tracks straight to processing
            status=OrderStatus.PROCESSING.value,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(
                OrderItem(
                    product_id=line["product_id"],
                    title=line["title"],
                    sku=line.get("sku"),
                    quantity=line["quantity"],
                    unit_price=line["unit_price"],
                    variants=json.dumps(line.get("variants") or {}, sort_keys=True),
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=order.customer_id,
                customer_email=customer_email,
                items=json.dumps(order.item_quantities()),
                subtotal=subtotal,
                shipping_cost=shipping_cost,
                total=total,
                payment_method=method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_cancellable(self) -> bool:
        return OrderStatus(self.status) in _CANCELLABLE_STATES

    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in _TERMINAL_STATES

    def item_quantities(self) -> list[dict]:
        """Product/quantity pairs handed to the inventory reconciler."""
        return [
            {"product_id": str(item.product_id), "quantity": item.quantity, "unit_price": item.unit_price}
            for item in self.items
        ]

    # -------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------
    def append_note(self, text: str) -> None:
        self.notes = f"{self.notes}\n{text}" if self.notes else text

    def append_admin_note(self, text: str, at: datetime | None = None) -> None:
        stamp = (at or datetime.now(UTC)).isoformat()
        self.append_note(f"[{stamp}] Admin: {text}")

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason=None, cancelled_by=CancellationActor.CUSTOMER.value) -> None:
        """Move to cancelled. Callers restore stock in the same unit of work."""
        if not self.is_cancellable:
            raise StateConflictError("Order cannot be cancelled at this stage")

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancelled_at = now
        self.updated_at = now
        if reason:
            self.append_note(f"Cancellation reason: {reason}")
        if self.payment.status == PaymentStatus.PAID.value:
            self.payment = _payment(self.payment, status=PaymentStatus.REFUNDED.value)

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_id=self.customer_id,
                customer_email=self.customer_email,
                reason=reason,
                cancelled_by=cancelled_by,
                payment_method=self.payment.method,
                payment_status=self.payment.status,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Administrative update
    # -------------------------------------------------------------------
    def apply_admin_update(
        self,
        status=None,
        shipping_status=None,
        tracking_id=None,
        awb_number=None,
        courier_name=None,
        payment_status=None,
        transaction_id=None,
        notes=None,
    ) -> dict:
        """Apply any combination of admin changes and return the status delta.

        Every enum value and both status transitions are checked before
        anything is written, so an invalid request leaves the order untouched.
        """
        new_status = enum_value(OrderStatus, status, "status") if status else None
        new_shipping_status = (
            enum_value(ShippingStatus, shipping_status, "shipping_status") if shipping_status else None
        )
        new_payment_status = enum_value(PaymentStatus, payment_status, "payment_status") if payment_status else None

        previous_status = self.status
        previous_shipping_status = self.shipping.status
        previous_tracking_id = self.shipping.tracking_id

        if new_status and new_status != previous_status:
            self._check_transition(OrderStatus(previous_status), OrderStatus(new_status))
        if new_shipping_status and new_shipping_status != previous_shipping_status:
            self._check_shipping_transition(
                ShippingStatus(previous_shipping_status), ShippingStatus(new_shipping_status)
            )

        now = datetime.now(UTC)
        shipping_changes = {}
        restock_required = False

        if new_status and new_status != previous_status:
            self.status = new_status
            if new_status == OrderStatus.DELIVERED.value:
                self.delivered_at = now
                shipping_changes["actual_delivery"] = now
            elif new_status == OrderStatus.CANCELLED.value:
                self.cancelled_at = now
                restock_required = True
                if self.payment.status == PaymentStatus.PAID.value and not new_payment_status:
                    new_payment_status = PaymentStatus.REFUNDED.value

        if new_shipping_status and new_shipping_status != previous_shipping_status:
            shipping_changes["status"] = new_shipping_status
            if new_shipping_status == ShippingStatus.SHIPPED.value:
                estimate = now + timedelta(days=ESTIMATED_DELIVERY_DAYS)
                shipping_changes["estimated_delivery"] = estimate
                self.expected_delivery = estimate

        if tracking_id:
            shipping_changes["tracking_id"] = tracking_id
        if awb_number:
            shipping_changes["awb_number"] = awb_number
        if courier_name:
            shipping_changes["courier_name"] = courier_name
        if shipping_changes:
            self.shipping = _shipping(self.shipping, **shipping_changes)

        payment_changes = {}
        if new_payment_status and new_payment_status != self.payment.status:
            payment_changes["status"] = new_payment_status
            if new_payment_status == PaymentStatus.PAID.value:
                payment_changes["payment_date"] = now
        if transaction_id:
            payment_changes["transaction_id"] = transaction_id
        if payment_changes:
            self.payment = _payment(self.payment, **payment_changes)

        if notes:
            self.append_admin_note(notes, at=now)

        delta = {
            "previous_status": previous_status,
            "new_status": self.status,
            "previous_shipping_status": previous_shipping_status,
            "new_shipping_status": self.shipping.status,
            "has_status_changed": self.status != previous_status,
            "has_shipping_changed": self.shipping.status != previous_shipping_status,
            "tracking_added": bool(tracking_id) and tracking_id != previous_tracking_id,
            "admin_notes": notes,
            "restock_required": restock_required,
        }

        if shipping_changes or payment_changes or notes or delta["has_status_changed"]:
            self.updated_at = now

        if delta["has_status_changed"] or delta["has_shipping_changed"] or delta["tracking_added"]:
            self.raise_(
                OrderStatusUpdated(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    customer_id=self.customer_id,
                    customer_email=self.customer_email,
                    previous_status=previous_status,
                    new_status=self.status,
                    previous_shipping_status=previous_shipping_status,
                    new_shipping_status=self.shipping.status,
                    tracking_id=self.shipping.tracking_id,
                    tracking_added=delta["tracking_added"],
                    updated_at=now,
                )
            )
        return delta

    def _check_transition(self, current: OrderStatus, target: OrderStatus) -> None:
        if current in _TERMINAL_STATES:
            raise StateConflictError(f"Order is already {current.value} and can no longer change status")
        if target == OrderStatus.CANCELLED:
            if current not in _CANCELLABLE_STATES:
                raise StateConflictError("Order cannot be cancelled at this stage")
            return
        if _PROGRESS_RANK[target] < _PROGRESS_RANK[current]:
            raise StateConflictError(f"Order cannot move back from {current.value} to {target.value}")

    def _check_shipping_transition(self, current: ShippingStatus, target: ShippingStatus) -> None:
        if _SHIPPING_RANK[target] <= _SHIPPING_RANK[current]:
            raise StateConflictError(f"Shipping status cannot move from {current.value} to {target.value}")

    # -------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------
    def to_view(self) -> dict:
        return {
            "id": str(self.id),
            "order_number": self.order_number,
            "customer_id": str(self.customer_id),
            "customer_email": self.customer_email,
            "customer_name": self.customer_name,
            "items": [
                {
                    "id": str(item.id),
                    "product_id": str(item.product_id),
                    "title": item.title,
                    "sku": item.sku,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "line_total": item.line_total,
                    "variants": json.loads(item.variants or "{}"),
                }
                for item in self.items
            ],
            "shipping_address": _address_dict(self.shipping_address),
            "billing_address": _address_dict(self.billing_address),
            "payment": {
                "method": self.payment.method,
                "status": self.payment.status,
                "amount": self.payment.amount,
                "transaction_id": self.payment.transaction_id,
                "payment_date": _iso(self.payment.payment_date),
            },
            "shipping": {
                "cost": self.shipping.cost,
                "status": self.shipping.status,
                "tracking_id": self.shipping.tracking_id,
                "awb_number": self.shipping.awb_number,
                "courier_name": self.shipping.courier_name,
                "estimated_delivery": _iso(self.shipping.estimated_delivery),
                "actual_delivery": _iso(self.shipping.actual_delivery),
            },
            "subtotal": self.subtotal,
            "total": self.total,
            "status": self.status,
            "notes": self.notes,
            "expected_delivery": _iso(self.expected_delivery),
            "delivered_at": _iso(self.delivered_at),
            "cancelled_at": _iso(self.cancelled_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@storefront.repository(part_of=Order)
class OrderRepository:
    def for_customer(self, customer_id) -> list[Order]:
        return self._dao.query.filter(customer_id=str(customer_id)).all().items

    def find_by_number(self, order_number: str) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first

    def everything(self) -> list[Order]:
        return self._dao.query.all().items
