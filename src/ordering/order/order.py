"""Order copy aggregate (CQRS) — one participant's stored copy of an order.

A logical order spans two partitions: the buyer's and the seller's. Each
partition holds its own OrderCopy under the same ``order_id``; the copies
share every field except ``owner_id``, ``status`` and ``revision``. The
seller-side status reflects internal fulfillment state (escrow hold) while
the buyer-side status reflects what the buyer sees.

Normal flow:
    AwaitingShipment | PaymentHeld → Shipped → Completed

Administrative overrides may set any status and are not checked against
the normal flow.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    AWAITING_PAYMENT = "AwaitingPayment"
    AWAITING_SHIPMENT = "AwaitingShipment"
    PAYMENT_HELD = "PaymentHeld"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class SellingMode(Enum):
    SECURE = "secure"  # Platform escrow
    DIRECT = "direct"  # Seller-arranged


class DeliveryMethod(Enum):
    SHIPPING = "shipping"
    FREE_SHIPPING = "free_shipping"
    LOCAL_PICKUP = "local_pickup"


# Normal-flow transitions. Anything not listed here is reachable only
# through an administrative override.
_VALID_TRANSITIONS = {
    OrderStatus.AWAITING_SHIPMENT: {OrderStatus.SHIPPED},
    OrderStatus.PAYMENT_HELD: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
}

# Fields a status patch may touch
PATCHABLE_FIELDS = frozenset({"status", "buyer_rated"})


def short_order_id(order_id):
    """Last six characters of an order id, as shown to users."""
    return str(order_id)[-6:]


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="OrderCopy")
class ShippingAddress:
    """Postal address captured at checkout.

    Every field is mandatory and must contain more than whitespace. The
    address is frozen on the order; later profile edits do not touch it.
    """

    full_name = String(required=True, max_length=255, sanitize=False)
    street = String(required=True, max_length=255, sanitize=False)
    city = String(required=True, max_length=100, sanitize=False)
    zip_code = String(required=True, max_length=20, sanitize=False)
    country = String(required=True, max_length=100, sanitize=False)

    @invariant.post
    def every_field_must_be_filled(self):
        blank = [
            name
            for name in ("full_name", "street", "city", "zip_code", "country")
            if not (getattr(self, name) or "").strip()
        ]
        if blank:
            raise ValidationError({name: ["Must not be blank"] for name in blank})


@ordering.value_object(part_of="OrderCopy")
class OrderItem:
    """Frozen snapshot of a catalogue product at the moment it was bought.

    Carries everything the ledger needs (price, seller, delivery options)
    so historical orders never depend on the live catalogue.
    """

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255, sanitize=False)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    seller_id = Identifier(required=True)
    seller_name = String(max_length=255, sanitize=False)
    image_url = String(max_length=1000, sanitize=False)
    selling_mode = String(choices=SellingMode, default=SellingMode.SECURE.value)
    delivery_options = Text(sanitize=False)  # JSON array of DeliveryMethod values
    shipping_cost = Float(default=0.0, min_value=0.0)

    @classmethod
    def from_snapshot(cls, data):
        """Build an item from a stored or submitted snapshot dict."""
        options = data.get("delivery_options") or []
        if not isinstance(options, str):
            options = json.dumps(list(options))
        return cls(
            product_id=str(data["product_id"]),
            name=data["name"],
            price=float(data["price"]),
            quantity=int(data["quantity"]),
            seller_id=str(data["seller_id"]),
            seller_name=data.get("seller_name"),
            image_url=data.get("image_url"),
            selling_mode=data.get("selling_mode") or SellingMode.SECURE.value,
            delivery_options=options,
            shipping_cost=float(data.get("shipping_cost") or 0.0),
        )

    @property
    def options(self):
        return json.loads(self.delivery_options) if self.delivery_options else []

    def offers(self, method):
        value = method.value if isinstance(method, DeliveryMethod) else method
        return value in self.options

    @property
    def line_total(self):
        return self.price * self.quantity

    def snapshot(self):
        return {
            "product_id": str(self.product_id),
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "seller_id": str(self.seller_id),
            "seller_name": self.seller_name,
            "image_url": self.image_url,
            "selling_mode": self.selling_mode,
            "delivery_options": self.options,
            "shipping_cost": self.shipping_cost,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class OrderCopy:
    """One partition's copy of a per-seller order."""

    order_id = String(required=True, max_length=100, sanitize=False)
    owner_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    placed_at = DateTime(required=True)
    items = Text(required=True, sanitize=False)  # JSON: list of OrderItem snapshots
    total = Float(required=True, min_value=0.0)
    shipping_address = ValueObject(ShippingAddress, required=True)
    status = String(choices=OrderStatus, required=True)
    selling_mode = String(choices=SellingMode, default=SellingMode.SECURE.value)
    delivery_method = String(choices=DeliveryMethod, required=True)
    shipping_cost = Float(default=0.0, min_value=0.0)
    buyer_rated = Boolean(default=False)
    reviewed_items = Text(sanitize=False)  # JSON: {product_id: bool}
    revision = Integer(default=1)
    updated_at = DateTime()

    @invariant.post
    def total_must_equal_items_plus_shipping(self):
        if self.items is None or self.total is None:
            return
        expected = self.subtotal + (self.shipping_cost or 0.0)
        if abs(expected - self.total) > 0.005:
            raise ValidationError({"total": [f"Total {self.total} does not match items and shipping ({expected})"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_id,
        owner_id,
        buyer_id,
        seller_id,
        placed_at,
        items,
        shipping_address,
        status,
        selling_mode,
        delivery_method,
        shipping_cost,
        total,
    ):
        """Create one partition's copy of a freshly placed order.

        Args:
            items: OrderItem value objects, all from ``seller_id``.
            shipping_address: ShippingAddress value object or address dict.
            status: OrderStatus for this copy (buyer and seller differ).
        """
        if isinstance(shipping_address, dict):
            shipping_address = ShippingAddress(**shipping_address)

        return cls(
            order_id=order_id,
            owner_id=str(owner_id),
            buyer_id=str(buyer_id),
            seller_id=str(seller_id),
            placed_at=placed_at,
            items=json.dumps([item.snapshot() for item in items]),
            total=total,
            shipping_address=shipping_address,
            status=status.value if isinstance(status, OrderStatus) else status,
            selling_mode=selling_mode,
            delivery_method=delivery_method,
            shipping_cost=shipping_cost,
            buyer_rated=False,
            reviewed_items=json.dumps({}),
            revision=1,
            updated_at=placed_at,
        )

    # -------------------------------------------------------------------
    # Derived data
    # -------------------------------------------------------------------
    @property
    def line_items(self):
        data = json.loads(self.items) if self.items else []
        return [OrderItem.from_snapshot(item) for item in data]

    @property
    def subtotal(self):
        data = json.loads(self.items) if self.items else []
        return sum(float(item["price"]) * int(item["quantity"]) for item in data)

    @property
    def short_id(self):
        return short_order_id(self.order_id)

    @property
    def is_buyer_copy(self):
        return str(self.owner_id) == str(self.buyer_id)

    @property
    def is_seller_copy(self):
        return str(self.owner_id) == str(self.seller_id)

    def participants(self):
        return (str(self.buyer_id), str(self.seller_id))

    def is_item_reviewed(self, product_id):
        reviewed = json.loads(self.reviewed_items) if self.reviewed_items else {}
        return bool(reviewed.get(str(product_id), False))

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def can_transition_to(self, target_status):
        current = OrderStatus(self.status)
        return target_status in _VALID_TRANSITIONS.get(current, set())

    def assert_can_transition(self, target_status):
        """Raise if the normal flow does not allow moving to ``target_status``."""
        if not self.can_transition_to(target_status):
            raise ValidationError({"status": [f"Cannot transition from {self.status} to {target_status.value}"]})

    def apply_patch(self, patch):
        """Apply a status/rating patch to this copy.

        Returns True when a field actually changed; the revision only moves
        forward on a real change.
        """
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValidationError({"patch": [f"Fields cannot be patched: {', '.join(sorted(unknown))}"]})

        changed = False
        if "status" in patch:
            status = patch["status"]
            status = status.value if isinstance(status, OrderStatus) else OrderStatus(status).value
            if self.status != status:
                self.status = status
                changed = True
        if "buyer_rated" in patch and bool(patch["buyer_rated"]) != bool(self.buyer_rated):
            self.buyer_rated = bool(patch["buyer_rated"])
            changed = True

        if changed:
            self.revision = (self.revision or 1) + 1
            self.updated_at = datetime.now(UTC)
        return changed

    def mark_item_reviewed(self, product_id):
        """Record that the buyer reviewed one of the products in this order."""
        if str(product_id) not in {str(item.product_id) for item in self.line_items}:
            raise ValidationError({"product_id": [f"Product {product_id} is not part of order {self.order_id}"]})

        reviewed = json.loads(self.reviewed_items) if self.reviewed_items else {}
        reviewed[str(product_id)] = True
        self.reviewed_items = json.dumps(reviewed)
        self.revision = (self.revision or 1) + 1
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Wire format
    # -------------------------------------------------------------------
    def to_record(self):
        """Plain structured record, as persisted and returned by the API."""
        address = self.shipping_address
        return {
            "id": self.order_id,
            "owner_id": str(self.owner_id),
            "buyer_id": str(self.buyer_id),
            "seller_id": str(self.seller_id),
            "date": self.placed_at.isoformat() if self.placed_at else None,
            "items": json.loads(self.items) if self.items else [],
            "total": self.total,
            "shipping_address": {
                "full_name": address.full_name,
                "street": address.street,
                "city": address.city,
                "zip_code": address.zip_code,
                "country": address.country,
            }
            if address
            else None,
            "status": self.status,
            "selling_mode": self.selling_mode,
            "delivery_method": self.delivery_method,
            "shipping_cost": self.shipping_cost,
            "buyer_rating": {"rated": bool(self.buyer_rated)},
            "reviewed_items": json.loads(self.reviewed_items) if self.reviewed_items else {},
            "revision": self.revision,
        }
