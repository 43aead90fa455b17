"""Cart aggregation — split a multi-seller cart into per-seller order drafts.

A checkout produces one order per seller. Lines are grouped by seller id,
the buyer's own listings are dropped, and each group gets its own
subtotal, shipping cost and total.
"""

from dataclasses import dataclass, field

import structlog

from ordering.order.order import DeliveryMethod, OrderItem, SellingMode

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrderDraft:
    """Pending order for one seller group, before ids and statuses exist."""

    seller_id: str
    items: list = field(default_factory=list)
    selling_mode: str = SellingMode.SECURE.value
    subtotal: float = 0.0
    shipping_cost: float = 0.0

    @property
    def total(self):
        return self.subtotal + self.shipping_cost


def to_order_items(cart_lines):
    """Normalize cart lines (snapshot dicts or OrderItems) into OrderItems."""
    return [line if isinstance(line, OrderItem) else OrderItem.from_snapshot(line) for line in cart_lines]


def group_by_seller(items):
    """Group items by seller id, keeping first-seen seller order."""
    groups = {}
    for item in items:
        groups.setdefault(str(item.seller_id), []).append(item)
    return groups


def shipping_cost_for(items, delivery_method):
    """Shipping owed for one seller group.

    Only the ``shipping`` method is charged; items offering free shipping
    are never charged.
    """
    method = delivery_method.value if isinstance(delivery_method, DeliveryMethod) else delivery_method
    if method != DeliveryMethod.SHIPPING.value:
        return 0.0
    return sum(
        ((item.shipping_cost or 0.0) * item.quantity for item in items if not item.offers(DeliveryMethod.FREE_SHIPPING)),
        0.0,
    )


class CartAggregator:
    """Turns a buyer's cart into one OrderDraft per seller."""

    def aggregate(self, buyer_id, cart_lines, delivery_method):
        drafts = []
        for seller_id, items in group_by_seller(to_order_items(cart_lines)).items():
            if seller_id == str(buyer_id):
                logger.info(
                    "Skipping self-owned cart lines",
                    buyer_id=str(buyer_id),
                    line_count=len(items),
                )
                continue

            drafts.append(
                OrderDraft(
                    seller_id=seller_id,
                    items=items,
                    selling_mode=items[0].selling_mode or SellingMode.SECURE.value,
                    subtotal=sum(item.line_total for item in items),
                    shipping_cost=shipping_cost_for(items, delivery_method),
                )
            )
        return drafts
