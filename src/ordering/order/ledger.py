"""Order ledger — turns a checkout into per-seller orders in every partition.

For each seller group the ledger creates two copies of the same order:
the buyer's copy always starts ``AwaitingShipment``; the seller's copy
starts ``PaymentHeld`` for escrow (secure) sales and ``AwaitingShipment``
for direct sales.

Write sequence per checkout: buyer partition, then each seller partition,
then notifications. The partitions share no transaction, so an
interruption between writes leaves the copies out of step; nothing here
retries or repairs that.
"""

from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain

from ordering.cart.aggregation import CartAggregator
from ordering.inbox.dispatch import NotificationDispatcher
from ordering.order.order import (
    DeliveryMethod,
    OrderCopy,
    OrderStatus,
    SellingMode,
    ShippingAddress,
)

logger = structlog.get_logger(__name__)


def make_order_id(placed_at, seller_id):
    """``<epoch milliseconds>-<seller id>``; stable across every copy."""
    return f"{int(placed_at.timestamp() * 1000)}-{seller_id}"


def initial_statuses(selling_mode):
    """(buyer status, seller status) for a freshly placed order."""
    if selling_mode == SellingMode.SECURE.value:
        return OrderStatus.AWAITING_SHIPMENT, OrderStatus.PAYMENT_HELD
    return OrderStatus.AWAITING_SHIPMENT, OrderStatus.AWAITING_SHIPMENT


class OrderLedger:
    def __init__(self, store=None, dispatcher=None, aggregator=None, clock=None):
        self._store = store
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.aggregator = aggregator or CartAggregator()
        self.clock = clock or (lambda: datetime.now(UTC))

    @property
    def store(self):
        return self._store or current_domain.repository_for(OrderCopy)

    def _unique_order_id(self, placed_at, seller_id):
        order_id = make_order_id(placed_at, seller_id)
        bump = 0
        while self.store.owners_of(order_id):
            bump += 1
            order_id = f"{int(placed_at.timestamp() * 1000) + bump}-{seller_id}"
        return order_id

    def place_order(self, buyer_id, cart_lines, shipping_address, delivery_method):
        """Create one order per seller group and store both copies of each.

        Assumes the checkout already passed ``check_checkout``.

        Returns:
            The buyer's copy of the first order created, or None when every
            group was dropped (empty cart or only the buyer's own listings).
        """
        buyer_id = str(buyer_id)
        if isinstance(delivery_method, DeliveryMethod):
            delivery_method = delivery_method.value
        drafts = self.aggregator.aggregate(buyer_id, cart_lines, delivery_method)
        if not drafts:
            logger.info("Checkout produced no orders", buyer_id=buyer_id)
            return None

        if isinstance(shipping_address, dict):
            shipping_address = ShippingAddress(**shipping_address)

        placed_at = self.clock()
        buyer_copies = []
        seller_copies = []
        for draft in drafts:
            order_id = self._unique_order_id(placed_at, draft.seller_id)
            buyer_status, seller_status = initial_statuses(draft.selling_mode)
            for owner_id, status, bucket in (
                (buyer_id, buyer_status, buyer_copies),
                (draft.seller_id, seller_status, seller_copies),
            ):
                bucket.append(
                    OrderCopy.create(
                        order_id=order_id,
                        owner_id=owner_id,
                        buyer_id=buyer_id,
                        seller_id=draft.seller_id,
                        placed_at=placed_at,
                        items=draft.items,
                        shipping_address=shipping_address,
                        status=status,
                        selling_mode=draft.selling_mode,
                        delivery_method=delivery_method,
                        shipping_cost=draft.shipping_cost,
                        total=draft.total,
                    )
                )

        # 1. Buyer partition (appended, never overwritten)
        self.store.append(buyer_id, buyer_copies)

        # 2. Each seller partition
        for seller_copy in seller_copies:
            self.store.append(seller_copy.seller_id, [seller_copy])
            logger.info(
                "Order placed",
                order_id=seller_copy.order_id,
                buyer_id=buyer_id,
                seller_id=str(seller_copy.seller_id),
                total=seller_copy.total,
                seller_status=seller_copy.status,
            )

        # 3. Admin and seller notifications
        for seller_copy in seller_copies:
            self.dispatcher.notify_order_created(seller_copy)

        return buyer_copies[0]
