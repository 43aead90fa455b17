"""Order placement — checkout command and handler."""

import json
from dataclasses import dataclass

import structlog
from protean import handle
from protean.fields import Identifier, String, Text

from ordering.checkout.validation import check_checkout
from ordering.domain import ordering
from ordering.order.ledger import OrderLedger
from ordering.order.order import OrderCopy

logger = structlog.get_logger(__name__)


@ordering.command(part_of="OrderCopy")
class PlaceOrder:
    buyer_id = Identifier(required=True)
    cart_lines = Text(required=True, sanitize=False)  # JSON: list of cart line snapshots
    shipping_address = Text(required=True, sanitize=False)  # JSON: address dict
    delivery_method = String(max_length=50)  # validated by check_checkout


@dataclass(frozen=True)
class PlacementResult:
    order_id: str | None = None
    reasons: tuple = ()  # checkout rejection codes; empty when the checkout was accepted

    @property
    def placed(self) -> bool:
        return self.order_id is not None


@ordering.command_handler(part_of=OrderCopy)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        """Returns a PlacementResult carrying the first order id or the rejection reasons.

        An accepted checkout whose lines all belong to the buyer places
        nothing and returns an empty result.
        """
        cart_lines = json.loads(command.cart_lines) if isinstance(command.cart_lines, str) else command.cart_lines
        address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )

        check = check_checkout(cart_lines, address, command.delivery_method)
        if not check:
            logger.info("Checkout rejected", buyer_id=str(command.buyer_id), reasons=check.reasons)
            return PlacementResult(reasons=tuple(check.reasons))

        order = OrderLedger().place_order(
            buyer_id=command.buyer_id,
            cart_lines=cart_lines,
            shipping_address=address,
            delivery_method=command.delivery_method,
        )
        return PlacementResult(order_id=order.order_id if order else None)
