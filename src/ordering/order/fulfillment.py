"""Order fulfillment — shipping, receipt and administrative override commands."""

from protean import handle
from protean.fields import Identifier, String

from ordering.domain import ordering
from ordering.order.order import OrderCopy, OrderStatus
from ordering.order.transitions import StatusTransitionEngine


@ordering.command(part_of="OrderCopy")
class MarkAsShipped:
    """Seller reports the parcel is on its way."""

    order_id = String(required=True, max_length=100, sanitize=False)
    actor_id = Identifier(required=True)


@ordering.command(part_of="OrderCopy")
class ConfirmReceipt:
    """Buyer confirms the order arrived."""

    order_id = String(required=True, max_length=100, sanitize=False)
    actor_id = Identifier(required=True)


@ordering.command(part_of="OrderCopy")
class OverrideOrderStatus:
    """Admin sets any status, bypassing the normal flow."""

    order_id = String(required=True, max_length=100, sanitize=False)
    actor_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)


@ordering.command_handler(part_of=OrderCopy)
class OrderFulfillmentHandler:
    @handle(MarkAsShipped)
    def mark_as_shipped(self, command):
        return StatusTransitionEngine().mark_as_shipped(command.actor_id, command.order_id)

    @handle(ConfirmReceipt)
    def confirm_receipt(self, command):
        return StatusTransitionEngine().confirm_receipt(command.actor_id, command.order_id)

    @handle(OverrideOrderStatus)
    def override_status(self, command):
        return StatusTransitionEngine().override_status(command.actor_id, command.order_id, command.status)
