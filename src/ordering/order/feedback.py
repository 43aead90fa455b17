"""Buyer feedback on an order — seller rating and per-product review markers."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import OrderCopy, OrderStatus
from ordering.order.transitions import (
    StatusTransitionEngine,
    TransitionOutcome,
    TransitionResult,
)

logger = structlog.get_logger(__name__)


class OrderFeedback:
    def __init__(self, engine=None):
        self.engine = engine or StatusTransitionEngine()

    def rate_seller(self, actor_id, order_id):
        """Flag the order as rated on both copies. Buyer only, completed orders only."""
        copy = self.engine.locate(actor_id, order_id)
        if copy is None:
            return TransitionResult(order_id=str(order_id), reason=TransitionOutcome.NOT_FOUND.value)
        if str(actor_id) != str(copy.buyer_id):
            return TransitionResult(order_id=str(order_id), reason=TransitionOutcome.FORBIDDEN.value)
        if copy.status != OrderStatus.COMPLETED.value:
            return TransitionResult(order_id=str(order_id), reason=TransitionOutcome.INVALID_TRANSITION.value)
        return self.engine.update_order_status_and_save(actor_id, order_id, {"buyer_rated": True})

    def mark_item_reviewed(self, actor_id, order_id, product_id):
        """Mark a product as reviewed on the actor's own copy only.

        Returns whether the copy was found and updated.
        """
        repo = current_domain.repository_for(OrderCopy)
        copy = repo.find_copy(actor_id, order_id)
        if copy is None:
            return False
        expected_revision = copy.revision
        try:
            copy.mark_item_reviewed(product_id)
        except ValidationError:
            logger.info("Review marker for unknown product", order_id=str(order_id), product_id=str(product_id))
            return False
        return repo.save_copy(copy, expected_revision)


@ordering.command(part_of="OrderCopy")
class RateSeller:
    order_id = String(required=True, max_length=100, sanitize=False)
    actor_id = Identifier(required=True)


@ordering.command(part_of="OrderCopy")
class MarkItemReviewed:
    order_id = String(required=True, max_length=100, sanitize=False)
    actor_id = Identifier(required=True)
    product_id = Identifier(required=True)


@ordering.command_handler(part_of=OrderCopy)
class OrderFeedbackHandler:
    @handle(RateSeller)
    def rate_seller(self, command):
        return OrderFeedback().rate_seller(command.actor_id, command.order_id)

    @handle(MarkItemReviewed)
    def mark_item_reviewed(self, command):
        return OrderFeedback().mark_item_reviewed(command.actor_id, command.order_id, command.product_id)
