"""Status transitions — apply one change to every copy of an order.

``update_order_status_and_save`` patches the actor's own copy first, then
the counterparty copies found through the order-id index, and finally
notifies the participants who did not make the change. Nothing is rolled
back if a later write fails; the result reports which partitions were
written.

Outcomes are returned as TransitionResult values rather than raised, so
callers branch on ``result.reason`` (or simply on truthiness).
"""

from dataclasses import dataclass
from enum import Enum

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.inbox.dispatch import NotificationDispatcher
from ordering.order.order import PATCHABLE_FIELDS, OrderCopy, OrderStatus

logger = structlog.get_logger(__name__)


class TransitionOutcome(Enum):
    UPDATED = "updated"
    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    FORBIDDEN = "forbidden"
    INVALID_PATCH = "invalid_patch"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class TransitionResult:
    order_id: str
    reason: str
    buyer_id: str | None = None
    seller_id: str | None = None
    updated_owners: tuple = ()

    @property
    def success(self):
        return self.reason == TransitionOutcome.UPDATED.value

    def __bool__(self):
        return self.success


def _normalize_patch(patch):
    """Validate patch keys/values; returns the normalized patch or None."""
    if not patch or set(patch) - PATCHABLE_FIELDS:
        return None
    normalized = dict(patch)
    if "status" in normalized:
        status = normalized["status"]
        try:
            normalized["status"] = status.value if isinstance(status, OrderStatus) else OrderStatus(status).value
        except ValueError:
            return None
    return normalized


class StatusTransitionEngine:
    def __init__(self, store=None, dispatcher=None):
        self._store = store
        self.dispatcher = dispatcher or NotificationDispatcher()

    @property
    def store(self):
        return self._store or current_domain.repository_for(OrderCopy)

    def locate(self, actor_id, order_id):
        """The actor's own copy if they hold one, else the first copy on record."""
        own = self.store.find_copy(actor_id, order_id)
        if own is not None:
            return own
        for owner_id in self.store.owners_of(order_id):
            copy = self.store.find_copy(owner_id, order_id)
            if copy is not None:
                return copy
        return None

    # -------------------------------------------------------------------
    # Core propagation
    # -------------------------------------------------------------------
    def update_order_status_and_save(self, actor_id, order_id, patch):
        """Apply ``patch`` to the actor's copy and the counterparty copy.

        Counterparty propagation stops as soon as both the buyer's and the
        seller's partitions have been handled; for a participant that is
        the first other copy found, for an admin (who holds no copy) it is
        both copies.
        """
        actor_id = str(actor_id)
        order_id = str(order_id)
        normalized = _normalize_patch(patch)
        if normalized is None:
            logger.warning("Rejected order patch", order_id=order_id, patch=patch)
            return TransitionResult(order_id=order_id, reason=TransitionOutcome.INVALID_PATCH.value)

        copies = []
        own = self.store.find_copy(actor_id, order_id)
        if own is not None:
            copies.append(own)

        for owner_id in self.store.owners_of(order_id):
            if owner_id == actor_id:
                continue
            if copies and set(copies[0].participants()) <= {str(c.owner_id) for c in copies}:
                break
            copy = self.store.find_copy(owner_id, order_id)
            if copy is not None:
                copies.append(copy)

        if not copies:
            logger.info("Order not found in any partition", order_id=order_id, actor_id=actor_id)
            return TransitionResult(order_id=order_id, reason=TransitionOutcome.NOT_FOUND.value)

        buyer_id, seller_id = copies[0].participants()
        written = []
        status_changed = False
        for copy in copies:
            expected_revision = copy.revision
            changed = copy.apply_patch(normalized)
            if not changed:
                continue
            if not self.store.save_copy(copy, expected_revision):
                return TransitionResult(
                    order_id=order_id,
                    reason=TransitionOutcome.CONFLICT.value,
                    buyer_id=buyer_id,
                    seller_id=seller_id,
                    updated_owners=tuple(written),
                )
            written.append(str(copy.owner_id))
            status_changed = status_changed or "status" in normalized

        logger.info(
            "Order copies updated",
            order_id=order_id,
            actor_id=actor_id,
            patch=normalized,
            updated_owners=written,
        )

        if status_changed:
            self.dispatcher.notify_status_change(order_id, normalized["status"], buyer_id, seller_id, actor_id)

        return TransitionResult(
            order_id=order_id,
            reason=TransitionOutcome.UPDATED.value,
            buyer_id=buyer_id,
            seller_id=seller_id,
            updated_owners=tuple(written),
        )

    # -------------------------------------------------------------------
    # Guarded transitions
    # -------------------------------------------------------------------
    def _guarded(self, actor_id, order_id, target_status, participant):
        copy = self.locate(actor_id, order_id)
        if copy is None:
            return TransitionResult(order_id=str(order_id), reason=TransitionOutcome.NOT_FOUND.value)

        buyer_id, seller_id = copy.participants()
        expected_actor = buyer_id if participant == "buyer" else seller_id
        if str(actor_id) != expected_actor:
            logger.warning(
                "Transition attempted by non-participant",
                order_id=str(order_id),
                actor_id=str(actor_id),
                target_status=target_status.value,
            )
            return TransitionResult(
                order_id=str(order_id),
                reason=TransitionOutcome.FORBIDDEN.value,
                buyer_id=buyer_id,
                seller_id=seller_id,
            )

        try:
            copy.assert_can_transition(target_status)
        except ValidationError:
            logger.info(
                "Transition rejected",
                order_id=str(order_id),
                current_status=copy.status,
                target_status=target_status.value,
            )
            return TransitionResult(
                order_id=str(order_id),
                reason=TransitionOutcome.INVALID_TRANSITION.value,
                buyer_id=buyer_id,
                seller_id=seller_id,
            )

        return self.update_order_status_and_save(actor_id, order_id, {"status": target_status})

    def mark_as_shipped(self, actor_id, order_id):
        """Seller hands the order to delivery: AwaitingShipment | PaymentHeld → Shipped."""
        return self._guarded(actor_id, order_id, OrderStatus.SHIPPED, participant="seller")

    def confirm_receipt(self, actor_id, order_id):
        """Buyer confirms the goods arrived: Shipped → Completed."""
        return self._guarded(actor_id, order_id, OrderStatus.COMPLETED, participant="buyer")

    def override_status(self, actor_id, order_id, status):
        """Administrative override to any status, for dispute resolution."""
        logger.info("Administrative status override", order_id=str(order_id), actor_id=str(actor_id), status=str(status))
        return self.update_order_status_and_save(actor_id, order_id, {"status": status})
