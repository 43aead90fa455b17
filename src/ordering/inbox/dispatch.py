"""Notification dispatch — fan ledger changes out to participant inboxes.

Dispatch is fire-and-forget: a failure to render or store a notification
is logged and swallowed so it can never undo the order change that
triggered it.
"""

import structlog
from protean.utils.globals import current_domain

from ordering.inbox.notification import (
    ADMIN_INBOX,
    INBOX_LIMIT,
    InboxNotification,
    NotificationType,
)
from ordering.inbox.templates import get_template

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    def __init__(self, inbox_limit=INBOX_LIMIT):
        self.inbox_limit = inbox_limit

    def push(self, owner_id, notification_type, context):
        """Render and store one notification. Returns its id, or None on failure."""
        try:
            rendered = get_template(notification_type).render(context)
            notification = InboxNotification.create(
                owner_id=owner_id,
                notification_type=notification_type,
                message=rendered["message"],
                link=rendered.get("link"),
                order_id=context.get("order_id"),
            )
            current_domain.repository_for(InboxNotification).add(notification)
            self._trim(owner_id)
        except Exception:
            logger.exception(
                "Notification dispatch failed",
                owner_id=str(owner_id),
                notification_type=notification_type,
                order_id=context.get("order_id"),
            )
            return None

        return str(notification.id)

    def _trim(self, owner_id):
        """Drop the oldest entries beyond the inbox limit."""
        repo = current_domain.repository_for(InboxNotification)
        entries = repo._dao.query.filter(owner_id=str(owner_id)).limit(10_000).all().items
        entries = sorted(entries, key=lambda n: n.created_at, reverse=True)
        for stale in entries[self.inbox_limit :]:
            repo._dao.delete(stale)

    # -------------------------------------------------------------------
    # Ledger hooks
    # -------------------------------------------------------------------
    def notify_order_created(self, order):
        """Tell the admins and the seller about a new order.

        The buyer is not notified; the confirmation view covers that.
        """
        items = order.line_items
        self.push(
            ADMIN_INBOX,
            NotificationType.NEW_ORDER.value,
            {"order_id": order.order_id, "seller_id": str(order.seller_id), "total": order.total},
        )
        self.push(
            order.seller_id,
            NotificationType.NEW_SALE.value,
            {
                "order_id": order.order_id,
                "product_name": items[0].name if items else None,
                "count": len(items),
            },
        )

    def notify_status_change(self, order_id, new_status, buyer_id, seller_id, actor_id):
        """Notify every participant except the one who made the change."""
        notified = []
        for participant in dict.fromkeys((str(buyer_id), str(seller_id))):
            if participant == str(actor_id):
                continue
            self.push(
                participant,
                NotificationType.ORDER_UPDATE.value,
                {"order_id": order_id, "status": new_status},
            )
            notified.append(participant)
        return notified
