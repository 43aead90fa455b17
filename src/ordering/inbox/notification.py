"""Inbox notification aggregate (CQRS) — one message in one owner's inbox.

Every user has a private inbox keyed by their owner id; platform operators
share the ``admin`` inbox. Inboxes keep only the most recent entries.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Identifier, String, Text

from ordering.domain import ordering

ADMIN_INBOX = "admin"
INBOX_LIMIT = 50


class NotificationType(Enum):
    NEW_ORDER = "NewOrder"
    NEW_SALE = "NewSale"
    ORDER_UPDATE = "OrderUpdate"


@ordering.aggregate
class InboxNotification:
    owner_id: Identifier(required=True)
    notification_type: String(choices=NotificationType, required=True)
    message: Text(required=True, sanitize=False)
    link: String(max_length=500, sanitize=False)
    order_id: String(max_length=100, sanitize=False)
    is_read: Boolean(default=False)
    created_at: DateTime()

    @classmethod
    def create(cls, owner_id, notification_type, message, link=None, order_id=None):
        return cls(
            owner_id=str(owner_id),
            notification_type=notification_type,
            message=message,
            link=link,
            order_id=order_id,
            is_read=False,
            created_at=datetime.now(UTC),
        )

    def mark_read(self):
        self.is_read = True
