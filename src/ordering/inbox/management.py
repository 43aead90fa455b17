"""Inbox reads and the mark-all-as-read command."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.inbox.notification import InboxNotification


def inbox_for(owner_id):
    """Owner's notifications, newest first."""
    repo = current_domain.repository_for(InboxNotification)
    entries = repo._dao.query.filter(owner_id=str(owner_id)).limit(10_000).all().items
    return sorted(entries, key=lambda n: n.created_at, reverse=True)


def unread_count(owner_id):
    return sum(1 for notification in inbox_for(owner_id) if not notification.is_read)


@ordering.command(part_of="InboxNotification")
class MarkAllAsRead:
    owner_id = Identifier(required=True)


@ordering.command_handler(part_of=InboxNotification)
class InboxHandler:
    @handle(MarkAllAsRead)
    def mark_all_as_read(self, command):
        repo = current_domain.repository_for(InboxNotification)
        marked = 0
        for notification in inbox_for(command.owner_id):
            if not notification.is_read:
                notification.mark_read()
                repo.add(notification)
                marked += 1
        return marked
