"""Read paths over the partitions: per-owner listings and the admin union."""

from protean.utils.globals import current_domain

from ordering.order.order import OrderCopy


def orders_for(owner_id):
    """One partition's copies, in placement order."""
    return current_domain.repository_for(OrderCopy).read(owner_id)


def get_order(owner_id, order_id):
    return current_domain.repository_for(OrderCopy).find_copy(owner_id, order_id)


def all_orders_for_admin():
    """Every order once, newest first.

    Built at read time from all partitions and de-duplicated by order id;
    the buyer's copy stands for the order whenever it exists.
    """
    store = current_domain.repository_for(OrderCopy)
    unique = {}
    for owner_id in store.list_all_owner_ids():
        for copy in store.read(owner_id):
            if copy.order_id not in unique or copy.is_buyer_copy:
                unique[copy.order_id] = copy
    return sorted(unique.values(), key=lambda copy: (copy.placed_at, copy.order_id), reverse=True)
