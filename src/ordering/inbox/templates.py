"""Inbox templates — render message text and deep link for each notification type."""

from ordering.inbox.notification import NotificationType
from ordering.order.order import short_order_id

ORDER_LIST_LINK = "/profile/orders"


class NewOrderTemplate:
    """Admin alert for every per-seller order created at checkout."""

    notification_type = NotificationType.NEW_ORDER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context["order_id"]
        return {
            "message": (
                f"New order #{short_order_id(order_id)} for seller {context['seller_id']} "
                f"placed for €{float(context['total']):.2f}"
            ),
            "link": f"/admin?tab=orders&highlight={order_id}",
        }


class NewSaleTemplate:
    """Seller alert for a new sale; wording changes for multi-item orders."""

    notification_type = NotificationType.NEW_SALE.value

    @staticmethod
    def render(context: dict) -> dict:
        short_id = short_order_id(context["order_id"])
        product_name = context.get("product_name") or "your item"
        count = int(context.get("count", 1))
        if count > 1:
            message = f"You sold {count} items in order #{short_id}, including {product_name}."
        else:
            message = f"You made a sale! {product_name} was ordered in order #{short_id}."
        return {"message": message, "link": ORDER_LIST_LINK}


class OrderUpdateTemplate:
    notification_type = NotificationType.ORDER_UPDATE.value

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "message": f"Order #{short_order_id(context['order_id'])} is now {context['status']}.",
            "link": ORDER_LIST_LINK,
        }


TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationType.NEW_ORDER.value: NewOrderTemplate,
    NotificationType.NEW_SALE.value: NewSaleTemplate,
    NotificationType.ORDER_UPDATE.value: OrderUpdateTemplate,
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
