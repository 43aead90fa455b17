"""Checkout preconditions, evaluated before the ledger is asked to place orders.

A rejected checkout is reported as a CheckoutCheck carrying reason codes,
never as an exception.
"""

from dataclasses import dataclass, field
from enum import Enum

from ordering.cart.aggregation import to_order_items
from ordering.order.order import DeliveryMethod

ADDRESS_FIELDS = ("full_name", "street", "city", "zip_code", "country")


class CheckoutRejection(Enum):
    EMPTY_CART = "empty_cart"
    INCOMPLETE_ADDRESS = "incomplete_address"
    MISSING_DELIVERY_METHOD = "missing_delivery_method"
    DELIVERY_METHOD_UNAVAILABLE = "delivery_method_unavailable"


@dataclass(frozen=True)
class CheckoutCheck:
    reasons: list = field(default_factory=list)

    @property
    def accepted(self):
        return not self.reasons

    def __bool__(self):
        return self.accepted


def is_address_complete(address):
    if not address:
        return False
    return all(str(address.get(name) or "").strip() for name in ADDRESS_FIELDS)


def _offers(item, method):
    # Charged and free shipping are interchangeable when checking availability
    if method in (DeliveryMethod.SHIPPING.value, DeliveryMethod.FREE_SHIPPING.value):
        return item.offers(DeliveryMethod.SHIPPING) or item.offers(DeliveryMethod.FREE_SHIPPING)
    return item.offers(method)


def available_delivery_methods(cart_lines):
    """Delivery methods every line in the cart supports."""
    items = to_order_items(cart_lines)
    if not items:
        return set()
    return {
        method.value
        for method in (DeliveryMethod.SHIPPING, DeliveryMethod.LOCAL_PICKUP)
        if all(_offers(item, method.value) for item in items)
    }


def check_checkout(cart_lines, address, delivery_method):
    """Validate a checkout request.

    The delivery method must be supported by every line in the cart.
    """
    reasons = []
    items = to_order_items(cart_lines or [])

    if not items:
        reasons.append(CheckoutRejection.EMPTY_CART.value)
    if not is_address_complete(address):
        reasons.append(CheckoutRejection.INCOMPLETE_ADDRESS.value)

    method = delivery_method.value if isinstance(delivery_method, DeliveryMethod) else delivery_method
    if not method:
        reasons.append(CheckoutRejection.MISSING_DELIVERY_METHOD.value)
    elif items:
        if method == DeliveryMethod.FREE_SHIPPING.value:
            method = DeliveryMethod.SHIPPING.value
        if method not in available_delivery_methods(items):
            reasons.append(CheckoutRejection.DELIVERY_METHOD_UNAVAILABLE.value)

    return CheckoutCheck(reasons=reasons)
