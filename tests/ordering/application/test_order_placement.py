"""Application tests for checkout — one order per seller, two copies per order."""

import json
from datetime import UTC, datetime, timedelta

from ordering.inbox.management import inbox_for
from ordering.order.ledger import OrderLedger, initial_statuses, make_order_id
from ordering.order.lookup import orders_for
from ordering.order.order import DeliveryMethod, OrderCopy, OrderStatus
from ordering.order.placement import PlaceOrder, PlacementResult
from protean import current_domain


def _fixed_clock(start=datetime(2024, 5, 1, 12, 0, tzinfo=UTC)):
    ticks = iter(start + timedelta(seconds=n) for n in range(1000))
    return lambda: next(ticks)


def _place(cart_lines, address, buyer_id="buyer-1", delivery_method="shipping"):
    command = PlaceOrder(
        buyer_id=buyer_id,
        cart_lines=json.dumps(cart_lines),
        shipping_address=json.dumps(address),
        delivery_method=delivery_method,
    )
    return current_domain.process(command, asynchronous=False)


class TestOrderIds:
    def test_id_joins_timestamp_and_seller(self):
        placed_at = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

        assert make_order_id(placed_at, "seller-1") == "1714564800000-seller-1"

    def test_initial_statuses(self):
        assert initial_statuses("secure") == (OrderStatus.AWAITING_SHIPMENT, OrderStatus.PAYMENT_HELD)
        assert initial_statuses("direct") == (OrderStatus.AWAITING_SHIPMENT, OrderStatus.AWAITING_SHIPMENT)


class TestPlaceOrderCommand:
    def test_multi_seller_checkout(self, cart_line, address):
        lines = [
            cart_line("prod-a", "seller-1", 20.0, options=("free_shipping",)),
            cart_line("prod-b", "seller-2", 10.0, quantity=2, options=("shipping",), shipping_cost=3.0),
        ]

        result = _place(lines, address)

        assert result.placed
        order_id = result.order_id
        buyer_orders = orders_for("buyer-1")
        assert len(buyer_orders) == 2
        totals = {str(copy.seller_id): (copy.total, copy.shipping_cost) for copy in buyer_orders}
        assert totals == {"seller-1": (20.0, 0.0), "seller-2": (26.0, 6.0)}
        assert order_id in {copy.order_id for copy in buyer_orders}

    def test_every_copy_shares_the_order_id(self, cart_line, address):
        _place([cart_line("prod-a", "seller-1", 20.0)], address)

        buyer_copy = orders_for("buyer-1")[0]
        seller_copy = orders_for("seller-1")[0]
        assert buyer_copy.order_id == seller_copy.order_id
        assert buyer_copy.order_id.endswith("-seller-1")
        assert buyer_copy.total == seller_copy.total

    def test_secure_sale_initial_statuses(self, cart_line, address):
        _place([cart_line("prod-a", "seller-1", 20.0, mode="secure")], address)

        assert orders_for("buyer-1")[0].status == OrderStatus.AWAITING_SHIPMENT.value
        assert orders_for("seller-1")[0].status == OrderStatus.PAYMENT_HELD.value

    def test_direct_sale_initial_statuses(self, cart_line, address):
        _place([cart_line("prod-a", "seller-1", 20.0, mode="direct")], address)

        assert orders_for("buyer-1")[0].status == OrderStatus.AWAITING_SHIPMENT.value
        assert orders_for("seller-1")[0].status == OrderStatus.AWAITING_SHIPMENT.value

    def test_rejected_checkout_writes_nothing(self, cart_line, address):
        address["street"] = ""

        result = _place([cart_line("prod-a", "seller-1", 20.0)], address)

        assert result == PlacementResult(reasons=("incomplete_address",))
        assert orders_for("buyer-1") == []
        assert inbox_for("admin") == []

    def test_self_owned_cart_places_nothing(self, cart_line, address):
        result = _place([cart_line("prod-a", "buyer-1", 20.0)], address)

        assert not result.placed
        assert result.reasons == ()
        assert orders_for("buyer-1") == []

    def test_rejection_reasons_come_back_from_the_command(self, cart_line, address):
        lines = [
            cart_line("prod-a", "seller-1", 20.0, options=("shipping",)),
            cart_line("prod-b", "seller-2", 20.0, options=("local_pickup",)),
        ]

        result = _place(lines, address, delivery_method="local_pickup")

        assert not result.placed
        assert result.reasons == ("delivery_method_unavailable",)
        assert orders_for("seller-1") == []

    def test_markup_characters_are_stored_verbatim(self, cart_line, address):
        line = cart_line("prod-a", "seller-1", 20.0)
        line["name"] = "Salt & Pepper <set>"
        address["street"] = "Smith & Sons <Unit 4>"

        order_id = _place([line], address).order_id

        for owner_id in ("buyer-1", "seller-1"):
            copy = orders_for(owner_id)[0]
            assert copy.line_items[0].name == "Salt & Pepper <set>"
            assert copy.shipping_address.street == "Smith & Sons <Unit 4>"
        assert inbox_for("admin")[0].link == f"/admin?tab=orders&highlight={order_id}"


class TestOrderLedger:
    def test_self_sale_lines_are_excluded(self, cart_line, address):
        ledger = OrderLedger(clock=_fixed_clock())
        lines = [cart_line("prod-a", "buyer-1", 50.0), cart_line("prod-b", "seller-2", 10.0)]

        first = ledger.place_order("buyer-1", lines, address, "local_pickup")

        assert str(first.seller_id) == "seller-2"
        assert [copy.total for copy in orders_for("buyer-1")] == [10.0]
        assert all(str(copy.seller_id) != "buyer-1" for copy in orders_for("buyer-1"))

    def test_returns_buyers_copy_of_first_order(self, cart_line, address):
        ledger = OrderLedger(clock=_fixed_clock())
        lines = [cart_line("prod-a", "seller-1", 5.0), cart_line("prod-b", "seller-2", 6.0)]

        first = ledger.place_order("buyer-1", lines, address, "shipping")

        assert first.is_buyer_copy
        assert str(first.seller_id) == "seller-1"

    def test_buyer_partition_is_appended(self, cart_line, address):
        ledger = OrderLedger(clock=_fixed_clock())

        ledger.place_order("buyer-1", [cart_line("prod-a", "seller-1", 5.0)], address, "shipping")
        ledger.place_order("buyer-1", [cart_line("prod-b", "seller-1", 6.0)], address, "shipping")

        buyer_orders = orders_for("buyer-1")
        assert [copy.total for copy in buyer_orders] == [5.0, 6.0]
        assert len({copy.order_id for copy in buyer_orders}) == 2
        assert len(orders_for("seller-1")) == 2

    def test_same_millisecond_orders_get_distinct_ids(self, cart_line, address):
        instant = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
        ledger = OrderLedger(clock=lambda: instant)

        first = ledger.place_order("buyer-1", [cart_line("prod-a", "seller-1", 5.0)], address, "shipping")
        second = ledger.place_order("buyer-2", [cart_line("prod-b", "seller-1", 6.0)], address, "shipping")

        assert first.order_id != second.order_id

    def test_items_are_stored_as_snapshots(self, cart_line, address):
        ledger = OrderLedger(clock=_fixed_clock())
        ledger.place_order("buyer-1", [cart_line("prod-a", "seller-1", 5.0, quantity=3)], address, "shipping")

        copy = current_domain.repository_for(OrderCopy).read("seller-1")[0]
        item = copy.line_items[0]
        assert (item.name, item.price, item.quantity) == ("Product prod-a", 5.0, 3)
        assert copy.shipping_address.city == "Lisbon"

    def test_accepts_delivery_method_enum(self, cart_line, address):
        ledger = OrderLedger(clock=_fixed_clock())

        first = ledger.place_order("buyer-1", [cart_line("prod-a", "seller-1", 5.0)], address, DeliveryMethod.SHIPPING)

        assert first.delivery_method == "shipping"
        assert orders_for("seller-1")[0].delivery_method == "shipping"


class TestPlacementNotifications:
    def test_admin_and_seller_are_notified(self, cart_line, address):
        lines = [cart_line("prod-a", "seller-1", 20.0), cart_line("prod-b", "seller-2", 30.0)]

        _place(lines, address)

        admin_inbox = inbox_for("admin")
        assert len(admin_inbox) == 2
        assert all(n.notification_type == "NewOrder" for n in admin_inbox)
        assert all(n.link.startswith("/admin?tab=orders&highlight=") for n in admin_inbox)
        assert [n.notification_type for n in inbox_for("seller-1")] == ["NewSale"]
        assert [n.notification_type for n in inbox_for("seller-2")] == ["NewSale"]

    def test_buyer_is_not_notified(self, cart_line, address):
        _place([cart_line("prod-a", "seller-1", 20.0)], address)

        assert inbox_for("buyer-1") == []

    def test_admin_message_carries_total(self, cart_line, address):
        ledger = OrderLedger(clock=_fixed_clock())
        order = ledger.place_order("buyer-1", [cart_line("prod-a", "seller-1", 12.5, quantity=2)], address, "shipping")

        message = inbox_for("admin")[0].message
        assert message == f"New order #{order.short_id} for seller seller-1 placed for €25.00"
