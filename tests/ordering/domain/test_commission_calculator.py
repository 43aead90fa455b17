"""Tests for commission and payout on completed escrow sales."""

from datetime import UTC, date, datetime

import pytest
from ordering.commission.calculator import CommissionCalculator
from ordering.order.order import OrderCopy, OrderItem, OrderStatus


def _order(order_id, seller_id, total, status=OrderStatus.COMPLETED, mode="secure", placed_at=None):
    item = OrderItem.from_snapshot(
        {
            "product_id": f"prod-{order_id}",
            "name": "Item",
            "price": total,
            "quantity": 1,
            "seller_id": seller_id,
            "selling_mode": mode,
            "delivery_options": ["local_pickup"],
        }
    )
    return OrderCopy.create(
        order_id=order_id,
        owner_id="buyer-1",
        buyer_id="buyer-1",
        seller_id=seller_id,
        placed_at=placed_at or datetime(2024, 5, 1, 9, 30, tzinfo=UTC),
        items=[item],
        shipping_address={
            "full_name": "Ana Lima",
            "street": "Rua Augusta 10",
            "city": "Lisbon",
            "zip_code": "1100-053",
            "country": "PT",
        },
        status=status,
        selling_mode=mode,
        delivery_method="local_pickup",
        shipping_cost=0.0,
        total=total,
    )


class TestCommissionMath:
    def test_five_percent_of_one_hundred(self):
        commission, payout = CommissionCalculator(rate=5).split(100.0)

        assert commission == 5.00
        assert payout == 95.00

    def test_split_keeps_full_precision(self):
        commission, payout = CommissionCalculator(rate=7.5).split(19.99)

        assert commission == pytest.approx(1.49925)
        assert payout == pytest.approx(18.49075)
        assert commission + payout == pytest.approx(19.99)


class TestCompletedTransactions:
    def test_only_completed_secure_orders_count(self):
        orders = [
            _order("o-1", "seller-1", 100.0),
            _order("o-2", "seller-1", 50.0, mode="direct"),
            _order("o-3", "seller-2", 80.0, status=OrderStatus.SHIPPED),
            _order("o-4", "seller-2", 40.0, status=OrderStatus.PAYMENT_HELD),
        ]

        lines = CommissionCalculator(rate=5).completed_transactions(orders)

        assert [line.order_id for line in lines] == ["o-1"]
        assert lines[0].commission == 5.0
        assert lines[0].payout == 95.0

    def test_report_totals(self):
        orders = [_order("o-1", "seller-1", 100.0), _order("o-2", "seller-2", 60.0)]

        report = CommissionCalculator(rate=10).report(orders=orders)

        assert report.rate == 10.0
        assert report.total_sales == 160.0
        assert report.total_commission == 16.0
        assert report.total_payout == 144.0
        assert report.sellers == ["seller-1", "seller-2"]

    def test_totals_sum_unrounded_lines(self):
        orders = [_order(f"o-{n}", "seller-1", 19.99) for n in range(3)]

        report = CommissionCalculator(rate=7.5).report(orders=orders)

        assert report.total_commission == pytest.approx(4.49775)
        assert report.total_payout == pytest.approx(55.47225)
        assert report.total_commission + report.total_payout == pytest.approx(report.total_sales)


class TestReportFilters:
    def test_filter_by_seller(self):
        orders = [_order("o-1", "seller-1", 100.0), _order("o-2", "seller-2", 60.0)]

        report = CommissionCalculator(rate=5).report(seller_id="seller-2", orders=orders)

        assert [line.order_id for line in report.lines] == ["o-2"]
        assert report.sellers == ["seller-1", "seller-2"]

    def test_end_day_is_inclusive(self):
        late = datetime(2024, 5, 31, 23, 59, tzinfo=UTC)
        orders = [_order("o-1", "seller-1", 100.0, placed_at=late)]

        report = CommissionCalculator(rate=5).report(start=date(2024, 5, 1), end=date(2024, 5, 31), orders=orders)

        assert len(report.lines) == 1

    def test_orders_outside_range_are_excluded(self):
        orders = [
            _order("o-1", "seller-1", 100.0, placed_at=datetime(2024, 4, 30, 23, 0, tzinfo=UTC)),
            _order("o-2", "seller-1", 100.0, placed_at=datetime(2024, 5, 15, 8, 0, tzinfo=UTC)),
            _order("o-3", "seller-1", 100.0, placed_at=datetime(2024, 6, 1, 0, 1, tzinfo=UTC)),
        ]

        report = CommissionCalculator(rate=5).report(start="2024-05-01", end=datetime(2024, 5, 31, 0, 0), orders=orders)

        assert [line.order_id for line in report.lines] == ["o-2"]
        assert report.total_commission == 5.0
