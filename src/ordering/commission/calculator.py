"""Commission calculator — platform cut and seller payout on completed escrow sales.

A read-only pass over the admin order view. Only orders that are both
``Completed`` and sold in ``secure`` (escrow) mode carry commission;
direct sales and unfinished orders are left out entirely.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from ordering.order.lookup import all_orders_for_admin
from ordering.order.order import OrderStatus, SellingMode
from ordering.settings.settings import current_commission_rate


@dataclass(frozen=True)
class CommissionLine:
    order_id: str
    seller_id: str
    buyer_id: str
    placed_at: datetime
    total: float
    commission: float
    payout: float


@dataclass(frozen=True)
class CommissionReport:
    rate: float
    lines: list = field(default_factory=list)
    sellers: list = field(default_factory=list)  # sellers with any completed escrow sale

    @property
    def total_sales(self):
        return sum(line.total for line in self.lines)

    @property
    def total_commission(self):
        return sum(line.commission for line in self.lines)

    @property
    def total_payout(self):
        return sum(line.payout for line in self.lines)


def _as_date(value):
    if value is None or (isinstance(value, date) and not isinstance(value, datetime)):
        return value
    if isinstance(value, datetime):
        return value.date()
    return date.fromisoformat(str(value))


class CommissionCalculator:
    def __init__(self, rate=None):
        self.rate = float(rate) if rate is not None else float(current_commission_rate())

    def split(self, total):
        """(commission, payout) for one order total, unrounded."""
        commission = total * self.rate / 100
        return commission, total - commission

    def completed_transactions(self, orders=None):
        orders = all_orders_for_admin() if orders is None else orders
        lines = []
        for order in orders:
            if order.status != OrderStatus.COMPLETED.value or order.selling_mode != SellingMode.SECURE.value:
                continue
            commission, payout = self.split(order.total)
            lines.append(
                CommissionLine(
                    order_id=order.order_id,
                    seller_id=str(order.seller_id),
                    buyer_id=str(order.buyer_id),
                    placed_at=order.placed_at,
                    total=order.total,
                    commission=commission,
                    payout=payout,
                )
            )
        return lines

    def report(self, seller_id=None, start=None, end=None, orders=None):
        """Commission lines filtered by seller and by calendar date range.

        ``start`` and ``end`` are inclusive dates; an order placed at any
        time on the ``end`` day is included.
        """
        start, end = _as_date(start), _as_date(end)
        completed = self.completed_transactions(orders)

        lines = [
            line
            for line in completed
            if (seller_id is None or line.seller_id == str(seller_id))
            and (start is None or line.placed_at.date() >= start)
            and (end is None or line.placed_at.date() <= end)
        ]
        return CommissionReport(
            rate=self.rate,
            lines=lines,
            sellers=sorted({line.seller_id for line in completed}),
        )
