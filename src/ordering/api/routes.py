"""FastAPI routes for the Ordering domain — checkout, fulfillment, admin and inboxes."""

import json
from datetime import date

from fastapi import APIRouter, HTTPException
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    ActorRequest,
    CheckoutRequest,
    CommissionLineSchema,
    CommissionRateRequest,
    CommissionRateResponse,
    CommissionReportResponse,
    InboxResponse,
    MarkedReadResponse,
    NotificationSchema,
    OrderIdResponse,
    OverrideStatusRequest,
    TransitionResponse,
)
from ordering.commission.calculator import CommissionCalculator
from ordering.inbox.management import MarkAllAsRead, inbox_for, unread_count
from ordering.order.feedback import MarkItemReviewed, RateSeller
from ordering.order.fulfillment import ConfirmReceipt, MarkAsShipped, OverrideOrderStatus
from ordering.order.lookup import all_orders_for_admin, get_order, orders_for
from ordering.order.placement import PlaceOrder
from ordering.order.transitions import TransitionOutcome
from ordering.settings.settings import UpdateCommissionRate, current_commission_rate

# Unsuccessful transition outcomes → HTTP status
_FAILURE_STATUS = {
    TransitionOutcome.NOT_FOUND.value: 404,
    TransitionOutcome.FORBIDDEN.value: 403,
    TransitionOutcome.INVALID_TRANSITION.value: 409,
    TransitionOutcome.CONFLICT.value: 409,
    TransitionOutcome.INVALID_PATCH.value: 400,
}


def _transition_response(result) -> TransitionResponse:
    if not result:
        raise HTTPException(status_code=_FAILURE_STATUS.get(result.reason, 400), detail=result.reason)
    return TransitionResponse(order_id=result.order_id, updated_owners=list(result.updated_owners))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("/checkout", status_code=201, response_model=OrderIdResponse)
async def checkout(body: CheckoutRequest) -> OrderIdResponse:
    """Split the cart into per-seller orders.

    1. Place one order per seller group
    2. Answer 422 with the reason codes when a checkout precondition fails
    3. Return the first order id (null when every line was the buyer's own)
    """
    cart_lines = [line.model_dump() for line in body.cart_lines]
    address = body.shipping_address.model_dump()

    command = PlaceOrder(
        buyer_id=body.buyer_id,
        cart_lines=json.dumps(cart_lines),
        shipping_address=json.dumps(address),
        delivery_method=body.delivery_method,
    )
    result = current_domain.process(command, asynchronous=False)
    if result.reasons:
        raise HTTPException(status_code=422, detail={"reasons": list(result.reasons)})
    return OrderIdResponse(order_id=result.order_id)


@order_router.get("")
async def list_orders(owner_id: str) -> list[dict]:
    return [copy.to_record() for copy in orders_for(owner_id)]


@order_router.get("/{order_id}")
async def read_order(order_id: str, owner_id: str) -> dict:
    copy = get_order(owner_id, order_id)
    if copy is None:
        raise HTTPException(status_code=404, detail=TransitionOutcome.NOT_FOUND.value)
    return copy.to_record()


@order_router.put("/{order_id}/ship", response_model=TransitionResponse)
async def mark_as_shipped(order_id: str, body: ActorRequest) -> TransitionResponse:
    command = MarkAsShipped(order_id=order_id, actor_id=body.actor_id)
    return _transition_response(current_domain.process(command, asynchronous=False))


@order_router.put("/{order_id}/receipt", response_model=TransitionResponse)
async def confirm_receipt(order_id: str, body: ActorRequest) -> TransitionResponse:
    command = ConfirmReceipt(order_id=order_id, actor_id=body.actor_id)
    return _transition_response(current_domain.process(command, asynchronous=False))


@order_router.put("/{order_id}/status", response_model=TransitionResponse)
async def override_status(order_id: str, body: OverrideStatusRequest) -> TransitionResponse:
    command = OverrideOrderStatus(order_id=order_id, actor_id=body.actor_id, status=body.status)
    return _transition_response(current_domain.process(command, asynchronous=False))


@order_router.put("/{order_id}/rating", response_model=TransitionResponse)
async def rate_seller(order_id: str, body: ActorRequest) -> TransitionResponse:
    command = RateSeller(order_id=order_id, actor_id=body.actor_id)
    return _transition_response(current_domain.process(command, asynchronous=False))


@order_router.put("/{order_id}/items/{product_id}/review", response_model=TransitionResponse)
async def mark_item_reviewed(order_id: str, product_id: str, body: ActorRequest) -> TransitionResponse:
    command = MarkItemReviewed(order_id=order_id, actor_id=body.actor_id, product_id=product_id)
    if not current_domain.process(command, asynchronous=False):
        raise HTTPException(status_code=404, detail=TransitionOutcome.NOT_FOUND.value)
    return TransitionResponse(order_id=order_id, updated_owners=[body.actor_id])


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.get("/orders")
async def list_all_orders() -> list[dict]:
    return [copy.to_record() for copy in all_orders_for_admin()]


def _cents(amount: float) -> float:
    return round(amount, 2)


@admin_router.get("/commission", response_model=CommissionReportResponse)
async def commission_report(
    seller_id: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> CommissionReportResponse:
    report = CommissionCalculator().report(seller_id=seller_id, start=start, end=end)
    return CommissionReportResponse(
        rate=report.rate,
        start=start,
        end=end,
        total_sales=_cents(report.total_sales),
        total_commission=_cents(report.total_commission),
        total_payout=_cents(report.total_payout),
        sellers=report.sellers,
        lines=[
            CommissionLineSchema(
                order_id=line.order_id,
                seller_id=line.seller_id,
                buyer_id=line.buyer_id,
                placed_at=line.placed_at.isoformat(),
                total=_cents(line.total),
                commission=_cents(line.commission),
                payout=_cents(line.payout),
            )
            for line in report.lines
        ],
    )


@admin_router.get("/settings/commission", response_model=CommissionRateResponse)
async def read_commission_rate() -> CommissionRateResponse:
    return CommissionRateResponse(commission_rate=current_commission_rate())


@admin_router.put("/settings/commission", response_model=CommissionRateResponse)
async def update_commission_rate(body: CommissionRateRequest) -> CommissionRateResponse:
    command = UpdateCommissionRate(commission_rate=body.commission_rate)
    result = current_domain.process(command, asynchronous=False)
    return CommissionRateResponse(commission_rate=result)


# ---------------------------------------------------------------------------
# Notification Router
# ---------------------------------------------------------------------------
notification_router = APIRouter(prefix="/notifications", tags=["notifications"])


@notification_router.get("/{owner_id}", response_model=InboxResponse)
async def read_inbox(owner_id: str) -> InboxResponse:
    return InboxResponse(
        owner_id=owner_id,
        unread=unread_count(owner_id),
        notifications=[
            NotificationSchema(
                id=str(notification.id),
                type=notification.notification_type,
                message=notification.message,
                link=notification.link,
                order_id=notification.order_id,
                is_read=bool(notification.is_read),
                created_at=notification.created_at.isoformat() if notification.created_at else None,
            )
            for notification in inbox_for(owner_id)
        ],
    )


@notification_router.put("/{owner_id}/read", response_model=MarkedReadResponse)
async def mark_inbox_read(owner_id: str) -> MarkedReadResponse:
    command = MarkAllAsRead(owner_id=owner_id)
    result = current_domain.process(command, asynchronous=False)
    return MarkedReadResponse(marked=result or 0)
