"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands. The actor id travels in the request body
because the session provider lives outside this service.
"""

from datetime import date

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    full_name: str = ""
    street: str = ""
    city: str = ""
    zip_code: str = ""
    country: str = ""


class CartLineSchema(BaseModel):
    """Catalogue snapshot of one product, taken when it entered the cart."""

    product_id: str
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=1, default=1)
    seller_id: str
    seller_name: str | None = None
    image_url: str | None = None
    selling_mode: str = "secure"
    delivery_options: list[str] = Field(default_factory=list)
    shipping_cost: float = Field(ge=0, default=0.0)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    buyer_id: str
    cart_lines: list[CartLineSchema] = Field(default_factory=list)
    shipping_address: AddressSchema = Field(default_factory=AddressSchema)
    delivery_method: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "buyer_id": "buyer-001",
                    "cart_lines": [
                        {
                            "product_id": "prod-001",
                            "name": "Vintage lamp",
                            "price": 20.0,
                            "quantity": 1,
                            "seller_id": "seller-001",
                            "selling_mode": "secure",
                            "delivery_options": ["free_shipping"],
                        }
                    ],
                    "shipping_address": {
                        "full_name": "Ana Lima",
                        "street": "Rua Augusta 10",
                        "city": "Lisbon",
                        "zip_code": "1100-053",
                        "country": "PT",
                    },
                    "delivery_method": "shipping",
                }
            ]
        }
    }


class ActorRequest(BaseModel):
    actor_id: str


class OverrideStatusRequest(BaseModel):
    actor_id: str
    status: str


class CommissionRateRequest(BaseModel):
    commission_rate: float = Field(ge=0, le=100)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str | None = None


class TransitionResponse(BaseModel):
    order_id: str
    status: str = "updated"
    updated_owners: list[str] = Field(default_factory=list)


class CommissionLineSchema(BaseModel):
    order_id: str
    seller_id: str
    buyer_id: str
    placed_at: str
    total: float
    commission: float
    payout: float


class CommissionReportResponse(BaseModel):
    rate: float
    start: date | None = None
    end: date | None = None
    total_sales: float
    total_commission: float
    total_payout: float
    sellers: list[str] = Field(default_factory=list)
    lines: list[CommissionLineSchema] = Field(default_factory=list)


class CommissionRateResponse(BaseModel):
    commission_rate: float


class NotificationSchema(BaseModel):
    id: str
    type: str
    message: str
    link: str | None = None
    order_id: str | None = None
    is_read: bool = False
    created_at: str | None = None


class InboxResponse(BaseModel):
    owner_id: str
    unread: int
    notifications: list[NotificationSchema] = Field(default_factory=list)


class MarkedReadResponse(BaseModel):
    marked: int
