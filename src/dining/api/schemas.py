"""Pydantic request/response schemas for the dining API.

These are external contracts, kept separate from the Protean commands they
are translated into.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Menu
# ---------------------------------------------------------------------------
class MenuItemResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    price: float
    category: str
    dietary_tags: list[str] = []
    image_url: str | None = None
    is_popular: bool = False
    is_available: bool = True

    @classmethod
    def from_item(cls, item):
        return cls(
            id=str(item.id),
            name=item.name,
            description=item.description,
            price=item.price,
            category=item.category,
            dietary_tags=item.dietary,
            image_url=item.image_url,
            is_popular=bool(item.is_popular),
            is_available=bool(item.is_available),
        )


class CreateMenuItemRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: float = Field(ge=0)
    category: str
    dietary_tags: list[str] = []
    image_url: str | None = None
    is_popular: bool = False
    is_available: bool = True

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Grilled Salmon",
                    "description": "Atlantic salmon with lemon butter",
                    "price": 18.99,
                    "category": "Mains",
                    "dietary_tags": ["Gluten-Free", "High-Protein"],
                }
            ]
        }
    }


class UpdateMenuItemRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    category: str | None = None
    dietary_tags: list[str] | None = None
    image_url: str | None = None
    is_popular: bool | None = None


class AvailabilityRequest(BaseModel):
    is_available: bool


class MenuItemIdResponse(BaseModel):
    menu_item_id: str


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    menu_item_id: str


class CartLineResponse(BaseModel):
    menu_item_id: str
    name: str
    unit_price: float
    quantity: int
    line_total: float


class CartResponse(BaseModel):
    session_id: str
    lines: list[CartLineResponse] = []
    unavailable_item_ids: list[str] = []
    item_count: int = 0
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    tax_rate: float
    currency: str = "USD"


class CheckoutRequest(BaseModel):
    fulfillment_type: str = Field(description="dine-in, takeaway or delivery")
    table_number: str | None = None
    delivery_address: str | None = None
    payment_method: str = "cash"
    special_instructions: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    checkout_token: str | None = Field(default=None, description="Client-generated key; repeats return the same order")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "fulfillment_type": "dine-in",
                    "table_number": "12",
                    "payment_method": "card",
                    "customer_name": "Jordan",
                    "checkout_token": "5b0c1e52-8f1d-4f0e-9a57-2f1f0c5a8e61",
                }
            ]
        }
    }


class OrderIdResponse(BaseModel):
    order_id: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderLineResponse(BaseModel):
    menu_item_id: str
    name: str
    unit_price: float
    quantity: int


class TimelineEntryResponse(BaseModel):
    event_type: str
    description: str
    actor: str | None = None
    occurred_at: datetime


class OrderResponse(BaseModel):
    id: str
    customer_id: str | None = None
    customer_name: str
    customer_email: str | None = None
    status: str
    payment_status: str
    fulfillment_type: str
    table_number: str | None = None
    delivery_address: str | None = None
    payment_method: str | None = None
    special_instructions: str | None = None
    lines: list[OrderLineResponse]
    subtotal: float
    tax: float
    total: float
    tax_rate: float
    currency: str
    next_status: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    timeline: list[TimelineEntryResponse] = []


class TicketResponse(BaseModel):
    order_id: str
    customer_id: str | None = None
    customer_name: str
    status: str
    payment_status: str | None = None
    fulfillment_type: str | None = None
    table_number: str | None = None
    item_summary: str | None = None
    item_count: int = 0
    special_instructions: str | None = None
    grand_total: float | None = None
    currency: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_ticket(cls, ticket):
        return cls(
            order_id=str(ticket.order_id),
            customer_id=str(ticket.customer_id) if ticket.customer_id else None,
            customer_name=ticket.customer_name,
            status=ticket.status,
            payment_status=ticket.payment_status,
            fulfillment_type=ticket.fulfillment_type,
            table_number=ticket.table_number,
            item_summary=ticket.item_summary,
            item_count=ticket.item_count or 0,
            special_instructions=ticket.special_instructions,
            grand_total=ticket.grand_total,
            currency=ticket.currency,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
        )


class BoardResponse(BaseModel):
    columns: dict[str, list[TicketResponse]]
    counts: dict[str, int]
    active: int


class UpdateStatusRequest(BaseModel):
    status: str = Field(description="Target status, e.g. confirmed")


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class PaymentStatusRequest(BaseModel):
    payment_status: str = Field(description="pending, paid or failed")


class OrderStatusResponse(BaseModel):
    order_id: str
    status: str


class PeriodStats(BaseModel):
    count: int
    total: float


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------
class SettingsResponse(BaseModel):
    restaurant_name: str | None = None
    tax_rate: float
    currency: str
    allow_guest_orders: bool
    allow_table_orders: bool


class UpdateSettingsRequest(BaseModel):
    restaurant_name: str | None = Field(default=None, max_length=255)
    tax_rate: float | None = Field(default=None, ge=0, le=1)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    allow_guest_orders: bool | None = None
    allow_table_orders: bool | None = None


class ProfileResponse(BaseModel):
    id: str
    display_name: str
    email: str
    role: str


class ChangeRoleRequest(BaseModel):
    role: str = Field(description="customer, staff or admin")


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
class SignUpRequest(BaseModel):
    email: str
    password: str = Field(min_length=6)
    display_name: str = Field(min_length=1, max_length=255)


class SignInRequest(BaseModel):
    email: str
    password: str


class SessionResponse(BaseModel):
    authenticated: bool
    token: str | None = None
    user_id: str | None = None
    role: str | None = None
    display_name: str | None = None


class AccessResponse(BaseModel):
    route: str
    decision: str
