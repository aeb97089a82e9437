"""FastAPI routes for the dining API: menu, carts, orders, staff board, admin and auth."""

import asyncio
import json

from fastapi import APIRouter, Depends, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.responses import JSONResponse, RedirectResponse
from protean.utils.globals import current_domain

from dining.access.gate import Allow, Defer, decide_for_route
from dining.access.resolution import resolve_role
from dining.api.auth import (
    STAFF_ROLES,
    current_resolution,
    ensure_order_visible,
    require_admin,
    require_customer,
    require_staff,
    session_token,
)
from dining.api.errors import RETRY_AFTER_SECONDS
from dining.api.schemas import (
    AccessResponse,
    AddToCartRequest,
    AvailabilityRequest,
    BoardResponse,
    CancelOrderRequest,
    CartLineResponse,
    CartResponse,
    ChangeRoleRequest,
    CheckoutRequest,
    CreateMenuItemRequest,
    MenuItemIdResponse,
    MenuItemResponse,
    OrderIdResponse,
    OrderLineResponse,
    OrderResponse,
    OrderStatusResponse,
    PaymentStatusRequest,
    PeriodStats,
    ProfileResponse,
    SessionResponse,
    SettingsResponse,
    SignInRequest,
    SignUpRequest,
    StatusResponse,
    TicketResponse,
    TimelineEntryResponse,
    UpdateMenuItemRequest,
    UpdateSettingsRequest,
    UpdateStatusRequest,
)
from dining.board.feed import process_and_notify
from dining.board.live_view import LiveOrderView, group_orders_by_status, load_board_rows
from dining.cart.sessions import carts
from dining.domain import dining
from dining.errors import AuthenticationRequired
from dining.identity.profile import ChangeRole, Profile, RegisterProfile
from dining.identity.provider import identity_provider
from dining.menu.catalog import browse_menu, catalog_snapshot
from dining.menu.management import AddMenuItem, RemoveMenuItem, SetMenuItemAvailability, UpdateMenuItem
from dining.order.lifecycle import CancelOrder, UpdateOrderStatus
from dining.order.order import Order, is_terminal, next_status
from dining.order.payment import UpdatePaymentStatus
from dining.order.placement import PlaceOrder
from dining.order.reporting import list_orders, order_stats, orders_for_customer
from dining.pricing import line_total, price_cart, to_decimal
from dining.projections.order_timeline import timeline_for
from dining.settings.settings import UpdateSettings, current_settings
from dining.utils.logging import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------
def _actor(resolution):
    return resolution.user_id if resolution and resolution.authenticated else None


def _settings_response(settings):
    return SettingsResponse(
        restaurant_name=settings.restaurant_name,
        tax_rate=settings.tax_rate,
        currency=settings.currency,
        allow_guest_orders=bool(settings.allow_guest_orders),
        allow_table_orders=bool(settings.allow_table_orders),
    )


def _cart_response(session_id, cart):
    settings = current_settings()
    catalog = catalog_snapshot(available_only=True)
    quantities = cart.quantities

    lines, unavailable = [], []
    for item_id, quantity in quantities.items():
        item = catalog.get(item_id)
        if item is None:
            unavailable.append(item_id)
            continue
        lines.append(
            CartLineResponse(
                menu_item_id=item_id,
                name=item.name,
                unit_price=item.price,
                quantity=quantity,
                line_total=float(line_total(item.price, quantity)),
            )
        )

    breakdown = price_cart(quantities, catalog, to_decimal(settings.tax_rate)).rounded()
    return CartResponse(
        session_id=session_id,
        lines=lines,
        unavailable_item_ids=unavailable,
        item_count=sum(line.quantity for line in lines),
        subtotal=float(breakdown.subtotal),
        tax=float(breakdown.tax),
        total=float(breakdown.total),
        tax_rate=settings.tax_rate,
        currency=settings.currency,
    )


def _order_response(order):
    status_value = order.status
    return OrderResponse(
        id=str(order.id),
        customer_id=str(order.customer_id) if order.customer_id else None,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        status=status_value,
        payment_status=order.payment_status,
        fulfillment_type=order.fulfillment_type,
        table_number=order.table_number,
        delivery_address=order.delivery_address,
        payment_method=order.payment_method,
        special_instructions=order.special_instructions,
        lines=[
            OrderLineResponse(
                menu_item_id=str(line.menu_item_id),
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
            )
            for line in order.lines
        ],
        subtotal=order.pricing.subtotal,
        tax=order.pricing.tax_total,
        total=order.pricing.grand_total,
        tax_rate=order.pricing.tax_rate,
        currency=order.pricing.currency,
        next_status=next_status(status_value),
        cancellation_reason=order.cancellation_reason,
        created_at=order.created_at,
        updated_at=order.updated_at,
        timeline=[
            TimelineEntryResponse(
                event_type=entry.event_type,
                description=entry.description,
                actor=entry.actor,
                occurred_at=entry.occurred_at,
            )
            for entry in timeline_for(order.id)
        ],
    )


def _board_response(board):
    columns = {
        status_value: [TicketResponse.from_ticket(ticket) for ticket in tickets]
        for status_value, tickets in board.items()
    }
    counts = {status_value: len(tickets) for status_value, tickets in board.items()}
    active = sum(count for status_value, count in counts.items() if not is_terminal(status_value))
    return BoardResponse(columns=columns, counts=counts, active=active)


# ---------------------------------------------------------------------------
# Menu Router
# ---------------------------------------------------------------------------
menu_router = APIRouter(prefix="/menu", tags=["menu"])


@menu_router.get("", response_model=list[MenuItemResponse])
async def get_menu(category: str | None = None, search: str | None = None) -> list[MenuItemResponse]:
    return [MenuItemResponse.from_item(item) for item in browse_menu(category=category, search=search)]


@menu_router.get("/settings", response_model=SettingsResponse)
async def get_public_settings() -> SettingsResponse:
    return _settings_response(current_settings())


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.get("/{session_id}", response_model=CartResponse)
async def view_cart(session_id: str) -> CartResponse:
    return _cart_response(session_id, carts.cart_for(session_id))


@cart_router.post("/{session_id}/items", response_model=CartResponse)
async def add_to_cart(session_id: str, body: AddToCartRequest) -> CartResponse:
    cart = carts.cart_for(session_id)
    cart.add(body.menu_item_id)
    return _cart_response(session_id, cart)


@cart_router.delete("/{session_id}/items/{menu_item_id}", response_model=CartResponse)
async def remove_from_cart(session_id: str, menu_item_id: str) -> CartResponse:
    cart = carts.cart_for(session_id)
    cart.remove(menu_item_id)
    return _cart_response(session_id, cart)


@cart_router.delete("/{session_id}", response_model=StatusResponse)
async def clear_cart(session_id: str) -> StatusResponse:
    carts.cart_for(session_id).clear()
    return StatusResponse()


@cart_router.post("/{session_id}/checkout", status_code=201, response_model=OrderIdResponse)
async def checkout(
    session_id: str,
    body: CheckoutRequest,
    resolution=Depends(current_resolution),
) -> OrderIdResponse:
    """Place an order from the session's cart and discard the cart on success."""
    cart = carts.cart_for(session_id)
    command = PlaceOrder(
        items=json.dumps(cart.quantities),
        fulfillment_type=body.fulfillment_type,
        table_number=body.table_number,
        delivery_address=body.delivery_address,
        payment_method=body.payment_method,
        special_instructions=body.special_instructions,
        customer_id=_actor(resolution),
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        checkout_token=body.checkout_token,
    )
    order_id = process_and_notify(command)
    carts.discard(session_id)
    return OrderIdResponse(order_id=order_id)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=list[TicketResponse])
async def order_history(resolution=Depends(require_customer)) -> list[TicketResponse]:
    return [TicketResponse.from_ticket(ticket) for ticket in orders_for_customer(resolution.user_id)]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, resolution=Depends(current_resolution)) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    ensure_order_visible(resolution, order)
    return _order_response(order)


# ---------------------------------------------------------------------------
# Staff Router
# ---------------------------------------------------------------------------
staff_router = APIRouter(prefix="/staff", tags=["staff"])


@staff_router.get("/board", response_model=BoardResponse)
async def staff_board(resolution=Depends(require_staff)) -> BoardResponse:
    return _board_response(group_orders_by_status(load_board_rows()))


@staff_router.put("/orders/{order_id}/status", response_model=OrderStatusResponse)
async def update_order_status(
    order_id: str,
    body: UpdateStatusRequest,
    resolution=Depends(require_staff),
) -> OrderStatusResponse:
    command = UpdateOrderStatus(order_id=order_id, status=body.status, changed_by=_actor(resolution))
    new_status = process_and_notify(command)
    return OrderStatusResponse(order_id=order_id, status=new_status)


@staff_router.put("/orders/{order_id}/cancel", response_model=OrderStatusResponse)
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest,
    resolution=Depends(require_staff),
) -> OrderStatusResponse:
    command = CancelOrder(order_id=order_id, reason=body.reason, cancelled_by=_actor(resolution))
    new_status = process_and_notify(command)
    return OrderStatusResponse(order_id=order_id, status=new_status)


async def _wait_for_disconnect(websocket, changed):
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        changed.set()


@staff_router.websocket("/board/live")
async def live_board(websocket: WebSocket, token: str | None = None):
    """Push the full board on connect and again after every order change."""
    with dining.domain_context():
        resolution = resolve_role(identity_provider, token)
    if resolution.loading or resolution.role not in STAFF_ROLES:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()
    changed = asyncio.Event()
    watcher = asyncio.create_task(_wait_for_disconnect(websocket, changed))

    with LiveOrderView(on_change=lambda change: loop.call_soon_threadsafe(changed.set)) as view:
        logger.info("Live board connected", user_id=resolution.user_id)
        try:
            while not watcher.done():
                with dining.domain_context():
                    payload = _board_response(view.board()).model_dump(mode="json")
                payload["version"] = view.version
                await websocket.send_json(payload)
                await changed.wait()
                changed.clear()
        except WebSocketDisconnect:
            pass
        finally:
            watcher.cancel()

    logger.info("Live board disconnected", user_id=resolution.user_id)


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@admin_router.get("/menu", response_model=list[MenuItemResponse])
async def list_menu_items(category: str | None = None, search: str | None = None) -> list[MenuItemResponse]:
    items = browse_menu(category=category, search=search, available_only=False)
    return [MenuItemResponse.from_item(item) for item in items]


@admin_router.post("/menu", status_code=201, response_model=MenuItemIdResponse)
async def add_menu_item(body: CreateMenuItemRequest) -> MenuItemIdResponse:
    command = AddMenuItem(
        name=body.name,
        description=body.description,
        price=body.price,
        category=body.category,
        dietary_tags=json.dumps(body.dietary_tags),
        image_url=body.image_url,
        is_popular=body.is_popular,
        is_available=body.is_available,
    )
    menu_item_id = current_domain.process(command, asynchronous=False)
    return MenuItemIdResponse(menu_item_id=menu_item_id)


@admin_router.put("/menu/{menu_item_id}", response_model=StatusResponse)
async def update_menu_item(menu_item_id: str, body: UpdateMenuItemRequest) -> StatusResponse:
    command = UpdateMenuItem(
        menu_item_id=menu_item_id,
        name=body.name,
        description=body.description,
        price=body.price,
        category=body.category,
        dietary_tags=json.dumps(body.dietary_tags) if body.dietary_tags is not None else None,
        image_url=body.image_url,
        is_popular=body.is_popular,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.put("/menu/{menu_item_id}/availability", response_model=StatusResponse)
async def set_menu_item_availability(menu_item_id: str, body: AvailabilityRequest) -> StatusResponse:
    command = SetMenuItemAvailability(menu_item_id=menu_item_id, is_available=body.is_available)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.delete("/menu/{menu_item_id}", response_model=StatusResponse)
async def remove_menu_item(menu_item_id: str) -> StatusResponse:
    current_domain.process(RemoveMenuItem(menu_item_id=menu_item_id), asynchronous=False)
    return StatusResponse()


@admin_router.get("/settings", response_model=SettingsResponse)
async def get_settings() -> SettingsResponse:
    return _settings_response(current_settings())


@admin_router.put("/settings", response_model=SettingsResponse)
async def update_settings(body: UpdateSettingsRequest) -> SettingsResponse:
    current_domain.process(UpdateSettings(**body.model_dump(exclude_none=True)), asynchronous=False)
    return _settings_response(current_settings())


@admin_router.get("/orders", response_model=list[TicketResponse])
async def admin_orders(
    period: str = Query(default="all", description="today, 7days, 30days or all"),
    status_filter: str = Query(default="all", alias="status", description="An order status, or all"),
) -> list[TicketResponse]:
    return [TicketResponse.from_ticket(ticket) for ticket in list_orders(period=period, status=status_filter)]


@admin_router.get("/orders/stats", response_model=dict[str, PeriodStats])
async def admin_order_stats() -> dict[str, PeriodStats]:
    return {period: PeriodStats(**values) for period, values in order_stats().items()}


@admin_router.put("/orders/{order_id}/payment", response_model=StatusResponse)
async def update_payment_status(
    order_id: str,
    body: PaymentStatusRequest,
    resolution=Depends(require_admin),
) -> StatusResponse:
    command = UpdatePaymentStatus(
        order_id=order_id,
        payment_status=body.payment_status,
        changed_by=_actor(resolution),
    )
    process_and_notify(command)
    return StatusResponse()


@admin_router.get("/profiles", response_model=list[ProfileResponse])
async def list_profiles() -> list[ProfileResponse]:
    profiles = current_domain.repository_for(Profile)._dao.query.all().items
    return [
        ProfileResponse(id=str(profile.id), display_name=profile.display_name, email=profile.email, role=profile.role)
        for profile in sorted(profiles, key=lambda profile: profile.display_name.lower())
    ]


@admin_router.put("/profiles/{profile_id}/role", response_model=StatusResponse)
async def change_role(profile_id: str, body: ChangeRoleRequest) -> StatusResponse:
    current_domain.process(ChangeRole(profile_id=profile_id, role=body.role), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Auth Router
# ---------------------------------------------------------------------------
auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/sign-up", status_code=201, response_model=SessionResponse)
async def sign_up(body: SignUpRequest) -> SessionResponse:
    user_id = identity_provider.sign_up(body.email, body.password)
    current_domain.process(
        RegisterProfile(user_id=user_id, display_name=body.display_name, email=body.email),
        asynchronous=False,
    )
    return await _session_response(identity_provider.sign_in(body.email, body.password))


@auth_router.post("/sign-in", response_model=SessionResponse)
async def sign_in(body: SignInRequest) -> SessionResponse:
    return await _session_response(identity_provider.sign_in(body.email, body.password))


@auth_router.post("/sign-out", response_model=StatusResponse)
async def sign_out(request: Request) -> StatusResponse:
    token = session_token(request)
    if token is None:
        raise AuthenticationRequired()
    identity_provider.sign_out(token)
    return StatusResponse()


@auth_router.get("/session", response_model=SessionResponse)
async def get_session(request: Request) -> SessionResponse:
    session = identity_provider.session_for(session_token(request))
    if session is None:
        return SessionResponse(authenticated=False)
    return await _session_response(session)


async def _session_response(session):
    profile = current_domain.repository_for(Profile).get(session.user_id)
    return SessionResponse(
        authenticated=True,
        token=session.token,
        user_id=session.user_id,
        role=profile.role,
        display_name=profile.display_name,
    )


# ---------------------------------------------------------------------------
# Access Router
# ---------------------------------------------------------------------------
access_router = APIRouter(tags=["access"])


@access_router.get("/access", response_model=AccessResponse)
async def check_access(route: str, resolution=Depends(current_resolution)):
    """Where a navigation to ``route`` should land for the caller."""
    decision = decide_for_route(resolution, route)
    if isinstance(decision, Allow):
        return AccessResponse(route=route, decision="allow")
    if isinstance(decision, Defer):
        return JSONResponse(
            status_code=503,
            content={"route": route, "decision": "defer"},
            headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
        )
    return RedirectResponse(url=decision.target, status_code=303)

