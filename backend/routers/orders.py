from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List, Optional

from dependencies import get_current_user, get_optional_session, get_order_service
from errors import PermissionDeniedError
from models.order import (
    AttachmentCreate, CommentCreate, InvoiceCreate, Order, OrderCreate,
    OrderStatus, StatusUpdate, TERMINAL_STATUSES
)
from models.user import User, UserRole
from services.orders import OrderService, can_view
from services.session_cache import Session

router = APIRouter(prefix="/orders", tags=["orders"])


def filter_by_status(orders: List[Order], status: Optional[str]) -> List[Order]:
    """
    - "active": orders that are not completed or cancelled
    - "all" or None: every order
    - a specific status: only that status
    """
    if not status or status == "all":
        return orders
    if status == "active":
        return [o for o in orders if o.status not in TERMINAL_STATUSES]
    try:
        wanted = OrderStatus(status)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid status filter: {status}")
    return [o for o in orders if o.status == wanted]


def ensure_self_or_admin(user: User, user_id: str):
    if user.role != UserRole.ADMIN and user.user_id != user_id:
        raise PermissionDeniedError("Not authorized")


@router.post("")
async def create_order(
    body: OrderCreate,
    session: Optional[Session] = Depends(get_optional_session),
    service: OrderService = Depends(get_order_service)
):
    """Place a new commission request for the signed-in client"""
    order_id = await service.create_order(session.user if session else None, body)
    return {"success": True, "order_id": order_id}


@router.get("")
async def get_orders(
    status: Optional[str] = Query(None, description="active, all or a specific status"),
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Orders relevant to the caller: own orders for clients, assigned orders for artists, all for admins"""
    if user.role == UserRole.ADMIN:
        orders = await service.list_all_orders()
    elif user.role == UserRole.ARTIST:
        orders = await service.list_orders_for_artist(user.user_id)
    else:
        orders = await service.list_orders_for_client(user.user_id)
    return filter_by_status(orders, status)


@router.get("/open")
async def get_open_orders(
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Pending orders no artist has priced yet"""
    if user.role not in (UserRole.ARTIST, UserRole.ADMIN):
        raise PermissionDeniedError("Only artists can browse open orders")
    return await service.list_open_orders()


@router.get("/client/{client_id}")
async def get_client_orders(
    client_id: str,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    ensure_self_or_admin(user, client_id)
    return await service.list_orders_for_client(client_id)


@router.get("/artist/{artist_id}")
async def get_artist_orders(
    artist_id: str,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    ensure_self_or_admin(user, artist_id)
    return await service.list_orders_for_artist(artist_id)


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    order = await service.get_order(order_id)
    if not can_view(order, user):
        raise PermissionDeniedError("Not authorized to view this order")
    return order


@router.put("/{order_id}/status")
async def update_order_status(
    order_id: str,
    body: StatusUpdate,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    return await service.update_status(order_id, body.status, actor=user)


@router.post("/{order_id}/invoice")
async def price_order(
    order_id: str,
    body: InvoiceCreate,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Quote a pending order; the invoice total becomes the order price"""
    return await service.price_order(order_id, user, body)


async def _load_for_party(order_id: str, user: User, service: OrderService) -> Order:
    order = await service.get_order(order_id)
    if user.role != UserRole.ADMIN and user.user_id not in (order.client_id, order.artist_id):
        raise PermissionDeniedError("Only the client or the assigned artist can do this")
    return order


@router.post("/{order_id}/comments")
async def add_comment(
    order_id: str,
    body: CommentCreate,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    await _load_for_party(order_id, user, service)
    return await service.append_comment(order_id, user.user_id, body.text)


@router.post("/{order_id}/attachments")
async def add_attachment(
    order_id: str,
    body: AttachmentCreate,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    await _load_for_party(order_id, user, service)
    return await service.append_attachment(order_id, user.user_id, body.url)
