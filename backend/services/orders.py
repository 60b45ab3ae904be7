"""
Order lifecycle

Orders move pending -> priced -> in_progress -> completed, and any
non-terminal order can be cancelled. Status writes are compare-and-set on
the status that was read, and comment/attachment appends are atomic pushes.
"""
import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional, Union

from database import next_sequence, store_errors, to_iso, utc_now
from errors import (
    AuthRequiredError, InvalidTransitionError, NotFoundError,
    PermissionDeniedError, StoreError, ValidationError
)
from models.notification import NotificationType
from models.order import (
    Order, OrderCreate, OrderStatus, InvoiceCreate, can_transition
)
from models.user import User, UserRole
from services.notifications import NotificationService

logger = logging.getLogger(__name__)

# Timestamp field stamped when an order enters the given status
STATUS_TIMESTAMPS = {
    OrderStatus.PRICED: "priced_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
}

LIST_SORT = [("created_at", -1), ("created_seq", 1)]


def parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown order status: {value}")


def can_view(order: Order, user: User) -> bool:
    if user.role == UserRole.ADMIN:
        return True
    if order.client_id == user.user_id or order.artist_id == user.user_id:
        return True
    # Artists browse the open pool before claiming an order
    return user.role == UserRole.ARTIST and order.status == OrderStatus.PENDING and order.artist_id is None


def ensure_can_change_status(order: Order, user: User, new_status: OrderStatus):
    """Clients may only cancel their own orders; the assigned artist advances them"""
    if user.role == UserRole.ADMIN:
        return
    if order.client_id == user.user_id:
        if new_status != OrderStatus.CANCELLED:
            raise PermissionDeniedError("Clients can only cancel their orders")
        return
    if order.artist_id and order.artist_id == user.user_id:
        return
    raise PermissionDeniedError("Not authorized to update this order")


class OrderService:
    def __init__(self, db, notifications: Optional[NotificationService] = None,
                 clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.notifications = notifications
        self.clock = clock

    def _now(self) -> str:
        return to_iso(self.clock())

    async def create_order(self, actor: Optional[User], details: OrderCreate) -> str:
        """Persist a new pending order for actor and return its id"""
        if actor is None:
            raise AuthRequiredError("You must be signed in to place an order")
        description = (details.description or "").strip()
        if not description:
            raise ValidationError("Order description is required")

        now = self._now()
        order_id = f"ord_{uuid.uuid4().hex[:12]}"
        doc = details.model_dump()
        doc.update({
            "order_id": order_id,
            "client_id": actor.user_id,
            "artist_id": None,
            "status": OrderStatus.PENDING.value,
            "description": description,
            "price": None,
            "attachments": [],
            "comments": [],
            "created_at": now,
            "updated_at": now,
        })

        with store_errors("Create order"):
            doc["created_seq"] = await next_sequence(self.db, "orders")
            await self.db.orders.insert_one(doc)

        logger.info(f"Order {order_id} created by {actor.user_id}")
        return order_id

    async def get_order(self, order_id: str) -> Order:
        with store_errors("Get order"):
            doc = await self.db.orders.find_one({"order_id": order_id}, {"_id": 0})
        if not doc:
            raise NotFoundError("Order not found")
        return Order(**doc)

    async def _list(self, query: dict) -> List[Order]:
        with store_errors("List orders"):
            docs = await self.db.orders.find(query, {"_id": 0}).sort(LIST_SORT).to_list(None)
        return [Order(**doc) for doc in docs]

    async def list_orders_for_client(self, client_id: str) -> List[Order]:
        return await self._list({"client_id": client_id})

    async def list_orders_for_artist(self, artist_id: str) -> List[Order]:
        return await self._list({"artist_id": artist_id})

    async def list_open_orders(self) -> List[Order]:
        return await self._list({"status": OrderStatus.PENDING.value, "artist_id": None})

    async def list_all_orders(self, status: Optional[OrderStatus] = None) -> List[Order]:
        query = {}
        if status:
            query["status"] = status.value
        return await self._list(query)

    async def _compare_and_set(self, order: Order, updates: dict, requested: OrderStatus):
        with store_errors("Update order"):
            result = await self.db.orders.update_one(
                {"order_id": order.order_id, "status": order.status.value},
                {"$set": updates}
            )
        if result.matched_count == 0:
            # Someone else moved the order between our read and write
            current = await self.get_order(order.order_id)
            raise InvalidTransitionError(current.status.value, requested.value)

    async def update_status(self, order_id: str, new_status: Union[str, OrderStatus],
                            actor: Optional[User] = None) -> Order:
        new_status = parse_status(new_status)
        order = await self.get_order(order_id)

        if actor is not None:
            ensure_can_change_status(order, actor, new_status)
        if not can_transition(order.status, new_status):
            raise InvalidTransitionError(order.status.value, new_status.value)

        now = self._now()
        updates = {"status": new_status.value, "updated_at": now}
        stamp = STATUS_TIMESTAMPS.get(new_status)
        if stamp:
            updates[stamp] = now

        await self._compare_and_set(order, updates, new_status)
        logger.info(f"Order {order_id}: {order.status.value} -> {new_status.value}")

        await self._notify_status_change(order, new_status, actor)
        return await self.get_order(order_id)

    async def price_order(self, order_id: str, artist: User, invoice: InvoiceCreate) -> Order:
        """Attach an invoice, assign the artist and move a pending order to priced"""
        if artist.role not in (UserRole.ARTIST, UserRole.ADMIN):
            raise PermissionDeniedError("Only artists can price orders")
        order = await self.get_order(order_id)
        if order.artist_id and order.artist_id != artist.user_id:
            raise PermissionDeniedError("Order is assigned to another artist")
        if not can_transition(order.status, OrderStatus.PRICED):
            raise InvalidTransitionError(order.status.value, OrderStatus.PRICED.value)

        now = self._now()
        total = invoice.total()
        updates = {
            "status": OrderStatus.PRICED.value,
            "artist_id": order.artist_id or artist.user_id,
            "price": total,
            "invoice": {
                "invoice_id": f"inv_{uuid.uuid4().hex[:12]}",
                "materials": [m.model_dump() for m in invoice.materials],
                "labor_cost": invoice.labor_cost,
                "total_price": total,
                "created_at": now,
                "notes": invoice.notes,
            },
            "priced_at": now,
            "updated_at": now,
        }
        await self._compare_and_set(order, updates, OrderStatus.PRICED)
        logger.info(f"Order {order_id} priced at {total} by {artist.user_id}")

        await self._notify(
            order.client_id, NotificationType.QUOTE,
            f"Your order has been quoted at {total:.2f}", order_id
        )
        return await self.get_order(order_id)

    async def _append(self, order_id: str, field: str, entry: dict):
        with store_errors(f"Append {field}"):
            result = await self.db.orders.update_one(
                {"order_id": order_id},
                {"$push": {field: entry}, "$set": {"updated_at": entry["created_at"]}}
            )
        if result.matched_count == 0:
            raise NotFoundError("Order not found")
        return entry

    async def append_comment(self, order_id: str, author_id: str, text: str) -> dict:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text is required")
        return await self._append(order_id, "comments", {
            "comment_id": f"cmt_{uuid.uuid4().hex[:12]}",
            "author_id": author_id,
            "text": text,
            "created_at": self._now(),
        })

    async def append_attachment(self, order_id: str, author_id: str, url: str) -> dict:
        url = (url or "").strip()
        if not url:
            raise ValidationError("Attachment url is required")
        return await self._append(order_id, "attachments", {
            "attachment_id": f"att_{uuid.uuid4().hex[:12]}",
            "author_id": author_id,
            "url": url,
            "created_at": self._now(),
        })

    async def _notify(self, user_id: str, type: NotificationType, message: str, order_id: str):
        """Best effort: the order write has already committed"""
        if not self.notifications:
            return
        try:
            await self.notifications.notify(user_id, type, message, order_id)
        except StoreError as e:
            logger.error(f"Order {order_id}: could not notify {user_id}: {e.__cause__ or e}")

    async def _notify_status_change(self, order: Order, new_status: OrderStatus, actor: Optional[User]):
        recipients = {order.client_id, order.artist_id} - {None}
        if actor is not None:
            recipients.discard(actor.user_id)
        label = new_status.value.replace("_", " ")
        for user_id in sorted(recipients):
            await self._notify(user_id, NotificationType.UPDATE, f"Order status changed to {label}", order.order_id)
