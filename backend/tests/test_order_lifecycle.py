"""
Order lifecycle: creation, listing order, status transitions and appends
"""
import asyncio
from itertools import product

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from errors import AuthRequiredError, InvalidTransitionError, NotFoundError, StoreError, ValidationError
from models.order import InvoiceCreate, InvoiceMaterial, OrderCreate, OrderStatus, can_transition
from models.user import User, UserRole
from services.notifications import NotificationService
from services.orders import OrderService

pytestmark = pytest.mark.anyio

CLIENT = User(user_id="user_client", email="client@example.com", name="Client", role=UserRole.CLIENT)
ARTIST = User(user_id="user_artist", email="artist@example.com", name="Artist", role=UserRole.ARTIST)

ALLOWED = {
    ("pending", "priced"),
    ("priced", "in_progress"),
    ("in_progress", "completed"),
    ("pending", "cancelled"),
    ("priced", "cancelled"),
    ("in_progress", "cancelled"),
}

# Shortest path from pending to each status
PATHS = {
    "pending": [],
    "priced": ["priced"],
    "in_progress": ["priced", "in_progress"],
    "completed": ["priced", "in_progress", "completed"],
    "cancelled": ["cancelled"],
}


@pytest.fixture
def service(db, clock):
    return OrderService(db, NotificationService(db), clock=clock)


async def new_order(service, **fields):
    fields.setdefault("description", "Mountain landscape at sunset")
    return await service.create_order(CLIENT, OrderCreate(**fields))


async def order_in(service, status):
    order_id = await new_order(service)
    for step in PATHS[status]:
        await service.update_status(order_id, step)
    return order_id


class TestCreateOrder:
    async def test_creates_pending_unassigned_order(self, service, clock):
        order_id = await new_order(service, style="Realism", frame_size="Medium")
        order = await service.get_order(order_id)

        assert order_id.startswith("ord_")
        assert order.status == OrderStatus.PENDING
        assert order.client_id == CLIENT.user_id
        assert order.artist_id is None
        assert order.price is None
        assert order.invoice is None
        assert order.style == "Realism"
        assert order.frame_size == "Medium"
        assert order.created_at == order.updated_at

    @pytest.mark.parametrize("description", ["", "   "])
    async def test_empty_description_is_rejected_without_write(self, service, db, description):
        with pytest.raises(ValidationError):
            await service.create_order(CLIENT, OrderCreate(description=description))
        assert await db.orders.count_documents({}) == 0

    async def test_unauthenticated_caller_is_rejected(self, service, db):
        with pytest.raises(AuthRequiredError) as exc_info:
            await service.create_order(None, OrderCreate(description="A portrait"))
        assert isinstance(exc_info.value, ValidationError)
        assert await db.orders.count_documents({}) == 0


class TestListing:
    async def test_client_orders_newest_first(self, service, clock):
        first = await new_order(service)
        clock.advance(minutes=1)
        second = await new_order(service)
        clock.advance(minutes=1)
        third = await new_order(service)

        orders = await service.list_orders_for_client(CLIENT.user_id)
        assert [o.order_id for o in orders] == [third, second, first]

    async def test_ties_keep_insertion_order(self, service):
        # The clock does not move, so every order shares created_at
        ids = [await new_order(service) for _ in range(4)]
        orders = await service.list_orders_for_client(CLIENT.user_id)
        assert [o.order_id for o in orders] == ids

    async def test_empty_when_no_orders(self, service):
        assert await service.list_orders_for_client("nobody") == []
        assert await service.list_orders_for_artist("nobody") == []

    async def test_artist_listing_and_open_pool(self, service):
        claimed = await new_order(service)
        open_order = await new_order(service)
        await service.price_order(claimed, ARTIST, InvoiceCreate(labor_cost=50))

        assert [o.order_id for o in await service.list_orders_for_artist(ARTIST.user_id)] == [claimed]
        assert [o.order_id for o in await service.list_open_orders()] == [open_order]


class TestStatusTransitions:
    @pytest.mark.parametrize("current,requested", list(product(PATHS, repeat=2)))
    async def test_transition_table(self, service, current, requested):
        order_id = await order_in(service, current)

        if (current, requested) in ALLOWED:
            order = await service.update_status(order_id, requested)
            assert order.status.value == requested
        else:
            with pytest.raises(InvalidTransitionError):
                await service.update_status(order_id, requested)
            assert (await service.get_order(order_id)).status.value == current

    def test_model_table_matches(self):
        for current, requested in product(OrderStatus, repeat=2):
            assert can_transition(current, requested) == ((current.value, requested.value) in ALLOWED)

    async def test_completion_stamps_completed_at(self, service, clock):
        order_id = await order_in(service, "in_progress")
        completed_time = clock.advance(hours=3)

        order = await service.update_status(order_id, OrderStatus.COMPLETED)
        assert order.completed_at is not None
        assert order.completed_at.startswith(completed_time.date().isoformat())
        assert order.updated_at == order.completed_at

    async def test_unknown_status_is_a_validation_error(self, service):
        order_id = await new_order(service)
        with pytest.raises(ValidationError):
            await service.update_status(order_id, "shipped")

    async def test_missing_order(self, service):
        with pytest.raises(NotFoundError):
            await service.update_status("ord_missing", "priced")

    async def test_stale_read_does_not_overwrite(self, service):
        order_id = await new_order(service)
        stale = await service.get_order(order_id)
        await service.update_status(order_id, "cancelled")

        with pytest.raises(InvalidTransitionError) as exc_info:
            await service._compare_and_set(stale, {"status": "priced"}, OrderStatus.PRICED)
        assert exc_info.value.current == "cancelled"
        assert (await service.get_order(order_id)).status == OrderStatus.CANCELLED


class TestPricing:
    async def test_invoice_total_sets_price(self, service):
        order_id = await new_order(service)
        invoice = InvoiceCreate(
            materials=[
                InvoiceMaterial(name="Acrylic paint", quantity=5, unit_price=10),
                InvoiceMaterial(name="Premium canvas", quantity=1, unit_price=30),
                InvoiceMaterial(name="Special brushes", quantity=3, unit_price=15),
            ],
            labor_cost=100,
            notes="Detailed work with premium materials",
        )

        order = await service.price_order(order_id, ARTIST, invoice)
        assert order.status == OrderStatus.PRICED
        assert order.artist_id == ARTIST.user_id
        assert order.price == 225
        assert order.invoice.total_price == 225
        assert order.invoice.notes == "Detailed work with premium materials"
        assert order.priced_at is not None

    async def test_only_pending_orders_can_be_priced(self, service):
        order_id = await order_in(service, "cancelled")
        with pytest.raises(InvalidTransitionError):
            await service.price_order(order_id, ARTIST, InvoiceCreate(labor_cost=10))
        assert (await service.get_order(order_id)).invoice is None

    async def test_pricing_notifies_client(self, service, db):
        order_id = await new_order(service)
        await service.price_order(order_id, ARTIST, InvoiceCreate(labor_cost=80))

        notes = await db.notifications.find({"user_id": CLIENT.user_id}, {"_id": 0}).to_list(None)
        assert [n["type"] for n in notes] == ["quote"]
        assert notes[0]["order_id"] == order_id

    async def test_failed_notification_keeps_committed_change(self, db, clock):
        service = OrderService(db, NotificationService(_BrokenDb()), clock=clock)
        order_id = await new_order(service)

        order = await service.price_order(order_id, ARTIST, InvoiceCreate(labor_cost=80))
        assert order.status == OrderStatus.PRICED

        order = await service.update_status(order_id, "in_progress", ARTIST)
        assert order.status == OrderStatus.IN_PROGRESS
        assert await db.notifications.count_documents({}) == 0


class TestAppends:
    async def test_concurrent_comments_are_all_kept(self, service):
        order_id = await new_order(service)
        await asyncio.gather(*[
            service.append_comment(order_id, CLIENT.user_id, "Looks great") for _ in range(20)
        ])

        order = await service.get_order(order_id)
        assert len(order.comments) == 20
        assert len({c.comment_id for c in order.comments}) == 20

    async def test_attachments_append_in_order(self, service, clock):
        order_id = await new_order(service)
        await service.append_attachment(order_id, CLIENT.user_id, "https://cdn.example.com/ref1.jpg")
        clock.advance(seconds=5)
        await service.append_attachment(order_id, ARTIST.user_id, "https://cdn.example.com/sketch.jpg")

        order = await service.get_order(order_id)
        assert [a.url for a in order.attachments] == [
            "https://cdn.example.com/ref1.jpg",
            "https://cdn.example.com/sketch.jpg",
        ]
        assert order.updated_at == order.attachments[-1].created_at

    async def test_blank_comment_is_rejected(self, service):
        order_id = await new_order(service)
        with pytest.raises(ValidationError):
            await service.append_comment(order_id, CLIENT.user_id, "  ")

    async def test_append_to_missing_order(self, service):
        with pytest.raises(NotFoundError):
            await service.append_comment("ord_missing", CLIENT.user_id, "hello")


class _BrokenCollection:
    async def find_one(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("no servers available")

    async def insert_one(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("no servers available")


class _BrokenDb:
    orders = _BrokenCollection()
    notifications = _BrokenCollection()


async def test_store_failures_surface_as_store_error():
    service = OrderService(_BrokenDb())
    with pytest.raises(StoreError) as exc_info:
        await service.get_order("ord_any")
    assert isinstance(exc_info.value.__cause__, ServerSelectionTimeoutError)
