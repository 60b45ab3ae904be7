from fastapi import APIRouter, Depends

from dependencies import get_current_user, get_order_service
from errors import PermissionDeniedError
from models.user import User, UserRole
from services.orders import OrderService
from services.stats import artist_stats, client_stats

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/client")
async def get_client_stats(
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    orders = await service.list_orders_for_client(user.user_id)
    return client_stats(orders)


@router.get("/artist")
async def get_artist_stats(
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    if user.role not in (UserRole.ARTIST, UserRole.ADMIN):
        raise PermissionDeniedError("Only artists have artist statistics")
    orders = await service.list_orders_for_artist(user.user_id)
    return artist_stats(orders)
