from routers.auth import router as auth_router
from routers.users import router as users_router
from routers.orders import router as orders_router
from routers.presence import router as presence_router
from routers.chat import router as chat_router
from routers.notifications import router as notifications_router
from routers.stats import router as stats_router
from routers.navigation import router as navigation_router
from routers.realtime import router as realtime_router

__all__ = [
    "auth_router",
    "users_router",
    "orders_router",
    "presence_router",
    "chat_router",
    "notifications_router",
    "stats_router",
    "navigation_router",
    "realtime_router"
]
