from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, APIRouter
from starlette.middleware.cors import CORSMiddleware

from config import CORS_ORIGINS, LOG_LEVEL
from database import client, create_indexes, get_db
from errors import MarketplaceError, marketplace_error_handler
from middleware import RouteGuardMiddleware
from routers import (
    auth_router,
    users_router,
    orders_router,
    presence_router,
    chat_router,
    notifications_router,
    stats_router,
    navigation_router,
    realtime_router
)
from services.presence import PresenceTracker
from services.realtime import get_channel
from services.scheduler import start_scheduler, stop_scheduler

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def presence_tracker_factory() -> PresenceTracker:
    return PresenceTracker(get_db(), get_channel())


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_indexes(get_db())
    scheduler = start_scheduler(presence_tracker_factory)
    try:
        yield
    finally:
        stop_scheduler(scheduler)
        client.close()


# Create the main app
app = FastAPI(title="Art Commissions API", version="1.0.0", lifespan=lifespan)
app.add_exception_handler(MarketplaceError, marketplace_error_handler)

# Create main API router with /api prefix
api_router = APIRouter(prefix="/api")

# Include all routers
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(orders_router)
api_router.include_router(presence_router)
api_router.include_router(chat_router)
api_router.include_router(notifications_router)
api_router.include_router(stats_router)
api_router.include_router(navigation_router)
api_router.include_router(realtime_router)


# Root endpoint
@api_router.get("/")
async def root():
    return {"message": "Art Commissions API", "status": "running"}

# Include the main router
app.include_router(api_router)

app.add_middleware(RouteGuardMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
