from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import api
from app.api import include_routers
from app.core.config import settings
from app.core.logging import setup_logging, get_logger
from app.middleware.error_handler import ErrorHandlerMiddleware
from app.middleware.logging_middleware import LoggingMiddleware
from app.services.room_expiry import WaitingRoomMonitor
from app.websockets.hub import hub

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    monitor = WaitingRoomMonitor(hub)
    await monitor.start()
    logger.info(f"{settings.app_name} started")
    yield
    # Shutdown
    await monitor.stop()
    await hub.shutdown()
    logger.info(f"{settings.app_name} stopped")


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(ErrorHandlerMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
include_routers(app, "api", api.__path__)


@app.get("/")
async def root():
    return {"message": "Hello World"}
