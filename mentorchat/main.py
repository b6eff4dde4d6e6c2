from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import time

from .core.config import settings
from .core.database import close_db_connections
from .core.error_handlers import register_exception_handlers
from .core.logging import setup_logging
from .services.chat.broker import room_broker

# Import all routers
from .routers import health, preferences
from .routers.chat import chat_router, websocket_router

setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting MentorChat API")

    await room_broker.start()
    logger.info(f"Room broker started ({settings.realtime_backend})")

    yield

    logger.info("Shutting down MentorChat API")
    await room_broker.close()
    await close_db_connections()
    logger.info("Shutdown complete")

app = FastAPI(
    title="MentorChat API",
    description="Anonymous-by-default one-on-one chat between students and mentors",
    version=settings.app_version,
    lifespan=lifespan
)

@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    logger.info(f"{request.method} {request.url.path} - {process_time:.3f}s")
    return response

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

register_exception_handlers(app)

# Include all routers
app.include_router(health.router)
app.include_router(preferences.router)
app.include_router(chat_router)
app.include_router(websocket_router)

@app.get("/")
async def root():
    return {
        "message": "MentorChat API",
        "version": settings.app_version,
        "status": "active"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
