# app/sekolah/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import redis.asyncio as redis
import asyncpg
from apscheduler.schedulers.asyncio import AsyncIOScheduler as Scheduler
import logging

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config.config import settings
from .logging.logging_config import setup_logging
from .api import auth, holidays, leaves, records, settings as settings_api, tasks
from .db.redis_client import RedisClient
from .db.db_client import AsyncPostgresClient
from .tasks.cron import register_jobs
from .api.utilities.limiter import limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Creates the connection pools and the in-process scheduler, and tears them down on shutdown.
    """
    setup_logging()
    logger.info("Application starting...")

    app.state.postgres_pool = None
    app.state.redis_pool = None
    app.state.scheduler = None

    try:
        postgres_pool = await asyncpg.create_pool(
            dsn=settings.DATABASE_URL, min_size=settings.DB_POOL_MIN_SIZE, max_size=settings.DB_POOL_MAX_SIZE
        )
        redis_pool = redis.ConnectionPool.from_url(settings.APPLICATION_REDIS_URL, decode_responses=True)

        app.state.postgres_pool = postgres_pool
        app.state.redis_pool = redis_pool
        logger.info("PostgreSQL and Redis connection pools created.")

        if settings.SCHEDULER_ENABLED:
            scheduler = Scheduler(timezone="Asia/Jakarta")
            register_jobs(scheduler, AsyncPostgresClient(pool=postgres_pool), RedisClient(pool=redis_pool))
            scheduler.start()
            app.state.scheduler = scheduler
            logger.info("Scheduled jobs started.")
        else:
            logger.info("In-process scheduler disabled; relying on the /tasks endpoints.")

    except Exception as e:
        logger.error(f"Error during startup: {e}", exc_info=True)

    yield

    logger.info("Application shutting down...")
    if app.state.scheduler:
        app.state.scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped.")
    if app.state.postgres_pool:
        await app.state.postgres_pool.close()
        logger.info("PostgreSQL connection pool closed.")
    if app.state.redis_pool:
        await app.state.redis_pool.disconnect()
        logger.info("Redis connection pool closed.")


app = FastAPI(
    title="Sekolah Attendance API",
    description="Attendance reconciliation backend: leave approval, no-show detection and check-in reminders.",
    version="1.0.0",
    lifespan=lifespan
)

# The rate limit decorators look the limiter up on app.state.
app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(tasks.router, prefix="/api/v1")
app.include_router(leaves.router, prefix="/api/v1")
app.include_router(settings_api.router, prefix="/api/v1")
app.include_router(holidays.router, prefix="/api/v1")
app.include_router(records.router, prefix="/api/v1")


@app.get("/health", tags=["System"])
def health_check():
    """Liveness probe."""
    return {"status": "ok", "message": "Sekolah Attendance API is running."}
