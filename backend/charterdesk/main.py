import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from charterdesk.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_LOG_DIR.mkdir(exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "charterdesk.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from charterdesk.routers import bookings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.create_tables_on_startup:
        from charterdesk.database import Base, engine
        import charterdesk.models  # noqa: F401  registers tables

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    # Auto-seed yachts if the fleet is empty (dev convenience)
    if settings.seed_on_startup:
        try:
            from charterdesk.seed import seed
            await seed()
        except Exception as e:
            logger.warning(f"Auto-seed skipped: {e}")

    # Rate cards are served from memory; load them once the fleet exists
    from charterdesk.services.rate_card_service import rate_card_service
    await rate_card_service.refresh_safely()

    scheduler = None
    if settings.scheduler_enabled:
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.interval import IntervalTrigger

            scheduler = AsyncIOScheduler()
            scheduler.add_job(
                rate_card_service.refresh_safely,
                IntervalTrigger(minutes=settings.rate_card_refresh_minutes),
                id="rate_card_refresh",
            )
            scheduler.start()
            logger.info("Background scheduler started")
        except Exception as e:
            logger.error(f"Scheduler failed to start: {e}")

    yield

    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")

    from charterdesk.services.notification_service import notification_dispatcher
    if notification_dispatcher.sender is not None:
        await notification_dispatcher.sender.aclose()
        logger.info("Email client closed")


app = FastAPI(
    title="Charterdesk",
    description="Yacht charter booking offers",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed or incomplete bodies are a client error (400), not 422."""
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "validation",
            "detail": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
                for err in exc.errors()
            ],
        },
    )


app.include_router(bookings.router, prefix="/api/bookings", tags=["bookings"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "charterdesk", "email_enabled": settings.email_enabled}
