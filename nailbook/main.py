import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import OperationalError

from nailbook.db.init_db import create_database
from nailbook.db.base import Base
from nailbook.db.session import engine, SessionLocal
from nailbook.core.config import settings
from nailbook.core.exceptions import SchedulingError, StoreUnavailable
from nailbook.api.deps import get_time_sequence, get_today
from nailbook.api.v1.router import api_router


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("booking_id", "slot_id", "slot_ids", "claimed", "code", "reason"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(asctime)s %(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

logger = logging.getLogger(__name__)


def run_housekeeping() -> None:
    """One pass: purge never-booked past slots, then release stale pending bookings."""
    from nailbook.scheduling.reservation import ReservationCoordinator
    from nailbook.utils.housekeeping import purge_past_slots, release_stale_bookings

    db = SessionLocal()
    try:
        count = purge_past_slots(db, get_today())
        if count:
            logger.info("Purged %d past slot(s).", count)
        if settings.AUTO_RELEASE_ENABLED:
            coordinator = ReservationCoordinator(db, get_time_sequence())
            release_stale_bookings(coordinator, settings.STALE_PENDING_MINUTES)
    finally:
        db.close()


async def _housekeeping_loop() -> None:
    """Background task: run housekeeping every HOUSEKEEPING_INTERVAL_SECONDS."""
    while True:
        try:
            await asyncio.to_thread(run_housekeeping)
        except Exception:
            logger.exception("Error during housekeeping.")
        await asyncio.sleep(settings.HOUSEKEEPING_INTERVAL_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database()
    Base.metadata.create_all(bind=engine)
    # Fail fast on a malformed SLOT_TIMES
    get_time_sequence()

    housekeeping_task = asyncio.create_task(_housekeeping_loop())
    yield

    # Shutdown: cancel background task
    housekeeping_task.cancel()
    try:
        await housekeeping_task
    except asyncio.CancelledError:
        pass


from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    # expected outcome of a booking attempt, not a server fault
    logger.info(
        "%s %s -> %s",
        request.method,
        request.url.path,
        exc.message,
        extra={"code": exc.code},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(OperationalError)
async def store_unavailable_handler(request: Request, exc: OperationalError):
    logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    error = StoreUnavailable()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
