from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from redis.exceptions import RedisError
import time
import logging
import os

from .api.v1.appointments import router as appointments_router
from .api.v1.doctors import router as doctors_router
from .core.config import settings
from .core.database import get_db, get_redis, init_db
from .core.exceptions import AppointmentError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Appointment booking for doctors and patients",
    openapi_url="/api/v1/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if not os.getenv("TESTING"):
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=["localhost", "127.0.0.1", "*.localhost"]
    )

@app.middleware("http")
async def log_booking_traffic(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    # Writes are the interesting part of a booking service
    log = logger.info if request.method in ("POST", "PUT", "PATCH", "DELETE") else logger.debug
    log(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.4f}s")
    return response

@app.exception_handler(AppointmentError)
async def appointment_error_handler(request: Request, exc: AppointmentError):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error,
            "message": exc.message
        }
    )

@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred"
        }
    )

app.include_router(appointments_router, prefix="/api/v1")
app.include_router(doctors_router, prefix="/api/v1")

@app.on_event("startup")
async def startup_event():
    """Create the booking tables if they are missing."""
    init_db()
    logger.info(
        f"{settings.APP_NAME} {settings.VERSION} ready: "
        f"{settings.APPOINTMENT_DURATION_MINUTES}-minute slots, "
        f"default hours {settings.DEFAULT_WORK_START:%H:%M}-{settings.DEFAULT_WORK_END:%H:%M}"
    )

@app.get("/health")
def health_check(db: Session = Depends(get_db), redis_client = Depends(get_redis)):
    """Reports whether the schedule store and the rate limiter are reachable."""
    checks = {}

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check: database unreachable: {str(e)}")
        checks["database"] = "unavailable"

    try:
        redis_client.ping()
        checks["rate_limiter"] = "ok"
    except RedisError as e:
        logger.error(f"Health check: redis unreachable: {str(e)}")
        checks["rate_limiter"] = "unavailable"

    healthy = all(state == "ok" for state in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "version": settings.VERSION,
            "checks": checks
        }
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "medbook.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
