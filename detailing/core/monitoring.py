"""Health endpoints for load balancers and the ops dashboard"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from detailing.config.database import get_db
from detailing.config.redis import ping_broker
from detailing.config.settings import settings

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get("/")
async def health_check():
    """Liveness: the process is up"""
    return {"status": "healthy", "service": settings.APP_NAME}


@health_router.get("/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """
    Readiness: 503 unless the booking store answers.
    A Redis outage only marks the service degraded.
    """
    checks = {"booking_store": "healthy", "redis": "healthy"}

    try:
        db.execute(text("SELECT 1 FROM appointments LIMIT 1"))
    except Exception as e:
        logger.error(f"Booking store health check failed: {e}")
        checks["booking_store"] = "unhealthy"

    try:
        await ping_broker()
    except Exception as e:
        logger.warning(f"Redis health check failed: {e}")
        checks["redis"] = "unhealthy"

    if checks["booking_store"] != "healthy":
        overall = "unhealthy"
    elif checks["redis"] != "healthy":
        overall = "degraded"
    else:
        overall = "healthy"

    body = {"status": overall, "checks": checks}
    return JSONResponse(status_code=503 if overall == "unhealthy" else 200, content=body)
