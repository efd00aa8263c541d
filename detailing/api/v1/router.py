"""
API v1 router setup
Organized into: catalog (public) and client routes (JWT)
"""
from fastapi import APIRouter

from detailing.api.v1 import appointments, reviews, services

api_v1_router = APIRouter()

# ============================================================================
# CATALOG ROUTES (No authentication required)
# ============================================================================
api_v1_router.include_router(
    services.router,
    # services.router already has the "/services" prefix
    tags=["Catalog"]
)

# ============================================================================
# CLIENT ROUTES (JWT authentication required)
# ============================================================================
api_v1_router.include_router(
    appointments.router,
    tags=["Appointments"]
)

api_v1_router.include_router(
    reviews.router,
    tags=["Reviews"]
)
