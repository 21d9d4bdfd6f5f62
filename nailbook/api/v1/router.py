from fastapi import APIRouter

# Public: availability and the booking flow
from nailbook.api.v1.public.availability import router as availability_router
from nailbook.api.v1.public.bookings import router as bookings_router

# Admin
from nailbook.api.v1.admin.nail_techs import router as nail_techs_router
from nailbook.api.v1.admin.slots import router as slots_router
from nailbook.api.v1.admin.blocked_dates import router as blocked_dates_router
from nailbook.api.v1.admin.bookings import router as admin_bookings_router

api_router = APIRouter()

# --- Public ---
api_router.include_router(availability_router)
api_router.include_router(bookings_router)

# --- Admin ---
api_router.include_router(nail_techs_router)
api_router.include_router(slots_router)
api_router.include_router(blocked_dates_router)
api_router.include_router(admin_bookings_router)
