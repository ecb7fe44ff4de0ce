from fastapi import APIRouter

from app.api.v1.endpoints import (
    auth,
    availability,
    matches,
    offers,
    swipes,
    users,
)

router = APIRouter()

router.include_router(auth.router, prefix="/auth")
router.include_router(users.router, prefix="/users")
router.include_router(swipes.router, prefix="/swipes")
router.include_router(matches.router, prefix="/matches")
router.include_router(availability.router, prefix="/availability")
router.include_router(offers.router, prefix="/offers")
