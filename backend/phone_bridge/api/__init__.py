from fastapi import APIRouter
from phone_bridge.api import images
from phone_bridge.api import signaling

router = APIRouter()

# Include signaling and image routers; the sender page catch-all is
# mounted last by the application.
router.include_router(signaling.router)
router.include_router(images.router)
