from phone_bridge.services.image_service import ImageService, image_service
from phone_bridge.services.signaling import SessionRegistry, session_registry


def get_session_registry() -> SessionRegistry:
    """
    Dependency for the shared session registry.

    Tests override it to get an isolated registry per test.
    """
    return session_registry


def get_image_service() -> ImageService:
    return image_service
