from .alerts import router as alerts_router
from .auth import router as auth_router
from .movements import router as movements_router
from .oauth import router as oauth_router

__all__ = ["alerts_router", "auth_router", "movements_router", "oauth_router"]
