"""HTTP API routers."""

from socialfeed.api.composer import composer_router
from socialfeed.api.social import social_router

__all__ = ["composer_router", "social_router"]
