"""HTTP routers."""

from vivvers.api.admin import page_router
from vivvers.api.auth import callback_router
from vivvers.api.router import api_router

__all__ = ["api_router", "callback_router", "page_router"]
