from __future__ import annotations

from app.api.routes.admin import router as admin_router
from app.api.routes.chat import router as chat_router
from app.api.routes.health import router as health_router
from app.api.routes.images import router as images_router
from app.api.routes.prompts import router as prompts_router
from app.api.routes.rate_limit import router as rate_limit_router
from app.api.routes.scraping import router as scraping_router
from app.api.routes.uploads import router as uploads_router

__all__ = [
    "admin_router",
    "chat_router",
    "health_router",
    "images_router",
    "prompts_router",
    "rate_limit_router",
    "scraping_router",
    "uploads_router",
]
