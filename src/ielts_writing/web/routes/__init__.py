"""Route handlers for Web API."""

from ielts_writing.web.routes.health import router as health_router
from ielts_writing.web.routes.auth import router as auth_router
from ielts_writing.web.routes.profile import router as profile_router
from ielts_writing.web.routes.prompts import router as prompts_router
from ielts_writing.web.routes.marking import router as marking_router
from ielts_writing.web.routes.progress import router as progress_router
from ielts_writing.web.routes.admin import router as admin_router

__all__ = [
    "health_router",
    "auth_router",
    "profile_router",
    "prompts_router",
    "marking_router",
    "progress_router",
    "admin_router",
]
