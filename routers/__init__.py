"""API 라우터 패키지"""
from routers.auth import router as auth_router
from routers.invest import router as invest_router
from routers.users import router as users_router
from routers.teams import router as teams_router
from routers.admin import router as admin_router
from routers.comments import router as comments_router

__all__ = [
    "auth_router",
    "invest_router",
    "users_router",
    "teams_router",
    "admin_router",
    "comments_router",
]
