from .auth import router as auth_router
from .file import router as file_router
from .dashboard import router as dashboard_router

routers = [
    auth_router,
    file_router,
    dashboard_router,
]
