"""clubsite middleware — admin token auth."""
from .auth import ADMIN_HEADER, AdminGuard, AdminTokenAuth

__all__ = ["ADMIN_HEADER", "AdminGuard", "AdminTokenAuth"]
