# Core modules

from .config import settings, get_settings, Settings
from .errors import (
    ShopError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    InternalError,
    register_error_handlers,
)

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "ShopError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "InternalError",
    "register_error_handlers",
]
