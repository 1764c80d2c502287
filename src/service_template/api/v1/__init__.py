from .error_handlers import register_exception_handlers
from .health import router as health_router

__all__ = ["register_exception_handlers", "health_router"]
