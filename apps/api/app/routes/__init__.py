"""Route modules."""

from .logs import router as logs_router
from .members import router as members_router
from .research import router as research_router
from .session import router as session_router
from .system import router as system_router

__all__ = ["logs_router", "members_router", "research_router", "session_router", "system_router"]
