from .base import Base
from .session import dispose_engines, get_command_session, get_engine, get_query_session, get_session_maker

__all__ = ["Base", "get_engine", "get_session_maker", "get_command_session", "get_query_session", "dispose_engines"]
