from .command_repository import CommandRepository
from .query_repository import QueryRepository

__all__ = ["CommandRepository", "QueryRepository"]
