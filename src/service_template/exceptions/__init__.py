# service_template/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py          # Service-level errors (DomainError, InfrastructureError, RepositoryError...)
# │   └── integrity.py     # Classify SQLAlchemy IntegrityErrors and map them to repository errors
from .base import (
    ApplicationError,
    DomainError,
    DuplicateError,
    ExecutionError,
    InfrastructureError,
    InvalidFieldError,
    NotFoundError,
    ParsingError,
    RepositoryError,
    ServiceError,
    TaskRejectedError,
    ValidationError,
)

__all__ = [
    "ServiceError",
    "DomainError",
    "ValidationError",
    "ExecutionError",
    "ParsingError",
    "ApplicationError",
    "InfrastructureError",
    "TaskRejectedError",
    "RepositoryError",
    "NotFoundError",
    "DuplicateError",
    "InvalidFieldError",
]
