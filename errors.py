from __future__ import annotations

import json
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class RepositoryError(Exception):
    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


class NotFoundError(RepositoryError):
    def __init__(self, entity: str, identifier: Any) -> None:
        ident = identifier if isinstance(identifier, str) else json.dumps(identifier, default=str)
        super().__init__(f"{entity} not found: {ident}", {"entity": entity, "identifier": identifier})


class DuplicateError(RepositoryError):
    def __init__(self, entity: str, field: str, value: Any) -> None:
        super().__init__(
            f"{entity} with {field} '{value}' already exists",
            {"entity": entity, "field": field, "value": value},
        )


class ValidationError(RepositoryError):
    def __init__(self, entity: str, errors: dict[str, str]) -> None:
        super().__init__(f"Validation failed for {entity}: {json.dumps(errors)}", {"entity": entity, "errors": errors})


class DatabaseError(RepositoryError):
    def __init__(self, operation: str) -> None:
        super().__init__(f"Database operation failed: {operation}", {"operation": operation})


def handle_database_error(exc: Exception, context: str) -> None:
    """Re-raise ``exc`` as a repository error. Always raises."""
    if isinstance(exc, RepositoryError):
        raise exc
    if isinstance(exc, IntegrityError):
        raise DuplicateError(context, "unique key", str(exc.orig)) from exc
    if isinstance(exc, SQLAlchemyError):
        raise DatabaseError(context) from exc
    raise exc
