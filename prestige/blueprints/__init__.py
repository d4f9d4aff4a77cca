"""
Prestige Ledger
Blueprint registry and shared error handling.
"""

import logging

from flask import request
from sqlalchemy.exc import SQLAlchemyError

from prestige.core.exceptions import (
    AuthorizationError,
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from prestige.models import db
from prestige.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def register_error_handlers(bp):
    """Map the ledger exception hierarchy to JSON error responses on ``bp``."""

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return api_error(E.CONFLICT_STATE, str(error), details=error.details)

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @bp.errorhandler(AuthorizationError)
    def _handle_forbidden(error: AuthorizationError):
        details = {"roles": list(error.roles)} if error.roles else None
        return api_error(E.FORBIDDEN, str(error), details=details)

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return api_error(E.NOT_FOUND, str(error))

    @bp.errorhandler(DependencyError)
    def _handle_dependency(error: DependencyError):
        logger.warning("Dependency failure in %s: %s", request.endpoint, error)
        return api_error(E.DEPENDENCY, str(error), details={"service": error.service})

    @bp.errorhandler(SQLAlchemyError)
    def _handle_database(error: SQLAlchemyError):
        db.session.rollback()
        logger.exception("Database error in %s", request.endpoint)
        return api_error(E.DEPENDENCY, "database: query failed", details={"service": "database"})

    return bp
