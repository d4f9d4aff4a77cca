"""
Ledger-wide exception hierarchy.

Services raise these types and nothing else for caller-facing failures.
Blueprints register handlers against them once
(see ``prestige.blueprints.register_error_handlers``) and get consistent
HTTP status codes everywhere.

Usage:
    from prestige.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Award", resource_id=42)
    raise ValidationError("No prestige awarded", details={"general": "..."})
"""


class NotFoundError(Exception):
    """Raised when a referenced award does not exist.

    Distinct from an award that exists but has already been removed; that
    case is a ``ConflictError``.

    Args:
        resource: Human-readable entity name (e.g. "Award").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when caller input is malformed, missing or out of range.

    Always a client fault and never retried. Covers aggregated field
    failures, "No prestige awarded" and "Invalid category ID".

    Maps to HTTP 422 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Field-level breakdown. Keys are field names; values are
                 the reason each field was rejected.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(ValidationError):
    """Raised when the operation conflicts with the award's current state.

    The only producer today is removing (or editing) an award that is
    already ``Removed``. Subclasses ValidationError so callers that only
    care about "client sent something unusable" can catch the base type.

    Maps to HTTP 409.
    """

    def __init__(self, resource: str, resource_id: int | str, state: str) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.state = state
        super().__init__(
            f"{resource} id={resource_id} is already {state}",
            details={"status": state},
        )


class AuthorizationError(Exception):
    """Raised when the permission authority denies an operation.

    Also raised when the authority reports no granting office at all, and
    when a member tries to alter their own approved award.

    Maps to HTTP 403.

    Args:
        message: Human-readable explanation.
        roles: Role codenames that were required, if any.
    """

    def __init__(self, message: str, roles: tuple[str, ...] | list[str] | None = None) -> None:
        self.roles = tuple(roles or ())
        super().__init__(message)


class DependencyError(Exception):
    """Raised when the permission authority or the database is unreachable.

    Surfaced as-is; the core never retries. Maps to HTTP 502.

    Args:
        service: Which collaborator failed ("hub", "database").
        message: What went wrong, without secrets.
    """

    def __init__(self, service: str, message: str) -> None:
        self.service = service
        super().__init__(f"{service}: {message}")


class AuthenticationError(Exception):
    """Raised when the caller's bearer token is missing or rejected by the Hub.

    Maps to HTTP 401. Raised by the Hub context middleware only; services
    always run with a resolved caller.
    """
