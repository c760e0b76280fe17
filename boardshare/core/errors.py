"""API error classes.

Every failure a caller can act on maps to one APIError subclass with a
machine-readable code and an HTTP status. Services and repositories raise
these; the exception handler in main.py renders the error envelope.
"""


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Malformed argument (400).

    Use for unknown access types or roles, bad domain formats, unparseable
    expiry selectors and similar input errors.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedError(APIError):
    """Authentication required (401)."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


class ForbiddenError(APIError):
    """Actor lacks the required board role (403).

    Use when auth is valid but user lacks permission.
    """

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=403,
        )


class NotFoundError(APIError):
    """Resource not found (404).

    Use when requested resource doesn't exist OR the actor has no standing
    to know it exists.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
        )


class ConflictError(APIError):
    """Conflicting state (409).

    Accepts custom code for specific conflict types.
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details,
        )


class AlreadyRevokedError(ConflictError):
    """Share link was already revoked (409).

    An idempotency guard: the link ends up revoked either way, so the HTTP
    layer reports success with ``already_revoked`` set.
    """

    def __init__(self, share_link_id: str) -> None:
        self.share_link_id = share_link_id
        super().__init__(
            code="ALREADY_REVOKED",
            message="This link is already revoked",
        )


class AlreadyHandledError(ConflictError):
    """Join request is no longer pending (409)."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        super().__init__(
            code="ALREADY_HANDLED",
            message="This request has already been handled",
        )


class ShareLinkUnavailableError(APIError):
    """Share link resolved but can no longer be redeemed (410).

    Carries board/owner metadata in ``details`` so clients can render a
    helpful message. Never carries the token hash.
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        board_name: str | None = None,
        owner_name: str | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=410,
            details=[{"board_name": board_name, "owner_name": owner_name}],
        )


class DomainRestrictedError(APIError):
    """User's email domain does not match the link restriction (403)."""

    def __init__(
        self,
        restrict_domain: str,
        *,
        board_name: str | None = None,
        owner_name: str | None = None,
    ) -> None:
        self.restrict_domain = restrict_domain
        super().__init__(
            code="DOMAIN_RESTRICTED",
            message=f"This link is restricted to {restrict_domain} email addresses",
            status_code=403,
            details=[{"board_name": board_name, "owner_name": owner_name}],
        )


class TransientError(APIError):
    """Lock contention or timeout (503).

    Safe to retry: the transaction was rolled back, nothing was written.
    """

    def __init__(
        self, message: str = "The service is busy, please retry the request"
    ) -> None:
        super().__init__(
            code="TRANSIENT",
            message=message,
            status_code=503,
        )
