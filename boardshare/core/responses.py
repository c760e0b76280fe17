"""Response envelope models.

Every endpoint answers with {"data": ...} on success and {"error": {...}}
on failure, so clients branch on a single top-level key.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, computed_field

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Standard response envelope for single resources.

    Usage:
        @router.get("/share-links/validate")
        async def validate(...) -> DataResponse[ShareLinkPreviewResponse]:
            preview = await service.validate(token)
            return DataResponse(data=...)
    """

    data: T


class ListResponse(BaseModel, Generic[T]):
    """Response envelope for unpaginated collections.

    Share links and join requests are bounded per board, so collections are
    returned whole with their size alongside.
    """

    data: list[T]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def count(self) -> int:
        """Number of items in ``data``."""
        return len(self.data)


class ErrorDetail(BaseModel):
    """Error detail for response body.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        details: Optional list of extra context (field errors, board metadata).
    """

    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    """Standard error response envelope.

    Usage in exception handlers:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=ErrorDetail(code=exc.code, message=exc.message)
            ).model_dump(),
        )
    """

    error: ErrorDetail
