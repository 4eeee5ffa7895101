"""
Custom exception classes and RFC 7807 error handling.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict
from fastapi import Request
from fastapi.responses import JSONResponse


LLM_UNAVAILABLE_DETAIL = (
    "Could not reach the summarization service. Check the API key and your connection."
)


class ErrorResponse(BaseModel):
    """RFC 7807 Problem Details response model."""
    type: str
    title: str
    status: int
    detail: str
    instance: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
    ):
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            status_code=404,
            error_type="https://problems.example.com/not-found",
            title="Resource Not Found",
            detail=f"{resource} with id '{resource_id}' was not found.",
        )


class ForbiddenError(AppException):
    """Access forbidden exception."""

    def __init__(self, detail: str = "You do not have permission to access this resource."):
        super().__init__(
            status_code=403,
            error_type="https://problems.example.com/forbidden",
            title="Forbidden",
            detail=detail,
        )


class BadRequestError(AppException):
    """Bad request exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=400,
            error_type="https://problems.example.com/bad-request",
            title="Bad Request",
            detail=detail,
        )


class RateLimitError(AppException):
    """Rate limit exceeded exception."""

    def __init__(self, detail: str = "Rate limit exceeded. Please try again later."):
        super().__init__(
            status_code=429,
            error_type="https://problems.example.com/rate-limit-exceeded",
            title="Too Many Requests",
            detail=detail,
        )


class TranscriptFetchError(AppException):
    """The transcript could not be obtained from the backend."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            status_code=502,
            error_type="https://problems.example.com/transcript-fetch-failed",
            title="Transcript Unavailable",
            detail=f"Could not get the transcript, check the url is correct. ({reason})",
        )


# =============================================================================
# LLM ADAPTER FAILURES
# =============================================================================

class LLMError(AppException):
    """Base class for every failure raised at the LLM adapter boundary."""

    def __init__(
        self,
        status_code: int = 503,
        error_type: str = "https://problems.example.com/llm-unavailable",
        title: str = "Summarization Service Unavailable",
        detail: str = LLM_UNAVAILABLE_DETAIL,
    ):
        super().__init__(
            status_code=status_code,
            error_type=error_type,
            title=title,
            detail=detail,
        )


class UnauthorizedError(LLMError):
    """The LLM provider rejected the credential (HTTP 401)."""

    def __init__(self, detail: str = "The LLM API key is missing or invalid. Please re-enter it."):
        super().__init__(
            status_code=401,
            error_type="https://problems.example.com/llm-unauthorized",
            title="Unauthorized",
            detail=detail,
        )


class LLMTimeoutError(LLMError):
    """The LLM call did not complete within its timeout."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        suffix = f" after {timeout:.0f}s" if timeout else ""
        super().__init__(
            status_code=504,
            error_type="https://problems.example.com/llm-timeout",
            title="Summarization Timed Out",
            detail=f"The summarization service did not respond{suffix}.",
        )


class MalformedResponseError(LLMError):
    """The LLM reply did not carry the expected content field."""

    def __init__(self, detail: str = "The summarization service returned an unexpected response."):
        super().__init__(
            status_code=502,
            error_type="https://problems.example.com/llm-malformed-response",
            title="Malformed Response",
            detail=detail,
        )


class LLMConnectionError(LLMError):
    """Network failure or non-success status other than 401."""

    def __init__(self, detail: str = LLM_UNAVAILABLE_DETAIL, status: Optional[int] = None):
        self.status = status
        super().__init__(detail=detail)


# =============================================================================
# PIPELINE FAILURES
# =============================================================================

class SummarizationError(AppException):
    """Base class for summarization pipeline failures."""


class RoutingError(SummarizationError):
    """The transcript size falls in a band no strategy handles."""

    def __init__(self, word_count: int, small_threshold: int, chunk_threshold: int):
        self.word_count = word_count
        super().__init__(
            status_code=422,
            error_type="https://problems.example.com/routing-error",
            title="Unsupported Transcript Size",
            detail=(
                f"A transcript of {word_count} words is not handled: single pass requires "
                f"fewer than {small_threshold} words and chunking requires more than "
                f"{chunk_threshold} words."
            ),
        )


class TotalFailureError(SummarizationError):
    """Every chunk call failed in the chunked pass."""

    def __init__(self, failed: int, total: int):
        self.failed = failed
        self.total = total
        super().__init__(
            status_code=502,
            error_type="https://problems.example.com/total-failure",
            title="Summarization Failed",
            detail=f"All {total} transcript chunks failed. {LLM_UNAVAILABLE_DETAIL}",
        )


class ReduceFailureError(SummarizationError):
    """The final reduce call failed."""

    def __init__(self, detail: str = LLM_UNAVAILABLE_DETAIL):
        super().__init__(
            status_code=502,
            error_type="https://problems.example.com/reduce-failure",
            title="Summarization Failed",
            detail=detail,
        )


def create_error_response(
    request: Request,
    status_code: int,
    error_type: str,
    title: str,
    detail: str,
) -> JSONResponse:
    """Create a RFC 7807 compliant JSON error response."""
    error = ErrorResponse(
        type=error_type,
        title=title,
        status=status_code,
        detail=detail,
        instance=str(request.url.path),
    )
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(),
        media_type="application/problem+json",
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle AppException and return RFC 7807 response."""
    return create_error_response(
        request=request,
        status_code=exc.status_code,
        error_type=exc.error_type,
        title=exc.title,
        detail=exc.detail,
    )
