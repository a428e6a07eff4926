"""Typed failures surfaced by the API as ``{"error": <code>, "message": ...}``."""

from typing import Any


class ApiError(Exception):
    """Base class for failures that map onto an HTTP error response.

    ``extra`` is merged into the response body and carries diagnostic
    fields (upstream status, truncated payloads, missing field names).
    """

    code: str = "SERVER_ERROR"
    status_code: int = 500
    default_message: str = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.extra}


class BadRequestError(ApiError):
    code = "BAD_REQUEST"
    status_code = 400
    default_message = "Invalid JSON body"


class MissingInputError(ApiError):
    code = "MISSING_INPUT"
    status_code = 400
    default_message = "Resume and job description are required"

    def __init__(self, fields: list[str], message: str | None = None) -> None:
        super().__init__(message, fields=fields)
        self.fields = fields


class UploadRejectedError(ApiError):
    code = "INVALID_UPLOAD"
    status_code = 400
    default_message = "This file could not be read. Please paste your resume text instead."


class ServerMisconfigError(ApiError):
    code = "SERVER_MISCONFIG"
    status_code = 500
    default_message = "The analysis service is not configured."


class LLMUpstreamError(ApiError):
    code = "LLM_UPSTREAM_ERROR"
    status_code = 502
    default_message = "The AI service returned an error. Please try again."

    def __init__(self, status: int | None = None, body: str = "", message: str | None = None) -> None:
        super().__init__(message, status=status, body=body[:500])
        self.status = status
        self.body = body[:500]


class LLMTimeoutError(LLMUpstreamError):
    code = "TIMEOUT"
    status_code = 504
    default_message = "The AI service took too long to respond. Please try again."


class NonJsonResponseError(ApiError):
    code = "NON_JSON_RESPONSE"
    status_code = 502
    default_message = "The AI service returned an unreadable response. Please try again."

    def __init__(self, raw: str = "", message: str | None = None) -> None:
        super().__init__(message, raw=raw[:2000])
        self.raw = raw[:2000]


class RewriteFailedError(ApiError):
    """Rewrite could not reach the model; reported as an internal failure."""

    default_message = "Rewrite failed. Please try again."
