"""Error taxonomy for meal analysis requests."""


class MealAnalysisError(Exception):
    """Base error rendered to callers as a structured JSON error."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str | None = None, details: str | None = None) -> None:
        self.message = message or self.error
        self.details = details
        super().__init__(self.message)


class ValidationFailure(MealAnalysisError):
    """Request payload is malformed; the caller can correct it."""

    status_code = 400
    error = "invalid_request"


class MissingCredentials(MealAnalysisError):
    """No bearer credential accompanied the request."""

    status_code = 401
    error = "Missing authorization header"


class InvalidCredentials(MealAnalysisError):
    """Bearer credential could not be resolved to a user."""

    status_code = 401
    error = "Unauthorized"


class IdentityMismatch(MealAnalysisError):
    """Request user id differs from the authenticated identity."""

    status_code = 403
    error = "user_id does not match authenticated user"


class RateLimitExceeded(MealAnalysisError):
    """User exhausted the daily analysis quota."""

    status_code = 429
    error = "rate_limit_exceeded"


class CostLimitExceeded(MealAnalysisError):
    """Global monthly spend ceiling reached."""

    status_code = 429
    error = "cost_limit_exceeded"


class ImageUnreachable(MealAnalysisError):
    """Image URL could not be reached or is not an image."""

    status_code = 400
    error = "image_unreachable"

    def __init__(
        self,
        message: str | None = None,
        details: str | None = None,
        *,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message, details)
        self.timed_out = timed_out


class ProviderError(MealAnalysisError):
    """An inference backend call could not be completed."""

    error = "provider_error"

    def __init__(
        self,
        provider: str,
        details: str,
        *,
        timed_out: bool = False,
    ) -> None:
        super().__init__(f"{provider} call failed", details)
        self.provider = provider
        self.timed_out = timed_out


class MalformedResponse(ProviderError):
    """Inference backend replied with text that could not be normalized."""

    error = "malformed_response"

    def __init__(
        self,
        details: str,
        *,
        provider: str = "unknown",
        possibly_truncated: bool = False,
        snippet: str = "",
    ) -> None:
        super().__init__(provider, details)
        self.message = "AI response could not be parsed"
        self.possibly_truncated = possibly_truncated
        self.snippet = snippet


class UnableToEstimate(MealAnalysisError):
    """No usable estimate could be produced for the request."""

    status_code = 500
    error = "unable_to_estimate"

    def __init__(
        self,
        details: str | None = None,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(self.error, details)
        if status_code is not None:
            self.status_code = status_code
