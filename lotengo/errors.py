from __future__ import annotations


class ApiError(Exception):
    def __init__(
        self,
        *,
        code: str,
        message: str,
        error_class: str,
        retryable: bool,
        http_status: int,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.error_class = error_class
        self.retryable = retryable
        self.http_status = http_status


class NotFoundError(ApiError):
    def __init__(self, *, code: str = "REQ_NOT_FOUND", message: str = "resource not found") -> None:
        super().__init__(
            code=code,
            message=message,
            error_class="validation",
            retryable=False,
            http_status=404,
        )


class DuplicateOfferError(ApiError):
    def __init__(self, message: str = "seller already submitted an offer for this request") -> None:
        super().__init__(
            code="OFFER_DUPLICATE",
            message=message,
            error_class="business_rule",
            retryable=False,
            http_status=409,
        )


class DuplicateRatingError(ApiError):
    def __init__(self, message: str = "user already rated this transaction") -> None:
        super().__init__(
            code="RATING_DUPLICATE",
            message=message,
            error_class="business_rule",
            retryable=False,
            http_status=409,
        )


class RatingNotEligibleError(ApiError):
    def __init__(self, message: str = "request has no accepted offer to rate") -> None:
        super().__init__(
            code="RATING_NOT_ELIGIBLE",
            message=message,
            error_class="business_rule",
            retryable=False,
            http_status=409,
        )


class InvalidInputError(ApiError):
    def __init__(self, message: str, *, code: str = "REQ_VALIDATION_FAILED") -> None:
        super().__init__(
            code=code,
            message=message,
            error_class="validation",
            retryable=False,
            http_status=400,
        )


class IllegalTransitionError(ApiError):
    def __init__(self, *, current: str, requested: str, code: str = "REQUEST_TRANSITION_INVALID") -> None:
        super().__init__(
            code=code,
            message=f"invalid transition: {current} -> {requested}",
            error_class="business_rule",
            retryable=False,
            http_status=409,
        )
        self.current = current
        self.requested = requested


class AuthError(ApiError):
    def __init__(self, message: str, *, forbidden: bool = False) -> None:
        super().__init__(
            code="AUTH_FORBIDDEN" if forbidden else "AUTH_UNAUTHORIZED",
            message=message,
            error_class="security_sensitive",
            retryable=False,
            http_status=403 if forbidden else 401,
        )


class PersistenceFailure(ApiError):
    """Raised by blob backends; the document store logs and swallows it."""

    def __init__(self, message: str) -> None:
        super().__init__(
            code="STORE_PERSIST_FAILED",
            message=message,
            error_class="transient",
            retryable=True,
            http_status=503,
        )
