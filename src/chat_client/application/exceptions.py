from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ValidationError(AppError):
    pass


class GatewayError(AppError):
    """The remote service failed or could not be reached."""

    def __init__(self, detail: str = "", status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(detail)


class SessionExpiredError(AppError):
    """Missing, invalid or expired session token. Ends the session."""


class UploadError(AppError):
    pass
