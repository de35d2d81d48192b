from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ValidationError(AppError):
    pass


class AuthError(AppError):
    pass


class NameUnavailableError(AuthError):
    pass


class BadPasswordError(AuthError):
    pass


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class ConflictError(AppError):
    pass


class TransientStoreError(AppError):
    pass
