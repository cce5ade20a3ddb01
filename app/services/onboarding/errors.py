"""Shared error classes for the onboarding coordinator and its repositories."""

from __future__ import annotations


class OnboardingError(RuntimeError):
    """Base exception raised by onboarding operations."""

    def __init__(self, message: str, code: str = "ONBOARDING_ERROR") -> None:
        super().__init__(message)
        self.code = code


class ValidationError(OnboardingError):
    """Raised when input is malformed; nothing has been written."""

    def __init__(self, message: str, code: str = "422_INVALID_PROFILE") -> None:
        super().__init__(message, code=code)


class NotFoundError(OnboardingError):
    """Raised when an operation targets a profile or record that does not exist."""

    def __init__(self, message: str, code: str = "404_PROFILE_NOT_FOUND") -> None:
        super().__init__(message, code=code)


class PersistenceError(OnboardingError):
    """Raised when the persistence collaborator fails to read or write."""

    def __init__(self, message: str, code: str = "500_INTERNAL") -> None:
        super().__init__(message, code=code)
