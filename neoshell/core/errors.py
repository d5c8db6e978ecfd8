# Error taxonomy for the shell; every class maps to one diagnostic line.
from enum import Enum, auto

class ErrorCategory(Enum):
    INPUT = auto()
    HISTORY = auto()
    CLASSIFICATION = auto()
    DISPATCH = auto()
    QUERY = auto()
    USER_INPUT = auto()
    CONFIG = auto()
    AUTH = auto()
    INTERNAL = auto()

class NeoShellException(Exception):
    category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(self, message: str, *, category: ErrorCategory | None = None):
        super().__init__(message)
        if category:
            self.category = category

class InputError(NeoShellException):
    category = ErrorCategory.INPUT

class HistoryError(NeoShellException):
    category = ErrorCategory.HISTORY

class ClassificationError(NeoShellException):
    category = ErrorCategory.CLASSIFICATION

class DispatchError(NeoShellException):
    category = ErrorCategory.DISPATCH

class QueryError(NeoShellException):
    category = ErrorCategory.QUERY

class UserInputError(NeoShellException):
    category = ErrorCategory.USER_INPUT

class ConfigError(NeoShellException):
    category = ErrorCategory.CONFIG

class AuthError(NeoShellException):
    category = ErrorCategory.AUTH

class UnauthorizedError(AuthError):
    """Request rejected because the access token is missing or expired."""

__all__ = [
    'ErrorCategory', 'NeoShellException', 'InputError', 'HistoryError',
    'ClassificationError', 'DispatchError', 'QueryError', 'UserInputError',
    'ConfigError', 'AuthError', 'UnauthorizedError',
]
