# symbols_awakening/core/domain/exceptions.py
from enum import Enum


class ErrorKind(str, Enum):
    """Coarse failure categories surfaced through the Result envelope."""
    NOT_CONNECTED = "NotConnected"
    NOT_FOUND = "NotFound"
    ALREADY_EXISTS = "AlreadyExists"
    INVALID_INPUT = "InvalidInput"
    BACKEND_FAILURE = "BackendFailure"


class DomainError(Exception):
    """Base class for all domain-level exceptions."""
    kind: ErrorKind = ErrorKind.BACKEND_FAILURE

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

# --- Lifecycle Errors ---

class NotConnectedError(DomainError):
    """Raised when an operation is attempted before `connect()`."""
    kind = ErrorKind.NOT_CONNECTED

    def __init__(self, backend: str = "Database"):
        super().__init__(f"{backend} not connected")

# --- Entity Errors ---

class SymbolNotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, symbol_id: str):
        super().__init__(f'Symbol with ID "{symbol_id}" not found')


class SymbolSetNotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, set_id: str):
        super().__init__(f'Symbol set with ID "{set_id}" not found')


class SymbolAlreadyExistsError(DomainError):
    kind = ErrorKind.ALREADY_EXISTS

    def __init__(self, symbol_id: str):
        super().__init__(f'Symbol with ID "{symbol_id}" already exists')


class SymbolSetAlreadyExistsError(DomainError):
    kind = ErrorKind.ALREADY_EXISTS

    def __init__(self, set_id: str):
        super().__init__(f'Symbol set with ID "{set_id}" already exists')

# --- Validation Errors ---

class InvalidInputError(DomainError):
    """Raised for malformed filter, paging or payload arguments."""
    kind = ErrorKind.INVALID_INPUT

# --- Infrastructure Errors ---

class BackendFailureError(DomainError):
    """Wraps a lower-level storage error message without its type."""
    kind = ErrorKind.BACKEND_FAILURE
