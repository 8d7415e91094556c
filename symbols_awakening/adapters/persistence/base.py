# symbols_awakening\adapters\persistence\base.py
import functools
from typing import Any, Awaitable, Callable

import structlog
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from symbols_awakening.core.domain.exceptions import DomainError, ErrorKind, NotConnectedError
from symbols_awakening.core.domain.models import Result

logger = structlog.get_logger()


def storage_error_message(exc: SQLAlchemyError) -> str:
    """Message of the DBAPI error when there is one, without SQLAlchemy's decoration."""
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def guarded(operation: Callable[..., Awaitable[Result]]) -> Callable[..., Awaitable[Result]]:
    """
    Converts exceptions raised inside a repository method into a failed
    `Result`. Domain errors keep their kind; storage errors become
    BackendFailure with the original message.
    """

    @functools.wraps(operation)
    async def wrapper(self, *args: Any, **kwargs: Any) -> Result:
        try:
            return await operation(self, *args, **kwargs)
        except DomainError as e:
            logger.info("repository_rejected", operation=operation.__name__, kind=e.kind.value, error=e.message)
            return Result.fail(e.kind, e.message)
        except ValidationError as e:
            logger.info("repository_invalid_input", operation=operation.__name__, error=str(e))
            return Result.fail(ErrorKind.INVALID_INPUT, str(e))
        except SQLAlchemyError as e:
            message = storage_error_message(e)
            logger.error("repository_backend_failure", operation=operation.__name__, error=message)
            return Result.fail(ErrorKind.BACKEND_FAILURE, message)

    return wrapper


class ConnectionMixin:
    """Tracks the connect/disconnect lifecycle shared by every backend."""

    backend_label = "Database"

    def __init__(self) -> None:
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    def _require_connection(self) -> None:
        if not self._connected:
            raise NotConnectedError(self.backend_label)
