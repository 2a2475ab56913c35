from contextlib import contextmanager
from fastapi import HTTPException, status


class CommandError(Exception):
    """Base class for failures raised by the command and policy layers."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(CommandError):
    """Entity is missing, or the actor may not know it exists."""
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(CommandError):
    status_code = status.HTTP_403_FORBIDDEN


class ValidationError(CommandError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class ConflictError(CommandError):
    status_code = status.HTTP_409_CONFLICT


class StoreError(Exception):
    """The document store could not complete an operation."""


class RecordNotFound(StoreError):
    def __init__(self, collection: str, record_id: str):
        super().__init__(f"{collection}/{record_id} does not exist")
        self.collection = collection
        self.record_id = record_id


def to_http_exception(error: Exception) -> HTTPException:
    if isinstance(error, CommandError):
        return HTTPException(status_code=error.status_code, detail=error.message)
    if isinstance(error, RecordNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Document store unavailable"
    )


@contextmanager
def command_errors():
    """Translate command/store failures raised inside a route into HTTP errors."""
    try:
        yield
    except (CommandError, StoreError) as e:
        raise to_http_exception(e) from e
