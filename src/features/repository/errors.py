"""Error types reported by the toggle repository.

None of these are raised out of a polling cycle. They are delivered to
subscribers as ``FetchFailed`` events so the loop keeps running.
"""

from enum import Enum

from src.features.fetch.models import FetchErrorClass


class ErrorKind(str, Enum):
    """Classification of repository errors.

    - TRANSPORT: DNS, connection, timeout or TLS failure
    - HTTP_STATUS: Response status other than 200 or 304
    - PAYLOAD_PARSE: Body is not JSON or not a feature document
    - TOGGLE_VALIDATION: A toggle has the wrong shape
    """

    TRANSPORT = "TRANSPORT"
    HTTP_STATUS = "HTTP_STATUS"
    PAYLOAD_PARSE = "PAYLOAD_PARSE"
    TOGGLE_VALIDATION = "TOGGLE_VALIDATION"


class RepositoryError(Exception):
    """Base exception for repository errors.

    Provides structured error information for logging and subscribers.
    """

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        details: dict[str, str | int | bool | None] | None = None,
    ) -> None:
        """Initialize the repository error.

        Args:
            message: Human-readable error message.
            details: Additional structured error details.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(
        self,
    ) -> dict[str, str | dict[str, str | int | bool | None]]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class TransportError(RepositoryError):
    """The request never produced a usable response."""

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        error_class: FetchErrorClass = FetchErrorClass.UNKNOWN,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize the transport error.

        Args:
            message: Human-readable error message.
            error_class: Transport failure classification.
            cause: Underlying exception, chained as ``__cause__``.
        """
        super().__init__(message, details={"error_class": error_class.value})
        self.error_class = error_class
        self.__cause__ = cause


class HttpStatusError(RepositoryError):
    """The server answered with a status other than 200 or 304."""

    kind = ErrorKind.HTTP_STATUS

    def __init__(self, status_code: int) -> None:
        """Initialize the status error.

        Args:
            status_code: HTTP status code received.
        """
        super().__init__(
            f"Response was not statusCode 200 but {status_code}",
            details={"status_code": status_code},
        )
        self.status_code = status_code


class PayloadParseError(RepositoryError):
    """The response body could not be decoded as a feature document."""

    kind = ErrorKind.PAYLOAD_PARSE

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize the parse error.

        Args:
            message: Human-readable error message.
            line: Line number of the JSON syntax error, if known.
            column: Column number of the JSON syntax error, if known.
        """
        super().__init__(message, details={"line": line, "column": column})
        self.line = line
        self.column = column


class ToggleValidationError(RepositoryError):
    """A toggle in the payload has an invalid ``enabled`` or ``strategies``."""

    kind = ErrorKind.TOGGLE_VALIDATION

    def __init__(
        self,
        message: str,
        toggle_name: str | None = None,
        index: int | None = None,
    ) -> None:
        """Initialize the validation error.

        Args:
            message: Human-readable error message.
            toggle_name: Name of the offending toggle, if it had one.
            index: Position of the toggle in the payload.
        """
        super().__init__(
            message, details={"toggle_name": toggle_name, "index": index}
        )
        self.toggle_name = toggle_name
        self.index = index
