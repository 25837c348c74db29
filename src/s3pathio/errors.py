"""Error definitions for s3pathio."""

from typing import Any


class S3PathError(Exception):
    """Base error for every failure raised by s3pathio.

    Attributes:
        code: Short machine-readable error code (e.g. "NoSuchKey").
        message: Human-readable error description.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class NotFound(S3PathError):
    """The object does not exist in the store."""

    def __init__(self, bucket: str = "", key: str = "") -> None:
        super().__init__(
            code="NoSuchKey",
            message=f"The specified key does not exist: s3://{bucket}/{key}",
        )
        self.bucket = bucket
        self.key = key


# -- Validation ----------------------------------------------------------------


class ValidationError(S3PathError):
    """An argument failed validation before any call was made."""

    def __init__(self, message: str = "Invalid Argument", code: str = "InvalidArgument") -> None:
        super().__init__(code=code, message=message)


class InvalidPath(ValidationError):
    """The text is not a valid ``s3://bucket/key`` URI."""

    def __init__(self, uri: str = "", reason: str = "") -> None:
        message = f"Not a valid URI '{uri}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message=message, code="InvalidPath")
        self.uri = uri


class InvalidMode(ValidationError):
    """The open mode is not supported."""

    def __init__(self, mode: str = "") -> None:
        super().__init__(
            message=f"Unsupported mode '{mode}'; expected one of r, rb, w, wb",
            code="InvalidMode",
        )
        self.mode = mode


class NotADirectory(ValidationError):
    """The operation requires a directory-like key (empty or ending with '/')."""

    def __init__(self, path: Any = "") -> None:
        super().__init__(
            message=f"Not a directory path: {path}",
            code="NotADirectory",
        )


# -- Transport -----------------------------------------------------------------


class TransientIOError(S3PathError):
    """An object store call kept failing until the retry budget ran out.

    Attributes:
        operation: Name of the retried operation.
        attempts: How many attempts were made.
        last_error: The failure raised by the final attempt.
    """

    def __init__(self, operation: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(
            code="RetriesExhausted",
            message=f"{operation} failed after {attempts} attempts: {last_error}",
        )
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


# -- Handle state --------------------------------------------------------------


class PreconditionViolation(S3PathError):
    """A handle was used in a state that does not allow the operation."""

    def __init__(self, message: str, code: str = "PreconditionViolation") -> None:
        super().__init__(code=code, message=message)


class HandleClosed(PreconditionViolation):
    """I/O operation on a closed handle."""

    def __init__(self, path: Any = "") -> None:
        super().__init__(message=f"I/O operation on closed handle for {path}", code="HandleClosed")


class NotReadable(PreconditionViolation):
    """Read attempted on a handle opened for writing."""

    def __init__(self, path: Any = "") -> None:
        super().__init__(message=f"Handle for {path} is not readable", code="NotReadable")


class NotWritable(PreconditionViolation):
    """Write attempted on a handle opened for reading."""

    def __init__(self, path: Any = "") -> None:
        super().__init__(message=f"Handle for {path} is not writable", code="NotWritable")


class UploadFailed(PreconditionViolation):
    """A part upload failed earlier; the handle cannot produce a complete object."""

    def __init__(self, path: Any = "") -> None:
        super().__init__(
            message=f"An earlier part upload for {path} failed; the upload cannot be completed",
            code="UploadFailed",
        )


class EndOfStream(S3PathError):
    """Fewer bytes remain in the object than were requested."""

    def __init__(self, requested: int, available: int) -> None:
        super().__init__(
            code="EndOfStream",
            message=f"Requested {requested} bytes but only {available} remain",
        )
        self.requested = requested
        self.available = available


# -- Store-side errors raised by the in-memory client --------------------------


class NoSuchUpload(S3PathError):
    """The specified multipart upload does not exist."""

    def __init__(self, upload_id: str = "") -> None:
        super().__init__(
            code="NoSuchUpload",
            message=f"The specified multipart upload does not exist: {upload_id}",
        )
        self.upload_id = upload_id


class InvalidPart(S3PathError):
    """One or more of the specified parts could not be found."""

    def __init__(
        self, message: str = "One or more of the specified parts could not be found."
    ) -> None:
        super().__init__(code="InvalidPart", message=message)


def client_error_code(exc: BaseException) -> str:
    """Return the S3 error code carried by a botocore ``ClientError``.

    Returns an empty string for exceptions that carry no response.
    """
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return ""
    return str(response.get("Error", {}).get("Code", ""))
