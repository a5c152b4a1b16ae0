"""Full error hierarchy for blockify.

Every public error class inherits from BlockifyError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.

Normalizers never raise on their documented input; these errors surface
from the schema helpers, the editing session, JSON text decoding, and
the asset-resolution stage.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error blockify can raise."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONVERSION_ERROR = "CONVERSION_ERROR"
    UNKNOWN_BLOCK_TYPE = "UNKNOWN_BLOCK_TYPE"
    INVALID_JSON = "INVALID_JSON"
    IMAGE_ERROR = "IMAGE_ERROR"
    IMAGE_PARSE_ERROR = "IMAGE_PARSE_ERROR"
    IMAGE_TYPE_ERROR = "IMAGE_TYPE_ERROR"
    IMAGE_SIZE_ERROR = "IMAGE_SIZE_ERROR"
    IMAGE_UNAVAILABLE = "IMAGE_UNAVAILABLE"
    UPLOAD_ERROR = "UPLOAD_ERROR"
    UPLOAD_TRANSPORT_ERROR = "UPLOAD_TRANSPORT_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class BlockifyError(Exception):
    """Base exception for all blockify errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


class BlockifyValidationError(BlockifyError):
    """An argument or session operation was invalid (e.g. index out of range).

    Context keys: ``index``, ``length``, ``operation``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Conversion errors
# ---------------------------------------------------------------------------

class BlockifyConversionError(BlockifyError):
    """Base class for errors while converting content to or from blocks.

    Context varies by subclass.
    """

    def __init__(
        self,
        code: str = ErrorCode.CONVERSION_ERROR,
        message: str = "Conversion error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class BlockifyUnknownBlockTypeError(BlockifyConversionError):
    """A block ``type`` discriminant is not one of the known variants.

    Context keys: ``block_type``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UNKNOWN_BLOCK_TYPE,
            message=message,
            context=context,
            cause=cause,
        )


class BlockifyJSONDecodeError(BlockifyConversionError):
    """An uploaded JSON document could not be decoded.

    Context keys: ``line``, ``column``, ``reason``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INVALID_JSON,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Image errors
# ---------------------------------------------------------------------------

class BlockifyImageError(BlockifyError):
    """Base class for image-related errors.

    Context varies by subclass.
    """

    def __init__(
        self,
        code: str = ErrorCode.IMAGE_ERROR,
        message: str = "Image error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class BlockifyImageParseError(BlockifyImageError):
    """A data-URI image could not be decoded (malformed base64 / header).

    Context keys: ``src``, ``reason``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_PARSE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class BlockifyImageTypeError(BlockifyImageError):
    """The detected MIME type is not in the configured allowlist.

    Context keys: ``src``, ``detected_mime``, ``allowed_mimes``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_TYPE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class BlockifyImageSizeError(BlockifyImageError):
    """The image exceeds the configured maximum upload size.

    Context keys: ``src``, ``size_bytes``, ``max_bytes``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_SIZE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class BlockifyImageUnavailableError(BlockifyImageError):
    """The bytes behind a ``blob:`` URL could not be obtained.

    Context keys: ``src``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_UNAVAILABLE,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Upload errors
# ---------------------------------------------------------------------------

class BlockifyUploadError(BlockifyError):
    """Base class for asset-store upload errors.

    Context keys: ``status_code``, ``url``.
    """

    def __init__(
        self,
        code: str = ErrorCode.UPLOAD_ERROR,
        message: str = "Upload error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class BlockifyUploadTransportError(BlockifyUploadError):
    """A transport-level failure (timeout, DNS, connection reset) occurred
    while talking to the asset store.

    Context keys: ``url``, ``attempt``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UPLOAD_TRANSPORT_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class BlockifyAuthError(BlockifyUploadError):
    """The asset store rejected the credentials (401 / 403).

    Context keys: ``status_code``, ``token_prefix`` (last 4 characters only).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.AUTH_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class BlockifyRetryExhaustedError(BlockifyUploadError):
    """All retry attempts have been exhausted for a retryable upload.

    Context keys: ``attempts``, ``last_status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.RETRY_EXHAUSTED,
            message=message,
            context=context,
            cause=cause,
        )
