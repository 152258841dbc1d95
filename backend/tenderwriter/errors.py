"""Error taxonomy for ingestion, retrieval, analysis and generation."""

from enum import Enum


class TenderWriterError(Exception):
    """Base class for all domain errors."""

    pass


# Ingestion
class UnsupportedFormatError(TenderWriterError):
    """Uploaded file type is not accepted."""

    pass


class PayloadTooLargeError(TenderWriterError):
    """Uploaded file exceeds the configured byte ceiling."""

    pass


class EmptyDocumentError(TenderWriterError):
    """No text could be extracted from a text document."""

    pass


class DocumentNotFoundError(TenderWriterError):
    """Document id is not present in the repository."""

    pass


# Completion capability
class CompletionError(TenderWriterError):
    """Completion call failed (generic generation failure)."""

    pass


class CompletionFailedError(CompletionError):
    """Provider returned an error that is neither rate limiting nor auth."""

    pass


class RateLimitedError(CompletionError):
    """Provider signalled rate limiting (HTTP 429). Retryable."""

    status_code = 429


class AuthenticationFailedError(CompletionError):
    """Provider rejected credentials. Never retried."""

    pass


# Embedding / index
class EmbeddingFailedError(TenderWriterError):
    """Embedding a single text failed."""

    pass


class DimensionMismatchError(TenderWriterError):
    """Vector length does not match the index dimension."""

    pass


# Pipeline
class AnalysisFailedError(TenderWriterError):
    """Analysis of one document failed; cached as an error summary."""

    def __init__(self, title: str, cause: BaseException) -> None:
        super().__init__(f"Analysis of '{title}' failed: {cause}")
        self.title = title
        self.cause = cause


class SectionGenerationFailedError(TenderWriterError):
    """Drafting one section failed; rendered inline in that section."""

    def __init__(self, title: str, cause: BaseException) -> None:
        super().__init__(f"Failed to generate content for section \"{title}\": {cause}")
        self.title = title
        self.cause = cause


class AssemblyFailedError(TenderWriterError):
    """Final assembly call failed; terminates the session."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Assembly of the final document failed: {cause}")
        self.cause = cause


class GenerationCancelledError(TenderWriterError):
    """Caller disconnected or cancelled the run."""

    pass


class ErrorKind(str, Enum):
    """User-facing error categories."""

    NO_DOCUMENTS = "no_documents"
    RATE_LIMITED = "rate_limited"
    AUTHENTICATION_FAILED = "authentication_failed"
    GENERATION_FAILED = "generation_failed"


USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NO_DOCUMENTS: (
        "No source documents were found. A generic document was generated instead; "
        "upload tender requirement documents for a tailored response."
    ),
    ErrorKind.RATE_LIMITED: (
        "The AI provider is rate limiting requests. Please wait a moment and try again."
    ),
    ErrorKind.AUTHENTICATION_FAILED: (
        "The AI provider rejected the configured credentials. Check the API key."
    ),
    ErrorKind.GENERATION_FAILED: "Content generation failed due to an unexpected error.",
}


def classify_error(exc: BaseException) -> ErrorKind:
    """Map an exception (or its wrapped cause) onto a user-facing category."""
    cause = getattr(exc, "cause", None)
    if isinstance(cause, BaseException):
        exc = cause
    if isinstance(exc, RateLimitedError) or getattr(exc, "status_code", None) == 429:
        return ErrorKind.RATE_LIMITED
    if isinstance(exc, AuthenticationFailedError):
        return ErrorKind.AUTHENTICATION_FAILED
    return ErrorKind.GENERATION_FAILED


def user_message(kind: ErrorKind) -> str:
    """Get the user-facing message for an error category."""
    return USER_MESSAGES[kind]
