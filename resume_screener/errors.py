from typing import Optional


class ResumeScreenerError(Exception):
    """Base class for every error raised by the screening core."""


class ConfigurationError(ResumeScreenerError):
    """The AI path was attempted without a usable credential."""


class ParseError(ResumeScreenerError):
    """Text could not be extracted from an uploaded file."""


class UnsupportedFormatError(ParseError):
    def __init__(self, mime_type: str):
        super().__init__(f"Unsupported file type: {mime_type}")
        self.mime_type = mime_type


class AIResponseError(ResumeScreenerError):
    """The AI backend replied with content that is not a JSON object."""


class TransientAIError(ResumeScreenerError):
    """A backend failure worth retrying."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class RateLimitError(TransientAIError):
    pass


class ServiceUnavailableError(TransientAIError):
    pass


class MaxRetriesExceededError(ResumeScreenerError):
    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"AI call failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class ValidationError(ResumeScreenerError):
    """Malformed job or resume data supplied by a collaborator."""
