"""
Error taxonomy shared by the notebook services
"""
from enum import Enum


class NotebookError(Exception):
    """Base class for all notebook application errors"""
    pass


class ValidationError(NotebookError):
    """A caller-side precondition was violated; the operation was not started"""
    pass


class NotebookNotFoundError(ValidationError):
    """The referenced notebook does not exist"""

    def __init__(self, notebook_id: str):
        super().__init__(f"Notebook not found: {notebook_id}")
        self.notebook_id = notebook_id


class BusyError(ValidationError):
    """Another generation request is still in flight"""
    pass


class FetchError(NotebookError):
    """
    URL ingestion failed

    ``reason`` is one of: invalid_url, network, blocked, status, unsupported, empty
    """

    def __init__(self, message: str, reason: str = "network", url: str = ""):
        super().__init__(message)
        self.reason = reason
        self.url = url


class GenerationError(NotebookError):
    """The generative backend call failed or returned no content"""
    pass


class InvalidFormatError(NotebookError):
    """The backend responded but its output did not match the requested schema"""
    pass


class ErrorKind(str, Enum):
    """Diagnostic classification of a failed generation request"""
    GENERATION = "generation"
    INVALID_FORMAT = "invalid_format"
    FETCH = "fetch"
    UNEXPECTED = "unexpected"

    @classmethod
    def of(cls, error: BaseException) -> "ErrorKind":
        if isinstance(error, InvalidFormatError):
            return cls.INVALID_FORMAT
        if isinstance(error, GenerationError):
            return cls.GENERATION
        if isinstance(error, FetchError):
            return cls.FETCH
        return cls.UNEXPECTED
