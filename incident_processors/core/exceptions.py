"""Exceptions raised by the processors."""


class ProcessorError(Exception):
    """Base class for processor errors."""


class StartupError(ProcessorError):
    """The processor cannot start: bad configuration or em-api unavailable."""


class EmApiError(ProcessorError):
    """An em-api call returned a non-success status or an unusable body."""

    def __init__(self, endpoint: str, status_code: int | None = None, body: str = ""):
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body[:500]
        super().__init__(f"em-api {endpoint} failed with status {status_code}")


class EmailFormatError(ProcessorError):
    """An email message could not be parsed."""
