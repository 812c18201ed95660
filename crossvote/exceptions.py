"""Exceptions for Crossvote operations."""


class CrossvoteError(Exception):
    """Base exception for Crossvote errors."""

    pass


class ConfigurationError(CrossvoteError):
    """Thresholds, weights or timeouts are missing or invalid."""

    pass


class InputUnavailableError(CrossvoteError):
    """A collaborator could not provide its input."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class CollaboratorHTTPError(InputUnavailableError):
    """HTTP request to a collaborator failed."""

    def __init__(self, source: str, message: str, status_code: int = None, response_data: dict = None):
        super().__init__(source, message)
        self.status_code = status_code
        self.response_data = response_data


class PipelineTimeoutError(CrossvoteError):
    """The end-to-end decision deadline was exceeded."""

    pass


class CycleCancelledError(CrossvoteError):
    """An in-flight evaluation cycle was cancelled by a caller."""

    pass


class LedgerStoreError(CrossvoteError):
    """Persisting or loading decision records failed."""

    pass
