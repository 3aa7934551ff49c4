"""Custom exceptions for directory (catalog) lookups."""


class DirectoryLookupError(Exception):
    """Base exception for all directory lookup errors.

    Catching this exception covers every failure of a single lookup. The
    recipient resolver recovers from it locally: the failing entity is
    skipped and the others are still resolved.
    """

    pass


class DirectoryHTTPError(DirectoryLookupError):
    """Catalog request failed with a 4xx/5xx status or a connection error."""

    def __init__(self, message: str, status_code: int, url: str) -> None:
        """Initialize HTTP error with status code and URL.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (0 when no response was received)
            url: URL that failed
        """
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class DirectoryTimeoutError(DirectoryLookupError):
    """Catalog request timed out."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class DirectoryResponseError(DirectoryLookupError):
    """Catalog response could not be parsed (invalid JSON, unexpected shape)."""

    pass


class InvalidEntityRefError(DirectoryLookupError):
    """Entity reference is not of the form ``[kind:][namespace/]name``."""

    pass
