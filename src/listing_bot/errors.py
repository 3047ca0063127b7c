"""Exceptions shared by the core and the outbound service clients."""


class GatewayError(Exception):
    """A third-party lookup (Places, geocode, upload) failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ListingApiError(Exception):
    """The backend rejected a listing request or could not be reached.

    `message` is safe to show to the user verbatim.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotListingCreatorError(Exception):
    """Only the listing's creator may update or delete it."""


class ListingNotReadyError(ValueError):
    """The wizard state failed the final validation; `message` says why."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
