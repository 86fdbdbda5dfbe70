# market_core/core/errors.py


class MarketError(Exception):
    """Base class for errors raised by the domain layer.

    The API layer maps each subclass onto an HTTP status in ``main.py``.
    """

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(MarketError):
    status_code = 404


class BusinessError(MarketError):
    status_code = 400


class ConflictError(MarketError):
    status_code = 409


class CatalogConflict(ConflictError):
    """A uniqueness constraint rejected a new product row.

    Raised by catalog ``insert`` implementations when a concurrent writer won
    the race; the resolver catches it and re-runs the lookup.
    """


class StorageUnavailable(MarketError):
    status_code = 503
