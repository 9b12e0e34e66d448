"""Error taxonomy for the pooling engine."""


class PoolingError(Exception):
    """Base class for pooling engine errors."""


class PoolNotFoundError(PoolingError, LookupError):
    """Pool id unknown, or a cancelled request is not in any pool."""

    def __init__(self, message: str, pool_id: str = None, request_id: str = None):
        super().__init__(message)
        self.pool_id = pool_id
        self.request_id = request_id


class PoolCapacityError(PoolingError):
    """Join would exceed the maximum pool size (registry guard)."""


class DuplicateRequestError(PoolingError, ValueError):
    """Request id is already tracked by the engine."""


class InvalidTransitionError(PoolingError):
    """Illegal request status transition."""


class ConfigurationError(PoolingError):
    """Model configuration could not be read."""
