"""
Domain error taxonomy.

Validation errors surface immediately. GatewayError is retryable unless the
gateway rejected the request. ConflictError is retried once by the
subscription ledger before surfacing.
"""


class MamaCareError(Exception):
    """Base class for all core errors"""
    retryable = False


class InvalidInputError(MamaCareError, ValueError):
    """Malformed or contradictory input"""


class NotFoundError(MamaCareError):
    """Entity or owner missing"""


class NotOwnedError(MamaCareError):
    """Entity exists but belongs to another owner"""


class InvalidStateError(MamaCareError):
    """Illegal state transition"""


class AlreadyCompletedError(InvalidStateError):
    """Completion requested on an already completed entity.

    The unchanged entity is attached so the caller can read it back.
    """

    def __init__(self, message: str, entity=None):
        super().__init__(message)
        self.entity = entity


class UnauthenticatedError(MamaCareError):
    """No caller identity for an owner-scoped operation"""


class GatewayError(MamaCareError):
    """Transport failure or timeout talking to the payment / SMS gateway.

    A request the gateway rejected outright (HTTP 4xx) is not retryable.
    """
    retryable = True

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class ConflictError(MamaCareError):
    """Concurrent update lost the race on a uniqueness invariant"""
