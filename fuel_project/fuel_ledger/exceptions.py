from django.core.exceptions import ObjectDoesNotExist, ValidationError


class MissingCheckpointSelection(ValidationError):
    """Raised when a CASH entry has no cancellation point, or a custom
    station is enabled for a direction without a chosen ledger column."""
    pass


class NotFoundError(ObjectDoesNotExist):
    """Raised when a truck, station, DO or ledger record does not resolve."""
    pass


class ConflictError(Exception):
    """Raised on a concurrent ledger modification or when an LPO
    that is already cancelled is cancelled again."""
    pass
