class BillingError(ValueError):
    """Domain validation failure raised before any mutation."""


class NotFoundError(BillingError):
    pass


class EmptyResultError(NotFoundError):
    """Nothing to aggregate for the requested client and date range."""


class ConflictError(BillingError):
    pass


class InvalidInputError(BillingError):
    pass


class LedgerInvariantError(RuntimeError):
    """Computed money totals failed to reconcile; never persisted."""
