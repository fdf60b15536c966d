# productshop/domain/errors.py


class OrderError(Exception):
    """Base class for every rejected order operation."""


class NotFoundError(OrderError):
    """Member, order, product or option does not exist or is not the caller's."""


class InvalidReferenceError(NotFoundError):
    """A line names an option that belongs to a different product."""


class PreconditionFailedError(OrderError):
    """Illegal lifecycle transition or stale price confirmation."""


class InsufficientStockError(OrderError):
    def __init__(self, kind: str, row_id: int, requested: int, available: int):
        self.kind = kind
        self.row_id = row_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock for {kind} {row_id}: requested {requested}, available {available}"
        )


class StockConflictError(OrderError):
    """A version-checked stock write lost against a concurrent writer."""


class StockBusyError(OrderError):
    """A stock row lock could not be taken in time."""
