# productshop/services/stock_service.py
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, ClassVar, Iterable

import redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from productshop.data.models.order import OrderModel
from productshop.data.models.order_line import OrderLineModel
from productshop.domain.errors import (
    InsufficientStockError,
    InvalidReferenceError,
    NotFoundError,
    OrderError,
    StockBusyError,
    StockConflictError,
)
from productshop.domain.order_status import OrderStatus
from productshop.repos.catalog_repo import CatalogRepo, OPTION, PRODUCT
from productshop.repos.order_repo import OrderRepo
from productshop.services.lock_service import LockService, stock_lock_key
from productshop.utils.logging import get_logger

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def stock_target(line: OrderLineModel) -> tuple[str, int]:
    """The stock pool a line draws from: its option if it has one, else its product."""
    if line.has_option:
        return OPTION, line.option_id
    return PRODUCT, line.product_id


def stock_lock_keys(lines: Iterable[OrderLineModel]) -> list[str]:
    return [stock_lock_key(*stock_target(line)) for line in lines]


@dataclass(frozen=True)
class AppliedDecrement:
    kind: str
    row_id: int
    original_stock: int
    quantity: int
    version_after: int


@dataclass(frozen=True)
class ReservationSucceeded:
    applied: tuple[AppliedDecrement, ...]
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class ReservationFailed:
    reason: str
    detail: str
    unrestored: tuple[AppliedDecrement, ...] = ()
    ok: ClassVar[bool] = False


_FAILURE_REASONS = (
    (InsufficientStockError, "INSUFFICIENT_STOCK"),
    (StockConflictError, "STOCK_CONFLICT"),
    (NotFoundError, "NOT_FOUND"),
)


def _reason_for(error: OrderError) -> str:
    for error_type, reason in _FAILURE_REASONS:
        if isinstance(error, error_type):
            return reason
    return "REJECTED"


class StockReservationService:
    """
    The only writer of stock during checkout.

    reserve_and_settle() takes the row locks for every line, decrements
    line by line (each decrement committed on its own), and on the first
    failure puts every already-committed decrement back before marking
    the order PAYMENT_FAILED. Ordinary failures come back as a
    ReservationFailed value, never as an exception.
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.catalog = CatalogRepo(db)
        self.orders = OrderRepo(db)
        self.lock_service = lock_service
        self.clock = clock or utcnow

    def reserve_and_settle(
        self, order: OrderModel, lines: list[OrderLineModel]
    ) -> ReservationSucceeded | ReservationFailed:
        order_id = order.id
        outcome = None
        try:
            try:
                with self.lock_service.hold_stock_rows(stock_lock_keys(lines), owner=f"order:{order_id}"):
                    outcome = self._reserve(order_id, lines)
            except StockBusyError as e:
                outcome = ReservationFailed(reason="STOCK_BUSY", detail=str(e))
            except redis.RedisError as e:
                logger.error(f"Lock backend unavailable for order {order_id}: {e}")
                outcome = ReservationFailed(reason="LOCK_UNAVAILABLE", detail=str(e))
        finally:
            if outcome is None:
                # unexpected error escaped the reservation, the order still has to leave PAYING
                self.db.rollback()
                logger.error(f"Reservation for order {order_id} aborted")
                outcome = ReservationFailed(reason="ABORTED", detail="reservation aborted")
            self._settle(order, outcome)
        return outcome

    def _reserve(self, order_id: int, lines: list[OrderLineModel]):
        applied: list[AppliedDecrement] = []
        try:
            for line in lines:
                applied.append(self._decrement(line))
        except OrderError as e:
            self.db.rollback()
            logger.warning(f"Reservation for order {order_id} rejected: {e}")
            unrestored = self.compensate(applied)
            return ReservationFailed(reason=_reason_for(e), detail=str(e), unrestored=unrestored)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Reservation for order {order_id} hit a storage error: {e}")
            unrestored = self.compensate(applied)
            return ReservationFailed(reason="STORAGE_ERROR", detail=str(e), unrestored=unrestored)

        return ReservationSucceeded(applied=tuple(applied))

    def _decrement(self, line: OrderLineModel) -> AppliedDecrement:
        product = self.catalog.get_stock_row(PRODUCT, line.product_id, refresh=True)
        if not product:
            raise NotFoundError(f"Product {line.product_id} not found")

        kind, row_id = stock_target(line)
        row = product
        if kind == OPTION:
            row = self.catalog.get_stock_row(OPTION, row_id, refresh=True)
            if not row:
                raise NotFoundError(f"Option {row_id} not found")
            if row.product_id != product.id:
                raise InvalidReferenceError(
                    f"Option {row_id} does not belong to product {product.id}"
                )

        original, version = row.stock, row.version
        if line.quantity > original:
            raise InsufficientStockError(kind, row_id, line.quantity, original)

        if self.catalog.write_stock(kind, row_id, version, original - line.quantity) == 0:
            raise StockConflictError(f"{kind} {row_id} changed while reserving")
        self.catalog.commit()

        logger.info(f"Reserved {line.quantity} of {kind} {row_id}: {original} -> {original - line.quantity}")
        return AppliedDecrement(
            kind=kind,
            row_id=row_id,
            original_stock=original,
            quantity=line.quantity,
            version_after=version + 1,
        )

    def compensate(self, applied: list[AppliedDecrement]) -> tuple[AppliedDecrement, ...]:
        """Put every applied decrement back to its recorded original value.

        Each step commits on its own; a step that fails is logged and
        skipped so the rest still get restored. Returns the steps that
        could not be restored.
        """
        unrestored = []
        for step in reversed(applied):
            try:
                restored = self.catalog.write_stock(
                    step.kind, step.row_id, step.version_after, step.original_stock
                )
                if restored == 0:
                    # row moved on since our decrement, give back only what we took
                    logger.warning(
                        f"{step.kind} {step.row_id} changed after reservation, restoring {step.quantity} relatively"
                    )
                    self.catalog.add_stock(step.kind, step.row_id, step.quantity)
                self.catalog.commit()
            except SQLAlchemyError as e:
                self.catalog.rollback()
                unrestored.append(step)
                logger.error(
                    f"Could not give {step.quantity} back to {step.kind} {step.row_id}: {e}"
                )
                continue
            logger.info(f"Compensated {step.kind} {step.row_id} back to {step.original_stock}")
        return tuple(unrestored)

    def _settle(self, order: OrderModel, outcome) -> None:
        target = OrderStatus.PAYMENT_COMPLETED if outcome.ok else OrderStatus.PAYMENT_FAILED
        self.orders.transition(order, target, self.clock())
        self.orders.commit()
        logger.info(f"Order {order.id} settled as {target.value}")

    def restore_for_cancellation(self, lines: list[OrderLineModel]) -> None:
        """Give each line's quantity back to the pool it was taken from.

        Caller holds the row locks and owns the commit.
        """
        for line in lines:
            kind, row_id = stock_target(line)
            row = self.catalog.get_stock_row(kind, row_id, refresh=True)
            if not row:
                logger.warning(f"{kind} {row_id} no longer exists, nothing to restore")
                continue
            if self.catalog.write_stock(kind, row_id, row.version, row.stock + line.quantity) == 0:
                raise StockConflictError(f"{kind} {row_id} changed while restoring")
            logger.info(f"Restored {line.quantity} to {kind} {row_id}")
