# productshop/repos/order_repo.py
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from productshop.data.models.order import OrderModel
from productshop.data.models.order_line import OrderLineModel
from productshop.domain.errors import PreconditionFailedError
from productshop.domain.order_status import OrderStatus, transition_changes


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel, lines: list[OrderLineModel]) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        for line in lines:
            line.order_id = order.id
            self.db.add(line)
        self.db.commit()
        self.db.refresh(order)
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_member_order(self, member_id: int, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(
                OrderModel.id == order_id,
                OrderModel.member_id == member_id,
            )
        ).scalar_one_or_none()

    def get_order_lines(self, order_id: int) -> list[OrderLineModel]:
        return list(
            self.db.execute(
                select(OrderLineModel)
                .where(OrderLineModel.order_id == order_id)
                .order_by(OrderLineModel.id)
            ).scalars()
        )

    def count_member_orders(self, member_id: int) -> int:
        return self.db.execute(
            select(func.count()).select_from(OrderModel).where(OrderModel.member_id == member_id)
        ).scalar_one()

    def list_member_orders(self, member_id: int, page: int, size: int) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.member_id == member_id)
                .order_by(OrderModel.order_date.desc(), OrderModel.id.desc())
                .offset(page * size)
                .limit(size)
            ).scalars()
        )

    def count_lines_by_order(self, order_ids: list[int]) -> dict[int, int]:
        if not order_ids:
            return {}
        rows = self.db.execute(
            select(OrderLineModel.order_id, func.count())
            .where(OrderLineModel.order_id.in_(order_ids))
            .group_by(OrderLineModel.order_id)
        ).all()
        return {order_id: count for order_id, count in rows}

    def first_line_by_order(self, order_ids: list[int]) -> dict[int, OrderLineModel]:
        if not order_ids:
            return {}
        lines = self.db.execute(
            select(OrderLineModel)
            .where(OrderLineModel.order_id.in_(order_ids))
            .order_by(OrderLineModel.order_id, OrderLineModel.id)
        ).scalars()
        first: dict[int, OrderLineModel] = {}
        for line in lines:
            first.setdefault(line.order_id, line)
        return first

    def update_status(self, order_id: int, expected: str, changes: dict) -> int:
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == expected)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def transition(self, order: OrderModel, target: OrderStatus, at: datetime) -> OrderStatus:
        """Move ``order`` to ``target`` if it is still in the status it was read with.

        The only writer of ``orders.status``. Returns the previous status;
        the caller owns the commit.
        """
        previous = OrderStatus(order.status)
        changes = transition_changes(previous, target, at)
        if self.update_status(order.id, previous.value, changes) == 0:
            raise PreconditionFailedError(
                f"Order {order.id} is no longer {previous.value}, it was changed by another request."
            )
        self.db.expire(order)
        return previous

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
