# productshop/services/order_service.py
import math
from datetime import datetime, timedelta
from typing import Any, Callable, Dict

from sqlalchemy.orm import Session

from productshop.data.models.member import MemberModel
from productshop.data.models.order import OrderModel
from productshop.data.models.order_line import NO_OPTION, OrderLineModel
from productshop.domain.errors import NotFoundError, OrderError, PreconditionFailedError
from productshop.domain.order_status import (
    CardCompany,
    OrderStatus,
    ensure_transition,
)
from productshop.domain.return_policy import is_return_window_open
from productshop.repos.catalog_repo import CatalogRepo
from productshop.repos.member_repo import MemberRepo
from productshop.repos.order_repo import OrderRepo
from productshop.services.lock_service import LockService
from productshop.services.notification_service import NotificationService
from productshop.services.pricing_service import PricingService, PricingSummary
from productshop.services.stock_service import StockReservationService, stock_lock_keys, utcnow
from productshop.utils.settings import RETURN_WINDOW_SECONDS
from productshop.utils.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_OPTION = "Unknown Option"


def shipping_profile_of(member: MemberModel) -> Dict[str, str]:
    return {
        "name": member.name,
        "zip_code": member.zip_code,
        "address": member.address,
        "phone": member.phone,
    }


def _order_shipping_profile(order: OrderModel) -> Dict[str, str]:
    return {
        "name": order.recipient_name,
        "zip_code": order.recipient_zip_code,
        "address": order.recipient_address,
        "phone": order.recipient_phone,
    }


class OrderService:
    """
    Use cases of the order domain.

    commands: place_order, cancel_order, request_return, mark_shipped, mark_delivered
    queries:  preview, list_orders, get_order_detail
    Every command against an existing order verifies ownership by member id
    and is rejected before any mutation when the transition is illegal.
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
        clock: Callable[[], datetime] | None = None,
        return_window: timedelta = timedelta(seconds=RETURN_WINDOW_SECONDS),
        pricing: PricingService | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.members = MemberRepo(db)
        self.catalog = CatalogRepo(db)
        self.pricing = pricing or PricingService(db)
        self.lock_service = lock_service
        self.clock = clock or utcnow
        self.stock = StockReservationService(db, lock_service, clock=self.clock)
        self.notification_service = notification_service or NotificationService()
        self.return_window = return_window

    def _get_member(self, member_id: int) -> MemberModel:
        member = self.members.get_member(member_id)
        if not member:
            raise NotFoundError(f"Member {member_id} not found")
        return member

    def _get_member_order(self, member_id: int, order_id: int) -> OrderModel:
        order = self.repo.get_member_order(member_id, order_id)
        if not order:
            raise NotFoundError(
                f"Order not found for memberId: {member_id} and orderId: {order_id}"
            )
        return order

    #query
    def preview(self, member_id: int, line_requests) -> Dict[str, Any]:
        member = self._get_member(member_id)
        summary = self.pricing.compute(line_requests)
        return {
            "shipping_profile": shipping_profile_of(member),
            "lines": [line.as_dict() for line in summary.lines],
            "total_order_price": summary.total_order_price,
            "shipping_fee": summary.shipping_fee,
            "order_price": summary.order_price,
        }

    #command
    def place_order(
        self,
        member_id: int,
        line_requests,
        card_company: CardCompany,
        shipping_profile: Dict[str, str | None] | None = None,
        request_note: str = "",
        expected_order_price: int | None = None,
    ) -> Dict[str, Any]:
        """
        Use case: pay for an order.

        1. price the lines against the live catalog (unknown product/option raises NotFoundError)
        2. reject a stale confirmed price before writing anything
        3. persist the order as PAYING with price snapshots
        4. reserve stock; the order always ends PAYMENT_COMPLETED or PAYMENT_FAILED
        """
        line_requests = list(line_requests)
        if not line_requests:
            raise PreconditionFailedError("An order needs at least one line.")

        member = self._get_member(member_id)
        summary = self.pricing.compute(line_requests)

        if expected_order_price is not None and expected_order_price != summary.order_price:
            raise PreconditionFailedError(
                f"Order price changed: confirmed {expected_order_price}, current {summary.order_price}"
            )

        profile = shipping_profile_of(member)
        profile.update({k: v for k, v in (shipping_profile or {}).items() if v})
        card_company = CardCompany(card_company)

        order = self._create_paying_order(member, summary, card_company, profile, request_note)
        lines = self.repo.get_order_lines(order.id)
        logger.info(f"Order {order.id} created for member {member_id}, paying {summary.order_price}")

        outcome = self.stock.reserve_and_settle(order, lines)

        if outcome.ok:
            self.notification_service.send_order_notification(
                member_id, order.id, OrderStatus.PAYMENT_COMPLETED.value
            )

        return {
            "order_id": order.id,
            "payment_status": order.status,
            "failure_reason": None if outcome.ok else outcome.reason,
            "card_company": card_company.value,
            "shipping_profile": profile,
            "request_note": request_note,
            "total_order_price": summary.total_order_price,
            "shipping_fee": summary.shipping_fee,
            "order_price": summary.order_price,
        }

    def _create_paying_order(
        self,
        member: MemberModel,
        summary: PricingSummary,
        card_company: CardCompany,
        profile: Dict[str, str],
        request_note: str,
    ) -> OrderModel:
        now = self.clock()
        order = OrderModel(
            member_id=member.id,
            order_date=now,
            created_at=now,
            updated_at=now,
            status=OrderStatus.PAYING.value,
            paid=False,
            total_order_price=summary.total_order_price,
            shipping_fee=summary.shipping_fee,
            order_price=summary.order_price,
            card_company=card_company.value,
            recipient_name=profile["name"],
            recipient_zip_code=profile["zip_code"],
            recipient_address=profile["address"],
            recipient_phone=profile["phone"],
            request_note=request_note or "",
        )
        lines = [
            OrderLineModel(
                product_id=line.product_id,
                option_id=line.option_id or NO_OPTION,
                quantity=line.quantity,
                product_price=line.product_price,
                option_price=line.option_price,
            )
            for line in summary.lines
        ]
        return self.repo.create_order(order, lines)

    def cancel_order(self, member_id: int, order_id: int) -> Dict[str, Any]:
        order = self._get_member_order(member_id, order_id)
        ensure_transition(order.status, OrderStatus.ORDER_CANCELLED)

        lines = self.repo.get_order_lines(order.id)
        with self.lock_service.hold_stock_rows(stock_lock_keys(lines), owner=f"cancel:{order.id}"):
            # status may have moved while we waited for the locks
            self.db.refresh(order)
            ensure_transition(order.status, OrderStatus.ORDER_CANCELLED)
            # status and stock commit together or not at all
            try:
                self.repo.transition(order, OrderStatus.ORDER_CANCELLED, self.clock())
                self.stock.restore_for_cancellation(lines)
                self.repo.commit()
            except OrderError:
                self.repo.rollback()
                raise

        logger.info(f"Order {order.id} cancelled by member {member_id}")
        self.notification_service.send_order_notification(
            member_id, order.id, OrderStatus.ORDER_CANCELLED.value
        )
        return self._status_result(order)

    def request_return(self, member_id: int, order_id: int) -> Dict[str, Any]:
        order = self._get_member_order(member_id, order_id)
        ensure_transition(order.status, OrderStatus.RETURN_REQUESTED)

        now = self.clock()
        if not is_return_window_open(order.updated_at, now, self.return_window):
            raise PreconditionFailedError("Return period has expired.")

        try:
            self.repo.transition(order, OrderStatus.RETURN_REQUESTED, now)
        except PreconditionFailedError:
            self.repo.rollback()
            raise
        self.repo.commit()

        logger.info(f"Return requested for order {order.id} by member {member_id}")
        self.notification_service.send_order_notification(
            member_id, order.id, OrderStatus.RETURN_REQUESTED.value
        )
        return self._status_result(order)

    def mark_shipped(self, order_id: int) -> Dict[str, Any]:
        return self._advance(order_id, OrderStatus.SHIPPING)

    def mark_delivered(self, order_id: int) -> Dict[str, Any]:
        return self._advance(order_id, OrderStatus.DELIVERED)

    def _advance(self, order_id: int, target: OrderStatus) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")

        try:
            previous = self.repo.transition(order, target, self.clock())
        except PreconditionFailedError:
            self.repo.rollback()
            raise
        self.repo.commit()

        logger.info(f"Order {order.id} moved {previous.value} -> {target.value}")
        return self._status_result(order)

    @staticmethod
    def _status_result(order: OrderModel) -> Dict[str, Any]:
        return {
            "order_id": order.id,
            "status": order.status,
            "updated_at": order.updated_at,
        }

    #queries
    def list_orders(self, member_id: int, page: int = 0, size: int = 10) -> Dict[str, Any]:
        if page < 0 or size <= 0:
            raise ValueError("page must be >= 0 and size > 0")

        total = self.repo.count_member_orders(member_id)
        orders = self.repo.list_member_orders(member_id, page, size)
        order_ids = [o.id for o in orders]
        line_counts = self.repo.count_lines_by_order(order_ids)
        first_lines = self.repo.first_line_by_order(order_ids)

        items = []
        for order in orders:
            first = first_lines.get(order.id)
            product = self.catalog.get_product(first.product_id) if first else None
            items.append(
                {
                    "order_id": order.id,
                    "order_date": order.order_date,
                    "status": order.status,
                    "order_price": order.order_price,
                    "product_title": product.title if product else UNKNOWN_PRODUCT,
                    "line_count": line_counts.get(order.id, 0),
                }
            )

        return {
            "items": items,
            "page": page,
            "size": size,
            "total_elements": total,
            "total_pages": math.ceil(total / size) if total else 0,
        }

    def get_order_detail(self, member_id: int, order_id: int) -> Dict[str, Any]:
        order = self._get_member_order(member_id, order_id)
        lines = self.repo.get_order_lines(order.id)
        if not lines:
            raise NotFoundError(f"No order lines found for orderId: {order_id}")

        details = []
        for line in lines:
            product = self.catalog.get_product(line.product_id)
            option = self.catalog.get_option(line.option_id) if line.has_option else None
            details.append(
                {
                    "line_id": line.id,
                    "product_id": line.product_id,
                    "product_title": product.title if product else UNKNOWN_PRODUCT,
                    "option_id": line.option_id if line.has_option else None,
                    "option_name": option.name if option else UNKNOWN_OPTION,
                    "quantity": line.quantity,
                    "product_price": line.product_price,
                    "option_price": line.option_price,
                    "line_total": line.line_total,
                }
            )

        return {
            "order_id": order.id,
            "order_date": order.order_date,
            "status": order.status,
            "paid": order.paid,
            "card_company": order.card_company,
            "shipping_profile": _order_shipping_profile(order),
            "request_note": order.request_note,
            "total_order_price": order.total_order_price,
            "shipping_fee": order.shipping_fee,
            "order_price": order.order_price,
            "lines": details,
        }
