# productshop/services/pricing_service.py
from dataclasses import dataclass
from typing import Any, Dict, Iterable

from sqlalchemy.orm import Session

from productshop.data.models.order_line import NO_OPTION
from productshop.domain.errors import InvalidReferenceError, NotFoundError
from productshop.repos.catalog_repo import CatalogRepo
from productshop.utils.settings import FREE_SHIPPING_THRESHOLD, SHIPPING_FEE
from productshop.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    product_title: str
    option_id: int | None
    option_name: str | None
    quantity: int
    product_price: int
    option_price: int

    @property
    def unit_price(self) -> int:
        return self.product_price + self.option_price

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity

    def as_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "product_title": self.product_title,
            "option_id": self.option_id,
            "option_name": self.option_name,
            "quantity": self.quantity,
            "product_price": self.product_price,
            "option_price": self.option_price,
            "unit_price": self.unit_price,
            "line_total": self.line_total,
        }


@dataclass(frozen=True)
class PricingSummary:
    lines: list[PricedLine]
    total_order_price: int
    shipping_fee: int

    @property
    def order_price(self) -> int:
        return self.total_order_price + self.shipping_fee


def shipping_fee_for(
    total_order_price: int,
    threshold: int = FREE_SHIPPING_THRESHOLD,
    fee: int = SHIPPING_FEE,
) -> int:
    return 0 if total_order_price >= threshold else fee


class PricingService:
    """Side-effect free pricing of requested lines against the live catalog."""

    def __init__(
        self,
        db: Session,
        free_shipping_threshold: int = FREE_SHIPPING_THRESHOLD,
        shipping_fee: int = SHIPPING_FEE,
    ):
        self.catalog = CatalogRepo(db)
        self.free_shipping_threshold = free_shipping_threshold
        self.shipping_fee = shipping_fee

    def price_line(self, product_id: int, option_id: int | None, quantity: int) -> PricedLine:
        product = self.catalog.get_product(product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found")

        option = None
        if option_id not in (None, NO_OPTION):
            option = self.catalog.get_option(option_id)
            if not option:
                raise NotFoundError(f"Option {option_id} not found")
            if option.product_id != product.id:
                raise InvalidReferenceError(
                    f"Option {option_id} does not belong to product {product_id}"
                )

        return PricedLine(
            product_id=product.id,
            product_title=product.title,
            option_id=option.id if option else None,
            option_name=option.name if option else None,
            quantity=quantity,
            product_price=product.price,
            option_price=option.price if option else 0,
        )

    def compute(self, requests: Iterable) -> PricingSummary:
        """Price every ``(product_id, option_id, quantity)`` request.

        Accepts objects with those attributes (the request schema) and
        raises NotFoundError for any unknown product or option.
        """
        lines = [
            self.price_line(r.product_id, r.option_id, r.quantity)
            for r in requests
        ]
        total = sum(line.line_total for line in lines)
        fee = shipping_fee_for(total, self.free_shipping_threshold, self.shipping_fee)

        logger.info(f"Priced {len(lines)} lines: total {total}, shipping fee {fee}")
        return PricingSummary(lines=lines, total_order_price=total, shipping_fee=fee)
