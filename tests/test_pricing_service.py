"""Tests for line and order pricing."""

import pytest

from conftest import line
from productshop.data.models import ProductModel, ProductOptionModel
from productshop.domain.errors import InvalidReferenceError, NotFoundError
from productshop.services.pricing_service import PricingService, shipping_fee_for


class TestShippingFee:
    def test_below_threshold_pays_fee(self):
        assert shipping_fee_for(29999) == 3000

    def test_threshold_itself_ships_free(self):
        assert shipping_fee_for(30000) == 0

    def test_custom_threshold_and_fee(self):
        assert shipping_fee_for(100, threshold=200, fee=50) == 50


class TestPricingService:
    def test_two_line_example(self, db, catalog):
        summary = PricingService(db).compute(
            [line(catalog.a, 2), line(catalog.b, 1, option_id=catalog.b_xl)]
        )

        assert [l.line_total for l in summary.lines] == [20000, 6000]
        assert summary.lines[1].unit_price == 6000
        assert summary.lines[1].option_name == "XL"
        assert summary.total_order_price == 26000
        assert summary.shipping_fee == 3000
        assert summary.order_price == 29000

    def test_free_shipping_at_threshold(self, db, catalog):
        summary = PricingService(db).compute([line(catalog.a, 3)])
        assert summary.total_order_price == 30000
        assert summary.shipping_fee == 0
        assert summary.order_price == 30000

    def test_zero_option_id_means_no_option(self, db, catalog):
        priced = PricingService(db).compute([line(catalog.b, 1, option_id=0)]).lines[0]
        assert priced.option_id is None
        assert priced.option_price == 0

    def test_unknown_product(self, db, catalog):
        with pytest.raises(NotFoundError):
            PricingService(db).compute([line(9999, 1)])

    def test_unknown_option(self, db, catalog):
        with pytest.raises(NotFoundError):
            PricingService(db).compute([line(catalog.b, 1, option_id=9999)])

    def test_option_of_another_product(self, db, catalog):
        with pytest.raises(InvalidReferenceError) as exc:
            PricingService(db).compute([line(catalog.a, 1, option_id=catalog.b_m)])
        assert isinstance(exc.value, NotFoundError)

    def test_pricing_does_not_touch_stock(self, db, catalog, stock_of):
        service = PricingService(db)
        for _ in range(3):
            service.compute([line(catalog.a, 5), line(catalog.b, 3, option_id=catalog.b_xl)])

        assert stock_of(ProductModel, catalog.a) == 5
        assert stock_of(ProductOptionModel, catalog.b_xl) == 3

    def test_reads_current_price(self, db, catalog):
        service = PricingService(db)
        db.get(ProductModel, catalog.a).price = 12000
        db.commit()
        assert service.compute([line(catalog.a, 1)]).total_order_price == 12000
