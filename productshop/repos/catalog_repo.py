# productshop/repos/catalog_repo.py
from sqlalchemy import update
from sqlalchemy.orm import Session

from productshop.data.models.product import ProductModel
from productshop.data.models.product_option import ProductOptionModel

PRODUCT = "product"
OPTION = "option"

_STOCK_MODELS = {
    PRODUCT: ProductModel,
    OPTION: ProductOptionModel,
}


class CatalogRepo:
    """Reads catalog rows and writes their stock columns; nothing else."""

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_option(self, option_id: int) -> ProductOptionModel | None:
        return self.db.get(ProductOptionModel, option_id)

    def get_stock_row(self, kind: str, row_id: int, refresh: bool = False):
        return self.db.get(_STOCK_MODELS[kind], row_id, populate_existing=refresh)

    def write_stock(self, kind: str, row_id: int, old_version: int, new_stock: int) -> int:
        """Version-checked stock write.

        update ... set stock = :new, version = :old + 1 where id = :id and version = :old
        Returns affected row count, 0 means somebody else wrote the row first.
        """
        model = _STOCK_MODELS[kind]
        result = self.db.execute(
            update(model)
            .where(model.id == row_id, model.version == old_version)
            .values(stock=new_stock, version=old_version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def add_stock(self, kind: str, row_id: int, quantity: int) -> int:
        model = _STOCK_MODELS[kind]
        result = self.db.execute(
            update(model)
            .where(model.id == row_id)
            .values(stock=model.stock + quantity, version=model.version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
