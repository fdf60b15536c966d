#productshop/data/models/product.py
from sqlalchemy import CheckConstraint, Column, Integer, String
from sqlalchemy.orm import relationship

from productshop.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),)

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    category = Column(String(50), nullable=False, default="")

    price = Column(Integer, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    # bumped on every stock write, see CatalogRepo.write_stock
    version = Column(Integer, nullable=False, default=1)

    options = relationship(
        "ProductOptionModel",
        back_populates="product",
        cascade="all, delete-orphan",
    )
