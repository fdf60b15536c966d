from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from productshop.data.database import Base


class ProductOptionModel(Base):
    __tablename__ = "product_options"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_product_options_stock_non_negative"),)

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    price = Column(Integer, nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=1)

    product = relationship("ProductModel", back_populates="options")
