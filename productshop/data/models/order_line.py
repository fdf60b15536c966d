from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer

from productshop.data.database import Base

NO_OPTION = 0


class OrderLineModel(Base):
    __tablename__ = "order_lines"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),)

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    # NO_OPTION when the line has no option; not a foreign key so it can hold the sentinel
    option_id = Column(Integer, nullable=False, default=NO_OPTION)

    quantity = Column(Integer, nullable=False)
    #price snapshots taken at order time, never rewritten
    product_price = Column(Integer, nullable=False)
    option_price = Column(Integer, nullable=False, default=0)

    @property
    def has_option(self) -> bool:
        return bool(self.option_id)

    @property
    def unit_price(self) -> int:
        return self.product_price + self.option_price

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity
