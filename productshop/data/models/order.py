from sqlalchemy import Boolean, Column, Integer, ForeignKey, String, DateTime
from datetime import datetime, timezone

from productshop.data.database import Base
from productshop.domain.order_status import OrderStatus


def _utcnow():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False, index=True)

    order_date = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    # last status change, the return window counts from here
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    status = Column(String(30), nullable=False, default=OrderStatus.PAYING.value)
    paid = Column(Boolean, nullable=False, default=False)

    total_order_price = Column(Integer, nullable=False)
    shipping_fee = Column(Integer, nullable=False)
    order_price = Column(Integer, nullable=False)
    card_company = Column(String(20), nullable=False)

    #snapshot of where it ships, not a link to the member profile
    recipient_name = Column(String(100), nullable=False)
    recipient_zip_code = Column(String(10), nullable=False)
    recipient_address = Column(String(255), nullable=False)
    recipient_phone = Column(String(20), nullable=False)
    request_note = Column(String(255), nullable=False, default="")
