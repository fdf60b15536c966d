from sqlalchemy import Column, Integer, String
from productshop.data.database import Base


class MemberModel(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    zip_code = Column(String(10), nullable=False)
    address = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
