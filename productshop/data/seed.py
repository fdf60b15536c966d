# productshop/data/seed.py
from sqlalchemy.orm import Session

from productshop.data.database import SessionLocal
from productshop.data.models import MemberModel, ProductModel, ProductOptionModel


def seed_catalog(db: Session) -> bool:
    """Load a demo member and catalog. Only seeds an empty database."""
    if db.query(ProductModel).first():
        return False

    db.add(
        MemberModel(
            id=1,
            name="Demo Member",
            zip_code="04524",
            address="110 Sejong-daero, Jung-gu, Seoul",
            phone="010-0000-0000",
        )
    )
    keyboard = ProductModel(title="Mechanical Keyboard", category="ELECTRONICS", price=10000, stock=5)
    tshirt = ProductModel(title="Cotton T-Shirt", category="CLOTHING", price=5000, stock=10)
    tshirt.options = [
        ProductOptionModel(name="M", price=0, stock=5),
        ProductOptionModel(name="XL", price=1000, stock=3),
    ]
    db.add_all([keyboard, tshirt])
    db.commit()
    return True


def seed():
    db = SessionLocal()
    try:
        seed_catalog(db)
    finally:
        db.close()


if __name__ == "__main__":
    seed()
