from sqlalchemy.orm import Session
from productshop.data.models.member import MemberModel


class MemberRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_member(self, member_id: int) -> MemberModel | None:
        return self.db.get(MemberModel, member_id)
