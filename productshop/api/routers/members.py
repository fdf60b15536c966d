# productshop/api/routers/members.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from productshop.data.database import get_db
from productshop.domain.schemas import MemberRead
from productshop.repos.member_repo import MemberRepo

router = APIRouter(prefix="/members", tags=["members"])


@router.get("/{member_id}", response_model=MemberRead)
def get_member(member_id: int, db: Session = Depends(get_db)):
    member = MemberRepo(db).get_member(member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    return member
