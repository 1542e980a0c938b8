from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pizzeria.crud.faq_crud import faq_crud
from pizzeria.database import get_db
from pizzeria.schemas.faq_schema import FaqCreate, FaqOut, FaqUpdate
from pizzeria.utils.auth.jwt_bearer import is_admin, optional_user, require_admin

router = APIRouter(prefix="/api/admin-faqs", tags=["FAQ"])


@router.get("/", response_model=List[FaqOut])
def get_faqs(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: dict = Depends(optional_user),
):
    return faq_crud.list_ordered(db, include_inactive=include_inactive and is_admin(current_user))


@router.post("/", response_model=FaqOut, status_code=status.HTTP_201_CREATED)
def create_faq(faq: FaqCreate, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return faq_crud.create(db, faq)


@router.put("/{faq_id}", response_model=FaqOut)
def update_faq(faq_id: int, faq: FaqUpdate, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    db_faq = faq_crud.get(db, faq_id)
    return faq_crud.update(db, db_faq, faq)


@router.delete("/{faq_id}")
def delete_faq(faq_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return faq_crud.remove(db, faq_id)
