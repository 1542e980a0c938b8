from typing import List

from sqlalchemy.orm import Session

from pizzeria.crud.base import CRUDBase
from pizzeria.model.faq import Faq
from pizzeria.schemas.faq_schema import FaqCreate, FaqUpdate


class CRUDFaq(CRUDBase[Faq, FaqCreate, FaqUpdate]):
    def list_ordered(self, db: Session, include_inactive: bool = False) -> List[Faq]:
        query = db.query(Faq)
        if not include_inactive:
            query = query.filter(Faq.is_active.is_(True))
        return query.order_by(Faq.display_order, Faq.id).all()


faq_crud = CRUDFaq(Faq)
