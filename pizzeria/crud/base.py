import re
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

ModelType = TypeVar("ModelType")
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


def _label(model: type) -> str:
    # MenuItemChoiceGroup -> "Menu item choice group"
    words = re.findall(r"[A-Z][a-z0-9]*", model.__name__)
    return " ".join(words).capitalize()


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Shared single-table operations; subclasses add the domain rules."""

    def __init__(self, model: Type[ModelType], order_by: Sequence[str] = ("id",)):
        self.model = model
        self.order_by = tuple(order_by)
        self.label = _label(model)

    def not_found(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{self.label} not found")

    # ---------------- GET ----------------
    def find(self, db: Session, id: int) -> Optional[ModelType]:
        return db.get(self.model, id)

    def get(self, db: Session, id: int) -> ModelType:
        obj = self.find(db, id)
        if obj is None:
            raise self.not_found()
        return obj

    # ---------------- GET ALL ----------------
    def get_all(self, db: Session, skip: int = 0, limit: int = 100,
                filters: Optional[Dict[str, Any]] = None) -> List[ModelType]:
        query = db.query(self.model)
        for key, value in (filters or {}).items():
            if value is not None:
                query = query.filter(getattr(self.model, key) == value)
        query = query.order_by(*[getattr(self.model, col) for col in self.order_by])
        return query.offset(skip).limit(limit).all()

    # ---------------- CREATE ----------------
    def create(self, db: Session, obj_in: CreateSchemaType) -> ModelType:
        obj = self.model(**obj_in.model_dump())
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    # ---------------- UPDATE ----------------
    def update(self, db: Session, db_obj: ModelType, obj_in: UpdateSchemaType) -> ModelType:
        for key, value in obj_in.model_dump(exclude_unset=True).items():
            setattr(db_obj, key, value)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    # ---------------- DELETE ----------------
    def remove(self, db: Session, id: int) -> dict:
        db.delete(self.get(db, id))
        db.commit()
        return {"message": f"{self.label} deleted"}
