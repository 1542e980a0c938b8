from typing import Dict, Iterable, List, Optional, Set

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from pizzeria.crud.base import CRUDBase
from pizzeria.model.menu import Category, ChoiceGroup, ChoiceItem, MenuItem, MenuItemChoiceGroup
from pizzeria.schemas.menu_schema import (
    CategoryCreate,
    CategoryUpdate,
    ChoiceGroupCreate,
    ChoiceGroupUpdate,
    ChoiceItemCreate,
    ChoiceItemUpdate,
    MenuItemChoiceGroupCreate,
    MenuItemCreate,
    MenuItemUpdate,
)


class CRUDCategory(CRUDBase[Category, CategoryCreate, CategoryUpdate]):
    def create(self, db: Session, obj_in: CategoryCreate):
        if db.query(Category).filter(Category.name == obj_in.name).first():
            raise HTTPException(status_code=400, detail="Category already exists")
        return super().create(db, obj_in)

    def list_active(self, db: Session) -> List[Category]:
        return (
            db.query(Category)
            .filter(Category.is_active.is_(True))
            .order_by(Category.order, Category.id)
            .all()
        )


def _unavailable_categories(db: Session) -> List[str]:
    return [
        name for (name,) in db.query(Category.name).filter(
            (Category.is_active.is_(False)) | (Category.is_temporarily_unavailable.is_(True))
        )
    ]


class CRUDMenuItem(CRUDBase[MenuItem, MenuItemCreate, MenuItemUpdate]):
    def _available(self, db: Session):
        query = db.query(MenuItem).filter(MenuItem.is_available.is_(True))
        unavailable = _unavailable_categories(db)
        if unavailable:
            query = query.filter(MenuItem.category.notin_(unavailable))
        return query

    def list_available(self, db: Session, category: Optional[str] = None) -> List[MenuItem]:
        query = self._available(db)
        if category:
            query = query.filter(MenuItem.category == category)
        return query.order_by(MenuItem.category, MenuItem.name).all()

    def get_detail(self, db: Session, id: int) -> MenuItem:
        item = (
            db.query(MenuItem)
            .options(
                selectinload(MenuItem.choice_groups)
                .selectinload(MenuItemChoiceGroup.choice_group)
                .selectinload(ChoiceGroup.items.and_(ChoiceItem.is_active.is_(True)))
            )
            .filter(MenuItem.id == id)
            .first()
        )
        if not item:
            raise self.not_found()
        return item

    def get_orderable(self, db: Session, ids: Iterable[int]) -> Dict[int, MenuItem]:
        """Same visibility as the public menu: available items outside closed categories."""
        ids = set(ids)
        if not ids:
            return {}
        return {m.id: m for m in self._available(db).filter(MenuItem.id.in_(ids)).all()}


class CRUDChoiceGroup(CRUDBase[ChoiceGroup, ChoiceGroupCreate, ChoiceGroupUpdate]):
    def list_with_items(self, db: Session, include_inactive: bool = False) -> List[ChoiceGroup]:
        query = db.query(ChoiceGroup).options(selectinload(ChoiceGroup.items))
        if not include_inactive:
            query = query.filter(ChoiceGroup.is_active.is_(True))
        return query.order_by(ChoiceGroup.order, ChoiceGroup.id).all()


class CRUDChoiceItem(CRUDBase[ChoiceItem, ChoiceItemCreate, ChoiceItemUpdate]):
    def create(self, db: Session, obj_in: ChoiceItemCreate):
        choice_group_crud.get(db, obj_in.choice_group_id)
        return super().create(db, obj_in)

    def get_orderable(self, db: Session, ids: Iterable[int]) -> Dict[int, ChoiceItem]:
        ids = set(ids)
        if not ids:
            return {}
        rows = (
            db.query(ChoiceItem)
            .filter(
                ChoiceItem.id.in_(ids),
                ChoiceItem.is_active.is_(True),
                ChoiceItem.is_temporarily_unavailable.is_(False),
            )
            .all()
        )
        return {c.id: c for c in rows}


class CRUDMenuItemChoiceGroup(CRUDBase[MenuItemChoiceGroup, MenuItemChoiceGroupCreate, MenuItemChoiceGroupCreate]):
    def create(self, db: Session, obj_in: MenuItemChoiceGroupCreate):
        menu_item_crud.get(db, obj_in.menu_item_id)
        choice_group_crud.get(db, obj_in.choice_group_id)
        existing = (
            db.query(MenuItemChoiceGroup)
            .filter(
                MenuItemChoiceGroup.menu_item_id == obj_in.menu_item_id,
                MenuItemChoiceGroup.choice_group_id == obj_in.choice_group_id,
            )
            .first()
        )
        if existing:
            raise HTTPException(status_code=400, detail="Choice group already linked to this menu item")
        return super().create(db, obj_in)

    def linked_groups(self, db: Session, menu_item_ids: Iterable[int]) -> Dict[int, Set[int]]:
        ids = set(menu_item_ids)
        linked: Dict[int, Set[int]] = {i: set() for i in ids}
        if ids:
            rows = db.query(MenuItemChoiceGroup.menu_item_id, MenuItemChoiceGroup.choice_group_id).filter(
                MenuItemChoiceGroup.menu_item_id.in_(ids)
            )
            for menu_item_id, group_id in rows:
                linked[menu_item_id].add(group_id)
        return linked


category_crud = CRUDCategory(Category, order_by=("order", "id"))
menu_item_crud = CRUDMenuItem(MenuItem, order_by=("category", "name"))
choice_group_crud = CRUDChoiceGroup(ChoiceGroup, order_by=("order", "id"))
choice_item_crud = CRUDChoiceItem(ChoiceItem, order_by=("choice_group_id", "order"))
menu_item_choice_group_crud = CRUDMenuItemChoiceGroup(MenuItemChoiceGroup, order_by=("menu_item_id", "order"))
