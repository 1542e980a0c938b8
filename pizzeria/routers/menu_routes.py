from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pizzeria.crud.menu_crud import (
    category_crud,
    choice_group_crud,
    choice_item_crud,
    menu_item_choice_group_crud,
    menu_item_crud,
)
from pizzeria.database import get_db
from pizzeria.schemas.menu_schema import (
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    ChoiceGroupCreate,
    ChoiceGroupOut,
    ChoiceGroupUpdate,
    ChoiceItemCreate,
    ChoiceItemOut,
    ChoiceItemUpdate,
    MenuItemChoiceGroupCreate,
    MenuItemChoiceGroupOut,
    MenuItemCreate,
    MenuItemDetail,
    MenuItemOut,
    MenuItemUpdate,
)
from pizzeria.utils.auth.jwt_bearer import require_admin

router = APIRouter(prefix="/api", tags=["Menu"])


# ---------------- PUBLIC ----------------
@router.get("/menu", response_model=List[MenuItemOut])
def get_menu(category: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return menu_item_crud.list_available(db, category=category)


@router.get("/menu/{item_id}", response_model=MenuItemDetail)
def get_menu_item(item_id: int, db: Session = Depends(get_db)):
    return menu_item_crud.get_detail(db, item_id)


@router.get("/categories", response_model=List[CategoryOut])
def get_categories(db: Session = Depends(get_db)):
    return category_crud.list_active(db)


@router.get("/choice-groups", response_model=List[ChoiceGroupOut])
def get_choice_groups(db: Session = Depends(get_db)):
    return choice_group_crud.list_with_items(db)


# ---------------- ADMIN: MENU ITEMS ----------------
@router.get("/admin/menu", response_model=List[MenuItemOut])
def admin_list_menu(db: Session = Depends(get_db), skip: int = 0, limit: int = 500,
                    current_user: dict = Depends(require_admin)):
    return menu_item_crud.get_all(db, skip=skip, limit=limit)


@router.post("/admin/menu", response_model=MenuItemOut, status_code=status.HTTP_201_CREATED)
def create_menu_item(item: MenuItemCreate, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return menu_item_crud.create(db, item)


@router.put("/admin/menu/{item_id}", response_model=MenuItemOut)
def update_menu_item(item_id: int, item: MenuItemUpdate, db: Session = Depends(get_db),
                     current_user: dict = Depends(require_admin)):
    db_item = menu_item_crud.get(db, item_id)
    return menu_item_crud.update(db, db_item, item)


@router.delete("/admin/menu/{item_id}")
def delete_menu_item(item_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    # items already ordered stay referenced by order history, so they are hidden rather than removed
    db_item = menu_item_crud.get(db, item_id)
    menu_item_crud.update(db, db_item, MenuItemUpdate(is_available=False))
    return {"message": "Menu item marked unavailable"}


# ---------------- ADMIN: CATEGORIES ----------------
@router.post("/admin/categories", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(category: CategoryCreate, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return category_crud.create(db, category)


@router.put("/admin/categories/{category_id}", response_model=CategoryOut)
def update_category(category_id: int, category: CategoryUpdate, db: Session = Depends(get_db),
                    current_user: dict = Depends(require_admin)):
    db_category = category_crud.get(db, category_id)
    return category_crud.update(db, db_category, category)


@router.delete("/admin/categories/{category_id}")
def delete_category(category_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return category_crud.remove(db, category_id)


# ---------------- ADMIN: CHOICE GROUPS / ITEMS ----------------
@router.post("/admin/choice-groups", response_model=ChoiceGroupOut, status_code=status.HTTP_201_CREATED)
def create_choice_group(group: ChoiceGroupCreate, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return choice_group_crud.create(db, group)


@router.put("/admin/choice-groups/{group_id}", response_model=ChoiceGroupOut)
def update_choice_group(group_id: int, group: ChoiceGroupUpdate, db: Session = Depends(get_db),
                        current_user: dict = Depends(require_admin)):
    db_group = choice_group_crud.get(db, group_id)
    return choice_group_crud.update(db, db_group, group)


@router.delete("/admin/choice-groups/{group_id}")
def delete_choice_group(group_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return choice_group_crud.remove(db, group_id)


@router.post("/admin/choice-items", response_model=ChoiceItemOut, status_code=status.HTTP_201_CREATED)
def create_choice_item(item: ChoiceItemCreate, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return choice_item_crud.create(db, item)


@router.put("/admin/choice-items/{item_id}", response_model=ChoiceItemOut)
def update_choice_item(item_id: int, item: ChoiceItemUpdate, db: Session = Depends(get_db),
                       current_user: dict = Depends(require_admin)):
    db_item = choice_item_crud.get(db, item_id)
    return choice_item_crud.update(db, db_item, item)


@router.delete("/admin/choice-items/{item_id}")
def delete_choice_item(item_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return choice_item_crud.remove(db, item_id)


@router.post("/admin/menu-item-choice-groups", response_model=MenuItemChoiceGroupOut,
             status_code=status.HTTP_201_CREATED)
def link_choice_group(link: MenuItemChoiceGroupCreate, db: Session = Depends(get_db),
                      current_user: dict = Depends(require_admin)):
    return menu_item_choice_group_crud.create(db, link)


@router.delete("/admin/menu-item-choice-groups/{link_id}")
def unlink_choice_group(link_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return menu_item_choice_group_crud.remove(db, link_id)
