from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from . import ORMModel


# ---------------- Categories ----------------
class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    order: int = 0
    is_active: bool = Field(True, alias="isActive")
    is_temporarily_unavailable: bool = Field(False, alias="isTemporarilyUnavailable")
    unavailable_reason: Optional[str] = Field(None, alias="unavailableReason")
    image_url: Optional[str] = Field(None, alias="imageUrl")

    model_config = {"populate_by_name": True}


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    order: Optional[int] = None
    is_active: Optional[bool] = Field(None, alias="isActive")
    is_temporarily_unavailable: Optional[bool] = Field(None, alias="isTemporarilyUnavailable")
    unavailable_reason: Optional[str] = Field(None, alias="unavailableReason")
    image_url: Optional[str] = Field(None, alias="imageUrl")

    model_config = {"populate_by_name": True}


class CategoryOut(ORMModel):
    id: int
    name: str
    order: int
    is_active: bool = Field(alias="isActive")
    is_temporarily_unavailable: bool = Field(alias="isTemporarilyUnavailable")
    unavailable_reason: Optional[str] = Field(None, alias="unavailableReason")
    image_url: Optional[str] = Field(None, alias="imageUrl")


# ---------------- Choice items ----------------
class ChoiceItemCreate(BaseModel):
    choice_group_id: int = Field(..., alias="choiceGroupId")
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: float = Field(0, ge=0)
    order: int = 0
    is_active: bool = Field(True, alias="isActive")
    is_default: bool = Field(False, alias="isDefault")
    is_temporarily_unavailable: bool = Field(False, alias="isTemporarilyUnavailable")

    model_config = {"populate_by_name": True}


class ChoiceItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    order: Optional[int] = None
    is_active: Optional[bool] = Field(None, alias="isActive")
    is_default: Optional[bool] = Field(None, alias="isDefault")
    is_temporarily_unavailable: Optional[bool] = Field(None, alias="isTemporarilyUnavailable")

    model_config = {"populate_by_name": True}


class ChoiceItemOut(ORMModel):
    id: int
    choice_group_id: int = Field(alias="choiceGroupId")
    name: str
    description: Optional[str] = None
    price: float
    order: int
    is_active: bool = Field(alias="isActive")
    is_default: bool = Field(alias="isDefault")
    is_temporarily_unavailable: bool = Field(alias="isTemporarilyUnavailable")


# ---------------- Choice groups ----------------
class ChoiceGroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    order: int = 0
    is_active: bool = Field(True, alias="isActive")
    is_required: bool = Field(False, alias="isRequired")
    min_selections: int = Field(0, ge=0, alias="minSelections")
    max_selections: Optional[int] = Field(None, ge=1, alias="maxSelections")

    model_config = {"populate_by_name": True}


class ChoiceGroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = Field(None, alias="isActive")
    is_required: Optional[bool] = Field(None, alias="isRequired")
    min_selections: Optional[int] = Field(None, ge=0, alias="minSelections")
    max_selections: Optional[int] = Field(None, ge=1, alias="maxSelections")

    model_config = {"populate_by_name": True}


class ChoiceGroupOut(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    order: int
    is_active: bool = Field(alias="isActive")
    is_required: bool = Field(alias="isRequired")
    min_selections: int = Field(alias="minSelections")
    max_selections: Optional[int] = Field(None, alias="maxSelections")
    items: List[ChoiceItemOut] = []


class MenuItemChoiceGroupCreate(BaseModel):
    menu_item_id: int = Field(..., alias="menuItemId")
    choice_group_id: int = Field(..., alias="choiceGroupId")
    order: int = 0
    is_required: bool = Field(False, alias="isRequired")

    model_config = {"populate_by_name": True}


class MenuItemChoiceGroupOut(ORMModel):
    id: int
    menu_item_id: int = Field(alias="menuItemId")
    choice_group_id: int = Field(alias="choiceGroupId")
    order: int
    is_required: bool = Field(alias="isRequired")


# ---------------- Menu items ----------------
class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: str = ""
    image_url: Optional[str] = Field(None, alias="imageUrl")
    base_price: float = Field(..., ge=0, alias="basePrice")
    category: str = Field(..., min_length=1, max_length=100)
    is_popular: bool = Field(False, alias="isPopular")
    is_new: bool = Field(False, alias="isNew")
    is_best_seller: bool = Field(False, alias="isBestSeller")
    is_available: bool = Field(True, alias="isAvailable")

    model_config = {"populate_by_name": True}


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    base_price: Optional[float] = Field(None, ge=0, alias="basePrice")
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    is_popular: Optional[bool] = Field(None, alias="isPopular")
    is_new: Optional[bool] = Field(None, alias="isNew")
    is_best_seller: Optional[bool] = Field(None, alias="isBestSeller")
    is_available: Optional[bool] = Field(None, alias="isAvailable")

    model_config = {"populate_by_name": True}


class MenuItemOut(ORMModel):
    id: int
    name: str
    description: str
    image_url: Optional[str] = Field(None, alias="imageUrl")
    base_price: float = Field(alias="basePrice")
    category: str
    is_popular: bool = Field(alias="isPopular")
    is_new: bool = Field(alias="isNew")
    is_best_seller: bool = Field(alias="isBestSeller")
    is_available: bool = Field(alias="isAvailable")


class MenuItemChoiceGroupDetail(ORMModel):
    order: int
    is_required: bool = Field(alias="isRequired")
    choice_group: ChoiceGroupOut = Field(alias="choiceGroup")


class MenuItemDetail(MenuItemOut):
    choice_groups: List[MenuItemChoiceGroupDetail] = Field([], alias="choiceGroups")
