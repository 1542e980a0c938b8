from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from . import ORMModel


class FaqCreate(BaseModel):
    question: str = Field(..., max_length=1000)
    answer: str = Field(..., max_length=5000)
    display_order: int = 0
    is_active: bool = True

    @field_validator("question", "answer")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class FaqUpdate(FaqCreate):
    pass


class FaqOut(ORMModel):
    id: int
    question: str
    answer: str
    display_order: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
