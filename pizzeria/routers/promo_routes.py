from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pizzeria.crud.promo_crud import promo_crud
from pizzeria.database import get_db
from pizzeria.schemas.promo_schema import (
    PromoCodeCreate,
    PromoCodeOut,
    PromoCodeUpdate,
    PromoValidateRequest,
    PromoValidateResponse,
)
from pizzeria.utils.auth.jwt_bearer import require_admin
from pizzeria.utils.helper import money

router = APIRouter(prefix="/api", tags=["Promo codes"])


@router.post("/promo-codes/validate", response_model=PromoValidateResponse)
def validate_promo_code(body: PromoValidateRequest, db: Session = Depends(get_db)):
    promo = promo_crud.find_valid(db, body.code)
    result = PromoValidateResponse.model_validate(promo)
    if body.order_total is not None:
        subtotal = money(body.order_total)
        promo_crud.check_minimum(promo, subtotal)
        result.estimated_discount = float(promo_crud.compute_discount(promo, subtotal))
    return result


# ---------------- ADMIN ----------------
@router.get("/admin/promo-codes", response_model=List[PromoCodeOut])
def list_promo_codes(db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return promo_crud.get_all(db, limit=500)


@router.post("/admin/promo-codes", response_model=PromoCodeOut, status_code=status.HTTP_201_CREATED)
def create_promo_code(body: PromoCodeCreate, db: Session = Depends(get_db),
                      current_user: dict = Depends(require_admin)):
    return promo_crud.create(db, body)


@router.put("/admin/promo-codes/{promo_id}", response_model=PromoCodeOut)
def update_promo_code(promo_id: int, body: PromoCodeUpdate, db: Session = Depends(get_db),
                      current_user: dict = Depends(require_admin)):
    return promo_crud.update(db, promo_crud.get(db, promo_id), body)


@router.delete("/admin/promo-codes/{promo_id}")
def delete_promo_code(promo_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    return promo_crud.remove(db, promo_id)
