from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from pizzeria.crud.token_crud import revoke_token
from pizzeria.crud.user_crud import user_crud
from pizzeria.database import get_db
from pizzeria.schemas.user_schema import (
    AuthResponse,
    RegisterResponse,
    UserCreate,
    UserLogin,
    UserOut,
    UserRoleUpdate,
    UserUpdate,
)
from pizzeria.utils.auth.jwt_bearer import JWTBearer, require_admin
from pizzeria.utils.auth.jwt_handler import create_access_token
from pizzeria.utils.config import settings

router = APIRouter(prefix="/api", tags=["Auth"])


def _issue_token(response: Response, user) -> str:
    token = create_access_token({"user_id": user.id, "username": user.username, "role": user.role})
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return token


@router.post("/auth/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(user_in: UserCreate, response: Response, db: Session = Depends(get_db)):
    try:
        user, awarded = user_crud.register(db=db, obj_in=user_in)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    token = _issue_token(response, user)
    return {"user": user, "token": token, "signup_points_awarded": awarded}


@router.post("/auth/login", response_model=AuthResponse)
def login(credentials: UserLogin, response: Response, db: Session = Depends(get_db)):
    user = user_crud.authenticate(db, credentials.username.strip(), credentials.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = _issue_token(response, user)
    return {"user": user, "token": token}


@router.post("/auth/logout")
def logout(response: Response, db: Session = Depends(get_db), payload: dict = Depends(JWTBearer())):
    if payload.get("jti"):
        revoke_token(db, payload["jti"], payload.get("user_id"))
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return {"message": "Logged out"}


@router.get("/user", response_model=UserOut)
def get_me(db: Session = Depends(get_db), payload: dict = Depends(JWTBearer())):
    return user_crud.get(db, payload["user_id"])


@router.patch("/user", response_model=UserOut)
def update_me(user_update: UserUpdate, db: Session = Depends(get_db), payload: dict = Depends(JWTBearer())):
    db_user = user_crud.get(db, payload["user_id"])
    return user_crud.update(db=db, db_obj=db_user, obj_in=user_update)


# ---------------- ADMIN ----------------
@router.get("/admin/users", response_model=List[UserOut])
def list_users(
    db: Session = Depends(get_db),
    skip: int = 0,
    limit: int = Query(50, le=500),
    role: Optional[str] = Query(None),
    current_user: dict = Depends(require_admin),
):
    return user_crud.get_all(db=db, skip=skip, limit=limit, filters={"role": role})


@router.patch("/admin/users/{user_id}", response_model=UserOut)
def update_user_role(
    user_id: int,
    role_update: UserRoleUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_admin),
):
    if user_id == current_user["user_id"]:
        raise HTTPException(status_code=400, detail="You cannot change your own role")
    db_user = user_crud.get(db, user_id)
    db_user.role = role_update.role.value
    if role_update.is_active is not None:
        db_user.is_active = role_update.is_active
    db.commit()
    db.refresh(db_user)
    return db_user
