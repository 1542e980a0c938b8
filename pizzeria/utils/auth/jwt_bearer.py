from typing import Optional

from fastapi import Request, HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from pizzeria.database import get_db
from pizzeria.crud.token_crud import is_token_revoked
from pizzeria.crud.user_crud import user_crud
from pizzeria.schemas import ADMIN_ROLES, STAFF_ROLES
from pizzeria.utils.config import settings
from .jwt_handler import verify_access_token, verify_supabase_token


def user_payload(user, jti: Optional[str] = None) -> dict:
    return {
        "user_id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "jti": jti,
    }


def resolve_token(db: Session, token: str) -> dict:
    """Turn a bearer token into the canonical user payload, or raise 401."""
    payload = verify_access_token(token)
    if payload is not None:
        jti = payload.get("jti")
        if jti and is_token_revoked(db, jti):
            raise HTTPException(status_code=401, detail="Token has been revoked")
        user = user_crud.get_active(db, payload.get("user_id"))
        if user is None:
            raise HTTPException(status_code=401, detail="User not found or inactive")
        return user_payload(user, jti)

    claims = verify_supabase_token(token)
    if claims is not None:
        user = user_crud.get_or_create_from_supabase(db, claims)
        if not user.is_active:
            raise HTTPException(status_code=401, detail="User not found or inactive")
        return user_payload(user)

    raise HTTPException(status_code=401, detail="Invalid or expired token")


class JWTBearer(HTTPBearer):
    """Bearer token first, then the login cookie. With required=False a missing token yields None."""

    def __init__(self, required: bool = True):
        super().__init__(auto_error=False)
        self.required = required

    async def __call__(self, request: Request, db: Session = Depends(get_db)) -> Optional[dict]:
        credentials: Optional[HTTPAuthorizationCredentials] = await super().__call__(request)
        token = None
        if credentials:
            # Make scheme check case-insensitive
            if credentials.scheme.lower() != "bearer":
                raise HTTPException(status_code=401, detail="Invalid authentication scheme")
            token = credentials.credentials
        else:
            token = request.cookies.get(settings.AUTH_COOKIE_NAME)

        if not token:
            if self.required:
                raise HTTPException(status_code=401, detail="Authentication required")
            return None
        return resolve_token(db, token)


def getcurrent_user(*roles: str):
    def dependency(payload: dict = Depends(JWTBearer())):
        if roles and payload.get("role") not in roles:
            raise HTTPException(status_code=403, detail="Not authorized")
        return payload
    return dependency


optional_user = JWTBearer(required=False)
require_staff = getcurrent_user(*STAFF_ROLES)
require_admin = getcurrent_user(*ADMIN_ROLES)


def is_staff(payload: Optional[dict]) -> bool:
    return bool(payload) and payload.get("role") in STAFF_ROLES


def is_admin(payload: Optional[dict]) -> bool:
    return bool(payload) and payload.get("role") in ADMIN_ROLES
