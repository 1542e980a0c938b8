import logging
import re
import secrets
from typing import Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from pizzeria.crud.base import CRUDBase
from pizzeria.crud import points_crud
from pizzeria.model.user import User
from pizzeria.schemas import UserRole
from pizzeria.schemas.user_schema import UserCreate, UserUpdate
from pizzeria.utils.auth.jwt_handler import hash_password, verify_password

logger = logging.getLogger(__name__)


class CRUDUser(CRUDBase[User, UserCreate, UserUpdate]):
    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        return db.query(User).filter(User.username == username).first()

    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.lower()).first()

    def get_active(self, db: Session, user_id) -> Optional[User]:
        if user_id is None:
            return None
        return db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()

    def register(self, db: Session, obj_in: UserCreate) -> Tuple[User, int]:
        """Create a customer and credit the signup bonus in one transaction."""
        if self.get_by_username(db, obj_in.username):
            raise ValueError("Username already exists")
        if self.get_by_email(db, obj_in.email):
            raise ValueError("Email already exists")

        new_user = User(
            username=obj_in.username,
            email=obj_in.email.lower(),
            password=hash_password(obj_in.password),
            first_name=obj_in.first_name,
            last_name=obj_in.last_name,
            phone=obj_in.phone,
            role=UserRole.CUSTOMER.value,
            marketing_opt_in=obj_in.marketing_opt_in,
        )
        db.add(new_user)
        try:
            db.flush()
            awarded = points_crud.award_signup_points(db, new_user.id)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(new_user)
        logger.info("Registered user %s (id=%s), signup points=%s", new_user.username, new_user.id, awarded)
        return new_user, awarded

    def authenticate(self, db: Session, username: str, password: str) -> Optional[User]:
        user = (
            db.query(User)
            .filter(or_(User.username == username, User.email == username.lower()))
            .first()
        )
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.password):
            return None
        return user

    def get_or_create_from_supabase(self, db: Session, claims: dict) -> User:
        """Map a Supabase identity onto the canonical users row, linking by email when possible."""
        supabase_id = claims.get("sub")
        user = db.query(User).filter(User.supabase_user_id == supabase_id).first()
        if user:
            return user

        email = (claims.get("email") or "").lower()
        if email:
            user = self.get_by_email(db, email)
            if user:
                user.supabase_user_id = supabase_id
                db.commit()
                db.refresh(user)
                return user

        metadata = claims.get("user_metadata") or {}
        base = re.sub(r"[^a-zA-Z0-9_]", "", (email.split("@")[0] if email else "")) or "user"
        username = base
        while self.get_by_username(db, username):
            username = f"{base}{secrets.randbelow(10000)}"

        full_name = (metadata.get("full_name") or "").split(" ", 1)
        user = User(
            username=username,
            email=email or f"{supabase_id}@users.invalid",
            password=hash_password(secrets.token_urlsafe(24)),
            supabase_user_id=supabase_id,
            first_name=full_name[0] if full_name else "",
            last_name=full_name[1] if len(full_name) > 1 else "",
            role=UserRole.CUSTOMER.value,
        )
        db.add(user)
        try:
            db.flush()
            points_crud.award_signup_points(db, user.id)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(user)
        logger.info("Created user %s for supabase identity %s", user.id, supabase_id)
        return user


user_crud = CRUDUser(User)
