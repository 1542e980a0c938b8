from sqlalchemy.orm import Session

from pizzeria.model.revoked_token import RevokedToken


def revoke_token(db: Session, jti: str, user_id: int | None = None):
    if not jti:
        return None
    existing = db.query(RevokedToken).filter(RevokedToken.jti == jti).first()
    if existing:
        return existing
    rt = RevokedToken(jti=jti, user_id=user_id)
    db.add(rt)
    db.commit()
    db.refresh(rt)
    return rt


def is_token_revoked(db: Session, jti: str) -> bool:
    if not jti:
        return False
    return db.query(RevokedToken).filter(RevokedToken.jti == jti).first() is not None
