"""Password hashing and opaque bearer tokens stored in ``auth_tokens``."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from sqlalchemy.orm import Session

from database import AuthToken

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Missing, unknown or expired credentials."""


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def issue_token(session: Session, user_id: str, ttl_hours: int) -> str:
    purged = session.query(AuthToken).filter(AuthToken.expires_at < datetime.utcnow()).delete()
    if purged:
        logger.info("Purged %d expired tokens", purged)
    token = secrets.token_urlsafe(32)
    session.add(AuthToken(token=token, user_id=user_id, expires_at=datetime.utcnow() + timedelta(hours=ttl_hours)))
    session.commit()
    logger.info("Issued token for %s (ttl %dh)", user_id, ttl_hours)
    return token


def resolve_token(session: Session, token: Optional[str]) -> str:
    """User id owning ``token``; raises :class:`AuthError` otherwise."""
    if not token:
        raise AuthError("Token não fornecido")
    row = session.get(AuthToken, token)
    if row is None:
        raise AuthError("Token inválido")
    if row.expires_at < datetime.utcnow():
        session.delete(row)
        session.commit()
        raise AuthError("Token expirado")
    return row.user_id


def revoke_token(session: Session, token: str) -> None:
    row = session.get(AuthToken, token)
    if row is not None:
        session.delete(row)
        session.commit()
