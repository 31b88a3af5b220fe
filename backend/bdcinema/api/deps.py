"""
deps.py

Request-scoped auth dependencies. The session token comes from a Bearer
header or the session cookie; the role is always read from the database row.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from bdcinema import crud, models
from bdcinema.core.config import settings
from bdcinema.core.database import get_db
from bdcinema.services.auth import InvalidTokenError, decode_session_token

logger = logging.getLogger(__name__)


def _extract_token(request: Request) -> Optional[str]:
    raw = (request.headers.get("authorization") or "").strip()
    if raw.lower().startswith("bearer "):
        return raw.split(" ", 1)[1].strip() or None
    return request.cookies.get(settings.session_cookie_name)


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[models.User]:
    token = _extract_token(request)
    if not token:
        return None
    try:
        claims = decode_session_token(token)
        user_id = int(claims["sub"])
    except (InvalidTokenError, ValueError) as e:
        logger.debug(f"Ignoring invalid session token: {e}")
        return None
    return crud.get_user_by_id(db, user_id)


def get_current_user(user: Optional[models.User] = Depends(get_optional_user)) -> models.User:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_admin(user: models.User = Depends(get_current_user)) -> models.User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin only.")
    return user
