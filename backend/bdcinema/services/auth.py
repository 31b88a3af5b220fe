"""
auth.py

Credential hashing (bcrypt), signed session tokens (python-jose JWT) and
Google ID-token sign-in.
"""
import logging
from datetime import timedelta
from typing import Dict, Optional

import bcrypt
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from bdcinema import crud, models
from bdcinema.core.config import settings
from bdcinema.exceptions import ValidationError
from bdcinema.utils.timezone import utc_now

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
# bcrypt only hashes the first 72 bytes and rejects longer input
MAX_PASSWORD_BYTES = 72


class InvalidTokenError(Exception):
    """Raised when a session token is missing, expired or tampered with."""
    pass


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        logger.warning("Stored password hash could not be parsed")
        return False


def validate_registration(name: Optional[str], email: Optional[str], password: Optional[str]) -> None:
    if not name or not email or not password:
        raise ValidationError("All fields are required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")


def register_user(db: Session, name: Optional[str], email: Optional[str], password: Optional[str]) -> models.User:
    """Create a credentials account; duplicate emails surface as ConflictError from the store."""
    validate_registration(name, email, password)
    return crud.create_user(db, name.strip(), email.strip(), hash_password(password))


def authenticate(db: Session, email: str, password: str) -> Optional[models.User]:
    user = crud.get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def create_session_token(user: models.User, expires_minutes: Optional[int] = None) -> str:
    ttl = expires_minutes if expires_minutes is not None else settings.session_ttl_minutes
    claims = {
        "sub": str(user.id),
        "role": user.role or models.ROLE_USER,
        "exp": utc_now() + timedelta(minutes=ttl),
    }
    return jwt.encode(claims, settings.auth_secret, algorithm=settings.auth_algorithm)


def decode_session_token(token: str) -> Dict:
    """Return the verified claims ({sub, role, exp}) of a session token."""
    if not token:
        raise InvalidTokenError("Missing token")
    try:
        claims = jwt.decode(token, settings.auth_secret, algorithms=[settings.auth_algorithm])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e
    if not claims.get("sub"):
        raise InvalidTokenError("Token has no subject")
    return claims


def verify_google_credential(credential: str) -> Dict:
    """Verify a Google ID token and return its claims (email, name, picture)."""
    from google.oauth2 import id_token
    from google.auth.transport import requests as google_requests

    if not settings.google_client_id:
        raise ValidationError("Google sign-in is not configured.")
    try:
        return id_token.verify_oauth2_token(credential, google_requests.Request(), settings.google_client_id)
    except ValueError as e:
        raise InvalidTokenError(f"Invalid Google credential: {e}") from e


def google_login(db: Session, credential: str) -> models.User:
    info = verify_google_credential(credential)
    email = info.get("email")
    if not email:
        raise InvalidTokenError("Google credential carries no email")
    return crud.get_or_create_oauth_user(db, email, info.get("name"), info.get("picture"))
