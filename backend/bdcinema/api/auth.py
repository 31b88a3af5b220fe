"""
auth.py

Registration, credential and Google sign-in, session cookie handling.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from bdcinema import models
from bdcinema.core.config import settings
from bdcinema.core.database import get_db
from bdcinema.schemas import AuthResponse, GoogleAuthRequest, LoginRequest, RegisterRequest, UserSchema
from bdcinema.services import auth as auth_service
from bdcinema.api.deps import get_current_user

router = APIRouter()
logger = logging.getLogger(__name__)


def _issue_session(response: Response, user: models.User) -> AuthResponse:
    token = auth_service.create_session_token(user)
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_ttl_minutes * 60,
        httponly=True,
        samesite="lax",
        path="/",
    )
    return AuthResponse(token=token, user=UserSchema.model_validate(user))


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """Create a credentials account. 400 on missing fields or short password, 409 on duplicate email."""
    user = auth_service.register_user(db, payload.name, payload.email, payload.password)
    return {"success": True, "id": user.id}


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, payload.email, payload.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _issue_session(response, user)


@router.post("/google", response_model=AuthResponse)
def google_login(payload: GoogleAuthRequest, response: Response, db: Session = Depends(get_db)):
    try:
        user = auth_service.google_login(db, payload.credential)
    except auth_service.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return _issue_session(response, user)


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(settings.session_cookie_name, path="/")
    return {"success": True}


@router.get("/me", response_model=UserSchema)
def me(user: models.User = Depends(get_current_user)):
    return user
