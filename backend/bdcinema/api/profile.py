"""
profile.py

Current user's profile: reviews, lists and avatar upload.
"""
import base64
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from bdcinema import crud, models
from bdcinema.core.config import settings
from bdcinema.core.database import get_db
from bdcinema.schemas import InterestedSchema, ListEntrySchema, ReviewWithTitle, UserSchema
from bdcinema.api.admin import ALLOWED_IMAGE_TYPES
from bdcinema.api.deps import get_current_user

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
def get_profile(db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return {
        "user": UserSchema.model_validate(user),
        "reviews": [ReviewWithTitle.model_validate(r) for r in crud.get_reviews_by_user(db, user.id)],
        "watchlist": [ListEntrySchema.model_validate(e) for e in crud.get_user_watchlist(db, user.id)],
        "watched": [ListEntrySchema.model_validate(e) for e in crud.get_user_watched(db, user.id)],
        "interested": [InterestedSchema.model_validate(e) for e in crud.get_user_interested(db, user.id)],
    }


@router.post("/avatar")
async def upload_avatar(
    file: UploadFile = File(None),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided.")
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=400, detail="Only JPEG, PNG, WebP allowed.")
    data = await file.read()
    if len(data) > settings.max_avatar_bytes:
        raise HTTPException(status_code=400, detail="File too large. Max 2MB.")

    # Stored inline on the user row; no file storage needed
    data_url = f"data:{file.content_type};base64,{base64.b64encode(data).decode()}"
    crud.update_user_image(db, user.id, data_url)
    logger.info(f"User {user.id} updated avatar ({len(data)} bytes)")
    return {"image": data_url}
