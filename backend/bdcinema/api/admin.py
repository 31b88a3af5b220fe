"""
admin.py

Admin-only catalog maintenance: TMDB region sync and poster uploads.
"""
import logging
import os
import uuid

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from bdcinema import models
from bdcinema.core.config import settings
from bdcinema.core.database import get_db
from bdcinema.schemas import SyncResult
from bdcinema.services.catalog_sync import sync_curated_region
from bdcinema.api.deps import require_admin

router = APIRouter()
logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}


@router.post("/tmdb/sync", response_model=SyncResult)
async def sync_catalog(db: Session = Depends(get_db), admin: models.User = Depends(require_admin)):
    result = await sync_curated_region(db)
    logger.info(f"Admin {admin.id} ran TMDB sync: {result}")
    return SyncResult(**result)


@router.post("/admin/upload", status_code=201)
async def upload_poster(file: UploadFile = File(None), admin: models.User = Depends(require_admin)):
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided.")
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=400, detail="Only JPEG, PNG, WebP images allowed.")

    name = file.filename or ""
    ext = name.rsplit(".", 1)[1].lower() if "." in name else ALLOWED_IMAGE_TYPES[file.content_type]
    filename = f"{uuid.uuid4()}.{ext}"
    os.makedirs(settings.upload_dir, exist_ok=True)
    data = await file.read()
    with open(os.path.join(settings.upload_dir, filename), "wb") as f:
        f.write(data)
    logger.info(f"Admin {admin.id} uploaded {filename} ({len(data)} bytes)")
    return {"url": f"/uploads/{filename}"}
