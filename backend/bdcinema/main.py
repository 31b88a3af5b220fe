import logging
import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

import bdcinema.utils.logger  # noqa: F401  configures the package logger
from bdcinema import __version__
from bdcinema.core.config import settings
from bdcinema.core.database import SessionLocal, init_db
from bdcinema.exceptions import ConflictError, NotFoundError, UpstreamUnavailableError, ValidationError
from bdcinema.api import admin, auth, movies, profile, reviews, search, status
from bdcinema.api.lists import interested_router, watched_router, watchlist_router
from bdcinema.utils.timezone import utc_now

logger = logging.getLogger(__name__)

app = FastAPI(title="bdcinema API", version=__version__)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Store and gateway errors become user-facing messages, never a crashed worker
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(UpstreamUnavailableError)
async def upstream_handler(request: Request, exc: UpstreamUnavailableError):
    logger.error(f"Upstream failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(movies.router, prefix="/api/movies", tags=["Movies"])
app.include_router(reviews.router, prefix="/api/reviews", tags=["Reviews"])
app.include_router(watchlist_router, prefix="/api/watchlist", tags=["Watchlist"])
app.include_router(watched_router, prefix="/api/watched", tags=["Watched"])
app.include_router(interested_router, prefix="/api/interested", tags=["Interested"])
app.include_router(search.router, prefix="/api", tags=["Search"])
app.include_router(admin.router, prefix="/api", tags=["Admin"])
app.include_router(profile.router, prefix="/api/profile", tags=["Profile"])
app.include_router(status.router, prefix="/api/status", tags=["Status"])

# Admin-uploaded posters
try:
    os.makedirs(settings.upload_dir, exist_ok=True)
except OSError as e:
    logger.warning(f"Upload directory unavailable: {e}")
if os.path.isdir(settings.upload_dir):
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")


@app.on_event("startup")
async def startup_event():
    await init_db()


@app.get("/")
def root():
    return {"status": "bdcinema API Running"}


@app.get("/health")
def health_check():
    """Simple health check endpoint for load balancers/monitoring"""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"Service unhealthy: {e}")
    finally:
        db.close()
    return {"status": "healthy", "timestamp": utc_now().isoformat()}
