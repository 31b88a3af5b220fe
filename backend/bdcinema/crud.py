"""
crud.py

Catalog store: users, titles, reviews and the watchlist / watched / interested
relations. Reads soft-fail (None or []); writes that break a unique or foreign
key constraint raise ConflictError after rolling the session back.
"""
import json
import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from . import models, schemas
from .exceptions import ConflictError, ValidationError
from .services.rating_aggregator import MeterRating, compute_mode_rating
from .utils.timezone import utc_now

logger = logging.getLogger(__name__)

MAX_REVIEW_BODY_LENGTH = 1000

TITLE_FIELDS = (
    "external_id", "title", "original_title", "overview", "release_year",
    "poster_url", "backdrop_url", "kind", "provenance", "genres",
)


def _commit(db: Session, conflict_message: str):
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"{conflict_message}: {e.orig}")
        raise ConflictError(conflict_message) from e


def _title_values(data) -> Dict:
    """Normalise a dict / pydantic payload into Title column values."""
    if hasattr(data, "model_dump"):
        data = data.model_dump()
    values = {k: data[k] for k in TITLE_FIELDS if k in data}
    # Absent genres are left to the column default on insert and untouched on update
    if "genres" not in values:
        return values
    genres = values["genres"]
    if genres is None:
        values["genres"] = "[]"
    elif not isinstance(genres, str):
        values["genres"] = json.dumps([str(g) for g in genres], ensure_ascii=False)
    return values


# ── Users ─────────────────────────────────────────

def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email).first()


def get_user_by_id(db: Session, user_id: int) -> Optional[models.User]:
    return db.get(models.User, user_id)


def create_user(db: Session, name: str, email: str, password_hash: Optional[str], role: str = models.ROLE_USER) -> models.User:
    user = models.User(name=name, email=email, password_hash=password_hash, role=role, created_at=utc_now())
    db.add(user)
    _commit(db, f"Email already registered: {email}")
    db.refresh(user)
    logger.info(f"Created user {user.id} ({role})")
    return user


def get_or_create_oauth_user(db: Session, email: str, name: Optional[str] = None, image: Optional[str] = None) -> models.User:
    """First OAuth login creates a password-less account; later logins refresh name/avatar."""
    user = get_user_by_email(db, email)
    if user is None:
        user = create_user(db, name or email.split("@")[0], email, None)
        if image:
            user.image = image
            db.commit()
            db.refresh(user)
        return user
    changed = False
    if name and user.name != name:
        user.name = name
        changed = True
    if image and user.image != image:
        user.image = image
        changed = True
    if changed:
        db.commit()
        db.refresh(user)
    return user


def update_user_image(db: Session, user_id: int, image: Optional[str]) -> Optional[models.User]:
    user = get_user_by_id(db, user_id)
    if user is None:
        return None
    user.image = image
    db.commit()
    db.refresh(user)
    return user


# ── Titles ────────────────────────────────────────

def get_all_titles(db: Session) -> List[schemas.TitleWithStats]:
    """Every title with its review count and comma-joined ratings, newest first."""
    titles = (
        db.query(models.Title)
        .order_by(models.Title.created_at.desc(), models.Title.id.desc())
        .all()
    )
    rows = (
        db.query(models.Review.title_id, models.Review.rating)
        .order_by(models.Review.created_at.asc(), models.Review.id.asc())
        .all()
    )
    ratings_by_title: Dict[int, List[str]] = {}
    for title_id, rating in rows:
        ratings_by_title.setdefault(title_id, []).append(rating)

    out = []
    for t in titles:
        ratings = ratings_by_title.get(t.id, [])
        joined = ",".join(ratings) or None
        mode = compute_mode_rating(ratings)
        item = schemas.TitleWithStats.model_validate(t)
        item.review_count = len(ratings)
        item.ratings = joined
        item.mode_rating = mode.value if mode else None
        out.append(item)
    return out


def count_titles(db: Session) -> int:
    return db.query(models.Title).count()


def get_title_by_id(db: Session, title_id: int) -> Optional[models.Title]:
    return db.get(models.Title, title_id)


def get_title_by_external_id(db: Session, external_id: int) -> Optional[models.Title]:
    return db.query(models.Title).filter(models.Title.external_id == external_id).first()


def create_title(db: Session, data) -> models.Title:
    """Insert a new title. An external_id already in use raises ConflictError."""
    values = _title_values(data)
    title = models.Title(**values, created_at=utc_now())
    db.add(title)
    _commit(db, f"Title with external id {values.get('external_id')} already exists")
    db.refresh(title)
    logger.info(f"Created title {title.id} '{title.title}' ({title.provenance})")
    return title


def upsert_title_by_external_id(db: Session, data) -> models.Title:
    """Overwrite the title sharing this external id in place, or insert a new one."""
    values = _title_values(data)
    external_id = values.get("external_id")
    existing = get_title_by_external_id(db, external_id) if external_id is not None else None
    if existing is None:
        return create_title(db, values)
    for field, value in values.items():
        setattr(existing, field, value)
    _commit(db, f"Failed to update title with external id {external_id}")
    db.refresh(existing)
    logger.info(f"Updated title {existing.id} from external id {external_id}")
    return existing


def delete_title(db: Session, title_id: int) -> bool:
    """Delete a title together with its reviews, watchlist and watched entries."""
    title = get_title_by_id(db, title_id)
    if title is None:
        return False
    db.delete(title)
    db.commit()
    logger.info(f"Deleted title {title_id}")
    return True


# ── Reviews ───────────────────────────────────────

def get_reviews_for_title(db: Session, title_id: int) -> List[models.Review]:
    return (
        db.query(models.Review)
        .options(joinedload(models.Review.user))
        .filter(models.Review.title_id == title_id)
        .order_by(models.Review.created_at.desc(), models.Review.id.desc())
        .all()
    )


def submit_review(db: Session, title_id: int, user_id: int, rating, body: Optional[str] = None) -> models.Review:
    """
    Upsert on (title_id, user_id). A resubmission replaces rating, body and
    timestamp of the existing row; it never adds a second review.
    """
    meter = MeterRating.parse(rating)
    body = (body or "").strip() or None
    if body is not None and len(body) > MAX_REVIEW_BODY_LENGTH:
        raise ValidationError(f"Review body must be at most {MAX_REVIEW_BODY_LENGTH} characters.")

    review = get_review_by_user_and_title(db, user_id, title_id)
    action = "Updated"
    if review is None:
        review = models.Review(title_id=title_id, user_id=user_id, rating=meter.value, body=body, created_at=utc_now())
        db.add(review)
        try:
            db.commit()
            action = "Created"
        except IntegrityError as e:
            db.rollback()
            # A concurrent first submission won the insert; overwrite it instead
            review = get_review_by_user_and_title(db, user_id, title_id)
            if review is None:
                logger.warning(f"Could not store review for title {title_id} by user {user_id}: {e.orig}")
                raise ConflictError(f"Could not store review for title {title_id} by user {user_id}") from e

    if action == "Updated":
        review.rating = meter.value
        review.body = body
        review.created_at = utc_now()
        _commit(db, f"Could not store review for title {title_id} by user {user_id}")
    db.refresh(review)
    logger.info(f"{action} review {review.id}: user {user_id} rated title {title_id} {meter.value}")
    return review


def get_review_by_user_and_title(db: Session, user_id: int, title_id: int) -> Optional[models.Review]:
    return (
        db.query(models.Review)
        .filter(models.Review.user_id == user_id, models.Review.title_id == title_id)
        .first()
    )


def get_reviews_by_user(db: Session, user_id: int) -> List[models.Review]:
    # Inner join drops any review whose title no longer exists
    return (
        db.query(models.Review)
        .join(models.Title, models.Review.title_id == models.Title.id)
        .options(joinedload(models.Review.title))
        .filter(models.Review.user_id == user_id)
        .order_by(models.Review.created_at.desc(), models.Review.id.desc())
        .all()
    )


# ── Watchlist / watched / interested ──────────────

def _toggle(db: Session, model, user_id: int, title_id: int) -> bool:
    entry = db.query(model).filter(model.user_id == user_id, model.title_id == title_id).first()
    if entry is not None:
        db.delete(entry)
        db.commit()
        return False
    db.add(model(user_id=user_id, title_id=title_id, created_at=utc_now()))
    _commit(db, f"Could not add title {title_id} to {model.__tablename__} of user {user_id}")
    return True


def _is_in(db: Session, model, user_id: int, title_id: int) -> bool:
    return db.query(model.id).filter(model.user_id == user_id, model.title_id == title_id).first() is not None


def _entries_with_titles(db: Session, model, user_id: int):
    return (
        db.query(model)
        .join(models.Title, model.title_id == models.Title.id)
        .options(joinedload(model.title))
        .filter(model.user_id == user_id)
        .order_by(model.created_at.desc(), model.id.desc())
        .all()
    )


def toggle_watchlist(db: Session, user_id: int, title_id: int) -> bool:
    return _toggle(db, models.WatchlistEntry, user_id, title_id)


def is_in_watchlist(db: Session, user_id: int, title_id: int) -> bool:
    return _is_in(db, models.WatchlistEntry, user_id, title_id)


def get_user_watchlist(db: Session, user_id: int) -> List[models.WatchlistEntry]:
    return _entries_with_titles(db, models.WatchlistEntry, user_id)


def toggle_watched(db: Session, user_id: int, title_id: int) -> bool:
    return _toggle(db, models.WatchedEntry, user_id, title_id)


def is_watched(db: Session, user_id: int, title_id: int) -> bool:
    return _is_in(db, models.WatchedEntry, user_id, title_id)


def get_user_watched(db: Session, user_id: int) -> List[models.WatchedEntry]:
    return _entries_with_titles(db, models.WatchedEntry, user_id)


def toggle_interested(db: Session, user_id: int, external_id: int, media_type: str = "movie") -> bool:
    entry = (
        db.query(models.InterestedEntry)
        .filter(models.InterestedEntry.user_id == user_id, models.InterestedEntry.external_id == external_id)
        .first()
    )
    if entry is not None:
        db.delete(entry)
        db.commit()
        return False
    db.add(models.InterestedEntry(user_id=user_id, external_id=external_id, media_type=media_type, created_at=utc_now()))
    _commit(db, f"Could not mark external title {external_id} as interested for user {user_id}")
    return True


def is_interested(db: Session, user_id: int, external_id: int) -> bool:
    return (
        db.query(models.InterestedEntry.id)
        .filter(models.InterestedEntry.user_id == user_id, models.InterestedEntry.external_id == external_id)
        .first()
        is not None
    )


def get_user_interested(db: Session, user_id: int) -> List[models.InterestedEntry]:
    return (
        db.query(models.InterestedEntry)
        .filter(models.InterestedEntry.user_id == user_id)
        .order_by(models.InterestedEntry.created_at.desc(), models.InterestedEntry.id.desc())
        .all()
    )
