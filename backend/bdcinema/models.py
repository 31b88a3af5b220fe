"""
models.py

SQLAlchemy models for User, Title, Review and the per-user watchlist,
watched and interested relations.
"""
import json

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

from bdcinema.utils.timezone import utc_now

Base = declarative_base()

ROLE_USER = "user"
ROLE_ADMIN = "admin"

KIND_MOVIE = "movie"
KIND_SERIES = "series"
TITLE_KINDS = (KIND_MOVIE, KIND_SERIES)

PROVENANCE_EXTERNAL = "external"
PROVENANCE_CURATED = "curated"


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=True)  # NULL for OAuth-only accounts
    role = Column(String, nullable=False, default=ROLE_USER)
    image = Column(Text, nullable=True)  # avatar URL or data URL
    created_at = Column(DateTime, default=utc_now, nullable=False)

    reviews = relationship("Review", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class Title(Base):
    __tablename__ = "titles"
    id = Column(Integer, primary_key=True)
    external_id = Column(Integer, unique=True, nullable=True, index=True)  # TMDB id
    title = Column(String, nullable=False)
    original_title = Column(String, nullable=True)
    overview = Column(Text, nullable=True)
    release_year = Column(Integer, nullable=True)
    poster_url = Column(String, nullable=True)
    backdrop_url = Column(String, nullable=True)
    kind = Column(String, nullable=False, default=KIND_MOVIE)  # 'movie' or 'series'
    provenance = Column(String, nullable=False, default=PROVENANCE_CURATED)  # 'external' or 'curated'
    genres = Column(Text, nullable=False, default="[]")  # JSON array of genre names, ordered
    created_at = Column(DateTime, default=utc_now, nullable=False, index=True)

    reviews = relationship("Review", back_populates="title", cascade="all, delete-orphan")
    watchlist_entries = relationship("WatchlistEntry", back_populates="title", cascade="all, delete-orphan")
    watched_entries = relationship("WatchedEntry", back_populates="title", cascade="all, delete-orphan")

    @property
    def genre_list(self):
        try:
            value = json.loads(self.genres or "[]")
        except (TypeError, ValueError):
            return []
        return [str(g) for g in value] if isinstance(value, list) else []


class Review(Base):
    __tablename__ = "reviews"
    id = Column(Integer, primary_key=True)
    title_id = Column(Integer, ForeignKey("titles.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(String, nullable=False)  # MeterRating value
    body = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    title = relationship("Title", back_populates="reviews")
    user = relationship("User", back_populates="reviews")

    # One live verdict per user per title
    __table_args__ = (UniqueConstraint("title_id", "user_id", name="unique_title_user_review"),)

    @property
    def user_name(self) -> str:
        return self.user.name if self.user is not None else "Unknown"


class WatchlistEntry(Base):
    __tablename__ = "watchlist_entries"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title_id = Column(Integer, ForeignKey("titles.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    title = relationship("Title", back_populates="watchlist_entries")

    __table_args__ = (UniqueConstraint("user_id", "title_id", name="unique_user_watchlist"),)


class WatchedEntry(Base):
    __tablename__ = "watched_entries"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title_id = Column(Integer, ForeignKey("titles.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    title = relationship("Title", back_populates="watched_entries")

    __table_args__ = (UniqueConstraint("user_id", "title_id", name="unique_user_watched"),)


class InterestedEntry(Base):
    """Interest in a TMDB title that may not exist locally yet; keyed on the external id."""
    __tablename__ = "interested_entries"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    external_id = Column(Integer, nullable=False)
    media_type = Column(String, nullable=False, default="movie")  # TMDB 'movie' or 'tv'
    created_at = Column(DateTime, default=utc_now, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "external_id", name="unique_user_interested"),)
