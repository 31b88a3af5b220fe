"""
schemas.py

Pydantic schemas for users, titles, reviews and list entries, plus request payloads.
"""
import datetime
import json
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

MeterValue = Literal["disaster", "timepass", "go_for_it", "perfection"]


class UserSchema(BaseModel):
    id: int
    name: str
    email: str
    role: str
    image: Optional[str] = None
    created_at: datetime.datetime

    class Config:
        from_attributes = True


class TitleSchema(BaseModel):
    id: int
    external_id: Optional[int] = None
    title: str
    original_title: Optional[str] = None
    overview: Optional[str] = None
    release_year: Optional[int] = None
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    kind: str
    provenance: str
    genres: List[str] = []
    created_at: datetime.datetime

    class Config:
        from_attributes = True

    @field_validator("genres", mode="before")
    @classmethod
    def _decode_genres(cls, value):
        # Stored as a JSON string on the ORM row
        if value is None:
            return []
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                return []
        return value if isinstance(value, list) else []


class TitleWithStats(TitleSchema):
    review_count: int = 0
    ratings: Optional[str] = None  # comma-joined raw rating values, oldest first
    mode_rating: Optional[str] = None


class ReviewSchema(BaseModel):
    id: int
    title_id: int
    user_id: int
    rating: str
    body: Optional[str] = None
    created_at: datetime.datetime

    class Config:
        from_attributes = True


class ReviewWithUserName(ReviewSchema):
    user_name: str


class ReviewWithTitle(ReviewSchema):
    title: TitleSchema


class ListEntrySchema(BaseModel):
    id: int
    user_id: int
    title_id: int
    created_at: datetime.datetime
    title: TitleSchema

    class Config:
        from_attributes = True


class InterestedSchema(BaseModel):
    id: int
    user_id: int
    external_id: int
    media_type: str
    created_at: datetime.datetime

    class Config:
        from_attributes = True


class RatingSummary(BaseModel):
    total: int
    counts: Dict[str, int]
    percentages: Dict[str, int]
    mode: Optional[str] = None


# Payloads
class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class GoogleAuthRequest(BaseModel):
    credential: str  # Google ID token


class AuthResponse(BaseModel):
    token: str
    user: UserSchema


class TitleCreate(BaseModel):
    title: str = Field(..., min_length=1)
    original_title: Optional[str] = None
    overview: Optional[str] = None
    release_year: Optional[int] = Field(None, ge=1888, le=2100)
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    kind: Literal["movie", "series"] = Field("movie", alias="type")
    genres: List[str] = []

    class Config:
        populate_by_name = True

    @field_validator("release_year", mode="before")
    @classmethod
    def _blank_year(cls, value):
        # Admin form posts the year as a string, possibly empty
        if value in ("", None):
            return None
        return value


class TitleDelete(BaseModel):
    id: int


class ReviewCreate(BaseModel):
    movie_id: Optional[int] = Field(None, alias="movieId")
    tmdb_id: Optional[int] = Field(None, alias="tmdbId")
    type: Literal["movie", "tv", "series"] = "movie"
    meter_rating: MeterValue = Field(..., alias="meterRating")
    body: Optional[str] = Field(None, max_length=1000)

    class Config:
        populate_by_name = True


class TitleRef(BaseModel):
    movie_id: int = Field(..., alias="movieId")

    class Config:
        populate_by_name = True


class ExternalRef(BaseModel):
    tmdb_id: int = Field(..., alias="tmdbId")
    media_type: Literal["movie", "tv"] = Field("movie", alias="mediaType")

    class Config:
        populate_by_name = True


class SyncResult(BaseModel):
    success: bool = True
    synced: int
    movies: int
    series: int
