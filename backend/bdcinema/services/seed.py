"""
seed.py

First-run data: the admin account and a handful of curated Bangladeshi titles.
Runs only against an empty users table.
"""
import logging

from sqlalchemy.orm import Session

from bdcinema import crud, models
from bdcinema.core.config import settings
from bdcinema.services.auth import hash_password

logger = logging.getLogger(__name__)

SAMPLE_TITLES = [
    {
        "title": "Hawa", "original_title": "হাওয়া",
        "overview": "A mysterious thriller about fishermen who encounter something supernatural at sea. One of Bangladesh's most celebrated films of 2022.",
        "release_year": 2022,
        "poster_url": "https://image.tmdb.org/t/p/w500/sPoWfySFNDCFAFPbcFvXcDjPrfV.jpg",
        "kind": "movie", "genres": ["Thriller", "Mystery", "Horror"], "external_id": 977790,
    },
    {
        "title": "Karagar", "original_title": "কারাগার",
        "overview": "A gripping Bangladeshi web series set inside a prison, exploring power, justice, corruption, and survival.",
        "release_year": 2022, "kind": "series", "genres": ["Drama", "Crime", "Thriller"],
    },
    {
        "title": "Mohanagar", "original_title": "মহানগর",
        "overview": "A critically acclaimed Bangladeshi crime thriller following a police detective navigating corruption in the big city.",
        "release_year": 2021, "kind": "series", "genres": ["Crime", "Drama", "Mystery"],
    },
    {
        "title": "Taqdeer", "original_title": "তাকদীর",
        "overview": "A high-octane Bangladeshi action thriller about a wrongfully accused man who must uncover the truth.",
        "release_year": 2021, "kind": "series", "genres": ["Action", "Thriller", "Crime"],
    },
    {
        "title": "Debi", "original_title": "দেবী",
        "overview": "A supernatural mystery based on Humayun Ahmed's novel. A landmark in Bangladeshi supernatural cinema.",
        "release_year": 2018, "kind": "movie", "genres": ["Supernatural", "Mystery", "Drama"],
    },
    {
        "title": "Shonibar Bikel", "original_title": "শনিবার বিকেল",
        "overview": "A raw harrowing account of the 2016 Holey Artisan Cafe terrorist attack.",
        "release_year": 2019, "kind": "movie", "genres": ["Drama", "Historical", "Thriller"],
    },
]


def seed_defaults(db: Session) -> bool:
    """Seed admin + sample titles. Returns False when the database already has users."""
    if db.query(models.User.id).first() is not None:
        return False

    crud.create_user(db, "Admin", settings.admin_email, hash_password(settings.admin_password), role=models.ROLE_ADMIN)
    if settings.seed_sample_titles:
        for sample in SAMPLE_TITLES:
            crud.create_title(db, {**sample, "provenance": models.PROVENANCE_CURATED})
    logger.info(f"Seeded admin {settings.admin_email} and {len(SAMPLE_TITLES) if settings.seed_sample_titles else 0} titles")
    return True
