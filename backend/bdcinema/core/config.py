from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./bdcinema.db"
    # Empty string disables the TMDB response cache.
    redis_url: str = ""

    # TMDB gateway
    tmdb_api_key: str = ""
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    tmdb_image_base_url: str = "https://image.tmdb.org/t/p"
    tmdb_language: str = "en-US"
    tmdb_timeout_seconds: float = 10.0
    tmdb_cache_ttl_seconds: int = 3600  # matches upstream revalidate hint
    sync_region: str = "BD"

    # Sessions
    auth_secret: str = "change-me-in-production"
    auth_algorithm: str = "HS256"
    session_ttl_minutes: int = 60 * 24 * 30
    session_cookie_name: str = "bdcinema.session-token"
    google_client_id: str = ""

    # Seed data
    admin_email: str = "admin@bdcinema.local"
    admin_password: str = "admin"
    seed_sample_titles: bool = True

    upload_dir: str = "public/uploads"
    max_avatar_bytes: int = 2 * 1024 * 1024

    log_level: str = "INFO"

    @property
    def sqlalchemy_url(self) -> str:
        # Hosted Postgres providers still hand out the legacy scheme
        if self.database_url.startswith("postgres://"):
            return self.database_url.replace("postgres://", "postgresql://", 1)
        return self.database_url

    @property
    def tmdb_enabled(self) -> bool:
        return bool(self.tmdb_api_key) and self.tmdb_api_key != "your_tmdb_api_key_here"


settings = Settings()
