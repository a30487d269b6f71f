from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Base
    APP_ENV: str = "dev"  # dev | staging | prod
    APP_NAME: str = "Notes Portal API"
    APP_VERSION: str = "0.1.0"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # API cours externe (/api/course)
    COURSE_API_BASE_URL: str = "http://localhost:3000"
    COURSE_API_TIMEOUT: float = 30.0

    # Upload
    MAX_UPLOAD_MB: int = 10

    # Quiz
    QUIZ_MAX_QUESTIONS: int = 10

    # Uploads récents (équivalent du localStorage)
    RECENT_UPLOADS_PATH: str = "./storage/recent_uploads.json"
    RECENT_UPLOADS_LIMIT: int = 3

    # Sessions d'écran en mémoire
    SESSION_TTL_SECONDS: int = 60 * 60  # 1h

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
