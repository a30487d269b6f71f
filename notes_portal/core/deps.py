from functools import lru_cache

from notes_portal.core.config import get_settings
from notes_portal.services.course_api import CourseApiClient
from notes_portal.services.recent_uploads import JsonFileRecentUploadsStore, RecentUploads
from notes_portal.services.selector import CourseSelector
from notes_portal.services.sessions import SessionRegistry
from notes_portal.services.upload_form import UploadForm


def get_settings_dep():
    return get_settings()


@lru_cache
def get_course_api_client() -> CourseApiClient:
    """
    Client partagé vers l'API cours externe (DI, surchargé dans les tests).
    """
    settings = get_settings()
    return CourseApiClient(
        base_url=settings.COURSE_API_BASE_URL,
        timeout=settings.COURSE_API_TIMEOUT,
    )


@lru_cache
def get_recent_uploads() -> RecentUploads:
    settings = get_settings()
    return RecentUploads(
        JsonFileRecentUploadsStore(settings.RECENT_UPLOADS_PATH),
        limit=settings.RECENT_UPLOADS_LIMIT,
    )


@lru_cache
def get_selector_sessions() -> SessionRegistry[CourseSelector]:
    return SessionRegistry("sel", ttl_seconds=get_settings().SESSION_TTL_SECONDS)


@lru_cache
def get_upload_sessions() -> SessionRegistry[UploadForm]:
    return SessionRegistry("upl", ttl_seconds=get_settings().SESSION_TTL_SECONDS)


def close_course_api_client() -> None:
    """
    Ferme le client partagé s'il a été créé, puis vide le cache (arrêt de l'app).
    """
    if get_course_api_client.cache_info().currsize:
        get_course_api_client().close()
    get_course_api_client.cache_clear()
