from fastapi import APIRouter, Depends

from notes_portal.core.config import Settings
from notes_portal.core.deps import get_selector_sessions, get_settings_dep, get_upload_sessions
from notes_portal.services.sessions import SessionRegistry

router = APIRouter(tags=["system"])


@router.get("/health")
def health(
    s: Settings = Depends(get_settings_dep),
    selectors: SessionRegistry = Depends(get_selector_sessions),
    uploads: SessionRegistry = Depends(get_upload_sessions),
):
    return {
        "status": "ok",
        "version": s.APP_VERSION,
        "sessions": {"selector": len(selectors), "upload": len(uploads)},
    }


@router.get("/version")
def version(s: Settings = Depends(get_settings_dep)):
    return {"name": s.APP_NAME, "version": s.APP_VERSION, "env": s.APP_ENV, "courseApi": s.COURSE_API_BASE_URL}
