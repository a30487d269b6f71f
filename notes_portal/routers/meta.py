from fastapi import APIRouter, Depends

from notes_portal.core.deps import get_settings_dep
from notes_portal.services.reference import ACCEPTED_FILE_TYPES, BRANCHES, ENGINEERING_YEARS

router = APIRouter(prefix="/v1/meta", tags=["meta"])


@router.get("/options")
def get_options(settings = Depends(get_settings_dep)):
    # Listes statiques partagées par la sélection et l'upload
    return {
        "years": ENGINEERING_YEARS,
        "branches": BRANCHES,
        "acceptedFileTypes": ACCEPTED_FILE_TYPES,
        "maxUploadMb": settings.MAX_UPLOAD_MB,
        "quizMaxQuestions": settings.QUIZ_MAX_QUESTIONS,
    }
