from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from notes_portal.core.deps import get_course_api_client, get_selector_sessions, get_settings_dep
from notes_portal.models.selector import AnswerRequest, QuizResultResponse, SelectorView, SelectValue
from notes_portal.services.course_api import CourseApiClient
from notes_portal.services.selector import CourseSelector
from notes_portal.services.sessions import SessionRegistry

router = APIRouter(prefix="/v1/selector", tags=["selector"])


@router.post("", response_model=SelectorView, status_code=HTTP_201_CREATED)
def create_selector(
    client: CourseApiClient = Depends(get_course_api_client),
    sessions: SessionRegistry = Depends(get_selector_sessions),
    settings = Depends(get_settings_dep),
):
    selector = sessions.create(
        lambda sid: CourseSelector(sid, client, quiz_size=settings.QUIZ_MAX_QUESTIONS)
    )
    return selector.view()


@router.get("/{session_id}", response_model=SelectorView)
def get_selector(session_id: str, sessions: SessionRegistry = Depends(get_selector_sessions)):
    return sessions.get(session_id).view()


@router.delete("/{session_id}")
def drop_selector(session_id: str, sessions: SessionRegistry = Depends(get_selector_sessions)):
    sessions.drop(session_id)
    return {"ok": True, "id": session_id}


@router.put("/{session_id}/year", response_model=SelectorView)
def select_year(session_id: str, body: SelectValue, sessions: SessionRegistry = Depends(get_selector_sessions)):
    selector = sessions.get(session_id)
    selector.select_year(body.value)
    return selector.view()


@router.put("/{session_id}/branch", response_model=SelectorView)
def select_branch(session_id: str, body: SelectValue, sessions: SessionRegistry = Depends(get_selector_sessions)):
    selector = sessions.get(session_id)
    selector.select_branch(body.value)
    return selector.view()


@router.put("/{session_id}/subject", response_model=SelectorView)
def select_subject(session_id: str, body: SelectValue, sessions: SessionRegistry = Depends(get_selector_sessions)):
    selector = sessions.get(session_id)
    selector.select_subject(body.value)
    return selector.view()


@router.put("/{session_id}/unit", response_model=SelectorView)
def select_unit(session_id: str, body: SelectValue, sessions: SessionRegistry = Depends(get_selector_sessions)):
    selector = sessions.get(session_id)
    selector.select_unit(body.value)
    return selector.view()


@router.post("/{session_id}/answers", response_model=SelectorView)
def answer_question(session_id: str, body: AnswerRequest, sessions: SessionRegistry = Depends(get_selector_sessions)):
    selector = sessions.get(session_id)
    selector.answer(body.index, body.option)
    return selector.view()


@router.post("/{session_id}/submit", response_model=QuizResultResponse)
def submit_quiz(session_id: str, sessions: SessionRegistry = Depends(get_selector_sessions)):
    return sessions.get(session_id).submit_quiz()
