from fastapi import APIRouter, Depends, File, UploadFile
from starlette.status import HTTP_201_CREATED

from notes_portal.core.deps import (
    get_course_api_client,
    get_recent_uploads,
    get_settings_dep,
    get_upload_sessions,
)
from notes_portal.models.selector import SelectValue
from notes_portal.models.upload import (
    RecentUploadsResponse,
    SubjectNameIn,
    SubmitResponse,
    UploadFormView,
)
from notes_portal.services.course_api import CourseApiClient
from notes_portal.services.recent_uploads import RecentUploads
from notes_portal.services.sessions import SessionRegistry
from notes_portal.services.upload_form import UploadForm

router = APIRouter(prefix="/v1/upload", tags=["upload"])


@router.get("/recent", response_model=RecentUploadsResponse)
def recent_uploads(recent: RecentUploads = Depends(get_recent_uploads)):
    return RecentUploadsResponse(items=recent.list())


@router.post("", response_model=UploadFormView, status_code=HTTP_201_CREATED)
def create_form(
    sessions: SessionRegistry = Depends(get_upload_sessions),
    settings = Depends(get_settings_dep),
):
    form = sessions.create(lambda sid: UploadForm(sid, max_upload_mb=settings.MAX_UPLOAD_MB))
    return form.view()


@router.get("/{session_id}", response_model=UploadFormView)
def get_form(session_id: str, sessions: SessionRegistry = Depends(get_upload_sessions)):
    return sessions.get(session_id).view()


@router.delete("/{session_id}")
def drop_form(session_id: str, sessions: SessionRegistry = Depends(get_upload_sessions)):
    sessions.drop(session_id)
    return {"ok": True, "id": session_id}


@router.put("/{session_id}/year", response_model=UploadFormView)
def set_year(session_id: str, body: SelectValue, sessions: SessionRegistry = Depends(get_upload_sessions)):
    form = sessions.get(session_id)
    form.set_year(body.value)
    return form.view()


@router.put("/{session_id}/branch", response_model=UploadFormView)
def set_branch(session_id: str, body: SelectValue, sessions: SessionRegistry = Depends(get_upload_sessions)):
    form = sessions.get(session_id)
    form.set_branch(body.value)
    return form.view()


@router.post("/{session_id}/subjects", response_model=UploadFormView)
def add_subject(session_id: str, sessions: SessionRegistry = Depends(get_upload_sessions)):
    form = sessions.get(session_id)
    form.add_subject()
    return form.view()


@router.patch("/{session_id}/subjects/{subject_index}", response_model=UploadFormView)
def rename_subject(
    session_id: str,
    subject_index: int,
    body: SubjectNameIn,
    sessions: SessionRegistry = Depends(get_upload_sessions),
):
    form = sessions.get(session_id)
    form.rename_subject(subject_index, body.name)
    return form.view()


@router.delete("/{session_id}/subjects/{subject_index}", response_model=UploadFormView)
def remove_subject(session_id: str, subject_index: int, sessions: SessionRegistry = Depends(get_upload_sessions)):
    form = sessions.get(session_id)
    form.remove_subject(subject_index)
    return form.view()


@router.post("/{session_id}/subjects/{subject_index}/units", response_model=UploadFormView)
def add_unit(session_id: str, subject_index: int, sessions: SessionRegistry = Depends(get_upload_sessions)):
    form = sessions.get(session_id)
    form.add_unit(subject_index)
    return form.view()


@router.delete("/{session_id}/subjects/{subject_index}/units/{unit_index}", response_model=UploadFormView)
def remove_unit(
    session_id: str,
    subject_index: int,
    unit_index: int,
    sessions: SessionRegistry = Depends(get_upload_sessions),
):
    form = sessions.get(session_id)
    form.remove_unit(subject_index, unit_index)
    return form.view()


@router.put("/{session_id}/subjects/{subject_index}/units/{unit_index}/file", response_model=UploadFormView)
def attach_file(
    session_id: str,
    subject_index: int,
    unit_index: int,
    file: UploadFile = File(...),
    sessions: SessionRegistry = Depends(get_upload_sessions),
):
    form = sessions.get(session_id)
    contents = file.file.read()
    form.attach_file(subject_index, unit_index, file.filename or "", contents, file.content_type)
    return form.view()


@router.post("/{session_id}/submit", response_model=SubmitResponse)
def submit_form(
    session_id: str,
    sessions: SessionRegistry = Depends(get_upload_sessions),
    client: CourseApiClient = Depends(get_course_api_client),
    recent: RecentUploads = Depends(get_recent_uploads),
):
    return sessions.get(session_id).submit(client, recent)
