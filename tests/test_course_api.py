import json

import httpx
import pytest

from notes_portal.models.course import Course, ManifestSubject, ManifestUnit, Subject, Unit
from notes_portal.services.course_api import (
    CourseApiClient,
    CourseApiError,
    FilePart,
    decode_subjects,
    merge_subjects,
)


def test_merge_dedupes_by_name_last_write_wins():
    first = Course(subjects=[
        Subject(name="Physics", units=[Unit(unitNumber=1, notesFileUrl="old")]),
        Subject(name="Chemistry"),
    ])
    second = Course(subjects=[
        Subject(name="Physics", units=[Unit(unitNumber=1, notesFileUrl="new"), Unit(unitNumber=2)]),
    ])
    merged = merge_subjects([first, second])
    assert [s.name for s in merged] == ["Physics", "Chemistry"]
    assert merged[0].units[0].notesFileUrl == "new"
    assert len(merged[0].units) == 2


def test_decode_fails_closed_on_schema_mismatch():
    assert decode_subjects({"courses": [{"subjects": "not-a-list"}]}) == []
    assert decode_subjects(["unexpected"]) == []
    assert decode_subjects({}) == []


def test_decode_treats_null_unit_fields_as_empty():
    payload = {
        "courses": [
            {"subjects": [{"name": "Maths", "units": [{"unitNumber": 1, "summary": "ok"}]}]},
            {"subjects": [
                {"name": "Physics", "units": [
                    {"unitNumber": 1, "summary": None, "notesFileUrl": None, "quiz": None},
                ]},
                {"name": "Chemistry", "units": None},
            ]},
        ]
    }
    subjects = decode_subjects(payload)
    assert [s.name for s in subjects] == ["Maths", "Physics", "Chemistry"]
    physics_unit = subjects[1].units[0]
    assert physics_unit.summary == ""
    assert physics_unit.notesFileUrl == ""
    assert physics_unit.quiz == []
    assert subjects[2].units == []


def test_fetch_subjects_sends_year_and_branch(api_client, fake_api):
    subjects = api_client.fetch_subjects("First Year", "Electronics & Telecommunication")
    assert [s.name for s in subjects] == ["Data Structures", "Discrete Mathematics"]

    request = fake_api.requests[-1]
    assert request.url.path == "/api/course"
    assert request.url.params["year"] == "First Year"
    assert request.url.params["branch"] == "Electronics & Telecommunication"


def test_fetch_subjects_raises_on_http_error(api_client, fake_api):
    fake_api.get_status = 500
    with pytest.raises(CourseApiError) as exc:
        api_client.fetch_subjects("First Year", "Civil Engineering")
    assert exc.value.status_code == 500


def test_fetch_subjects_raises_on_network_error(api_client, fake_api):
    fake_api.network_down = True
    with pytest.raises(CourseApiError):
        api_client.fetch_subjects("First Year", "Civil Engineering")


def test_fetch_subjects_non_json_body_gives_empty_list():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))
    client = CourseApiClient("http://course-api.test", transport=transport)
    assert client.fetch_subjects("First Year", "Civil Engineering") == []


def test_upload_sends_multipart_and_reports_progress(api_client, fake_api):
    progress = []
    manifest = [ManifestSubject(name="Operating Systems", units=[ManifestUnit(unitNumber=1)])]
    parts = [FilePart(field="notes-file-0-0", filename="os.pdf", content=b"%PDF-1.4\n" * 20000, content_type="application/pdf")]

    response = api_client.upload_course(
        "Second Year", "Computer Engineering", manifest, parts,
        on_progress=lambda sent, total: progress.append((sent, total)),
    )

    assert response.course is not None
    assert response.course.subjects[0].units[1].notesFileUrl == "https://files.example/os-2.pdf"

    # plusieurs blocs, progression croissante jusqu'au total
    assert len(progress) > 1
    sents = [s for s, _ in progress]
    assert sents == sorted(sents)
    assert progress[-1][0] == progress[-1][1]

    request = fake_api.requests[-1]
    assert request.method == "POST"
    assert request.headers["content-type"].startswith("multipart/form-data; boundary=")
    assert int(request.headers["content-length"]) == progress[-1][1]
    body = request.content
    assert b'name="notes-file-0-0"; filename="os.pdf"' in body
    assert b'name="year"' in body and b"Second Year" in body
    manifest_json = json.dumps([{"name": "Operating Systems", "units": [{"unitNumber": 1}]}]).encode()
    assert manifest_json in body


def test_upload_rejects_non_success_status(api_client, fake_api):
    fake_api.post_status = 500
    parts = [FilePart(field="notes-file-0-0", filename="a.pdf", content=b"x")]
    with pytest.raises(CourseApiError) as exc:
        api_client.upload_course("First Year", "Civil Engineering", [], parts)
    assert exc.value.status_code == 500


def test_upload_accepts_200(api_client, fake_api):
    fake_api.post_status = 200
    parts = [FilePart(field="notes-file-0-0", filename="a.pdf", content=b"x")]
    response = api_client.upload_course("First Year", "Civil Engineering", [], parts)
    assert response.course is not None
