import httpx
import pytest
from fastapi.testclient import TestClient

from notes_portal.core import deps
from notes_portal.core.config import get_settings
from notes_portal.main import create_app
from notes_portal.services.course_api import CourseApiClient

COURSE_API_URL = "http://course-api.test"


def make_quiz(prefix: str, count: int):
    return [
        {"question": f"{prefix} Q{i}", "options": ["A", "B", "C", "D"], "answer": "A"}
        for i in range(count)
    ]


def courses_payload():
    return {
        "courses": [
            {
                "subjects": [
                    {
                        "name": "Data Structures",
                        "units": [
                            {
                                "unitNumber": 1,
                                "notesFileUrl": "https://files.example/ds-1-old.pdf",
                                "summary": "Old summary",
                                "quiz": make_quiz("old", 2),
                            }
                        ],
                    },
                    {
                        "name": "Discrete Mathematics",
                        "units": [
                            {
                                "unitNumber": 1,
                                "notesFileUrl": "https://files.example/dm-1.pdf",
                                "summary": "",
                                "quiz": make_quiz("dm", 3),
                            }
                        ],
                    },
                ]
            },
            {
                "subjects": [
                    {
                        "name": "Data Structures",
                        "units": [
                            {
                                "unitNumber": 1,
                                "notesFileUrl": "https://files.example/ds-1.pdf",
                                "summary": "Arrays and linked lists",
                                "quiz": make_quiz("ds", 14),
                            },
                            {
                                "unitNumber": 2,
                                "notesFileUrl": "https://files.example/ds-2.pdf",
                                "summary": "Trees",
                                "quiz": [],
                            },
                        ],
                    }
                ]
            },
        ]
    }


def upload_payload():
    return {
        "course": {
            "subjects": [
                {
                    "name": "Operating Systems",
                    "units": [
                        {"unitNumber": 1, "notesFileUrl": "https://files.example/os-1.pdf"},
                        {"unitNumber": 2, "notesFileUrl": "https://files.example/os-2.pdf"},
                    ],
                }
            ]
        }
    }


class FakeCourseApi:
    """
    Faux /api/course branché sur httpx.MockTransport.
    """

    def __init__(self):
        self.courses = courses_payload()
        self.uploaded = upload_payload()
        self.get_status = 200
        self.post_status = 201
        self.network_down = False
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.network_down:
            raise httpx.ConnectError("connection refused", request=request)
        if request.method == "GET":
            return httpx.Response(self.get_status, json=self.courses)
        return httpx.Response(self.post_status, json=self.uploaded)


@pytest.fixture
def fake_api():
    return FakeCourseApi()


@pytest.fixture
def api_client(fake_api):
    client = CourseApiClient(COURSE_API_URL, transport=httpx.MockTransport(fake_api))
    yield client
    client.close()


@pytest.fixture
def test_client(tmp_path, monkeypatch, api_client):
    """
    TestClient avec un fichier d'uploads récents temporaire
    et l'API cours remplacée par le faux transport.
    """
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("APP_NAME", "Notes Portal API (tests)")
    monkeypatch.setenv("RECENT_UPLOADS_PATH", str(tmp_path / "recent_uploads.json"))
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost")
    monkeypatch.setenv("COURSE_API_BASE_URL", COURSE_API_URL)

    # IMPORTANT: vider les caches pour prendre en compte les env
    get_settings.cache_clear()
    deps.get_selector_sessions.cache_clear()
    deps.get_upload_sessions.cache_clear()
    deps.get_recent_uploads.cache_clear()

    app = create_app()
    app.dependency_overrides[deps.get_course_api_client] = lambda: api_client
    with TestClient(app) as client:
        yield client

    get_settings.cache_clear()
    deps.get_recent_uploads.cache_clear()
