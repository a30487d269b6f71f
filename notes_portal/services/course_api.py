import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from notes_portal.models.course import (
    Course,
    CourseListResponse,
    CourseUploadResponse,
    ManifestSubject,
    Subject,
)

logger = logging.getLogger(__name__)

COURSE_PATH = "/api/course"
UPLOAD_CHUNK_SIZE = 64 * 1024

ProgressCallback = Callable[[int, int], None]  # (octets envoyés, total)


class CourseApiError(Exception):
    """
    Échec d'un appel à l'API cours (réseau ou statut HTTP inattendu).
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class FilePart:
    field: str
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


def merge_subjects(courses: Sequence[Course]) -> List[Subject]:
    """
    Fusionne les matières de tous les cours renvoyés, dédoublonnées par nom.
    En cas de doublon la dernière occurrence gagne, l'ordre de première apparition est conservé.
    """
    merged: Dict[str, Subject] = {}
    for course in courses:
        for subject in course.subjects:
            merged[subject.name] = subject
    return list(merged.values())


def decode_subjects(payload: Any) -> List[Subject]:
    try:
        data = CourseListResponse.model_validate(payload)
    except ValidationError as e:
        logger.warning("course list payload rejected: %s", e)
        return []
    return merge_subjects(data.courses)


def decode_upload_response(payload: Any) -> CourseUploadResponse:
    try:
        return CourseUploadResponse.model_validate(payload)
    except ValidationError as e:
        logger.warning("upload response payload rejected: %s", e)
        return CourseUploadResponse()


def _chunked(body: bytes, on_progress: Optional[ProgressCallback]) -> Iterator[bytes]:
    total = len(body)
    sent = 0
    for start in range(0, total, UPLOAD_CHUNK_SIZE):
        chunk = body[start:start + UPLOAD_CHUNK_SIZE]
        sent += len(chunk)
        if on_progress:
            on_progress(sent, total)
        yield chunk


class CourseApiClient:
    """
    Client de l'API cours externe (GET/POST /api/course).
    Le transport est injectable pour les tests (httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    def fetch_subjects(self, year: str, branch: str) -> List[Subject]:
        """
        Liste les matières (fusionnées, dédoublonnées) pour une année et une filière.
        Un payload non conforme donne une liste vide.
        """
        try:
            response = self._client.get(COURSE_PATH, params={"year": year, "branch": branch})
        except httpx.HTTPError as e:
            raise CourseApiError(f"GET {COURSE_PATH} failed: {e}") from e

        if not response.is_success:
            raise CourseApiError(
                f"GET {COURSE_PATH} returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning("course list is not JSON: %s", e)
            return []
        return decode_subjects(payload)

    def upload_course(
        self,
        year: str,
        branch: str,
        manifest: Sequence[ManifestSubject],
        parts: Sequence[FilePart],
        on_progress: Optional[ProgressCallback] = None,
    ) -> CourseUploadResponse:
        """
        Envoie toutes les notes en une seule requête multipart.
        Le corps est streamé par blocs pour remonter la progression globale.
        """
        data = {
            "year": year,
            "branch": branch,
            "subjects": json.dumps([m.model_dump() for m in manifest]),
        }
        files = [(p.field, (p.filename, p.content, p.content_type)) for p in parts]

        encoded = self._client.build_request("POST", COURSE_PATH, data=data, files=files)
        body = encoded.read()
        request = self._client.build_request(
            "POST",
            COURSE_PATH,
            content=_chunked(body, on_progress),
            headers={
                "Content-Type": encoded.headers["Content-Type"],
                "Content-Length": str(len(body)),
            },
        )

        try:
            response = self._client.send(request)
        except httpx.HTTPError as e:
            raise CourseApiError(f"POST {COURSE_PATH} failed: {e}") from e

        if response.status_code not in (200, 201):
            raise CourseApiError(
                f"POST {COURSE_PATH} returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning("upload response is not JSON: %s", e)
            return CourseUploadResponse()
        return decode_upload_response(payload)
