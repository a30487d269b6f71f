import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from fastapi import HTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_502_BAD_GATEWAY,
)

from notes_portal.models.course import ManifestSubject, ManifestUnit
from notes_portal.models.upload import (
    DraftSubjectOut,
    DraftUnitOut,
    RecentUpload,
    SubmitResponse,
    UploadFormView,
    UploadStatus,
)
from notes_portal.services.course_api import CourseApiClient, CourseApiError, FilePart
from notes_portal.services.recent_uploads import RecentUploads
from notes_portal.services.reference import (
    ACCEPTED_FILE_TYPES,
    course_label,
    is_known_branch,
    is_known_year,
)
from notes_portal.utils.file_tools import count_pdf_pages, file_extension, format_file_size

logger = logging.getLogger(__name__)

UPLOAD_FAILED = "Upload failed"


@dataclass
class AttachedFile:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class DraftUnit:
    unit_number: int
    file: Optional[AttachedFile] = None
    file_size: Optional[str] = None
    file_type: Optional[str] = None
    pages: int = 0
    upload_progress: float = 0
    upload_status: UploadStatus = UploadStatus.idle
    error_message: Optional[str] = None


def _first_unit() -> List[DraftUnit]:
    return [DraftUnit(unit_number=1)]


@dataclass
class DraftSubject:
    name: str = ""
    units: List[DraftUnit] = field(default_factory=_first_unit)

    def has_file(self) -> bool:
        return any(u.file is not None for u in self.units)

    def is_locked(self) -> bool:
        return any(u.upload_status in (UploadStatus.uploading, UploadStatus.success) for u in self.units)


def validate_attachment(
    filename: str,
    size: int,
    max_bytes: int,
    accepted: Sequence[str] = ACCEPTED_FILE_TYPES,
) -> str:
    """
    Vérifie extension et taille d'un fichier de notes, retourne l'extension.
    """
    ext = file_extension(filename)
    if ext not in accepted:
        raise HTTPException(
            status_code=HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Invalid file type. Accepted types: {', '.join(accepted)}",
        )
    if size > max_bytes:
        raise HTTPException(
            status_code=HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size exceeds {max_bytes // (1024 * 1024)}MB limit",
        )
    return ext


class UploadForm:
    """
    View-model du formulaire d'upload : matières/unités dynamiques, un fichier par unité,
    envoi groupé en une seule requête multipart.
    """

    def __init__(
        self,
        session_id: str,
        max_upload_mb: int = 10,
        accepted_types: Sequence[str] = ACCEPTED_FILE_TYPES,
    ) -> None:
        self.session_id = session_id
        self.max_upload_bytes = max_upload_mb * 1024 * 1024
        self.accepted_types = list(accepted_types)
        self._lock = threading.RLock()
        self._reset()

    # ---------- sélection ----------

    def set_year(self, value: str) -> None:
        if not is_known_year(value):
            raise HTTPException(status_code=HTTP_422_UNPROCESSABLE_ENTITY, detail="Unknown year.")
        with self._lock:
            self._ensure_idle()
            self.year = value

    def set_branch(self, value: str) -> None:
        if not is_known_branch(value):
            raise HTTPException(status_code=HTTP_422_UNPROCESSABLE_ENTITY, detail="Unknown branch.")
        with self._lock:
            self._ensure_idle()
            self.branch = value

    # ---------- matières / unités ----------

    def add_subject(self) -> None:
        with self._lock:
            self._ensure_idle()
            self.subjects.append(DraftSubject())

    def remove_subject(self, subject_index: int) -> None:
        with self._lock:
            self._ensure_idle()
            self._subject(subject_index)
            if len(self.subjects) <= 1:
                raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="At least one subject is required.")
            del self.subjects[subject_index]

    def rename_subject(self, subject_index: int, name: str) -> None:
        with self._lock:
            self._ensure_idle()
            subject = self._subject(subject_index)
            if subject.is_locked():
                raise HTTPException(status_code=HTTP_409_CONFLICT, detail="Subject already uploaded.")
            subject.name = name

    def add_unit(self, subject_index: int) -> None:
        with self._lock:
            self._ensure_idle()
            subject = self._subject(subject_index)
            next_number = max((u.unit_number for u in subject.units), default=0) + 1
            subject.units.append(DraftUnit(unit_number=next_number))

    def remove_unit(self, subject_index: int, unit_index: int) -> None:
        with self._lock:
            self._ensure_idle()
            subject, _ = self._unit(subject_index, unit_index)
            if len(subject.units) <= 1:
                raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="At least one unit is required.")
            del subject.units[unit_index]

    def attach_file(
        self,
        subject_index: int,
        unit_index: int,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> None:
        """
        Attache un fichier à une unité. Un fichier refusé ne modifie rien.
        """
        with self._lock:
            self._ensure_idle()
            _, unit = self._unit(subject_index, unit_index)
            if unit.upload_status == UploadStatus.success:
                raise HTTPException(status_code=HTTP_409_CONFLICT, detail="Unit already uploaded.")

            ext = validate_attachment(filename, len(content), self.max_upload_bytes, self.accepted_types)

            unit.file = AttachedFile(
                filename=filename,
                content=content,
                content_type=content_type or "application/octet-stream",
            )
            unit.file_size = format_file_size(len(content))
            unit.file_type = ext[1:].upper()
            unit.pages = count_pdf_pages(content) if ext == ".pdf" else 0
            unit.upload_status = UploadStatus.idle
            unit.upload_progress = 0
            unit.error_message = None

    # ---------- envoi ----------

    @property
    def can_submit(self) -> bool:
        return not self.is_loading and any(s.name.strip() and s.has_file() for s in self.subjects)

    def submit(self, client: CourseApiClient, recent: RecentUploads) -> SubmitResponse:
        with self._lock:
            self._ensure_idle()
            if not self.year or not self.branch:
                raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Please select year and branch")

            manifest = self._build_manifest()
            if not manifest:
                raise HTTPException(
                    status_code=HTTP_400_BAD_REQUEST,
                    detail="Please add at least one subject with a unit and notes file",
                )

            parts = self._collect_parts()
            year, branch = self.year, self.branch
            self.is_loading = True
            self.overall_progress = 0.0

        # requête hors verrou : la progression est appliquée au fil de l'eau
        try:
            response = client.upload_course(year, branch, manifest, parts, on_progress=self._on_progress)
        except CourseApiError as e:
            logger.warning("upload failed for %s: %s", self.session_id, e)
            self._mark_failed()
            raise HTTPException(status_code=HTTP_502_BAD_GATEWAY, detail="Failed to upload notes. Please try again.")
        except Exception:
            self._mark_failed()
            raise

        uploaded: List[RecentUpload] = []
        if response.course is not None:
            label = course_label(year, branch)
            for subject in response.course.subjects:
                for unit in subject.units:
                    uploaded.append(
                        RecentUpload(course=label, subject=subject.name, unit=unit.unitNumber, url=unit.notesFileUrl)
                    )

        with self._lock:
            for _, unit in self._uploading_units():
                unit.upload_status = UploadStatus.success
                unit.upload_progress = 100
            try:
                for entry in uploaded:
                    recent.record(entry)
            except OSError as e:
                # l'upload a réussi côté serveur : l'historique ne doit pas bloquer le formulaire
                logger.warning("upload %s: failed to record recent uploads: %s", self.session_id, e)
            finally:
                self._reset()
            logger.info("upload %s done (%d file(s))", self.session_id, len(parts))
            return SubmitResponse(
                message="Notes uploaded successfully!",
                uploaded=uploaded,
                recentUploads=recent.list(),
                form=self.view(),
            )

    # ---------- vue publique ----------

    def view(self) -> UploadFormView:
        with self._lock:
            return UploadFormView(
                sessionId=self.session_id,
                year=self.year,
                branch=self.branch,
                subjects=[
                    DraftSubjectOut(
                        name=s.name,
                        units=[
                            DraftUnitOut(
                                unitNumber=u.unit_number,
                                fileName=u.file.filename if u.file else None,
                                fileSize=u.file_size,
                                fileType=u.file_type,
                                pages=u.pages,
                                uploadProgress=u.upload_progress,
                                uploadStatus=u.upload_status,
                                errorMessage=u.error_message,
                            )
                            for u in s.units
                        ],
                    )
                    for s in self.subjects
                ],
                overallProgress=self.overall_progress,
                isLoading=self.is_loading,
                canSubmit=self.can_submit,
            )

    # ---------- internals ----------

    def _reset(self) -> None:
        self.year = ""
        self.branch = ""
        self.subjects: List[DraftSubject] = [DraftSubject()]
        self.overall_progress = 0.0
        self.is_loading = False

    def _ensure_idle(self) -> None:
        if self.is_loading:
            raise HTTPException(status_code=HTTP_409_CONFLICT, detail="Upload already in progress.")

    def _subject(self, subject_index: int) -> DraftSubject:
        if subject_index < 0 or subject_index >= len(self.subjects):
            raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Subject not found.")
        return self.subjects[subject_index]

    def _unit(self, subject_index: int, unit_index: int) -> Tuple[DraftSubject, DraftUnit]:
        subject = self._subject(subject_index)
        if unit_index < 0 or unit_index >= len(subject.units):
            raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Unit not found.")
        unit = subject.units[unit_index]
        if unit.upload_status == UploadStatus.uploading:
            raise HTTPException(status_code=HTTP_409_CONFLICT, detail="Unit is uploading.")
        return subject, unit

    def _build_manifest(self) -> List[ManifestSubject]:
        return [
            ManifestSubject(
                name=s.name.strip(),
                units=[ManifestUnit(unitNumber=u.unit_number) for u in s.units if u.file is not None],
            )
            for s in self.subjects
            if s.name.strip() and s.has_file()
        ]

    def _collect_parts(self) -> List[FilePart]:
        """
        Un part par unité avec fichier, clé = position dans le brouillon complet.
        Marque ces unités "uploading".
        """
        parts: List[FilePart] = []
        for si, subject in enumerate(self.subjects):
            for ui, unit in enumerate(subject.units):
                if unit.file is None:
                    continue
                parts.append(
                    FilePart(
                        field=f"notes-file-{si}-{ui}",
                        filename=unit.file.filename,
                        content=unit.file.content,
                        content_type=unit.file.content_type,
                    )
                )
                unit.upload_status = UploadStatus.uploading
                unit.upload_progress = 0
                unit.error_message = None
        return parts

    def _uploading_units(self) -> List[Tuple[DraftSubject, DraftUnit]]:
        return [
            (s, u) for s in self.subjects for u in s.units
            if u.upload_status == UploadStatus.uploading
        ]

    def _on_progress(self, sent: int, total: int) -> None:
        # progression globale de la requête, recopiée telle quelle sur chaque unité en cours
        percent = (sent / total) * 100 if total else 100.0
        with self._lock:
            self.overall_progress = percent
            for _, unit in self._uploading_units():
                unit.upload_progress = percent

    def _mark_failed(self) -> None:
        with self._lock:
            for _, unit in self._uploading_units():
                unit.upload_status = UploadStatus.error
                unit.error_message = UPLOAD_FAILED
            self.is_loading = False
