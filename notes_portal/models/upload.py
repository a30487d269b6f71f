from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class UploadStatus(str, Enum):
    idle = "idle"
    uploading = "uploading"
    success = "success"
    error = "error"


class SubjectNameIn(BaseModel):
    name: str = Field(default="", max_length=200)


class DraftUnitOut(BaseModel):
    unitNumber: int
    fileName: Optional[str] = None
    fileSize: Optional[str] = None
    fileType: Optional[str] = None
    pages: int = 0
    uploadProgress: float = 0
    uploadStatus: UploadStatus = UploadStatus.idle
    errorMessage: Optional[str] = None


class DraftSubjectOut(BaseModel):
    name: str
    units: List[DraftUnitOut]


class RecentUpload(BaseModel):
    course: str
    subject: str
    unit: int
    url: str


class UploadFormView(BaseModel):
    sessionId: str
    year: str
    branch: str
    subjects: List[DraftSubjectOut]
    overallProgress: float
    isLoading: bool
    canSubmit: bool


class SubmitResponse(BaseModel):
    ok: bool = True
    message: str
    uploaded: List[RecentUpload]
    recentUploads: List[RecentUpload]
    form: UploadFormView


class RecentUploadsResponse(BaseModel):
    items: List[RecentUpload]
