from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


# -------------------
# GET /api/course
# -------------------
class QuizItem(BaseModel):
    question: str
    options: List[str] = Field(default_factory=list)
    answer: str


class Unit(BaseModel):
    unitNumber: int
    notesFileUrl: Optional[str] = ""
    summary: Optional[str] = ""
    quiz: Optional[List[QuizItem]] = Field(default_factory=list)

    # null côté API = champ vide, pas un payload invalide
    @field_validator("notesFileUrl", "summary", mode="before")
    @classmethod
    def _null_text(cls, v):
        return "" if v is None else v

    @field_validator("quiz", mode="before")
    @classmethod
    def _null_quiz(cls, v):
        return [] if v is None else v


class Subject(BaseModel):
    name: str
    units: Optional[List[Unit]] = Field(default_factory=list)

    @field_validator("units", mode="before")
    @classmethod
    def _null_units(cls, v):
        return [] if v is None else v


class Course(BaseModel):
    subjects: Optional[List[Subject]] = Field(default_factory=list)

    @field_validator("subjects", mode="before")
    @classmethod
    def _null_subjects(cls, v):
        return [] if v is None else v


class CourseListResponse(BaseModel):
    courses: List[Course] = Field(default_factory=list)


# -------------------
# POST /api/course
# -------------------
class ManifestUnit(BaseModel):
    unitNumber: int


class ManifestSubject(BaseModel):
    name: str
    units: List[ManifestUnit]


class UploadedUnit(BaseModel):
    unitNumber: int
    notesFileUrl: str


class UploadedSubject(BaseModel):
    name: str
    units: List[UploadedUnit] = Field(default_factory=list)


class UploadedCourse(BaseModel):
    subjects: List[UploadedSubject] = Field(default_factory=list)


class CourseUploadResponse(BaseModel):
    course: Optional[UploadedCourse] = None
