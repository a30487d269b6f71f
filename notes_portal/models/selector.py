from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class SelectValue(BaseModel):
    value: str = Field(..., description="Valeur choisie dans la liste déroulante")


class PublicQuestion(BaseModel):
    index: int
    question: str
    options: List[str]
    # La bonne réponse n'est jamais renvoyée avant la soumission


class UnitView(BaseModel):
    unitNumber: int
    notesFileUrl: str
    summary: str


class SubjectOption(BaseModel):
    name: str
    units: List[int]


class SelectorView(BaseModel):
    sessionId: str
    year: str
    branch: str
    subject: str
    unit: str
    isLoading: bool
    subjects: List[SubjectOption]
    unitData: Optional[UnitView] = None
    quiz: List[PublicQuestion]
    answers: Dict[int, str]
    canSubmit: bool


class AnswerRequest(BaseModel):
    index: int = Field(..., ge=0)
    option: str


class QuizResultItem(BaseModel):
    index: int
    correctAnswer: str
    chosenAnswer: Optional[str] = None
    isCorrect: bool


class QuizResultResponse(BaseModel):
    score: int
    total: int
    details: List[QuizResultItem]
