import logging
import random
import threading
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_422_UNPROCESSABLE_ENTITY

from notes_portal.models.course import QuizItem, Subject, Unit
from notes_portal.models.selector import (
    QuizResultResponse,
    SelectorView,
    SubjectOption,
    UnitView,
)
from notes_portal.services import quiz as quiz_service
from notes_portal.services.course_api import CourseApiClient, CourseApiError
from notes_portal.services.reference import is_known_branch, is_known_year

logger = logging.getLogger(__name__)

# Ordre de la cascade : changer un niveau remet à zéro tous les suivants
CASCADE: Tuple[str, ...] = ("year", "branch", "subject", "unit")


@dataclass(frozen=True)
class SelectorState:
    year: str = ""
    branch: str = ""
    subject: str = ""
    unit: str = ""
    subjects: Tuple[Subject, ...] = ()
    unit_data: Optional[Unit] = None
    quiz: Tuple[QuizItem, ...] = ()
    answers: Dict[int, str] = field(default_factory=dict)
    is_loading: bool = False
    generation: int = 0


def select(state: SelectorState, level: str, value: str) -> SelectorState:
    """
    Applique un choix à `level` et vide tout ce qui en dépend
    (sélections en aval, unité chargée, quiz et réponses).
    La liste des matières dépend de (année, filière).
    """
    idx = CASCADE.index(level)
    changes: Dict[str, object] = {name: "" for name in CASCADE[idx + 1:]}
    changes[level] = value
    changes.update(unit_data=None, quiz=(), answers={})
    if level in ("year", "branch"):
        changes["subjects"] = ()
    return replace(state, **changes)


class CourseSelector:
    """
    View-model de l'écran de sélection : année -> filière -> matière -> unité, puis quiz.
    """

    def __init__(
        self,
        session_id: str,
        client: CourseApiClient,
        quiz_size: int = quiz_service.DEFAULT_QUIZ_SIZE,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.session_id = session_id
        self._client = client
        self._quiz_size = quiz_size
        self._rng = rng or random.Random()
        self._state = SelectorState()
        self._lock = threading.RLock()

    @property
    def state(self) -> SelectorState:
        return self._state

    @property
    def can_submit(self) -> bool:
        s = self._state
        return quiz_service.is_complete(s.quiz, s.answers)

    # ---------- cascade ----------

    def select_year(self, value: str) -> SelectorState:
        if not is_known_year(value):
            raise HTTPException(status_code=HTTP_422_UNPROCESSABLE_ENTITY, detail="Unknown year.")
        with self._lock:
            # nouvelle génération : une réponse en vol pour l'ancienne sélection sera ignorée
            self._state = replace(
                select(self._state, "year", value),
                generation=self._state.generation + 1,
                is_loading=False,
            )
            return self._state

    def select_branch(self, value: str) -> SelectorState:
        if not is_known_branch(value):
            raise HTTPException(status_code=HTTP_422_UNPROCESSABLE_ENTITY, detail="Unknown branch.")
        with self._lock:
            if not self._state.year:
                raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Select a year first.")
            token = self._state.generation + 1
            self._state = replace(
                select(self._state, "branch", value),
                generation=token,
                is_loading=True,
            )
            year = self._state.year

        # appel réseau hors verrou
        subjects = self._fetch_subjects(year, value)
        self._apply_subjects(token, subjects)
        return self._state

    def select_subject(self, value: str) -> SelectorState:
        with self._lock:
            if not self._state.branch:
                raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Select a branch first.")
            if self._find_subject(value) is None:
                raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Unknown subject.")
            self._state = select(self._state, "subject", value)
            return self._state

    def select_unit(self, value: str) -> SelectorState:
        with self._lock:
            if not self._state.subject:
                raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Select a subject first.")
            state = select(self._state, "unit", value)
            subject = self._find_subject(state.subject)
            unit = None
            if subject is not None:
                unit = next((u for u in subject.units if str(u.unitNumber) == value), None)
            if unit is not None:
                state = replace(
                    state,
                    unit_data=unit,
                    quiz=tuple(quiz_service.sample_quiz(unit.quiz, self._quiz_size, self._rng)),
                )
            self._state = state
            return self._state

    # ---------- quiz ----------

    def answer(self, index: int, option: str) -> SelectorState:
        with self._lock:
            quiz = self._state.quiz
            if index < 0 or index >= len(quiz):
                raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Invalid question index.")
            if option not in quiz[index].options:
                raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Invalid option.")
            answers = dict(self._state.answers)
            answers[index] = option
            self._state = replace(self._state, answers=answers)
            return self._state

    def submit_quiz(self) -> QuizResultResponse:
        with self._lock:
            if not self.can_submit:
                raise HTTPException(
                    status_code=HTTP_400_BAD_REQUEST,
                    detail="Answer every question before submitting.",
                )
            return quiz_service.build_result(self._state.quiz, self._state.answers)

    # ---------- vue publique ----------

    def view(self) -> SelectorView:
        s = self._state
        unit_view = None
        if s.unit_data is not None:
            unit_view = UnitView(
                unitNumber=s.unit_data.unitNumber,
                notesFileUrl=s.unit_data.notesFileUrl,
                summary=s.unit_data.summary or "No summary available.",
            )
        return SelectorView(
            sessionId=self.session_id,
            year=s.year,
            branch=s.branch,
            subject=s.subject,
            unit=s.unit,
            isLoading=s.is_loading,
            subjects=[
                SubjectOption(name=sub.name, units=[u.unitNumber for u in sub.units])
                for sub in s.subjects
            ],
            unitData=unit_view,
            quiz=quiz_service.to_public_questions(s.quiz),
            answers=dict(s.answers),
            canSubmit=self.can_submit,
        )

    # ---------- internals ----------

    def _find_subject(self, name: str) -> Optional[Subject]:
        return next((s for s in self._state.subjects if s.name == name), None)

    def _fetch_subjects(self, year: str, branch: str) -> List[Subject]:
        try:
            return self._client.fetch_subjects(year, branch)
        except CourseApiError as e:
            logger.warning("subject fetch failed for %s / %s: %s", year, branch, e)
            return []

    def _apply_subjects(self, token: int, subjects: List[Subject]) -> None:
        with self._lock:
            if token != self._state.generation:
                logger.info("discarding stale subject list (generation %s)", token)
                return
            self._state = replace(self._state, subjects=tuple(subjects), is_loading=False)
