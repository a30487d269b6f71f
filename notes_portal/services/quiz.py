import random
from typing import Dict, List, Optional, Sequence

from notes_portal.models.course import QuizItem
from notes_portal.models.selector import PublicQuestion, QuizResultItem, QuizResultResponse

DEFAULT_QUIZ_SIZE = 10


def sample_quiz(
    items: Sequence[QuizItem],
    limit: int = DEFAULT_QUIZ_SIZE,
    rng: Optional[random.Random] = None,
) -> List[QuizItem]:
    """
    Tire au plus `limit` questions sans remise (mélange d'une copie puis découpe).
    La banque de questions de l'unité n'est jamais modifiée.
    """
    rng = rng or random.Random()
    pool = list(items)
    rng.shuffle(pool)
    return pool[: min(limit, len(pool))]


def is_complete(quiz: Sequence[QuizItem], answers: Dict[int, str]) -> bool:
    if not quiz:
        return False
    return all(i in answers for i in range(len(quiz)))


def score_quiz(quiz: Sequence[QuizItem], answers: Dict[int, str]) -> int:
    return sum(1 for i, item in enumerate(quiz) if answers.get(i) == item.answer)


def to_public_questions(quiz: Sequence[QuizItem]) -> List[PublicQuestion]:
    return [
        PublicQuestion(index=i, question=item.question, options=list(item.options))
        for i, item in enumerate(quiz)
    ]


def build_result(quiz: Sequence[QuizItem], answers: Dict[int, str]) -> QuizResultResponse:
    details: List[QuizResultItem] = []
    for i, item in enumerate(quiz):
        chosen = answers.get(i)
        details.append(
            QuizResultItem(
                index=i,
                correctAnswer=item.answer,
                chosenAnswer=chosen,
                isCorrect=(chosen == item.answer),
            )
        )
    return QuizResultResponse(score=score_quiz(quiz, answers), total=len(quiz), details=details)
